"""
Error taxonomy for the call-data pipeline.

Every failure in ingestion, enrichment and querying is request-scoped.  The
API layer maps these classes to JSON error bodies (see api/app.py); the
pipeline modules raise them and never catch-and-hide them.

    CallDataError
    ├── ParseError            file cannot be decoded / parsed
    ├── ValidationError       bad upload type/size, malformed query spec
    │   ├── UploadTooLargeError
    │   └── QuerySpecError
    ├── ExternalFetchError    BOE (or other outbound) dependency unreachable
    ├── IngestionError        whole-dataset load failed (registry unreachable)
    ├── NotFoundError         unknown DataFile id
    └── TranslatorUnavailable no natural-language translator configured
"""


class CallDataError(Exception):
    """Base exception for the call-data pipeline."""
    pass


class ParseError(CallDataError):
    """Raised when a delimited file cannot be decoded or parsed."""

    def __init__(self, message: str, source: str | None = None):
        super().__init__(message)
        self.source = source


class ValidationError(CallDataError, ValueError):
    """Raised for caller input rejected before any state mutation."""
    pass


class UploadTooLargeError(ValidationError):
    """Raised when an upload exceeds the configured size cap."""
    pass


class QuerySpecError(ValidationError):
    """Raised when a query specification cannot be interpreted."""
    pass


class ExternalFetchError(CallDataError):
    """Raised when an outbound reference-data fetch fails."""
    pass


class IngestionError(CallDataError):
    """Raised when the dataset as a whole cannot be loaded."""
    pass


class NotFoundError(CallDataError):
    """Raised when a requested DataFile does not exist."""
    pass


class TranslatorUnavailable(CallDataError):
    """Raised when a natural-language query arrives and no translator is set."""
    pass
