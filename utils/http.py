"""HTTP utilities for the call-data tools.

Provides reusable pieces for outbound reference-data requests:
- RetryStrategy: urllib3 retry configuration
- SessionManager: pooled requests.Session with retries mounted
- get_json(): one bounded-timeout GET decoded as JSON
"""

import logging
import time
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry as URLRetry

logger = logging.getLogger(__name__)


class RetryStrategy:
    """Defines retry behavior for HTTP requests."""

    def __init__(self, max_retries: int = 3, backoff_factor: float = 1.0,
                 status_forcelist: Optional[List[int]] = None):
        """Initialize retry strategy.

        Args:
            max_retries: Maximum number of retry attempts (default: 3)
            backoff_factor: Exponential backoff multiplier (default: 1.0)
                           delays: 1s, 2s, 4s, etc.
            status_forcelist: HTTP status codes to retry on
                            (default: [429, 500, 502, 503, 504])
        """
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.status_forcelist = status_forcelist or [429, 500, 502, 503, 504]

    def get_retry_object(self) -> URLRetry:
        """Get urllib3 Retry object configured with this strategy."""
        return URLRetry(
            total=self.max_retries,
            backoff_factor=self.backoff_factor,
            status_forcelist=self.status_forcelist,
            allowed_methods=["GET", "HEAD"],
            raise_on_status=False,
        )


class SessionManager:
    """Manages HTTP sessions with connection pooling and retries."""

    def __init__(self, retry_strategy: Optional[RetryStrategy] = None,
                 pool_connections: int = 4, pool_maxsize: int = 8):
        """Initialize session manager.

        Args:
            retry_strategy: RetryStrategy to use (default: standard strategy)
            pool_connections: Number of connection pools to cache
            pool_maxsize: Maximum number of connections per pool
        """
        self.retry_strategy = retry_strategy or RetryStrategy()
        self.pool_connections = pool_connections
        self.pool_maxsize = pool_maxsize
        self._session: Optional[requests.Session] = None

    @property
    def session(self) -> requests.Session:
        """Get or create HTTP session with retries and pooling."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers["Accept"] = "application/json"

            adapter = HTTPAdapter(
                max_retries=self.retry_strategy.get_retry_object(),
                pool_connections=self.pool_connections,
                pool_maxsize=self.pool_maxsize,
            )
            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)

        return self._session

    def close(self) -> None:
        """Close the session and release resources."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def get_json(session: requests.Session, url: str,
             params: Optional[Dict[str, Any]] = None,
             timeout: float = 30.0) -> Any:
    """GET ``url`` and decode the body as JSON.

    Args:
        session: Session to issue the request on
        url: Absolute URL
        params: Query-string parameters
        timeout: Connect/read timeout in seconds

    Returns:
        Decoded JSON document

    Raises:
        requests.RequestException: On connection failure, timeout or a
            non-2xx status.
        ValueError: If the body is not JSON.
    """
    start = time.monotonic()
    resp = session.get(url, params=params, timeout=timeout)
    resp.raise_for_status()
    logger.debug("GET %s -> %s (%.0f ms)", resp.url, resp.status_code,
                 (time.monotonic() - start) * 1000)
    return resp.json()
