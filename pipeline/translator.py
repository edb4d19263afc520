"""
Natural-language → query specification translators.

The query engine only ever sees a specification mapping (see
pipeline.query).  Anything that turns a free-text question into one
implements the QueryTranslator protocol::

    translate(message, columns) -> dict

AnthropicTranslator asks a Claude model for the mapping.  It needs the
optional ``anthropic`` package and ANTHROPIC_API_KEY; build_translator()
returns None when either is missing and the API then answers
natural-language queries with 503.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from pipeline.errors import ExternalFetchError, QuerySpecError
from utils.patterns import JSON_OBJECT

logger = logging.getLogger(__name__)


class QueryTranslator(Protocol):
    def translate(self, message: str, columns: list[str]) -> dict[str, Any]:
        ...


def parse_spec_reply(raw: str) -> dict[str, Any]:
    """Extract the first JSON object from a model reply.

    Raises:
        QuerySpecError: If no JSON object can be decoded.
    """
    m = JSON_OBJECT.search(raw or "")
    if not m:
        raise QuerySpecError("Could not understand the query")
    try:
        spec = json.loads(m.group())
    except json.JSONDecodeError as e:
        raise QuerySpecError(f"Could not understand the query: {e}") from e
    if not isinstance(spec, dict):
        raise QuerySpecError("Could not understand the query")
    return spec


def build_prompt(message: str, columns: list[str]) -> str:
    return (
        "You translate questions about a table of phone call records into a "
        "JSON query specification.\n\n"
        f"Available columns: {', '.join(columns)}\n\n"
        "Return ONLY a JSON object with these optional keys:\n"
        '  "filters": {column: value}  (case-insensitive substring match)\n'
        '  "sort": {"column": column, "direction": "asc" | "desc"}\n'
        '  "aggregation": {"type": "count" | "sum" | "avg" | "max" | "min", '
        '"column": column, "groupBy": column}\n'
        '  "explanation": one short sentence describing the query\n'
        'Example: {"filters": {"CallerState": "CA"}, '
        '"aggregation": {"type": "count", "groupBy": "CallerCity"}, '
        '"explanation": "Calls from California grouped by city"}\n\n'
        f"Question: {message}"
    )


class AnthropicTranslator:
    """QueryTranslator backed by the Anthropic Messages API."""

    def __init__(self, client: Any, model: str, max_tokens: int = 512) -> None:
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    def translate(self, message: str, columns: list[str]) -> dict[str, Any]:
        """Ask the model for a specification.

        Raises:
            ExternalFetchError: If the API call fails.
            QuerySpecError: If the reply holds no JSON object.
        """
        try:
            msg = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": build_prompt(message, columns)}],
            )
        except Exception as e:
            logger.error("Translator call failed: %s", e)
            raise ExternalFetchError(f"Query translation failed: {e}") from e
        raw = msg.content[0].text.strip() if msg.content else ""
        spec = parse_spec_reply(raw)
        logger.info("Translated query %r -> %s", message[:80], spec)
        return spec


def build_translator(api_key: str, model: str) -> AnthropicTranslator | None:
    """Return an AnthropicTranslator, or None when it cannot be configured."""
    if not api_key:
        logger.info("ANTHROPIC_API_KEY not set; natural-language queries disabled")
        return None
    try:
        import anthropic
    except ImportError:
        logger.warning("anthropic package not installed; natural-language queries "
                       "disabled (pip install anthropic)")
        return None
    return AnthropicTranslator(anthropic.Anthropic(api_key=api_key), model)
