"""
Unit tests for pipeline/translator.py — natural-language query translation.

The Anthropic client is replaced by a MagicMock; no API calls are made.
"""
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pipeline.errors import ExternalFetchError, QuerySpecError
from pipeline.translator import (
    AnthropicTranslator,
    build_prompt,
    build_translator,
    parse_spec_reply,
)


def _client(text):
    client = MagicMock()
    client.messages.create.return_value = SimpleNamespace(
        content=[SimpleNamespace(text=text)]
    )
    return client


class TestParseSpecReply:
    def test_plain_json(self):
        assert parse_spec_reply('{"filters": {"CallerState": "CA"}}') == {
            "filters": {"CallerState": "CA"}
        }

    def test_json_inside_prose(self):
        raw = 'Sure! Here it is:\n```json\n{"sort": {"column": "Duration"}}\n```'
        assert parse_spec_reply(raw) == {"sort": {"column": "Duration"}}

    @pytest.mark.parametrize("raw", ["", "no json here", "{not: valid}"])
    def test_unparseable(self, raw):
        with pytest.raises(QuerySpecError):
            parse_spec_reply(raw)


class TestBuildPrompt:
    def test_lists_columns_and_question(self):
        prompt = build_prompt("calls from CA", ["CallerID", "CallerState"])
        assert "CallerID, CallerState" in prompt
        assert prompt.endswith("Question: calls from CA")


class TestAnthropicTranslator:
    def test_translate(self):
        client = _client('{"filters": {"CallerState": "CA"}, "explanation": "CA calls"}')
        spec = AnthropicTranslator(client, "test-model").translate("calls from CA", ["CallerState"])
        assert spec["filters"] == {"CallerState": "CA"}
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["messages"][0]["role"] == "user"

    def test_api_failure(self):
        client = MagicMock()
        client.messages.create.side_effect = RuntimeError("overloaded")
        with pytest.raises(ExternalFetchError):
            AnthropicTranslator(client, "m").translate("q", [])

    def test_garbage_reply(self):
        with pytest.raises(QuerySpecError):
            AnthropicTranslator(_client("I don't know"), "m").translate("q", [])


class TestBuildTranslator:
    def test_no_key(self):
        assert build_translator("", "m") is None

    def test_missing_package(self, monkeypatch):
        monkeypatch.setitem(sys.modules, "anthropic", None)
        assert build_translator("sk-test", "m") is None
