"""Tests for narrative backend implementations.

Shared behaviour (narrate, _parse, first_json_object) lives in BaseNarrator
and is tested once via a lightweight stub. Backend-specific tests cover only
what differs between implementations: the SDK client setup and _call_api.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from prscribe_core.errors import NarrativeBackendError
from prscribe_core.providers.anthropic import AnthropicNarrator
from prscribe_core.providers.base import SYSTEM_PROMPT, BaseNarrator, first_json_object
from prscribe_core.providers.openai import OpenAINarrator

STORY = {
    "summary": "Adds widget sizing.",
    "technicalDetails": "Introduces a size field.",
    "impact": "Widgets can be resized.",
    "keyChanges": ["size field", "tests"],
    "complexity": "Medium",
    "tags": ["python", "ui"],
}
VALID_JSON = json.dumps(STORY)


class _StubNarrator(BaseNarrator):
    """Concrete subclass returning a canned reply, so shared logic is tested without an SDK."""

    NAME = "stub"

    def __init__(self, reply=VALID_JSON, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        if self.error:
            raise self.error
        return self.reply


# ---------------------------------------------------------------------------
# Shared behaviour, tested once through the stub, not per backend
# ---------------------------------------------------------------------------


class TestNarrate:
    def test_returns_story(self):
        story = _StubNarrator().narrate("prompt")
        assert story.summary == "Adds widget sizing."
        assert story.key_changes == ("size field", "tests")
        assert story.complexity == "medium"

    def test_sends_system_prompt(self):
        narrator = _StubNarrator()
        narrator.narrate("the prompt")
        assert narrator.calls == [(SYSTEM_PROMPT, "the prompt")]

    def test_api_error_becomes_backend_error(self):
        with pytest.raises(NarrativeBackendError, match="stub API error"):
            _StubNarrator(error=TimeoutError("timed out")).narrate("prompt")

    def test_empty_reply_is_an_error(self):
        with pytest.raises(NarrativeBackendError, match="No content"):
            _StubNarrator(reply="").narrate("prompt")


class TestParse:
    def test_parses_bare_json(self):
        assert _StubNarrator()._parse(VALID_JSON).tags == ("python", "ui")

    def test_extracts_object_from_surrounding_prose(self):
        raw = f"Here is the analysis:\n```json\n{VALID_JSON}\n```\nHope this helps."
        assert _StubNarrator()._parse(raw).impact == "Widgets can be resized."

    def test_braces_inside_strings_do_not_truncate(self):
        payload = json.dumps({**STORY, "summary": "Replaces {old} with {new}"})
        story = _StubNarrator()._parse(f"Result: {payload}")
        assert story.summary == "Replaces {old} with {new}"

    def test_invalid_json_raises(self):
        with pytest.raises(NarrativeBackendError):
            _StubNarrator()._parse("not json at all")

    def test_missing_field_raises(self):
        partial = {k: v for k, v in STORY.items() if k != "impact"}
        with pytest.raises(NarrativeBackendError, match="impact"):
            _StubNarrator()._parse(json.dumps(partial))

    def test_bad_complexity_raises(self):
        with pytest.raises(NarrativeBackendError):
            _StubNarrator()._parse(json.dumps({**STORY, "complexity": "extreme"}))

    def test_non_list_tags_raise(self):
        with pytest.raises(NarrativeBackendError):
            _StubNarrator()._parse(json.dumps({**STORY, "tags": "python"}))

    def test_array_reply_raises(self):
        with pytest.raises(NarrativeBackendError):
            _StubNarrator()._parse("[1, 2, 3]")


class TestFirstJsonObject:
    def test_none_without_braces(self):
        assert first_json_object("no object here") is None

    def test_nested_objects(self):
        assert first_json_object('x {"a": {"b": 1}} y') == '{"a": {"b": 1}}'

    def test_escaped_quote_inside_string(self):
        assert first_json_object('{"a": "say \\"}\\" now"}') == '{"a": "say \\"}\\" now"}'

    def test_skips_unbalanced_leading_brace(self):
        assert first_json_object('{ broken {"a": 1}') == '{"a": 1}'
        assert first_json_object('} {"a": 1}') == '{"a": 1}'


# ---------------------------------------------------------------------------
# OpenAINarrator: SDK setup and _call_api only
# ---------------------------------------------------------------------------


class TestOpenAINarrator:
    def test_client_configured_without_retries(self):
        with patch("prscribe_core.providers.openai._OpenAI") as openai_cls:
            OpenAINarrator(api_key="sk-test", timeout=2.5)
        openai_cls.assert_called_once_with(api_key="sk-test", timeout=2.5, max_retries=0)

    def test_call_api_returns_message_content(self):
        with patch("prscribe_core.providers.openai._OpenAI") as openai_cls:
            narrator = OpenAINarrator(api_key="sk-test")
        response = MagicMock()
        response.choices[0].message.content = VALID_JSON
        openai_cls.return_value.chat.completions.create.return_value = response

        assert narrator.narrate("prompt").summary == "Adds widget sizing."
        kwargs = openai_cls.return_value.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == OpenAINarrator.MODEL
        assert kwargs["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert kwargs["max_tokens"] == 1000

    def test_missing_sdk_raises_import_error(self):
        with patch("prscribe_core.providers.openai._OpenAI", None):
            with pytest.raises(ImportError, match="prscribe\\[openai\\]"):
                OpenAINarrator(api_key="sk-test")


# ---------------------------------------------------------------------------
# AnthropicNarrator: SDK setup and _call_api only
# ---------------------------------------------------------------------------


class TestAnthropicNarrator:
    def test_call_api_joins_text_blocks(self):
        from anthropic.types import TextBlock

        with patch("anthropic.Anthropic") as anthropic_cls:
            narrator = AnthropicNarrator(api_key="ak-test", timeout=2.5)
        anthropic_cls.assert_called_once_with(api_key="ak-test", timeout=2.5, max_retries=0)

        half = len(VALID_JSON) // 2
        response = MagicMock()
        response.content = [
            TextBlock(type="text", text=VALID_JSON[:half]),
            TextBlock(type="text", text=VALID_JSON[half:]),
        ]
        anthropic_cls.return_value.messages.create.return_value = response

        assert narrator.narrate("prompt").tags == ("python", "ui")
        kwargs = anthropic_cls.return_value.messages.create.call_args.kwargs
        assert kwargs["system"] == SYSTEM_PROMPT
        assert kwargs["model"] == AnthropicNarrator.MODEL

    def test_missing_sdk_raises_import_error(self):
        with patch.dict("sys.modules", {"anthropic": None}):
            with pytest.raises(ImportError, match="prscribe\\[anthropic\\]"):
                AnthropicNarrator(api_key="ak-test")
