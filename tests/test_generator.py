"""
Tests for core/generator.py

The Anthropic client is always mocked.

Run with: pytest tests/test_generator.py
"""

import json
from unittest.mock import MagicMock, patch

import anthropic
import httpx
import pytest

from core.errors import (
    BriefError,
    EmptyQueryError,
    InvalidAIResponseError,
    MissingCredentialError,
    UpstreamError,
)
from core.generator import (
    BriefService,
    build_user_prompt,
    parse_json_response,
    resolve_brief,
)
from core.models import BriefRequest


# ── Fixtures ───────────────────────────────────────────────────────────────────


def make_settings(**overrides):
    """Return a minimal Settings-like object for testing."""
    settings = MagicMock()
    settings.anthropic_api_key = "test-key"
    settings.brief_model = "claude-haiku-4-5"
    settings.max_tokens = 1500
    settings.request_timeout = 45.0
    for k, v in overrides.items():
        setattr(settings, k, v)
    if not settings.anthropic_api_key:
        settings.validate.side_effect = MissingCredentialError("no key")
    return settings


def make_client(text: str) -> MagicMock:
    block = MagicMock()
    block.type = "text"
    block.text = text
    response = MagicMock()
    response.content = [block]
    client = MagicMock()
    client.messages.create.return_value = response
    return client


def connection_error() -> anthropic.APIConnectionError:
    return anthropic.APIConnectionError(
        request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    )


AI_BRIEF = {
    "query": "best headphones",
    "constraints": "None",
    "topPick": {"name": "Sony", "why": "Great ANC", "tradeoff": "Pricey"},
    "columns": ["Price", "Battery"],
    "columnHelp": ["Cost", "Hours"],
    "rows": [{"name": "Sony", "values": ["$350", "30h"], "notes": ""}],
    "sources": [{"title": "RTINGS", "url": "https://rtings.com"}],
}


# ── Prompt helpers ─────────────────────────────────────────────────────────────


class TestPrompt:
    def test_includes_query_and_constraints(self):
        prompt = build_user_prompt("best headphones", "under $100", nonce="1")
        assert "best headphones" in prompt
        assert "under $100" in prompt
        assert "Request id: 1" in prompt

    def test_includes_criteria(self):
        prompt = build_user_prompt("q", "", ["Price", "Weight", "Unknown", "Unknown", "Unknown"])
        assert '"Price", "Weight"' in prompt

    def test_default_nonce_is_present(self):
        assert "Request id: " in build_user_prompt("q", "")


class TestParseJsonResponse:
    def test_plain(self):
        assert parse_json_response('{"a": 1}') == {"a": 1}

    def test_fenced(self):
        assert parse_json_response('```json\n{"a": 1}\n```') == {"a": 1}

    def test_invalid(self):
        with pytest.raises(json.JSONDecodeError):
            parse_json_response("Sorry, I can't help with that.")


# ── BriefService.generate ──────────────────────────────────────────────────────


class TestGenerate:
    def test_returns_normalized_brief(self):
        client = make_client(json.dumps(AI_BRIEF))
        service = BriefService(make_settings(), client=client)

        brief = service.generate(BriefRequest(query="best headphones"))

        assert brief.mode is None
        assert brief.columns == ["Price", "Battery", "Unknown", "Unknown", "Unknown"]
        assert brief.rows[0].values == ["$350", "30h", "Unknown", "Unknown", "Unknown"]
        client.messages.create.assert_called_once()

    def test_criteria_override_model_columns(self):
        client = make_client(json.dumps(AI_BRIEF))
        service = BriefService(make_settings(), client=client)

        brief = service.generate(
            BriefRequest(query="best headphones", criteria=["Price", " ", "Weight", "Comfort"])
        )

        assert brief.columns == ["Price", "Weight", "Comfort", "Unknown", "Unknown"]
        user = client.messages.create.call_args.kwargs["messages"][0]["content"]
        assert "Weight" in user

    def test_uses_configured_model(self):
        client = make_client(json.dumps(AI_BRIEF))
        BriefService(make_settings(brief_model="claude-x"), client=client).generate(
            BriefRequest(query="q")
        )
        assert client.messages.create.call_args.kwargs["model"] == "claude-x"

    def test_empty_query_makes_no_call(self):
        client = make_client("{}")
        service = BriefService(make_settings(), client=client)
        with pytest.raises(EmptyQueryError):
            service.generate(BriefRequest(query="   "))
        client.messages.create.assert_not_called()

    def test_missing_credential(self):
        client = make_client("{}")
        service = BriefService(make_settings(anthropic_api_key=""), client=client)
        with pytest.raises(MissingCredentialError):
            service.generate(BriefRequest(query="q"))
        client.messages.create.assert_not_called()

    def test_transport_failure(self):
        client = MagicMock()
        client.messages.create.side_effect = connection_error()
        service = BriefService(make_settings(), client=client)
        with pytest.raises(UpstreamError) as exc_info:
            service.generate(BriefRequest(query="q"))
        assert exc_info.value.retryable

    def test_non_json_reply(self):
        service = BriefService(make_settings(), client=make_client("Here is your brief!"))
        with pytest.raises(InvalidAIResponseError) as exc_info:
            service.generate(BriefRequest(query="q"))
        assert exc_info.value.raw_text == "Here is your brief!"
        assert exc_info.value.to_dict()["raw"] == "Here is your brief!"

    def test_json_array_reply_is_invalid(self):
        service = BriefService(make_settings(), client=make_client("[1, 2, 3]"))
        with pytest.raises(InvalidAIResponseError):
            service.generate(BriefRequest(query="q"))

    @patch("core.generator.anthropic.Anthropic")
    def test_client_is_bounded_and_not_retried(self, mock_cls):
        mock_cls.return_value = make_client(json.dumps(AI_BRIEF))
        BriefService(make_settings(request_timeout=12.0)).generate(BriefRequest(query="q"))
        kwargs = mock_cls.call_args.kwargs
        assert kwargs["timeout"] == 12.0
        assert kwargs["max_retries"] == 0


# ── resolve_brief ──────────────────────────────────────────────────────────────


class TestResolveBrief:
    def test_success(self):
        service = BriefService(make_settings(), client=make_client(json.dumps(AI_BRIEF)))
        outcome = resolve_brief(service, BriefRequest(query="best headphones"))
        assert outcome.ok
        assert outcome.error is None

    def test_unreachable_provider_falls_back_to_demo(self):
        client = MagicMock()
        client.messages.create.side_effect = connection_error()
        service = BriefService(make_settings(), client=client)

        outcome = resolve_brief(
            service, BriefRequest(query="best noise cancelling headphones for calls")
        )

        brief = outcome.brief
        assert brief.mode == "demo_fallback"
        assert len(brief.columns) == 5
        assert len(brief.rows) == 3
        assert any(b in r.name for r in brief.rows for b in ("Sony", "Bose", "Anker"))

    def test_missing_key_serves_forced_demo(self):
        service = BriefService(make_settings(anthropic_api_key=""))
        outcome = resolve_brief(service, BriefRequest(query="best phone plan"))
        assert outcome.brief.mode == "demo_forced"

    def test_demo_uses_criteria_as_columns(self):
        service = BriefService(make_settings(anthropic_api_key=""))
        outcome = resolve_brief(
            service, BriefRequest(query="q", criteria=["Price", "Weight", "Comfort"])
        )
        assert outcome.brief.columns == ["Price", "Weight", "Comfort", "Unknown", "Unknown"]

    def test_errors_surface_without_demo(self):
        service = BriefService(make_settings(), client=make_client("nope"))
        outcome = resolve_brief(service, BriefRequest(query="q"), allow_demo=False)
        assert not outcome.ok
        assert isinstance(outcome.error, InvalidAIResponseError)

    def test_empty_query_is_always_an_error(self):
        service = BriefService(make_settings())
        outcome = resolve_brief(service, BriefRequest(query=""), allow_demo=True)
        assert isinstance(outcome.error, EmptyQueryError)

    def test_unexpected_exception_catch_all(self):
        client = MagicMock()
        client.messages.create.side_effect = RuntimeError("boom")
        service = BriefService(make_settings(), client=client)

        outcome = resolve_brief(service, BriefRequest(query="q"))

        assert outcome.brief.mode == "demo_catch_all"

    def test_unexpected_exception_without_demo(self):
        client = MagicMock()
        client.messages.create.side_effect = RuntimeError("boom")
        service = BriefService(make_settings(), client=client)

        outcome = resolve_brief(service, BriefRequest(query="q"), allow_demo=False)

        assert type(outcome.error) is BriefError
        assert outcome.error.status == 500
