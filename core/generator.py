"""
Brief generation via the Claude API.

Flow
────
1. BriefService.generate(request)
     → validates preconditions (API key, non-empty query)
     → one Claude call with a fixed output contract in the system prompt
     → parses the reply as JSON and runs it through ``normalize_brief``
     → raises a typed ``BriefError`` on any failure; never falls back itself

2. resolve_brief(service, request, allow_demo)
     → outermost boundary used by the web layer
     → converts every failure into a ``BriefOutcome``, substituting a demo
       brief when ``allow_demo`` is set
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

import anthropic

from core.columns import normalize_criteria, request_columns
from core.demo import MODE_CATCH_ALL, MODE_FALLBACK, MODE_FORCED, make_demo_brief
from core.errors import (
    BriefError,
    EmptyQueryError,
    InvalidAIResponseError,
    MissingCredentialError,
    UpstreamError,
)
from core.models import Brief, BriefRequest
from core.validator import DEFAULT_QUERY, normalize_brief

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)

# ── Prompts ────────────────────────────────────────────────────────────────

BRIEF_SYSTEM = (
    "You produce shopping and decision comparison briefs. Return ONLY one JSON object, "
    "no markdown fences, no commentary. All UI strings must be in English.\n"
    "Schema:\n"
    '{"query": str, "constraints": str, '
    '"topPick": {"name": str, "why": str, "tradeoff": str}, '
    '"columns": [str x5], "columnHelp": [str x5], '
    '"rows": [{"name": str, "values": [str x5], "notes": str} x3], '
    '"sources": [{"title": str, "url": str}]}\n'
    "Rules:\n"
    "- Exactly 5 columns and exactly 5 columnHelp entries, one short sentence each.\n"
    "- Exactly 3 rows; every row.values has exactly 5 short values aligned with columns.\n"
    "- Keep values short (a few words).\n"
    "- 3 to 5 sources; if unsure of a URL use https://example.com.\n"
    '- Prefer "Unknown" over inventing facts.'
)


def build_user_prompt(
    query: str,
    constraints: str,
    criteria: Optional[list[str]] = None,
    nonce: Optional[str] = None,
) -> str:
    """Assemble the user message for a single generation call.

    The *nonce* (a timestamp by default) keeps otherwise identical requests
    from being answered with a cached/repeated completion.
    """
    lines = [
        f"Question: {query}",
        f"Constraints: {constraints or 'None'}",
    ]
    if criteria:
        lines.append(
            "Use exactly these 5 columns, in this order: " + json.dumps(criteria)
        )
    lines.append(f"Request id: {nonce or time.time_ns()}")
    return "\n".join(lines)


def parse_json_response(text: str) -> Any:
    """Parse JSON from model output, tolerating a Markdown code fence."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else ""
        if cleaned.rstrip().endswith("```"):
            cleaned = cleaned.rstrip()[:-3]
    return json.loads(cleaned)


# ── Service ────────────────────────────────────────────────────────────────


class BriefService:
    """Generates briefs using the Claude API.

    The Anthropic client is lazy-initialised so that the service can be
    instantiated in tests (or without a key) and a fake client injected.
    """

    def __init__(self, settings: Settings, client: object = None) -> None:
        self.settings = settings
        self._client = client

    @property
    def client(self) -> object:
        """Lazy-initialise and return the Anthropic SDK client."""
        if self._client is None:
            # Bounded wait, no SDK retries: callers decide when to re-invoke.
            self._client = anthropic.Anthropic(
                api_key=self.settings.anthropic_api_key,
                timeout=self.settings.request_timeout,
                max_retries=0,
            )
        return self._client

    def complete(self, system: str, user: str) -> str:
        """Send one system+user prompt pair and return the concatenated text.

        Raises:
            UpstreamError: On any transport or API status failure.
        """
        try:
            response = self.client.messages.create(
                model=self.settings.brief_model,
                max_tokens=self.settings.max_tokens,
                system=system,
                messages=[{"role": "user", "content": user}],
            )
        except anthropic.APIError as exc:
            logger.warning("Claude request failed: %s", exc)
            raise UpstreamError(f"AI provider request failed: {exc}") from exc

        return "".join(
            getattr(block, "text", "") or ""
            for block in getattr(response, "content", None) or []
            if getattr(block, "type", None) == "text"
        )

    def generate(self, request: BriefRequest) -> Brief:
        """Generate a validated brief for *request*.

        Args:
            request: Query, constraints and optional explicit criteria.

        Returns:
            A ``Brief`` with no ``_mode`` set.

        Raises:
            MissingCredentialError: No API key configured.
            EmptyQueryError: Query is blank after trimming.
            UpstreamError: The provider could not be reached.
            InvalidAIResponseError: The reply was not a JSON object.
        """
        query = request.query.strip()
        if not query:
            raise EmptyQueryError()
        self.settings.validate()

        criteria = normalize_criteria(request.criteria)
        user = build_user_prompt(query, request.constraints, criteria)
        logger.info(
            "Generating brief query=%r criteria=%s model=%s",
            query, criteria, self.settings.brief_model,
        )

        raw_text = self.complete(BRIEF_SYSTEM, user)
        try:
            candidate = parse_json_response(raw_text)
        except (json.JSONDecodeError, ValueError) as exc:
            logger.warning("Claude returned non-JSON output: %s", exc)
            raise InvalidAIResponseError(raw_text) from exc
        if not isinstance(candidate, dict):
            raise InvalidAIResponseError(raw_text)

        return normalize_brief(
            candidate,
            fallback_query=query,
            fallback_constraints=request.constraints,
            explicit_criteria=criteria,
        )


# ── Outer boundary ─────────────────────────────────────────────────────────


@dataclass
class BriefOutcome:
    """Result of a generation attempt: exactly one of *brief* / *error* is set."""

    brief: Optional[Brief] = None
    error: Optional[BriefError] = None

    @property
    def ok(self) -> bool:
        return self.brief is not None


def _demo_for(request: BriefRequest, mode: str) -> Brief:
    criteria = normalize_criteria(request.criteria)
    return make_demo_brief(
        request.query,
        request.constraints,
        request_columns(request.columns, criteria),
        mode=mode,
    )


def resolve_brief(
    service: BriefService,
    request: BriefRequest,
    allow_demo: bool = True,
) -> BriefOutcome:
    """Run a generation request and never raise.

    With *allow_demo*, configuration and upstream failures degrade to a
    demo brief tagged with ``_mode``; otherwise the typed error is returned.
    An empty query is always an error.
    """
    try:
        return BriefOutcome(brief=service.generate(request))
    except EmptyQueryError as exc:
        return BriefOutcome(error=exc)
    except MissingCredentialError as exc:
        if not allow_demo:
            return BriefOutcome(error=exc)
        logger.info("No API key configured; serving demo brief")
        return BriefOutcome(brief=_demo_for(request, MODE_FORCED))
    except (UpstreamError, InvalidAIResponseError) as exc:
        if not allow_demo:
            return BriefOutcome(error=exc)
        logger.warning("Live generation failed (%s); serving demo brief", exc.code)
        return BriefOutcome(brief=_demo_for(request, MODE_FALLBACK))
    except Exception:
        logger.exception("Unexpected error generating brief for query=%r", request.query)
        if not allow_demo:
            return BriefOutcome(error=BriefError())
        return BriefOutcome(
            brief=make_demo_brief(
                DEFAULT_QUERY,
                "None",
                ["Price", "Key feature", "Best for", "Downside", "Notes"],
                mode=MODE_CATCH_ALL,
            )
        )
