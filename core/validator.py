"""Brief validation and normalisation.

``normalize_brief`` is the only path from untrusted model output (or any
other raw JSON) to a ``Brief``. It is total: every malformed field degrades
to a default instead of raising, because the upstream AI response is
unreliable input.

Rules, applied in order:

1. ``query``: candidate string (never a number) if non-blank, else the
   caller's query, else ``DEFAULT_QUERY``.
2. ``constraints``: candidate string, else the caller's constraints, else ``""``.
3. ``columns``: coerced to strings, padded with ``"Unknown"`` to five.
4. explicit criteria override ``columns`` entirely when supplied.
5. ``columnHelp``: padded with ``"Why it matters: Unknown"``; positions whose
   label was replaced by an override get help text keyed to the new label.
6. ``rows``: string ``name``/``notes`` only; ``values`` padded/truncated to five.
7. ``topPick`` / ``sources``: minimal coercion with string defaults.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from core.columns import UNKNOWN, as_sequence, as_text, pad_to
from core.models import Brief, BriefRow, Source, TopPick

#: Untrusted input: parsed JSON from the provider, or anything else.
RawCandidate = Any

DEFAULT_QUERY = "example: best noise cancelling headphones for calls"
HELP_UNKNOWN = "Why it matters: Unknown"
MAX_SOURCES = 5


def _field(candidate: RawCandidate, *names: str) -> Any:
    """Return the first present key among *names*, or ``None``."""
    if not isinstance(candidate, Mapping):
        return None
    for name in names:
        if name in candidate:
            return candidate[name]
    return None


def _str_or(value: Any, default: str) -> str:
    """Strings pass through trimmed; anything else is *default*."""
    return value.strip() if isinstance(value, str) else default


def _text_or(value: Any, default: str) -> str:
    """Like ``_str_or`` but numbers are stringified too."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def _labels(value: Any) -> list[str]:
    """Coerce a list of cells to strings; nested containers become ``""``."""
    return [as_text(v) if not isinstance(v, (dict, list)) else "" for v in as_sequence(value)]


def _padded(value: Any, filler: str) -> list[str]:
    return pad_to([label or filler for label in _labels(value)], filler)


def _help_for(label: str) -> str:
    return HELP_UNKNOWN if label == UNKNOWN else f"Why it matters: {label}"


def _normalize_row(entry: Any) -> BriefRow:
    return BriefRow(
        name=_str_or(_field(entry, "name"), "") or UNKNOWN,
        values=_padded(_field(entry, "values"), UNKNOWN),
        notes=_str_or(_field(entry, "notes"), ""),
    )


def _normalize_sources(value: Any) -> list[Source]:
    sources: list[Source] = []
    for entry in as_sequence(value):
        url = _text_or(_field(entry, "url"), "")
        title = _text_or(_field(entry, "title"), "")
        if not url and not title:
            continue
        sources.append(Source(title=title or url, url=url))
        if len(sources) == MAX_SOURCES:
            break
    return sources


def _normalize_top_pick(value: Any, rows: list[BriefRow]) -> TopPick:
    fallback_name = rows[0].name if rows else UNKNOWN
    return TopPick(
        name=_text_or(_field(value, "name"), "") or fallback_name,
        why=_text_or(_field(value, "why"), ""),
        tradeoff=_text_or(_field(value, "tradeoff"), ""),
    )


def normalize_brief(
    candidate: RawCandidate,
    fallback_query: str = "",
    fallback_constraints: str = "",
    explicit_criteria: Optional[list[str]] = None,
) -> Brief:
    """Turn an untrusted candidate into a structurally valid ``Brief``.

    Args:
        candidate: Parsed JSON (or anything else) claiming to be a brief.
        fallback_query: The user's original query.
        fallback_constraints: The user's original constraints.
        explicit_criteria: Criteria the user asked for; when non-empty they
            replace whatever columns the candidate proposed.

    Returns:
        A ``Brief`` with exactly five columns and help entries and five
        values per row. ``rows`` and ``sources`` may be empty.
    """
    query = (
        _str_or(_field(candidate, "query"), "")
        or as_text(fallback_query)
        or DEFAULT_QUERY
    )
    constraints = _str_or(_field(candidate, "constraints"), as_text(fallback_constraints))

    model_columns = _padded(_field(candidate, "columns"), UNKNOWN)
    column_help = _padded(_field(candidate, "columnHelp", "column_help"), HELP_UNKNOWN)

    columns = model_columns
    criteria = as_sequence(explicit_criteria)
    if criteria:
        columns = _padded(criteria, UNKNOWN)
        column_help = [
            help_text if label.casefold() == model_label.casefold() else _help_for(label)
            for label, model_label, help_text in zip(columns, model_columns, column_help)
        ]

    rows = [_normalize_row(entry) for entry in as_sequence(_field(candidate, "rows"))]

    return Brief(
        query=query,
        constraints=constraints,
        top_pick=_normalize_top_pick(_field(candidate, "topPick", "top_pick"), rows),
        columns=columns,
        column_help=column_help,
        rows=rows,
        sources=_normalize_sources(_field(candidate, "sources")),
    )
