"""Comparison-column normalisation.

Every brief compares options across exactly ``COLUMN_COUNT`` criteria. The
helpers here force arbitrary caller or model input into that shape:

- ``sanitize_columns``: column labels from the UI; blanks become
  positional placeholders (``"Column 3"``).
- ``normalize_criteria``: explicit criteria the user asked for; blanks are
  dropped and the list is padded with ``"Unknown"``.
- ``pad_to``: generic fixed-length pad/truncate.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Optional

from core.models import COLUMN_COUNT

#: Placeholder used wherever a value is missing.
UNKNOWN = "Unknown"

#: Columns used when the caller does not send any.
DEFAULT_COLUMNS: list[str] = ["Price", "Key feature", "Best for", "Drawback", "Where to buy"]


def as_sequence(value: Any) -> list[Any]:
    """Return *value* as a list if it is a non-string sequence, else ``[]``."""
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        return []
    return list(value)


def as_text(value: Any) -> str:
    """Coerce a scalar to a trimmed string; ``None`` becomes ``""``."""
    if value is None:
        return ""
    return str(value).strip()


def pad_to(items: list[str], filler: str, size: int = COLUMN_COUNT) -> list[str]:
    """Truncate *items* to *size*, then pad with *filler* up to *size*."""
    out = list(items[:size])
    out.extend([filler] * (size - len(out)))
    return out


def sanitize_columns(candidate: Any) -> list[str]:
    """Force any candidate value into exactly ``COLUMN_COUNT`` non-empty labels.

    Non-sequences count as empty. Only the first five elements are used;
    each is coerced to a trimmed string and blanks are replaced by a
    1-indexed positional placeholder.

    Examples:
        >>> sanitize_columns(["Price", "  ", None])
        ['Price', 'Column 2', 'Column 3', 'Column 4', 'Column 5']
        >>> sanitize_columns("Price")
        ['Column 1', 'Column 2', 'Column 3', 'Column 4', 'Column 5']
    """
    labels = [as_text(c) for c in as_sequence(candidate)[:COLUMN_COUNT]]
    labels = [label or f"Column {i + 1}" for i, label in enumerate(labels)]
    while len(labels) < COLUMN_COUNT:
        labels.append(f"Column {len(labels) + 1}")
    return labels


def normalize_criteria(candidate: Any) -> Optional[list[str]]:
    """Normalise explicit criteria to exactly five non-empty labels.

    Returns ``None`` when nothing usable was supplied, so callers can tell
    "no criteria" apart from "criteria that happen to be Unknown".
    """
    labels = [as_text(c) for c in as_sequence(candidate)]
    labels = [label for label in labels if label]
    if not labels:
        return None
    return pad_to(labels, UNKNOWN)


def request_columns(columns: Any, criteria: Optional[list[str]] = None) -> list[str]:
    """Pick the column labels for a request: criteria win, then caller columns."""
    if criteria:
        return list(criteria)
    if not as_sequence(columns):
        return list(DEFAULT_COLUMNS)
    return sanitize_columns(columns)
