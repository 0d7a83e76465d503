"""Offline demo briefs.

Used whenever live generation is unavailable: no API key, provider failure,
or unusable output. The query is classified against an ordered list of
``DemoCategory`` entries (first match wins) and the matching canned item
set becomes the comparison. Adding a category is a data change only.

Output is deterministic for a given (query, constraints, columns) and the
generator performs no I/O.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from core.columns import sanitize_columns
from core.models import Brief, BriefRow, TopPick
from core.validator import DEFAULT_QUERY

logger = logging.getLogger(__name__)

#: ``_mode`` tags for the different degraded paths.
MODE_FORCED = "demo_forced"
MODE_FALLBACK = "demo_fallback"
MODE_CATCH_ALL = "demo_catch_all"

DEMO_WHY = "Demo result to showcase how a comparison brief is structured."
DEMO_TRADEOFF = "Live sources and real links appear when an AI provider key is configured."

DEMO_COLUMN_HELP: list[str] = [
    "Quick comparison metric",
    "Core features & quality",
    "Best target audience",
    "Compatibility & limits",
    "Additional notes",
]


@dataclass(frozen=True)
class DemoItem:
    name: str
    values: tuple[str, ...]
    notes: str


@dataclass(frozen=True)
class DemoCategory:
    """A keyword lexicon and the canned items shown when it matches."""

    name: str
    pattern: re.Pattern[str]
    items: tuple[DemoItem, ...]

    def matches(self, query: str) -> bool:
        return self.pattern.search(query) is not None


def _lexicon(*terms: str) -> re.Pattern[str]:
    """Whole-word, case-insensitive pattern for *terms* (plural ``s`` allowed)."""
    alternatives = "|".join(re.escape(t) for t in terms)
    return re.compile(rf"\b(?:{alternatives})s?\b", re.IGNORECASE)


# ── Category table (evaluated top to bottom) ───────────────────────────────────

CATEGORIES: tuple[DemoCategory, ...] = (
    DemoCategory(
        name="phone_plan",
        pattern=_lexicon("phone plan", "cell plan", "carrier", "sim", "esim", "prepaid"),
        items=(
            DemoItem(
                "Mint Mobile (Demo)",
                ("$15–$30/mo", "5–20GB", "Limited", "Yes", "Best value prepaid"),
                "Budget-friendly if coverage fits your area.",
            ),
            DemoItem(
                "Visible (Demo)",
                ("$25–$45/mo", "Unlimited", "Limited", "Yes", "Verizon network"),
                "Simple unlimited pricing, good coverage in many areas.",
            ),
            DemoItem(
                "T-Mobile Prepaid (Demo)",
                ("$40–$60/mo", "Unlimited", "Add-on", "Yes", "Intl add-ons"),
                "Good for international students; check promos.",
            ),
        ),
    ),
    DemoCategory(
        name="headphones",
        pattern=_lexicon("headphone", "earbud", "earphone", "anc", "noise cancelling"),
        items=(
            DemoItem(
                "Sony WH-1000XM (Demo)",
                ("$250–$400", "Strong ANC", "Great", "Long", "Comfortable"),
                "Balanced pick for calls + noise cancelling.",
            ),
            DemoItem(
                "Bose QC (Demo)",
                ("$250–$380", "Strong ANC", "Good", "Long", "Very comfy"),
                "Comfort-first pick; call quality varies by model.",
            ),
            DemoItem(
                "Anker Soundcore (Demo)",
                ("$60–$150", "Good ANC", "Okay", "Long", "Budget"),
                "Great value, fewer premium features.",
            ),
        ),
    ),
)

DEFAULT_ITEMS: tuple[DemoItem, ...] = (
    DemoItem("Option A (Demo)", ("Mid", "High", "Good", "Yes", "Simple choice"), "Solid baseline option."),
    DemoItem("Option B (Demo)", ("Low", "Medium", "Okay", "Yes", "Budget"), "Cheapest, fewer premium features."),
    DemoItem("Option C (Demo)", ("High", "High", "Great", "Yes", "Premium"), "Best performance, costs more."),
)


def classify(query: str) -> Optional[DemoCategory]:
    """Return the first category whose lexicon matches *query*, or ``None``.

    Examples:
        >>> classify("best phone plan for students").name
        'phone_plan'
        >>> classify("best noise cancelling headphones for calls").name
        'headphones'
        >>> classify("best mattress for side sleepers") is None
        True
    """
    for category in CATEGORIES:
        if category.matches(query):
            return category
    return None


def make_demo_brief(
    query: str,
    constraints: str,
    columns: list[str],
    mode: str = MODE_FORCED,
) -> Brief:
    """Synthesise a complete brief from the query text alone.

    Args:
        query: The user's question; blank falls back to ``DEFAULT_QUERY``.
        constraints: Free-text constraints; blank becomes ``"None"``.
        columns: Column labels; run through ``sanitize_columns`` so there are
            always five.
        mode: ``_mode`` tag describing why demo content was served.

    Returns:
        A ``Brief`` with three rows, no sources and ``_mode`` set.
    """
    query = query.strip() or DEFAULT_QUERY
    columns = sanitize_columns(columns)
    category = classify(query)
    items = category.items if category else DEFAULT_ITEMS
    logger.info(
        "Demo brief query=%r category=%s mode=%s",
        query, category.name if category else "default", mode,
    )

    width = len(columns)
    return Brief(
        query=query,
        constraints=constraints.strip() or "None",
        top_pick=TopPick(name=items[0].name, why=DEMO_WHY, tradeoff=DEMO_TRADEOFF),
        columns=columns,
        column_help=DEMO_COLUMN_HELP[:width],
        rows=[
            BriefRow(name=item.name, values=list(item.values[:width]), notes=item.notes)
            for item in items
        ],
        sources=[],
        mode=mode,
    )
