"""
Explore catalogue: seed queries shown before the user types anything.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class ExploreCategory:
    label: str
    query: str
    color: str


CATEGORIES: tuple[ExploreCategory, ...] = (
    ExploreCategory("Tech", "Best smartphone under $800", "#3b82f6"),
    ExploreCategory("Finance", "Best savings account with high APY", "#10b981"),
    ExploreCategory("Health", "Best health insurance plans for freelancers", "#ef4444"),
    ExploreCategory("Travel", "Best travel credit card with no annual fee", "#8b5cf6"),
    ExploreCategory("Food", "Best meal kit delivery service", "#f59e0b"),
    ExploreCategory("Home", "Best robot vacuum for pet hair", "#6366f1"),
)

POPULAR: tuple[str, ...] = (
    "Best noise cancelling headphones under $300",
    "Best laptop for college students 2025",
    "Best streaming service for families",
    "Best phone plan for unlimited data",
    "Best mattress for side sleepers",
    "Best budget wireless earbuds",
)


def explore_catalog() -> dict:
    """Return the catalogue as a JSON-ready dict."""
    return {
        "categories": [asdict(c) for c in CATEGORIES],
        "popular": list(POPULAR),
    }
