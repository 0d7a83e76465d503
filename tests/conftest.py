"""Shared fixtures.

``web.app`` builds a module-level app on import, so point its SQLite file
and API key at harmless values before any test module imports it.
"""

import os
import tempfile
from pathlib import Path

import pytest

os.environ["DB_PATH"] = str(Path(tempfile.mkdtemp(prefix="compare-brief-")) / "briefs.db")
os.environ["ANTHROPIC_API_KEY"] = ""

from core.models import Brief, BriefRow, Source, TopPick  # noqa: E402


@pytest.fixture
def sample_brief() -> Brief:
    return Brief(
        query="best noise cancelling headphones for calls",
        constraints="under $300",
        top_pick=TopPick(
            name="Sony WH-1000XM5",
            why="Best mic array in its class — “crystal clear” calls 🎧",
            tradeoff="Does not fold flat.",
        ),
        columns=["Price", "ANC", "Mic quality", "Battery", "Comfort"],
        column_help=[
            "Typical street price",
            "Noise cancelling strength",
            "How you sound on calls",
            "Hours per charge",
            "Long-session comfort",
        ],
        rows=[
            BriefRow(name="Sony WH-1000XM5", values=["$350", "Excellent", "Great", "30h", "Good"], notes=""),
            BriefRow(name="Bose QC Ultra", values=["$380", "Excellent", "Good", "24h", "Great"], notes="Comfort pick"),
            BriefRow(name="Jabra Evolve2 65", values=["$200", "Good", "Excellent", "37h", "Okay"], notes="Office use"),
        ],
        sources=[Source(title="RTINGS", url="https://www.rtings.com/headphones")],
    )
