"""
Pydantic models shared across the compare-brief core.

``Brief`` is the validated record handed to the UI and to storage. It is
serialised with the camelCase wire names used by the browser client
(``topPick``, ``columnHelp``, ``_mode``); always dump with
``by_alias=True, exclude_none=True`` when producing JSON for clients.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

#: Number of comparison criteria every brief carries.
COLUMN_COUNT = 5


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Source(_WireModel):
    """A single web source backing a brief."""

    title: str
    url: str


class TopPick(_WireModel):
    """The one recommended option, with its justification and caveat."""

    name: str
    why: str = ""
    tradeoff: str = ""


class BriefRow(_WireModel):
    """One compared option; ``values`` align positionally with ``Brief.columns``."""

    name: str
    values: list[str] = Field(min_length=COLUMN_COUNT, max_length=COLUMN_COUNT)
    notes: str = ""


class Brief(_WireModel):
    """Structured comparison produced for a single generation request."""

    query: str = Field(min_length=1)
    constraints: str = ""
    top_pick: TopPick = Field(alias="topPick")
    columns: list[str] = Field(min_length=COLUMN_COUNT, max_length=COLUMN_COUNT)
    column_help: list[str] = Field(
        alias="columnHelp", min_length=COLUMN_COUNT, max_length=COLUMN_COUNT
    )
    rows: list[BriefRow] = Field(default_factory=list)
    sources: list[Source] = Field(default_factory=list)
    #: Diagnostic tag set on demo/fallback output; ``None`` for live results.
    mode: Optional[str] = Field(default=None, alias="_mode")

    @property
    def is_demo(self) -> bool:
        return self.mode is not None

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready dict in the browser's wire format."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_wire_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


def _as_optional_list(value: Any) -> Optional[list[Any]]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return list(value)
    return None


class BriefRequest(BaseModel):
    """Inbound generation request.

    Fields are coerced leniently: the body comes straight from a browser
    and any of them may be missing or of the wrong type.
    """

    query: str = ""
    constraints: str = ""
    columns: Optional[list[Any]] = None
    criteria: Optional[list[Any]] = None

    @field_validator("query", "constraints", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("columns", "criteria", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> Optional[list[Any]]:
        return _as_optional_list(value)

    @classmethod
    def from_payload(cls, payload: Any) -> BriefRequest:
        """Build a request from an arbitrary decoded JSON body."""
        if not isinstance(payload, dict):
            return cls()
        known = {k: payload.get(k) for k in ("query", "constraints", "columns", "criteria")}
        return cls.model_validate(known)


class StoredBrief(BaseModel):
    """A brief persisted in the local store."""

    id: str
    created_at: datetime
    brief: Brief
