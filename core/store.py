"""
Local brief store: opaque id → Brief.

``BriefStore`` owns id generation and the best-effort policy; the actual
persistence lives behind a small backend interface (get / set / list /
remove / clear) so tests can swap in ``InMemoryBackend``.

SQLite schema (``SQLiteBackend``)
──────────────────────────────────
table: briefs
  seq        INTEGER PRIMARY KEY AUTOINCREMENT   (insertion order)
  id         TEXT NOT NULL UNIQUE
  created_at TEXT NOT NULL  (ISO-8601 UTC)
  brief      TEXT NOT NULL  (Brief serialised as wire-format JSON)
"""

from __future__ import annotations

import logging
import secrets
import sqlite3
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

from pydantic import ValidationError

from core.errors import DecodeError
from core.models import Brief, StoredBrief

logger = logging.getLogger(__name__)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(number: int) -> str:
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def new_brief_id() -> str:
    """Return an opaque id: millisecond timestamp plus 48 random bits, base36."""
    return _base36(time.time_ns() // 1_000_000) + _base36(secrets.randbits(48)).rjust(10, "0")


# ── Backends ───────────────────────────────────────────────────────────────


class StoreBackend(Protocol):
    def get(self, brief_id: str) -> Optional[StoredBrief]: ...

    def set(self, entry: StoredBrief) -> None: ...

    def list(self, limit: Optional[int] = None) -> list[StoredBrief]: ...

    def remove(self, brief_id: str) -> bool: ...

    def clear(self) -> None: ...


class InMemoryBackend:
    """Dict-backed backend; insertion order doubles as recency order."""

    def __init__(self) -> None:
        self._entries: dict[str, StoredBrief] = {}

    def get(self, brief_id: str) -> Optional[StoredBrief]:
        return self._entries.get(brief_id)

    def set(self, entry: StoredBrief) -> None:
        self._entries.pop(entry.id, None)
        self._entries[entry.id] = entry

    def list(self, limit: Optional[int] = None) -> list[StoredBrief]:
        entries = list(reversed(self._entries.values()))
        return entries if limit is None else entries[:limit]

    def remove(self, brief_id: str) -> bool:
        return self._entries.pop(brief_id, None) is not None

    def clear(self) -> None:
        self._entries.clear()


class SQLiteBackend:
    """File-backed backend using the standard-library ``sqlite3`` module."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    @contextmanager
    def _connect(self):
        """Yield a connected sqlite3.Connection, creating the file/dir if needed."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create the briefs table if it doesn't exist yet."""
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS briefs (
                    seq        INTEGER PRIMARY KEY AUTOINCREMENT,
                    id         TEXT NOT NULL UNIQUE,
                    created_at TEXT NOT NULL,
                    brief      TEXT NOT NULL
                )
                """
            )
        logger.info("Brief store initialised at %s", self.path)

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> StoredBrief:
        return StoredBrief(
            id=row["id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            brief=Brief.model_validate_json(row["brief"]),
        )

    def get(self, brief_id: str) -> Optional[StoredBrief]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, created_at, brief FROM briefs WHERE id = ?",
                (brief_id,),
            ).fetchone()
        return None if row is None else self._row_to_entry(row)

    def set(self, entry: StoredBrief) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM briefs WHERE id = ?", (entry.id,))
            conn.execute(
                "INSERT INTO briefs (id, created_at, brief) VALUES (?, ?, ?)",
                (entry.id, entry.created_at.isoformat(), entry.brief.to_wire_json()),
            )

    def list(self, limit: Optional[int] = None) -> list[StoredBrief]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, created_at, brief FROM briefs ORDER BY seq DESC LIMIT ?",
                (-1 if limit is None else limit,),
            ).fetchall()

        entries: list[StoredBrief] = []
        for row in rows:
            try:
                entries.append(self._row_to_entry(row))
            except (ValidationError, ValueError) as exc:
                logger.warning("Skipping corrupt brief id=%s: %s", row["id"], exc)
        return entries

    def remove(self, brief_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM briefs WHERE id = ?", (brief_id,))
        return cursor.rowcount > 0

    def clear(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM briefs")


# ── Store ──────────────────────────────────────────────────────────────────


class BriefStore:
    """Keyed history of generated briefs.

    Persistence is best-effort: backend failures are logged and reported as
    "nothing stored" rather than raised, so losing history never breaks the
    brief the user is currently looking at. A missing id is a normal
    outcome (``None``), not an error; a stored entry that no longer parses
    raises ``DecodeError`` instead.
    """

    def __init__(self, backend: StoreBackend) -> None:
        self.backend = backend

    def save(self, brief: Brief) -> str:
        """Store *brief* under a fresh id and return the id."""
        brief_id = new_brief_id()
        entry = StoredBrief(
            id=brief_id,
            created_at=datetime.now(timezone.utc),
            brief=brief,
        )
        try:
            self.backend.set(entry)
        except (sqlite3.Error, OSError) as exc:
            logger.warning("Could not persist brief id=%s: %s", brief_id, exc)
        else:
            logger.info("Saved brief id=%s for query=%r", brief_id, brief.query)
        return brief_id

    def get(self, brief_id: str) -> Optional[Brief]:
        """Return the brief stored under *brief_id*, or ``None`` if absent.

        Raises:
            DecodeError: The id exists but its stored payload is corrupt.
        """
        entry = self.get_entry(brief_id)
        return None if entry is None else entry.brief

    def get_entry(self, brief_id: str) -> Optional[StoredBrief]:
        try:
            return self.backend.get(brief_id)
        except (sqlite3.Error, OSError) as exc:
            logger.warning("Could not read brief id=%s: %s", brief_id, exc)
            return None
        except (ValidationError, ValueError) as exc:
            logger.warning("Corrupt brief id=%s: %s", brief_id, exc)
            raise DecodeError("This saved brief is corrupted.") from exc

    def list(self, limit: Optional[int] = None) -> list[StoredBrief]:
        """Return stored briefs, most recently added first."""
        try:
            return self.backend.list(limit)
        except (sqlite3.Error, OSError) as exc:
            logger.warning("Could not list briefs: %s", exc)
            return []

    def recent(self, limit: int = 3) -> list[StoredBrief]:
        return self.list(limit=limit)

    def remove(self, brief_id: str) -> bool:
        try:
            removed = self.backend.remove(brief_id)
        except (sqlite3.Error, OSError) as exc:
            logger.warning("Could not remove brief id=%s: %s", brief_id, exc)
            return False
        if removed:
            logger.info("Removed brief id=%s", brief_id)
        return removed

    def clear(self) -> None:
        try:
            self.backend.clear()
        except (sqlite3.Error, OSError) as exc:
            logger.warning("Could not clear brief store: %s", exc)
        else:
            logger.info("Cleared brief store")
