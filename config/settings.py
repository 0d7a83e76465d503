"""Application settings: all configuration loaded from environment variables.

Usage:
    from config.settings import Settings
    settings = Settings()
    settings.validate()   # raises MissingCredentialError if ANTHROPIC_API_KEY is missing
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from core.errors import MissingCredentialError

DEFAULT_DB_PATH = Path(__file__).parent.parent / "data" / "briefs.db"


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Centralised application configuration.

    All values are read from environment variables at instantiation time
    so that tests can override them by patching ``os.environ``.
    """

    # ── API Keys ────────────────────────────────────────────────────────────
    anthropic_api_key: str = field(
        default_factory=lambda: os.environ.get("ANTHROPIC_API_KEY", "").strip()
    )

    # ── Flask ───────────────────────────────────────────────────────────────
    debug: bool = field(default_factory=lambda: _env_flag("FLASK_DEBUG", "0"))
    port: int = field(
        default_factory=lambda: int(os.environ.get("PORT", "5001"))
    )
    #: Origin used when building share URLs; empty means "use the request host".
    public_origin: str = field(
        default_factory=lambda: os.environ.get("PUBLIC_ORIGIN", "").rstrip("/")
    )

    # ── Storage ─────────────────────────────────────────────────────────────
    db_path: Path = field(
        default_factory=lambda: Path(os.environ["DB_PATH"])
        if os.environ.get("DB_PATH")
        else DEFAULT_DB_PATH
    )

    # ── AI Model ────────────────────────────────────────────────────────────
    brief_model: str = field(
        default_factory=lambda: os.environ.get("BRIEF_MODEL", "claude-haiku-4-5")
    )
    max_tokens: int = field(
        default_factory=lambda: int(os.environ.get("BRIEF_MAX_TOKENS", "1500"))
    )
    #: Upper bound (seconds) on a single outbound generation call.
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("BRIEF_TIMEOUT_SEC", "45"))
    )
    #: Serve a demo brief instead of an error when live generation fails.
    demo_fallback: bool = field(
        default_factory=lambda: _env_flag("BRIEF_DEMO_FALLBACK", "1")
    )

    @property
    def has_credential(self) -> bool:
        return bool(self.anthropic_api_key)

    def validate(self) -> None:
        """Raise ``MissingCredentialError`` if any required setting is missing."""
        if not self.has_credential:
            raise MissingCredentialError(
                "ANTHROPIC_API_KEY environment variable is not set. "
                "Copy .env.example to .env and add your key."
            )
