"""
Error hierarchy for brief generation, sharing and storage.

Every error carries a machine-readable ``code``, the HTTP ``status`` the web
layer should answer with, and whether the caller may usefully ``retryable``
re-invoke the same operation (e.g. via a "Retry" button).

Exception Classes:
- BriefError:              Base class (500, not retryable)
- MissingCredentialError:  No AI provider key configured
- EmptyQueryError:         Query blank after trimming; no network call made
- UpstreamError:           Transport / HTTP failure talking to the AI provider
- InvalidAIResponseError:  Provider answered, but not with a JSON object
- DecodeError:             Portable link could not be decoded
- NotFoundError:           Id not present in the local store
"""

from __future__ import annotations

from typing import Optional


class BriefError(Exception):
    """Base exception for all brief-related failures."""

    code = "internal_error"
    status = 500
    retryable = False

    def __init__(self, message: str = "Failed to generate brief") -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Serialise as the ``{"error": ...}`` body returned to clients."""
        return {"error": self.message, "code": self.code, "retryable": self.retryable}


class MissingCredentialError(BriefError):
    code = "missing_credential"
    status = 503


class EmptyQueryError(BriefError):
    code = "empty_query"
    status = 400

    def __init__(self, message: str = "Query must not be empty.") -> None:
        super().__init__(message)


class UpstreamError(BriefError):
    """The AI provider could not be reached or returned an HTTP error."""

    code = "upstream_error"
    status = 502
    retryable = True


class InvalidAIResponseError(BriefError):
    """The AI provider returned text that is not a usable JSON object."""

    code = "invalid_ai_response"
    status = 502
    retryable = True

    def __init__(self, raw_text: str, message: str = "AI returned invalid JSON") -> None:
        super().__init__(message)
        self.raw_text = raw_text

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["raw"] = self.raw_text
        return data


class DecodeError(BriefError):
    code = "invalid_link"
    status = 400

    def __init__(self, message: str = "This link is invalid or corrupted.") -> None:
        super().__init__(message)


class NotFoundError(BriefError):
    code = "not_found"
    status = 404

    def __init__(self, brief_id: Optional[str] = None) -> None:
        super().__init__(
            "This brief is not available on this device/browser. "
            "Use a portable link instead."
        )
        self.brief_id = brief_id
