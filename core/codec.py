"""Portable share-link codec.

A brief is serialised to compact JSON (wire names), deflated with zlib and
encoded with the URL-safe base64 alphabet without ``=`` padding, so the
result can be dropped straight into ``/brief?data=...``.

Decoding is strict: anything that does not inflate to JSON describing a
valid ``Brief`` raises ``DecodeError``.
"""

from __future__ import annotations

import base64
import binascii
import logging
import zlib

from pydantic import ValidationError

from core.errors import DecodeError
from core.models import Brief

logger = logging.getLogger(__name__)

#: Hard cap on the inflated payload, guards against decompression bombs.
MAX_DECODED_BYTES = 256 * 1024


def encode_brief(brief: Brief) -> str:
    """Return a URL-safe compressed representation of *brief*."""
    raw = brief.to_wire_json().encode("utf-8")
    packed = zlib.compress(raw, 9)
    return base64.urlsafe_b64encode(packed).decode("ascii").rstrip("=")


def _inflate(payload: str) -> bytes:
    text = payload.strip()
    if not text:
        raise DecodeError()
    try:
        packed = base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))
    except (binascii.Error, ValueError) as exc:
        raise DecodeError() from exc

    inflater = zlib.decompressobj()
    try:
        raw = inflater.decompress(packed, MAX_DECODED_BYTES)
    except zlib.error as exc:
        raise DecodeError() from exc
    if inflater.unconsumed_tail or not inflater.eof:
        # Either truncated, or larger than we are willing to inflate.
        raise DecodeError()
    return raw


def decode_brief(payload: str) -> Brief:
    """Invert ``encode_brief``.

    Raises:
        DecodeError: If the payload is corrupt, truncated, oversized, or
            does not describe a valid brief.
    """
    raw = _inflate(payload)
    try:
        return Brief.model_validate_json(raw)
    except ValidationError as exc:
        logger.info("Rejected portable payload: %d validation errors", exc.error_count())
        raise DecodeError() from exc
