"""
Flask web server for compare-brief.

Routes
──────
POST /api/brief               Generate a brief (JSON); CORS-open
OPTIONS /api/brief            CORS preflight
POST /api/share               Build portable (+ local) share links for a brief
GET  /brief?data=...          Decode a portable link (JSON)
GET  /brief?id=...            Look up a locally stored brief (JSON)
GET  /api/history             List recent stored briefs (JSON)
GET  /api/history/<id>        Fetch a stored brief (JSON)
DELETE /api/history/<id>      Delete a stored brief (JSON)
DELETE /api/history           Clear all stored briefs (JSON)
GET  /api/explore             Seed categories and popular queries (JSON)
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional
from urllib.parse import quote

from dotenv import load_dotenv
from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import HTTPException

# Allow running as `python web/app.py` from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

from config.settings import Settings
from core.codec import decode_brief, encode_brief
from core.errors import BriefError, DecodeError, NotFoundError
from core.explore import explore_catalog
from core.generator import BriefService, resolve_brief
from core.models import Brief, BriefRequest, StoredBrief
from core.store import BriefStore, SQLiteBackend

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

PREVIEW_CHARS = 130


def clamp_text(text: str, max_chars: int = PREVIEW_CHARS) -> str:
    """Trim *text* to at most *max_chars*, ending with an ellipsis if cut."""
    t = (text or "").strip()
    if len(t) <= max_chars:
        return t
    return t[: max_chars - 1].rstrip() + "…"


def _error(exc: BriefError, headers: Optional[dict] = None):
    return jsonify(exc.to_dict()), exc.status, headers or {}


def _history_item(entry: StoredBrief) -> dict:
    brief = entry.brief
    return {
        "id": entry.id,
        "query": brief.query,
        "topPick": brief.top_pick.name,
        "preview": clamp_text(brief.top_pick.why),
        "mode": brief.mode,
        "created_at": entry.created_at.isoformat(),
    }


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[BriefStore] = None,
    service: Optional[BriefService] = None,
) -> Flask:
    """Build the Flask app; collaborators default to env-configured ones."""
    settings = settings or Settings()
    if store is None:
        backend = SQLiteBackend(settings.db_path)
        backend.init_db()
        store = BriefStore(backend)
    service = service or BriefService(settings)

    app = Flask(__name__)
    app.config["BRIEF_SETTINGS"] = settings

    def origin() -> str:
        return settings.public_origin or request.host_url.rstrip("/")

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        """Answer any uncaught exception with a generic JSON error."""
        if isinstance(exc, HTTPException):
            return exc
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return _error(BriefError(), CORS_HEADERS)

    # ── Generation ─────────────────────────────────────────────────────────

    @app.route("/api/brief", methods=["OPTIONS"])
    def brief_preflight():
        return Response(status=204, headers=CORS_HEADERS)

    @app.route("/api/brief", methods=["POST"])
    def generate_brief():
        """Generate a brief.

        Body: ``{"query": str, "constraints"?: str, "columns"?: [str],
        "criteria"?: [str]}``. Degraded (demo) results still answer 200 and
        carry ``_mode``; hard failures answer ``{"error": ...}`` with a
        non-2xx status.
        """
        payload = request.get_json(silent=True)
        brief_request = BriefRequest.from_payload(payload)

        outcome = resolve_brief(service, brief_request, allow_demo=settings.demo_fallback)
        if not outcome.ok:
            logger.info("Brief request failed: %s", outcome.error.code)
            return _error(outcome.error, CORS_HEADERS)

        brief_id = store.save(outcome.brief)
        headers = {**CORS_HEADERS, "X-Brief-Id": brief_id, "Cache-Control": "no-store"}
        return jsonify(outcome.brief.to_wire()), 200, headers

    # ── Sharing ────────────────────────────────────────────────────────────

    @app.route("/api/share", methods=["POST"])
    def share_brief():
        """Return share links for a brief given inline or by stored id."""
        payload = request.get_json(silent=True) or {}
        brief_id = payload.get("id") if isinstance(payload, dict) else None

        if brief_id:
            try:
                brief = store.get(str(brief_id))
            except DecodeError as exc:
                return _error(exc)
            if brief is None:
                return _error(NotFoundError(str(brief_id)))
        else:
            try:
                brief = Brief.model_validate(payload)
            except ValueError:
                return _error(DecodeError("Request body is not a valid brief."))

        data = encode_brief(brief)
        body = {"data": data, "url": f"{origin()}/brief?data={data}"}
        if brief_id:
            body["localUrl"] = f"{origin()}/brief?id={quote(str(brief_id))}"
        return jsonify(body)

    @app.route("/brief")
    def open_brief():
        """Resolve a portable (``data``) or local (``id``) share link."""
        data = request.args.get("data", "").strip()
        brief_id = request.args.get("id", "").strip()

        if data:
            try:
                return jsonify(decode_brief(data).to_wire())
            except DecodeError as exc:
                logger.info("Invalid portable link (%d chars)", len(data))
                return _error(exc)

        if brief_id:
            try:
                brief = store.get(brief_id)
            except DecodeError as exc:
                return _error(exc)
            if brief is None:
                return _error(NotFoundError(brief_id))
            return jsonify(brief.to_wire())

        return jsonify({"error": "Provide either data or id.", "code": "bad_request"}), 400

    # ── History API ────────────────────────────────────────────────────────

    @app.route("/api/history")
    def list_history():
        """Return recent stored briefs as JSON, newest first."""
        limit = request.args.get("limit", default=50, type=int)
        return jsonify([_history_item(e) for e in store.list(limit=max(limit, 0))])

    @app.route("/api/history/<brief_id>")
    def get_history_entry(brief_id: str):
        try:
            entry = store.get_entry(brief_id)
        except DecodeError as exc:
            return _error(exc)
        if entry is None:
            return _error(NotFoundError(brief_id))
        return jsonify(
            {
                "id": entry.id,
                "created_at": entry.created_at.isoformat(),
                "brief": entry.brief.to_wire(),
            }
        )

    @app.route("/api/history/<brief_id>", methods=["DELETE"])
    def delete_history_entry(brief_id: str):
        if not store.remove(brief_id):
            return _error(NotFoundError(brief_id))
        return jsonify({"deleted": brief_id})

    @app.route("/api/history", methods=["DELETE"])
    def clear_history():
        store.clear()
        return jsonify({"cleared": True})

    # ── Explore ────────────────────────────────────────────────────────────

    @app.route("/api/explore")
    def explore():
        return jsonify(explore_catalog())

    return app


app = create_app()


# ── Entry point ────────────────────────────────────────────────────────────

if __name__ == "__main__":
    settings = app.config["BRIEF_SETTINGS"]
    app.run(debug=settings.debug, host="0.0.0.0", port=settings.port)
