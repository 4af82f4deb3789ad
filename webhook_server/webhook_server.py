from __future__ import annotations

import os
import sys
import threading
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from flask import Flask, current_app, jsonify, request

from telemetry_app.utils.logger import get_logger

logger = get_logger("webhook_server")

MAX_EVENTS = 500

# Load .env from EXE directory (so it stays editable in production)
EXE_DIR = Path(sys.executable).resolve().parent if getattr(sys, "frozen", False) else Path(__file__).resolve().parent
load_dotenv(EXE_DIR / ".env")


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


class EventLog:
    """Bounded in-memory log of received notifications (newest last)."""

    def __init__(self, limit: int = MAX_EVENTS):
        self._limit = limit
        self._events: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def add(self, body: Dict[str, Any]) -> None:
        with self._lock:
            self._events.append({"received_at": _now_iso(), "body": body})
            if len(self._events) > self._limit:
                del self._events[: -self._limit]

    def recent(self, n: int = 200) -> List[Dict[str, Any]]:
        with self._lock:
            return list(reversed(self._events[-n:]))

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


def require_bearer(fn):
    """API routes: require `Authorization: Bearer <WEBHOOK_TOKEN>`."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        auth = request.headers.get("Authorization", "")
        if auth.startswith("Bearer "):
            token = auth.removeprefix("Bearer ").strip()
            if token == current_app.config["WEBHOOK_TOKEN"]:
                return fn(*args, **kwargs)
            return jsonify({"error": "invalid token"}), 403

        return jsonify({"error": "unauthorized"}), 401
    return wrapper


def create_app(token: Optional[str] = None) -> Flask:
    """
    Build the webhook receiver.

    Routes
    ------
    POST /events
        Store one notification payload (Bearer token required).
    GET /api/events/recent
        Newest-first list of stored payloads (Bearer token required).
    GET /health
        Liveness probe.
    """
    app = Flask(__name__)
    app.config["WEBHOOK_TOKEN"] = token or os.getenv("WEBHOOK_TOKEN", "dev-token")
    events = EventLog()
    app.extensions["event_log"] = events

    @app.post("/events")
    @require_bearer
    def receive_event():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "expected a JSON object"}), 400

        events.add(data)
        ev = data.get("event") or {}
        logger.info(
            "Received %s: machine=%s transition=%s",
            data.get("type", "?"),
            ev.get("machine_id", "?"),
            ev.get("transition", "?"),
        )
        return jsonify({"status": "ok"}), 200

    @app.get("/api/events/recent")
    @require_bearer
    def api_recent():
        return jsonify({"count": len(events), "events": events.recent()}), 200

    @app.get("/health")
    def health():
        return jsonify({"status": "ok"}), 200

    return app


def main() -> None:
    port = int(os.getenv("WEBHOOK_PORT", "8000"))
    logger.info("Webhook receiver listening on port %d", port)
    # no debug=True: the reloader breaks the frozen EXE
    create_app().run(host="0.0.0.0", port=port, debug=False)


if __name__ == "__main__":
    main()
