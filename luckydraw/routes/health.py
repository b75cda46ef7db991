from __future__ import annotations

from flask import Blueprint, jsonify

from .common import current_runtime

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    runtime = current_runtime()
    return jsonify({"status": "ok", "sessions": runtime.session_count()})
