from __future__ import annotations

from flask import Blueprint, jsonify, session

from ..schemas import SessionResponse
from .common import SESSION_KEY, current_runtime, current_session_id, current_settings

bp = Blueprint("sessions", __name__)


def _snapshot_response(snapshot):
    settings = current_settings()
    response = SessionResponse.from_snapshot(
        snapshot,
        default_winners=settings.draw.default_winners,
        max_winners=settings.draw.max_winners,
    )
    return jsonify(response.model_dump())


@bp.get("")
def get_session():
    sid = current_session_id()
    snapshot = current_runtime().with_session(sid, lambda s: s.snapshot())
    return _snapshot_response(snapshot)


@bp.delete("/notification")
def dismiss_notification():
    sid = current_session_id()

    def dismiss(s):
        s.dismiss_notification()
        return s.snapshot()

    snapshot = current_runtime().with_session(sid, dismiss)
    return _snapshot_response(snapshot)


@bp.delete("")
def close_session():
    sid = current_session_id(create=False)
    closed = current_runtime().close_session(sid) if sid else False
    session.pop(SESSION_KEY, None)
    return jsonify({"closed": closed})
