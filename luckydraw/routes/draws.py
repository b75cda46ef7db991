from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..errors import RaffleError
from ..schemas import DrawRequest, DrawStartedResponse
from .common import current_runtime, current_session_id, current_settings, error_response

bp = Blueprint("draws", __name__)


@bp.post("")
def start_draw():
    payload = request.get_json(force=True, silent=True)
    if not isinstance(payload, dict):
        payload = {}
    data = DrawRequest(**payload)

    runtime = current_runtime()
    sid = current_session_id()
    try:
        # the returned future is only useful on the loop thread; clients poll /session instead
        runtime.with_session(sid, lambda s: s.start_draw(data.count))
    except RaffleError as exc:
        return error_response(exc)

    response = DrawStartedResponse(
        state="drawing",
        requested=data.count,
        delay_seconds=current_settings().draw.delay_seconds,
    )
    return jsonify(response.model_dump()), 202
