from __future__ import annotations

from typing import Optional

from flask import Blueprint, current_app, jsonify, request

from ..errors import RaffleError
from ..schemas import RosterResponse
from .common import current_runtime, current_session_id, error_response, invalid_request

bp = Blueprint("participants", __name__)


def _read_upload() -> Optional[bytes]:
    upload = request.files.get("file")
    if upload is not None:
        return upload.read()
    data = request.get_data()
    return data or None


@bp.post("")
def upload_participants():
    raw = _read_upload()
    if raw is None:
        return invalid_request("Upload a CSV file in the 'file' field or as the request body.")

    runtime = current_runtime()
    sid = current_session_id()
    try:
        roster, note = runtime.with_session(sid, lambda s: (s.upload(raw), s.notification))
    except RaffleError as exc:
        current_app.logger.info("Upload rejected for session %s: %s", sid, exc.kind)
        return error_response(exc)

    return jsonify(RosterResponse.from_roster(roster, note).model_dump())
