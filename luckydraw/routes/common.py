from __future__ import annotations

import secrets
from typing import Optional, Tuple

from flask import Response, current_app, jsonify, session

from ..config import AppSettings
from ..errors import DrawError, DrawInProgressError, DuplicateNumberError, MissingColumnsError, ParseError, RaffleError
from ..runtime import SessionRuntime
from ..schemas import ErrorResponse

SESSION_KEY = "luckydraw_sid"


def current_runtime() -> SessionRuntime:
    return current_app.extensions["luckydraw"]


def current_settings() -> AppSettings:
    return current_app.config["LUCKYDRAW_SETTINGS"]


def current_session_id(create: bool = True) -> Optional[str]:
    sid = session.get(SESSION_KEY)
    if sid is None and create:
        sid = secrets.token_hex(16)
        session[SESSION_KEY] = sid
    return sid


def _status_for(exc: RaffleError) -> int:
    if isinstance(exc, DrawInProgressError):
        return 409
    if isinstance(exc, (ParseError, DrawError)):
        return 422
    return 400


def error_response(exc: RaffleError) -> Tuple[Response, int]:
    body = ErrorResponse(error=exc.kind, message=exc.message)
    if isinstance(exc, MissingColumnsError):
        body.missing = list(exc.missing)
    if isinstance(exc, DuplicateNumberError):
        body.duplicates = list(exc.numbers)
    return jsonify(body.model_dump(exclude_none=True)), _status_for(exc)


def invalid_request(message: str) -> Tuple[Response, int]:
    body = ErrorResponse(error="invalid_request", message=message)
    return jsonify(body.model_dump(exclude_none=True)), 400
