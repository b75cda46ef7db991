from __future__ import annotations

import atexit
from pathlib import Path
from typing import Optional

from flask import Flask, jsonify, send_from_directory
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from .config import AppSettings, load_settings
from .routes.draws import bp as draws_bp
from .routes.health import bp as health_bp
from .routes.participants import bp as participants_bp
from .routes.sessions import bp as sessions_bp
from .runtime import SessionRuntime

FRONTEND_DIR = Path(__file__).resolve().parent.parent / "frontend"


def create_app(settings: Optional[AppSettings] = None) -> Flask:
    settings = settings or load_settings()
    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.flask.secret_key
    app.config["DEBUG"] = settings.flask.debug
    app.config["MAX_CONTENT_LENGTH"] = settings.max_upload_bytes
    app.config["LUCKYDRAW_SETTINGS"] = settings

    runtime = SessionRuntime(settings)
    runtime.start()
    atexit.register(runtime.stop)
    app.extensions["luckydraw"] = runtime

    app.register_blueprint(health_bp)
    app.register_blueprint(participants_bp, url_prefix="/participants")
    app.register_blueprint(draws_bp, url_prefix="/draws")
    app.register_blueprint(sessions_bp, url_prefix="/session")

    @app.get("/")
    def serve_index():
        return send_from_directory(FRONTEND_DIR, "index.html")

    @app.get("/assets/<path:filename>")
    def serve_assets(filename: str):
        return send_from_directory(FRONTEND_DIR / "assets", filename)

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        messages = "; ".join(err["msg"] for err in exc.errors())
        return jsonify({"error": "invalid_request", "message": messages}), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"error": exc.name.lower().replace(" ", "_"), "message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_error(exc: Exception):
        app.logger.exception("Unhandled error: %s", exc)
        return jsonify({"error": "internal_error", "message": str(exc)}), 500

    return app
