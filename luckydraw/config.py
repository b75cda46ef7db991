from __future__ import annotations

import os
import pathlib
from dataclasses import dataclass, field, replace
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


def _bool_from_env(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _int_from_env(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise RuntimeError(f"Invalid integer for environment variable {key}: {value!r}") from exc


def _float_from_env(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise RuntimeError(f"Invalid number for environment variable {key}: {value!r}") from exc


@dataclass(frozen=True)
class FlaskSettings:
    secret_key: str = "luckydraw-dev-secret"
    debug: bool = False


@dataclass(frozen=True)
class DrawSettings:
    delay_seconds: float = 3.0
    default_winners: int = 5
    max_winners: int = 100
    seed: Optional[int] = None


@dataclass(frozen=True)
class AppSettings:
    flask: FlaskSettings = field(default_factory=FlaskSettings)
    draw: DrawSettings = field(default_factory=DrawSettings)
    max_upload_bytes: int = 1024 * 1024
    session_ttl_seconds: int = 3600
    notification_ttl_seconds: float = 6.0

    def copy(self, **updates) -> "AppSettings":
        return replace(self, **updates)


def load_from_environment() -> AppSettings:
    flask_settings = FlaskSettings(
        secret_key=os.getenv("FLASK_SECRET_KEY", "luckydraw-dev-secret"),
        debug=_bool_from_env(os.getenv("FLASK_DEBUG"), False),
    )

    seed = os.getenv("DRAW_SEED")
    draw_settings = DrawSettings(
        delay_seconds=_float_from_env("DRAW_DELAY_SECONDS", 3.0),
        default_winners=_int_from_env("DRAW_DEFAULT_WINNERS", 5),
        max_winners=_int_from_env("DRAW_MAX_WINNERS", 100),
        seed=_int_from_env("DRAW_SEED", 0) if seed else None,
    )
    if draw_settings.delay_seconds < 0:
        raise RuntimeError("DRAW_DELAY_SECONDS must not be negative")

    return AppSettings(
        flask=flask_settings,
        draw=draw_settings,
        max_upload_bytes=_int_from_env("MAX_UPLOAD_BYTES", 1024 * 1024),
        session_ttl_seconds=_int_from_env("SESSION_TTL_SECONDS", 3600),
        notification_ttl_seconds=_float_from_env("NOTIFICATION_TTL_SECONDS", 6.0),
    )


@lru_cache(maxsize=1)
def load_settings(dotenv_path: Optional[str] = None) -> AppSettings:
    if dotenv_path:
        load_dotenv(dotenv_path)
    else:
        default_path = pathlib.Path(".env")
        if default_path.exists():
            load_dotenv(default_path)
    return load_from_environment()
