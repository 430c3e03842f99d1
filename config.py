"""Application settings loaded from the environment (and an optional .env file)."""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_JWT_SECRET = "change-this-jwt-secret-in-production"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer.") from exc


class Config:
    """Default settings. ``create_app`` copies the upper-case attributes into ``app.config``."""

    APP_ENV = os.environ.get("APP_ENV", "development")
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///tablecraft.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET = os.environ.get("JWT_SECRET", DEFAULT_JWT_SECRET)
    JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")
    JWT_EXPIRATION_HOURS = _env_int("JWT_EXPIRATION_HOURS", 24 * 7)

    CORS_ORIGIN = os.environ.get("CORS_ORIGIN", "*")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "threading")

    API_VERSION = "1.0.0"


class TestConfig(Config):
    APP_ENV = "test"
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET = "test-jwt-secret-0123456789abcdef0123"
    LOG_LEVEL = "WARNING"
