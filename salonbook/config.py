"""Configuration objects for the SalonBook backend."""
from __future__ import annotations

import os

DEFAULT_SECRET_KEY = "dev-secret-change-me"


def _env_flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default) in {"1", "true", "True"}


class Config:
    """Settings read from the environment at import time."""

    SECRET_KEY = os.environ.get("SECRET_KEY", DEFAULT_SECRET_KEY)
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///salonbook.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Calendar used for "today", ISO weeks and months.
    SALON_TIMEZONE = os.environ.get("SALON_TIMEZONE", "UTC")

    CSRF_ENABLED = _env_flag("CSRF_ENABLED", "1")
    AUTH_TOKEN_MAX_AGE = int(os.environ.get("AUTH_TOKEN_MAX_AGE", 86400))
    CSRF_TOKEN_MAX_AGE = int(os.environ.get("CSRF_TOKEN_MAX_AGE", 7200))

    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*").split(",")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    ADMIN_PAGE_SIZE = 10
    STAFF_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 50


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    CSRF_ENABLED = False
    LOG_LEVEL = "DEBUG"
