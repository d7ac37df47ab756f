"""Default configuration for the StagePass backend."""
from __future__ import annotations

import os


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///stagepass.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Object storage for fan photo uploads
    PHOTO_BUCKET = os.environ.get("PHOTO_BUCKET", "pictures-new")
    PHOTO_PUBLIC_BASE_URL = os.environ.get("PHOTO_PUBLIC_BASE_URL")
    PHOTO_CACHE_SECONDS = _env_int("PHOTO_CACHE_SECONDS", 3600)
    MAX_PHOTO_BYTES = _env_int("MAX_PHOTO_BYTES", 10 * 1024 * 1024)

    STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET")
    STRIPE_CURRENCY = os.environ.get("STRIPE_CURRENCY", "usd")

    AUTH_TOKEN_MAX_AGE = _env_int("AUTH_TOKEN_MAX_AGE", 86400)

    ARTIST_NAME = os.environ.get("ARTIST_NAME", "Brand Nubian")
    ARTIST_BIO = os.environ.get(
        "ARTIST_BIO",
        "Hip-hop group from New Rochelle, New York, and part of the Native Tongues "
        "collective. Known for conscious lyricism, jazz-laced production and a "
        "live show that has packed venues since 1989.",
    )
    FAN_UPCOMING_LIMIT = _env_int("FAN_UPCOMING_LIMIT", 3)
    DEFAULT_TAX_RATE = float(os.environ.get("DEFAULT_TAX_RATE", "8.75"))
