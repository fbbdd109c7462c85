# backend/closeout/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/closeout.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///closeout.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Used for stores created without an explicit timezone
    CLOSEOUT_DEFAULT_TIMEZONE = os.environ.get("CLOSEOUT_DEFAULT_TIMEZONE", "Asia/Tokyo")

    # Business-day start for stores that have no business hours configured
    CLOSEOUT_DEFAULT_ROLLOVER_TIME = os.environ.get("CLOSEOUT_DEFAULT_ROLLOVER_TIME", "05:00")

    # Whether delivered-but-unbilled orders count toward daily sales (per-store override)
    CLOSEOUT_COUNT_DELIVERED_UNBILLED = _env_bool("CLOSEOUT_COUNT_DELIVERED_UNBILLED", "true")

    CLOSEOUT_DEFAULT_TAX_RATE_BPS = int(os.environ.get("CLOSEOUT_DEFAULT_TAX_RATE_BPS", "1000"))
    CLOSEOUT_CHECKOUT_RETRY_ATTEMPTS = int(os.environ.get("CLOSEOUT_CHECKOUT_RETRY_ATTEMPTS", "3"))
