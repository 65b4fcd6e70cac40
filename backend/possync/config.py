# backend/possync/config.py
from __future__ import annotations
import os

SOURCE_BIND_KEY = "source"


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _source_binds() -> dict:
    # The source store has no default location; tasks refuse to run without it.
    url = (os.environ.get("SOURCE_DATABASE_URL") or "").strip()
    return {SOURCE_BIND_KEY: url} if url else {}


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Reporting (destination) store
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///possync.sqlite3",
    )
    # Operational POS (source) store, read-only
    SQLALCHEMY_BINDS = _source_binds()
    # IANA zone of the POS wall clock; unset means the server's local time
    SOURCE_TIMEZONE = (os.environ.get("SOURCE_TIMEZONE") or "").strip() or None
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SYNC_INTERVAL_SECONDS = _int_env("SYNC_INTERVAL_SECONDS", 30)
    SYNC_ORDER_WINDOW_DAYS = _int_env("SYNC_ORDER_WINDOW_DAYS", 7)
    SYNC_EXPENSE_WINDOW_DAYS = _int_env("SYNC_EXPENSE_WINDOW_DAYS", 30)
    SYNC_CASH_WINDOW_DAYS = _int_env("SYNC_CASH_WINDOW_DAYS", 30)
    SYNC_LOG_RETENTION_DAYS = _int_env("SYNC_LOG_RETENTION_DAYS", 90)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
