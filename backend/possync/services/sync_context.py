# Overview: Per-batch context, error types, and scoped store access shared by all sync tasks.

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterator

from flask import current_app
from sqlalchemy.engine import Connection, Engine

from ..config import SOURCE_BIND_KEY
from ..extensions import db
from ..time_utils import source_now


class SyncError(Exception):
    """Base class for sync engine errors."""


class SyncConfigError(SyncError):
    """Raised when a store connection string is missing."""


class SyncCancelled(SyncError):
    """Raised when the stop signal is observed mid-batch."""


def source_clock() -> datetime:
    """Current POS wall-clock time for the active app."""
    return source_now(current_app.config.get("SOURCE_TIMEZONE"))


@dataclass
class SyncContext:
    """
    Everything a sync task needs besides the stores.

    batch_id groups the run log entries of one orchestrator invocation.
    now is fixed once per batch so every task windows against the same clock.
    It is the POS wall clock (SOURCE_TIMEZONE), since source rows carry local
    timestamps; run log and updated_at stamps stay in UTC.
    cancel_event is the process-wide stop signal; None means "never cancelled".
    """
    batch_id: str
    now: datetime = field(default_factory=source_clock)
    cancel_event: threading.Event | None = None

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise SyncCancelled(f"Sync batch {self.batch_id} cancelled")

    def since(self, config_key: str, default_days: int) -> datetime:
        days = int(current_app.config.get(config_key, default_days))
        return self.now - timedelta(days=days)


def source_engine() -> Engine:
    engine = db.engines.get(SOURCE_BIND_KEY)
    if engine is None:
        raise SyncConfigError(
            "Source store is not configured: set SOURCE_DATABASE_URL "
            f"(SQLALCHEMY_BINDS['{SOURCE_BIND_KEY}'])"
        )
    return engine


@contextmanager
def task_stores(ctx: SyncContext) -> Iterator[tuple[Connection, object]]:
    """
    Acquire one source connection and the destination session for a task.

    Both are released on every exit path. Work the task already committed
    stays committed; an open transaction is rolled back on error.
    """
    ctx.raise_if_cancelled()
    engine = source_engine()
    with engine.connect() as source:
        session = db.session
        try:
            yield source, session
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()
