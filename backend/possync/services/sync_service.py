"""
Sync orchestrator.

WHY: One batch = one pass of every sync task against the reporting store,
bracketed by a SYNC_ALL envelope in the run log.

DESIGN:
- Tasks run strictly one after another: tables, orders, expenses, cash
- No recovery here; a failing task propagates out and the envelope is left
  open for the caller to close
- A fresh orchestrator (and batch id) per run

STATES: NOT_STARTED -> RUNNING -> COMPLETED, or RUNNING -> FAILED
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from ..time_utils import utcnow
from . import sync_log_service
from .cash_sync import sync_cash_movements
from .expense_sync import sync_expenses
from .order_sync import sync_orders
from .sync_context import SyncContext, source_clock
from .table_sync import sync_tables_status

STATE_NOT_STARTED = "NOT_STARTED"
STATE_RUNNING = "RUNNING"
STATE_COMPLETED = "COMPLETED"
STATE_FAILED = "FAILED"

SyncTask = Callable[[SyncContext], int]

SYNC_TASKS: tuple[tuple[str, SyncTask], ...] = (
    (sync_log_service.JOB_SYNC_TABLES, sync_tables_status),
    (sync_log_service.JOB_SYNC_ORDERS, sync_orders),
    (sync_log_service.JOB_SYNC_EXPENSES, sync_expenses),
    (sync_log_service.JOB_SYNC_CASH, sync_cash_movements),
)


class SyncStateError(RuntimeError):
    """Raised when an orchestrator is run more than once."""


@dataclass
class SyncResult:
    batch_id: str
    started_at: datetime
    finished_at: datetime | None = None
    counts: dict[str, int] = field(default_factory=dict)


class SyncOrchestrator:
    """Runs one batch. Single use: create a new instance per cycle."""

    def __init__(self, tasks: tuple[tuple[str, SyncTask], ...] = SYNC_TASKS):
        self.tasks = tasks
        self.state = STATE_NOT_STARTED
        self.batch_id: str | None = None
        self.result: SyncResult | None = None

    def run_once(
        self,
        cancel_event: threading.Event | None = None,
        now: datetime | None = None,
    ) -> SyncResult:
        if self.state != STATE_NOT_STARTED:
            raise SyncStateError(f"Orchestrator already used (state={self.state})")

        self.batch_id = sync_log_service.new_batch_id()
        ctx = SyncContext(batch_id=self.batch_id, now=now or source_clock(), cancel_event=cancel_event)
        self.result = SyncResult(batch_id=self.batch_id, started_at=utcnow())
        self.state = STATE_RUNNING

        try:
            sync_log_service.start_batch(self.batch_id)
            for job_name, task in self.tasks:
                ctx.raise_if_cancelled()
                self.result.counts[job_name] = task(ctx)
            sync_log_service.finish_batch(self.batch_id)
        except BaseException:
            self.state = STATE_FAILED
            raise

        self.result.finished_at = utcnow()
        self.state = STATE_COMPLETED
        return self.result


def run_sync_once(cancel_event: threading.Event | None = None, now: datetime | None = None) -> SyncResult:
    """Run a single batch with a fresh orchestrator."""
    return SyncOrchestrator().run_once(cancel_event=cancel_event, now=now)
