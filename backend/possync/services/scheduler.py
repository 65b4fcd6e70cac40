"""
Scheduling loop for the sync worker.

WHY: The reporting store is refreshed by polling. One batch runs per cycle,
then the worker waits SYNC_INTERVAL_SECONDS before the next.

DESIGN:
- Never two batches at once; the wait starts only after a batch returns
- A failed batch is logged, its envelope closed as ERROR (best effort),
  and the loop carries on
- The stop event is the single cancellation signal: it ends the wait at
  once and is checked by every task before each store operation
- Cancellation ends the loop; it is never treated as a cycle failure
"""

from __future__ import annotations

import threading
from typing import Callable

from flask import Flask

from ..extensions import db
from . import sync_log_service
from .sync_context import SyncCancelled
from .sync_service import SyncOrchestrator

DEFAULT_INTERVAL_SECONDS = 30


class SyncScheduler:
    def __init__(
        self,
        app: Flask,
        interval_seconds: int | float | None = None,
        stop_event: threading.Event | None = None,
        orchestrator_factory: Callable[[], SyncOrchestrator] = SyncOrchestrator,
    ):
        if interval_seconds is None:
            interval_seconds = app.config.get("SYNC_INTERVAL_SECONDS", DEFAULT_INTERVAL_SECONDS)
        if interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")

        self.app = app
        self.interval_seconds = interval_seconds
        self.stop_event = stop_event or threading.Event()
        self.orchestrator_factory = orchestrator_factory
        self.cycles = 0
        self.failures = 0

    @property
    def logger(self):
        return self.app.logger

    def stop(self) -> None:
        self.stop_event.set()

    def run_cycle(self) -> bool:
        """
        Run one batch inside a fresh app context.

        Returns False when the batch was cancelled and the loop should end.
        """
        with self.app.app_context():
            orchestrator = self.orchestrator_factory()
            try:
                orchestrator.run_once(cancel_event=self.stop_event)
            except SyncCancelled:
                self.logger.warning("Sync batch %s cancelled", orchestrator.batch_id)
                self._close_envelope(orchestrator, sync_log_service.STATUS_CANCELLED, "Sync cancelled")
                return False
            except Exception as exc:  # noqa: BLE001
                self.failures += 1
                self.logger.exception("Sync cycle failed (batch %s)", orchestrator.batch_id)
                self._close_envelope(orchestrator, sync_log_service.STATUS_ERROR, f"{type(exc).__name__}: {exc}")
            finally:
                self.cycles += 1
        return True

    def run_forever(self) -> None:
        self.logger.info("Sync worker started (interval=%ss)", self.interval_seconds)
        while not self.stop_event.is_set():
            if not self.run_cycle():
                break
            if self.stop_event.wait(self.interval_seconds):
                break
        self.logger.info(
            "Sync worker stopped after %d cycle(s), %d failed", self.cycles, self.failures
        )

    def _close_envelope(self, orchestrator: SyncOrchestrator, status: str, message: str) -> None:
        batch_id = orchestrator.batch_id
        if batch_id is None:
            return
        try:
            db.session.rollback()
            sync_log_service.finish_batch(batch_id, status=status, message=message)
        except Exception:  # noqa: BLE001
            self.logger.exception("Could not close run log envelope of batch %s", batch_id)
