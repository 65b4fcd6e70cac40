# Overview: Run log recorder; writes the batch envelope and per-task audit entries.

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from ..extensions import db
from ..models import SyncJobLog
from ..time_utils import utcnow

JOB_SYNC_ALL = "SYNC_ALL"
JOB_SYNC_TABLES = "SYNC_TABLES"
JOB_SYNC_ORDERS = "SYNC_ORDERS"
JOB_SYNC_EXPENSES = "SYNC_EXPENSES"
JOB_SYNC_CASH = "SYNC_CASH"

STATUS_OK = "OK"
STATUS_ERROR = "ERROR"
STATUS_CANCELLED = "CANCELLED"

MESSAGE_MAX_LENGTH = 2000


def new_batch_id() -> str:
    return str(uuid.uuid4())


def _clip(message: str | None) -> str:
    message = message or ""
    return message if len(message) <= MESSAGE_MAX_LENGTH else message[: MESSAGE_MAX_LENGTH - 3] + "..."


def start_batch(batch_id: str, message: str = "Sync started") -> SyncJobLog:
    """Open the SYNC_ALL envelope entry (finished_at stays NULL)."""
    entry = SyncJobLog(
        batch_id=batch_id,
        job_name=JOB_SYNC_ALL,
        status=STATUS_OK,
        message=_clip(message),
        started_at=utcnow(),
        finished_at=None,
    )
    db.session.add(entry)
    db.session.commit()
    return entry


def finish_batch(batch_id: str, *, status: str = STATUS_OK, message: str = "Sync finished") -> int:
    """
    Close the still-open envelope entry of a batch.

    Returns the number of entries closed: 0 when the envelope was already
    closed or never written.
    """
    closed = (
        db.session.query(SyncJobLog)
        .filter(SyncJobLog.batch_id == batch_id)
        .filter(SyncJobLog.job_name == JOB_SYNC_ALL)
        .filter(SyncJobLog.finished_at.is_(None))
        .update(
            {"status": status, "message": _clip(message), "finished_at": utcnow()},
            synchronize_session=False,
        )
    )
    db.session.commit()
    return closed


def log_task(
    batch_id: str,
    job_name: str,
    message: str,
    *,
    status: str = STATUS_OK,
    started_at: datetime | None = None,
) -> SyncJobLog:
    """Record a completed task in a single insert carrying both timestamps."""
    finished_at = utcnow()
    entry = SyncJobLog(
        batch_id=batch_id,
        job_name=job_name,
        status=status,
        message=_clip(message),
        started_at=started_at or finished_at,
        finished_at=finished_at,
    )
    db.session.add(entry)
    db.session.commit()
    return entry


def get_batch_entries(batch_id: str) -> list[SyncJobLog]:
    return (
        db.session.query(SyncJobLog)
        .filter_by(batch_id=batch_id)
        .order_by(SyncJobLog.started_at.asc(), SyncJobLog.id.asc())
        .all()
    )


def list_recent_batches(limit: int = 20) -> list[dict[str, Any]]:
    """Newest batches first, each with its envelope and task entries."""
    limit = max(1, min(200, int(limit)))
    envelopes = (
        db.session.query(SyncJobLog)
        .filter_by(job_name=JOB_SYNC_ALL)
        .order_by(SyncJobLog.started_at.desc(), SyncJobLog.id.desc())
        .limit(limit)
        .all()
    )
    if not envelopes:
        return []

    batch_ids = [e.batch_id for e in envelopes]
    tasks = (
        db.session.query(SyncJobLog)
        .filter(SyncJobLog.batch_id.in_(batch_ids))
        .filter(SyncJobLog.job_name != JOB_SYNC_ALL)
        .order_by(SyncJobLog.id.asc())
        .all()
    )
    by_batch: dict[str, list[dict]] = {}
    for task in tasks:
        by_batch.setdefault(task.batch_id, []).append(task.to_dict())

    return [
        {
            **envelope.to_dict(),
            "tasks": by_batch.get(envelope.batch_id, []),
        }
        for envelope in envelopes
    ]
