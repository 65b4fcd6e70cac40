# Overview: Service-layer operations for maintenance; encapsulates business logic and database work.

from __future__ import annotations

from datetime import timedelta

from ..extensions import db
from ..models import SyncJobLog
from ..time_utils import utcnow


def cleanup_sync_log(*, retention_days: int = 90) -> int:
    """
    Delete run log entries that finished more than retention_days ago.

    Envelopes still open (finished_at NULL) are kept regardless of age.
    """
    if retention_days < 0:
        raise ValueError("retention_days must be >= 0")
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = db.session.query(SyncJobLog).filter(
        SyncJobLog.finished_at.isnot(None),
        SyncJobLog.finished_at < cutoff,
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted
