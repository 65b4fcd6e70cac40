from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class SyncJobLog(db.Model):
    """
    Append-only audit trail of sync batches.

    WHY: Sync failures are only visible through this log and the process
    logs. Every batch writes one SYNC_ALL envelope entry plus one entry per
    task, all sharing the batch_id.

    LIFECYCLE:
    - Envelope: inserted at batch start with finished_at NULL, closed at
      batch end (or by the scheduler when the batch fails)
    - Task entries: inserted once with both timestamps
    """
    __tablename__ = "sync_job_log"
    __table_args__ = (
        db.Index("ix_sync_job_log_batch_job", "batch_id", "job_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    batch_id = db.Column(db.String(36), nullable=False, index=True)
    job_name = db.Column(db.String(32), nullable=False, index=True)

    # Short status code: OK, ERROR, CANCELLED
    status = db.Column(db.String(16), nullable=False)
    message = db.Column(db.Text, nullable=False, default="")

    started_at = db.Column(db.DateTime, nullable=False, index=True)
    finished_at = db.Column(db.DateTime, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "batch_id": self.batch_id,
            "job_name": self.job_name,
            "status": self.status,
            "message": self.message,
            "started_at": to_utc_z(self.started_at),
            "finished_at": to_utc_z(self.finished_at),
        }
