# backend/possync/routes/system.py
"""
System health and version endpoints.

Checks both stores the sync worker depends on and reports version
information for deployment debugging.
"""

import sys
import time

from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from ..models import SyncJobLog
from ..services.sync_context import SyncConfigError, source_engine
from ..services.sync_log_service import JOB_SYNC_ALL
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)

API_VERSION = "1.0.0"


def check_database_health() -> dict:
    """
    Check reporting store connectivity and the last sync batch.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        last_batch = (
            db.session.query(SyncJobLog)
            .filter_by(job_name=JOB_SYNC_ALL)
            .order_by(SyncJobLog.started_at.desc(), SyncJobLog.id.desc())
            .first()
        )
        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "last_batch_id": last_batch.batch_id if last_batch else None,
                "last_batch_status": last_batch.status if last_batch else None,
                "last_batch_started_at": to_utc_z(last_batch.started_at) if last_batch else None,
                "last_batch_finished_at": to_utc_z(last_batch.finished_at) if last_batch else None,
            },
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


def check_source_health() -> dict:
    """Check that the POS source store is configured and reachable."""
    start_time = time.time()
    try:
        engine = source_engine()
    except SyncConfigError as exc:
        return {
            "status": "degraded",
            "reason": "not_configured",
            "latency_ms": 0.0,
            "warning": str(exc),
        }

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Source store health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Source store error",
        }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: healthy or degraded (source store not configured)
    - 503: one or more stores unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    source_health = check_source_health()

    all_checks = [database_health, source_health]
    unhealthy_count = sum(1 for check in all_checks if check["status"] == "unhealthy")
    degraded_count = sum(1 for check in all_checks if check["status"] == "degraded")

    if unhealthy_count > 0:
        overall_status = "unhealthy"
        http_status = 503
    elif degraded_count > 0:
        overall_status = "degraded"
        http_status = 200
    else:
        overall_status = "healthy"
        http_status = 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "source": source_health,
        },
    }

    return response, http_status


@system_bp.get("/version")
def version():
    """Non-sensitive deployment information. Never exposes connection strings."""
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": API_VERSION,
        "environment": env,
        "python_version": sys.version.split()[0],
        "sync_interval_seconds": current_app.config.get("SYNC_INTERVAL_SECONDS"),
        "server_time": to_utc_z(utcnow()),
    }
