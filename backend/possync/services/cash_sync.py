"""
Cash-movement sync: N_MovimentosCaixa -> cash_movements.

Each shift row fans out into an inflow (total paid during the shift) and an
outflow (cash expenses paid from the drawer). Movement ids derive from the
shift id, so re-runs overwrite instead of duplicating.
"""

from __future__ import annotations

from datetime import datetime
from typing import Mapping

from flask import current_app
from sqlalchemy import or_, select

from ..models import CashMovement, movimentos_caixa
from ..time_utils import utcnow
from .sync_context import SyncContext, task_stores
from .sync_log_service import JOB_SYNC_CASH, log_task
from .upsert import to_decimal, upsert

DEFAULT_CASH_WINDOW_DAYS = 30

MOVEMENT_IN = "IN"
MOVEMENT_OUT = "OUT"
REASON_IN = "Total paid (shift)"
REASON_OUT = "Cash expense (shift)"


def movement_id(shift_id, movement_type: str) -> str:
    return f"MCX-{shift_id}-{movement_type}"


def shift_movements(row: Mapping, now: datetime) -> list[dict]:
    """The IN and OUT movements of one shift row, in that order."""
    moved_at = row["fecho"] or row["abertura"] or now
    return [
        {
            "movement_id": movement_id(row["id"], MOVEMENT_IN),
            "movement_type": MOVEMENT_IN,
            "reason": REASON_IN,
            "amount": to_decimal(row["total_pago"]),
            "moved_at": moved_at,
        },
        {
            "movement_id": movement_id(row["id"], MOVEMENT_OUT),
            "movement_type": MOVEMENT_OUT,
            "reason": REASON_OUT,
            "amount": to_decimal(row["desp_caixa"]),
            "moved_at": moved_at,
        },
    ]


def sync_cash_movements(ctx: SyncContext) -> int:
    """Returns movements upserted (two per shift)."""
    started_at = utcnow()
    since = ctx.since("SYNC_CASH_WINDOW_DAYS", DEFAULT_CASH_WINDOW_DAYS)
    upserted = 0

    query = select(movimentos_caixa).where(
        or_(movimentos_caixa.c.abertura >= since, movimentos_caixa.c.fecho >= since)
    )

    with task_stores(ctx) as (source, session):
        rows = source.execute(query).mappings().all()

        for row in rows:
            ctx.raise_if_cancelled()
            for movement in shift_movements(row, ctx.now):
                key = {"movement_id": movement.pop("movement_id")}
                upsert(session, CashMovement, key, movement)
                upserted += 1
            session.commit()

    log_task(ctx.batch_id, JOB_SYNC_CASH, f"Cash movements upserted: {upserted}", started_at=started_at)
    current_app.logger.info("%s OK: %d", JOB_SYNC_CASH, upserted)
    return upserted
