"""Expense sync: Despesas -> expenses, one row per source expense."""

from __future__ import annotations

from flask import current_app
from sqlalchemy import select

from ..models import Expense, despesas
from ..time_utils import utcnow
from .sync_context import SyncContext, task_stores
from .sync_log_service import JOB_SYNC_EXPENSES, log_task
from .upsert import to_decimal, upsert

DEFAULT_EXPENSE_WINDOW_DAYS = 30


def sync_expenses(ctx: SyncContext) -> int:
    started_at = utcnow()
    since = ctx.since("SYNC_EXPENSE_WINDOW_DAYS", DEFAULT_EXPENSE_WINDOW_DAYS)
    upserted = 0

    with task_stores(ctx) as (source, session):
        rows = source.execute(select(despesas).where(despesas.c.data >= since)).mappings().all()

        for row in rows:
            ctx.raise_if_cancelled()
            upsert(
                session,
                Expense,
                {"expense_id": str(row["id"])},
                {
                    "expense_type": row["descricao"],
                    "description": row["obs"],
                    "amount": to_decimal(row["valor"]),
                    "spent_at": row["data"],
                    "operator_name": row["user_r"],
                },
            )
            session.commit()
            upserted += 1

    log_task(ctx.batch_id, JOB_SYNC_EXPENSES, f"Expenses upserted: {upserted}", started_at=started_at)
    current_app.logger.info("%s OK: %d", JOB_SYNC_EXPENSES, upserted)
    return upserted
