"""
Table-status sync: Mesa -> tables_status.

Every source table is re-read on each run, enriched with aggregates over the
order lines of the tab currently running on it, and upserted by table id.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func, select

from ..models import TableStatus, mesa, pedido
from ..time_utils import utcnow
from .sync_context import SyncContext, task_stores
from .sync_log_service import JOB_SYNC_TABLES, log_task
from .upsert import to_decimal, upsert

STATUS_OPEN = "OPEN"
STATUS_CLOSED = "CLOSED"
STATUS_UNKNOWN = "UNKNOWN"

# Substring stems of the POS free-text vocabulary (Portuguese inflections).
_OPEN_STEMS = ("abert", "ocup")
_CLOSED_STEMS = ("fech", "liv")


def normalize_table_status(raw: str | None) -> str:
    """
    Map the source's free-text table state to OPEN / CLOSED / UNKNOWN.

    "OCUPADA", "Aberto" -> OPEN; "fechada", "LIVRE" -> CLOSED; anything
    else, including blank, -> UNKNOWN. Open stems win over closed stems.
    """
    if raw is None:
        return STATUS_UNKNOWN
    text = raw.strip().lower()
    if not text:
        return STATUS_UNKNOWN
    if any(stem in text for stem in _OPEN_STEMS):
        return STATUS_OPEN
    if any(stem in text for stem in _CLOSED_STEMS):
        return STATUS_CLOSED
    return STATUS_UNKNOWN


def _table_snapshot_query():
    def lines_of_current_tab(expr):
        return (
            select(expr)
            .where(pedido.c.cont == mesa.c.cont)
            .correlate(mesa)
            .scalar_subquery()
        )

    line_amount = func.coalesce(pedido.c.quant, 0) * func.coalesce(pedido.c.valor, 0)
    return select(
        mesa.c.codigo.label("table_id"),
        mesa.c.estado.label("estado"),
        mesa.c.sector.label("sector"),
        mesa.c.cont.label("cont"),
        mesa.c.nota_time.label("mesa_opened_at"),
        lines_of_current_tab(func.max(pedido.c.data)).label("last_order_at"),
        lines_of_current_tab(func.sum(line_amount)).label("current_total"),
        lines_of_current_tab(func.min(pedido.c.data)).label("first_order_at"),
    )


def sync_tables_status(ctx: SyncContext) -> int:
    """Upsert one TableStatus per source table. Returns rows upserted."""
    started_at = utcnow()
    upserted = 0

    with task_stores(ctx) as (source, session):
        rows = source.execute(_table_snapshot_query()).mappings().all()

        for row in rows:
            table_id = "" if row["table_id"] is None else str(row["table_id"])
            if not table_id.strip():
                continue

            ctx.raise_if_cancelled()
            status = normalize_table_status(row["estado"])
            upsert(
                session,
                TableStatus,
                {"table_id": table_id},
                {
                    "table_name": table_id,
                    "area_name": None,
                    "sector_name": row["sector"],
                    "status": status,
                    "opened_at": row["mesa_opened_at"] or row["first_order_at"],
                    "last_order_at": row["last_order_at"],
                    "current_total": to_decimal(row["current_total"]),
                    # Open flag, not a true order count.
                    "orders_count": 1 if status == STATUS_OPEN else 0,
                    "operator_name": None,
                },
            )
            session.commit()
            upserted += 1

    log_task(ctx.batch_id, JOB_SYNC_TABLES, f"Tables upserted: {upserted}", started_at=started_at)
    current_app.logger.info("%s OK: %d", JOB_SYNC_TABLES, upserted)
    return upserted
