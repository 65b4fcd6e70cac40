"""
Order sync: Pedido lines -> orders + order_items.

WHY: The POS stores one row per ordered product; the reporting store wants
one order header per tab with its items underneath.

DESIGN:
- Lines from the last SYNC_ORDER_WINDOW_DAYS (default 7) are grouped by the
  tab counter ``cont``, in source read order
- The header is upserted, then the item set is deleted and reinserted
  (the source has no per-line key to diff against)
- Header and items of one order commit together; a store error aborts the
  whole task and leaves earlier orders committed

KNOWN GAP: The source exposes no close event, so orders are always written
as OPEN with closed_at NULL.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Mapping

from flask import current_app
from sqlalchemy import select

from ..models import Order, OrderItem, pedido
from ..time_utils import utcnow
from .sync_context import SyncContext, task_stores
from .sync_log_service import JOB_SYNC_ORDERS, log_task
from .upsert import to_decimal, upsert

ORDER_STATUS_OPEN = "OPEN"
DEFAULT_ORDER_WINDOW_DAYS = 7


@dataclass(frozen=True)
class OrderLine:
    table_id: str | None
    ordered_at: datetime | None
    product_id: str | None
    product_name: str | None
    qty: Decimal
    unit_price: Decimal

    @property
    def amount(self) -> Decimal:
        return self.qty * self.unit_price


@dataclass(frozen=True)
class OrderSummary:
    table_id: str | None
    opened_at: datetime
    total: Decimal


def _text(value) -> str | None:
    return None if value is None else str(value)


def line_from_row(row: Mapping) -> OrderLine:
    return OrderLine(
        table_id=_text(row["mesa"]),
        ordered_at=row["data"],
        product_id=_text(row["codigo"]),
        product_name=_text(row["designacao"]),
        qty=to_decimal(row["quant"]),
        unit_price=to_decimal(row["valor"]),
    )


def group_order_lines(rows: Iterable[Mapping]) -> dict[str, list[OrderLine]]:
    """Group source lines by order id (the tab counter), keeping read order."""
    orders: dict[str, list[OrderLine]] = {}
    for row in rows:
        orders.setdefault(str(row["cont"]), []).append(line_from_row(row))
    return orders


def summarize_order(lines: list[OrderLine], now: datetime) -> OrderSummary:
    """
    Derive the header of one order from its lines.

    opened_at is the earliest known line timestamp (now if none is known).
    table_id comes from the first line read; any line's value is as good.
    """
    timestamps = [line.ordered_at for line in lines if line.ordered_at is not None]
    return OrderSummary(
        table_id=lines[0].table_id if lines else None,
        opened_at=min(timestamps) if timestamps else now,
        total=sum((line.amount for line in lines), Decimal("0")),
    )


def replace_order_items(session, order_id: str, lines: list[OrderLine]) -> None:
    session.query(OrderItem).filter(OrderItem.order_id == order_id).delete(synchronize_session=False)
    session.add_all(
        [
            OrderItem(
                order_id=order_id,
                product_id=line.product_id,
                product_name=line.product_name,
                qty=line.qty,
                unit_price=line.unit_price,
                created_at=line.ordered_at,
            )
            for line in lines
        ]
    )


def sync_orders(ctx: SyncContext) -> int:
    """Upsert recent orders and replace their items. Returns orders grouped."""
    started_at = utcnow()
    since = ctx.since("SYNC_ORDER_WINDOW_DAYS", DEFAULT_ORDER_WINDOW_DAYS)

    with task_stores(ctx) as (source, session):
        rows = source.execute(select(pedido).where(pedido.c.data >= since)).mappings().all()
        orders = group_order_lines(rows)

        for order_id, lines in orders.items():
            ctx.raise_if_cancelled()
            summary = summarize_order(lines, ctx.now)
            upsert(
                session,
                Order,
                {"order_id": order_id},
                {
                    "table_id": summary.table_id,
                    "table_name": summary.table_id,
                    "status": ORDER_STATUS_OPEN,
                    "opened_at": summary.opened_at,
                    "closed_at": None,
                    "operator_name": None,
                    "total": summary.total,
                },
            )
            replace_order_items(session, order_id, lines)
            session.commit()

    log_task(ctx.batch_id, JOB_SYNC_ORDERS, f"Orders synced: {len(orders)}", started_at=started_at)
    current_app.logger.info("%s OK: %d", JOB_SYNC_ORDERS, len(orders))
    return len(orders)
