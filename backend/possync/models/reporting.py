from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


def _money(value) -> str | None:
    return None if value is None else str(value)


class TableStatus(db.Model):
    """
    Current state of one dining table.

    LIFECYCLE: Recomputed in full on every sync run. Never deleted; tables
    that disappear from the source simply stop being refreshed.

    STATUS: OPEN, CLOSED, UNKNOWN
    """
    __tablename__ = "tables_status"

    table_id = db.Column(db.String(32), primary_key=True)
    table_name = db.Column(db.String(128), nullable=True)
    area_name = db.Column(db.String(128), nullable=True)
    sector_name = db.Column(db.String(128), nullable=True)

    status = db.Column(db.String(16), nullable=False, default="UNKNOWN", index=True)
    opened_at = db.Column(db.DateTime, nullable=True)
    last_order_at = db.Column(db.DateTime, nullable=True)

    current_total = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    # 0/1 flag derived from status, not a count of orders
    orders_count = db.Column(db.Integer, nullable=False, default=0)
    operator_name = db.Column(db.String(128), nullable=True)

    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "table_id": self.table_id,
            "table_name": self.table_name,
            "area_name": self.area_name,
            "sector_name": self.sector_name,
            "status": self.status,
            "opened_at": to_utc_z(self.opened_at),
            "last_order_at": to_utc_z(self.last_order_at),
            "current_total": _money(self.current_total),
            "orders_count": self.orders_count,
            "operator_name": self.operator_name,
            "updated_at": to_utc_z(self.updated_at),
        }


class Order(db.Model):
    """
    One tab/order, identified by the POS tab counter.

    INVARIANT: total equals the sum of qty * unit_price over the order's
    current OrderItem rows.

    KNOWN GAP: The source feed exposes no close event, so status is always
    OPEN and closed_at always null.
    """
    __tablename__ = "orders"

    order_id = db.Column(db.String(32), primary_key=True)
    table_id = db.Column(db.String(32), nullable=True, index=True)
    table_name = db.Column(db.String(128), nullable=True)

    status = db.Column(db.String(16), nullable=False, default="OPEN", index=True)
    opened_at = db.Column(db.DateTime, nullable=False, index=True)
    closed_at = db.Column(db.DateTime, nullable=True)
    operator_name = db.Column(db.String(128), nullable=True)

    total = db.Column(db.Numeric(18, 2), nullable=False, default=0)

    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    items = db.relationship(
        "OrderItem",
        order_by="OrderItem.id",
        lazy=True,
        viewonly=True,
    )

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "order_id": self.order_id,
            "table_id": self.table_id,
            "table_name": self.table_name,
            "status": self.status,
            "opened_at": to_utc_z(self.opened_at),
            "closed_at": to_utc_z(self.closed_at),
            "operator_name": self.operator_name,
            "total": _money(self.total),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    """
    Line item of an order.

    DESIGN: The source has no per-line key, so the item set of an order is
    deleted and reinserted on every sync that touches the order.
    """
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(32), db.ForeignKey("orders.order_id"), nullable=False, index=True)

    product_id = db.Column(db.String(64), nullable=True)
    product_name = db.Column(db.String(255), nullable=True)
    qty = db.Column(db.Numeric(18, 3), nullable=False, default=0)
    unit_price = db.Column(db.Numeric(18, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "qty": _money(self.qty),
            "unit_price": _money(self.unit_price),
            "created_at": to_utc_z(self.created_at),
        }


class Expense(db.Model):
    """1:1 mirror of a source expense row."""
    __tablename__ = "expenses"

    expense_id = db.Column(db.String(50), primary_key=True)
    expense_type = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=True)
    amount = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    spent_at = db.Column(db.DateTime, nullable=True, index=True)
    operator_name = db.Column(db.String(128), nullable=True)

    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "expense_id": self.expense_id,
            "expense_type": self.expense_type,
            "description": self.description,
            "amount": _money(self.amount),
            "spent_at": to_utc_z(self.spent_at),
            "operator_name": self.operator_name,
            "updated_at": to_utc_z(self.updated_at),
        }


class CashMovement(db.Model):
    """
    Normalized cash inflow/outflow.

    Each source shift row yields two movements: MCX-{id}-IN and MCX-{id}-OUT.
    """
    __tablename__ = "cash_movements"

    movement_id = db.Column(db.String(64), primary_key=True)
    movement_type = db.Column(db.String(8), nullable=False, index=True)  # IN, OUT
    reason = db.Column(db.String(255), nullable=True)
    amount = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    moved_at = db.Column(db.DateTime, nullable=False, index=True)

    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "movement_id": self.movement_id,
            "movement_type": self.movement_type,
            "reason": self.reason,
            "amount": _money(self.amount),
            "moved_at": to_utc_z(self.moved_at),
            "updated_at": to_utc_z(self.updated_at),
        }
