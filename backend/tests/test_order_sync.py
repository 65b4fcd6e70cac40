from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from factories import NOW, add_order_line, delete_source
from possync.extensions import db
from possync.models import Order, OrderItem, SyncJobLog, pedido
from possync.services import order_sync, sync_context
from possync.services.order_sync import (
    OrderLine,
    group_order_lines,
    summarize_order,
    sync_orders,
)
from possync.services.sync_context import SyncContext


def _items(order_id):
    return [
        (i.product_id, i.product_name, i.qty, i.unit_price, i.created_at)
        for i in db.session.query(OrderItem).filter_by(order_id=order_id).order_by(OrderItem.id).all()
    ]


def test_group_order_lines_keeps_read_order():
    rows = [
        {"cont": 1, "mesa": "T1", "data": NOW, "codigo": "A", "designacao": "a", "quant": 1, "valor": 1},
        {"cont": 2, "mesa": "T2", "data": NOW, "codigo": "B", "designacao": "b", "quant": 1, "valor": 1},
        {"cont": 1, "mesa": "T9", "data": NOW, "codigo": "C", "designacao": "c", "quant": None, "valor": None},
    ]

    grouped = group_order_lines(rows)

    assert list(grouped) == ["1", "2"]
    assert [line.product_id for line in grouped["1"]] == ["A", "C"]
    assert grouped["1"][1].qty == Decimal("0")
    assert grouped["1"][1].unit_price == Decimal("0")
    assert group_order_lines([]) == {}


def test_summarize_order():
    lines = [
        OrderLine("T1", NOW - timedelta(minutes=1), "A", "a", Decimal("2"), Decimal("10")),
        OrderLine("T9", None, "B", "b", Decimal("1"), Decimal("5")),
        OrderLine("T1", NOW - timedelta(minutes=9), "C", "c", Decimal("0"), Decimal("3")),
    ]

    summary = summarize_order(lines, NOW)

    assert summary.total == Decimal("25")
    assert summary.opened_at == NOW - timedelta(minutes=9)
    assert summary.table_id == "T1"


def test_summarize_order_without_timestamps_opens_now():
    lines = [OrderLine("T1", None, None, "a", Decimal("1"), Decimal("1"))]
    assert summarize_order(lines, NOW).opened_at == NOW


def test_order_total_and_items(ctx):
    add_order_line(5, mesa_id="T4", codigo="A", quant=2, valor=10)
    add_order_line(5, mesa_id="T4", codigo="B", quant=1, valor=5)

    assert sync_orders(ctx) == 1

    order = db.session.get(Order, "5")
    assert order.total == Decimal("25")
    assert order.status == "OPEN"
    assert order.closed_at is None
    assert order.table_id == "T4"
    assert order.table_name == "T4"
    assert len(order.items) == 2
    assert sum(i.qty * i.unit_price for i in order.items) == order.total


def test_rerun_on_unchanged_source_is_idempotent(ctx):
    add_order_line(42, data=NOW - timedelta(hours=1), codigo="A", quant=1, valor=20)
    add_order_line(42, data=NOW - timedelta(hours=2), codigo="B", quant=3, valor=5)
    add_order_line(43, codigo="C", quant=1, valor=1)

    sync_orders(ctx)
    first_items = {oid: _items(oid) for oid in ("42", "43")}
    first_total = db.session.get(Order, "42").total

    sync_orders(ctx)

    assert {oid: _items(oid) for oid in ("42", "43")} == first_items
    assert db.session.query(OrderItem).count() == 3
    assert db.session.get(Order, "42").total == first_total == Decimal("35")
    assert db.session.get(Order, "42").opened_at == NOW - timedelta(hours=2)


def test_items_mirror_latest_read(ctx):
    add_order_line(9, codigo="A", quant=1, valor=10)
    add_order_line(9, codigo="B", quant=1, valor=4)
    sync_orders(ctx)

    delete_source(pedido, pedido.c.codigo == "B")
    sync_orders(ctx)

    assert [i[0] for i in _items("9")] == ["A"]
    assert db.session.get(Order, "9").total == Decimal("10")


def test_window_boundary_is_inclusive(ctx):
    cutoff = NOW - timedelta(days=7)
    add_order_line(1, data=cutoff, quant=1, valor=1)
    add_order_line(2, data=cutoff - timedelta(microseconds=1), quant=1, valor=1)

    assert sync_orders(ctx) == 1
    assert db.session.get(Order, "1") is not None
    assert db.session.get(Order, "2") is None


def test_task_logs_grouped_order_count(ctx):
    add_order_line(1, quant=1, valor=1)
    add_order_line(1, quant=1, valor=1)
    add_order_line(2, quant=1, valor=1)

    sync_orders(ctx)

    entry = db.session.query(SyncJobLog).filter_by(batch_id=ctx.batch_id, job_name="SYNC_ORDERS").one()
    assert entry.message == "Orders synced: 2"


def test_window_follows_the_pos_wall_clock(app, db_session, monkeypatch):
    # POS clock pinned at NOW in its own zone; server UTC time is irrelevant
    zones = []

    def pos_clock(tz_name=None):
        zones.append(tz_name)
        return NOW

    monkeypatch.setitem(app.config, "SOURCE_TIMEZONE", "America/Sao_Paulo")
    monkeypatch.setattr(sync_context, "source_now", pos_clock)
    add_order_line(1, data=NOW - timedelta(days=7) + timedelta(hours=1), quant=1, valor=1)
    add_order_line(2, data=NOW - timedelta(days=7) - timedelta(microseconds=1), quant=1, valor=1)

    ctx = SyncContext(batch_id="pos-clock")

    assert ctx.now == NOW
    assert zones == ["America/Sao_Paulo"]
    assert sync_orders(ctx) == 1
    assert db.session.get(Order, "1") is not None
    assert db.session.get(Order, "2") is None


def test_store_error_aborts_task_and_keeps_earlier_orders(ctx, monkeypatch):
    add_order_line(1, codigo="A", quant=1, valor=1)
    add_order_line(2, codigo="B", quant=1, valor=1)
    add_order_line(3, codigo="C", quant=1, valor=1)
    real_upsert = order_sync.upsert

    def upsert_failing_on_order_2(session, model, key, values, **kwargs):
        if key.get("order_id") == "2":
            raise OperationalError("INSERT INTO orders", {}, Exception("store unavailable"))
        return real_upsert(session, model, key, values, **kwargs)

    monkeypatch.setattr(order_sync, "upsert", upsert_failing_on_order_2)

    with pytest.raises(OperationalError):
        sync_orders(ctx)

    assert [o.order_id for o in db.session.query(Order).all()] == ["1"]
    assert [i[0] for i in _items("1")] == ["A"]
    assert db.session.query(OrderItem).count() == 1
    assert db.session.query(SyncJobLog).count() == 0
