# Overview: Insert-or-update by natural key against the reporting store.

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping

from sqlalchemy.dialects import postgresql, sqlite

from ..time_utils import utcnow

_ON_CONFLICT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def to_decimal(value: Any) -> Decimal:
    """Source amounts are nullable; the reporting store treats missing as zero."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def upsert(
    session,
    model,
    key: Mapping[str, Any],
    values: Mapping[str, Any],
    *,
    now: datetime | None = None,
) -> None:
    """
    Update the row of ``model`` matching ``key`` or insert it.

    Every upsert refreshes ``updated_at``. PostgreSQL and SQLite get a single
    INSERT ... ON CONFLICT DO UPDATE statement. Other dialects fall back to
    select-then-write inside a savepoint.

    Store errors propagate unchanged. The caller owns the commit.
    """
    if not key:
        raise ValueError(f"Upsert into {model.__tablename__} requires a key")
    missing = [name for name, value in key.items() if value is None]
    if missing:
        raise ValueError(f"Upsert into {model.__tablename__} with null key: {', '.join(missing)}")

    stamped = dict(values)
    stamped["updated_at"] = now or utcnow()

    dialect = session.get_bind(model).dialect.name
    insert = _ON_CONFLICT_INSERTS.get(dialect)
    if insert is None:
        _upsert_generic(session, model, key, stamped)
        return

    stmt = insert(model.__table__).values(**key, **stamped)
    stmt = stmt.on_conflict_do_update(index_elements=list(key), set_=stamped)
    session.execute(stmt)


def _upsert_generic(session, model, key: Mapping[str, Any], values: Mapping[str, Any]) -> None:
    with session.begin_nested():
        existing = session.query(model).filter_by(**key).with_for_update().first()
        if existing:
            for column, value in values.items():
                setattr(existing, column, value)
        else:
            session.add(model(**key, **values))
