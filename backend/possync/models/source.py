"""
Operational POS (source) store tables.

WHY: The sync engine only reads from the point-of-sale database. These are
plain Core tables on the ``source`` bind, not ORM models: ``Pedido`` rows
have no key of their own, and nothing in this package ever writes to them.

Column names follow the POS vendor schema verbatim.
"""

from __future__ import annotations

from ..config import SOURCE_BIND_KEY
from ..extensions import db


# Table/mesa state. ``cont`` is the tab counter currently running on the table.
mesa = db.Table(
    "Mesa",
    db.Column("codigo", db.String(32)),
    db.Column("estado", db.String(64)),
    db.Column("sector", db.String(64)),
    db.Column("cont", db.Integer),
    db.Column("nota_time", db.DateTime),
    bind_key=SOURCE_BIND_KEY,
)

# Order lines, grouped into orders by ``cont``.
pedido = db.Table(
    "Pedido",
    db.Column("cont", db.Integer, nullable=False),
    db.Column("mesa", db.String(32)),
    db.Column("cliente", db.String(128)),
    db.Column("data", db.DateTime),
    db.Column("codigo", db.String(64)),
    db.Column("designacao", db.String(255)),
    db.Column("quant", db.Numeric(18, 3)),
    db.Column("valor", db.Numeric(18, 2)),
    bind_key=SOURCE_BIND_KEY,
)

despesas = db.Table(
    "Despesas",
    db.Column("id", db.Integer, primary_key=True),
    db.Column("data", db.DateTime),
    db.Column("descricao", db.String(255)),
    db.Column("valor", db.Numeric(18, 2)),
    db.Column("obs", db.Text),
    db.Column("user_r", db.String(128)),
    bind_key=SOURCE_BIND_KEY,
)

# One row per shift / cash-register period.
movimentos_caixa = db.Table(
    "N_MovimentosCaixa",
    db.Column("id", db.Integer, primary_key=True),
    db.Column("abertura", db.DateTime),
    db.Column("fecho", db.DateTime),
    db.Column("total_pago", db.Numeric(18, 2)),
    db.Column("desp_caixa", db.Numeric(18, 2)),
    bind_key=SOURCE_BIND_KEY,
)
