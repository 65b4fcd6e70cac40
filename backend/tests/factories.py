"""Source-row seeding helpers shared by the sync tests."""

from datetime import datetime

from possync.config import SOURCE_BIND_KEY
from possync.extensions import db
from possync.models import despesas, mesa, movimentos_caixa, pedido

# Fixed clock for task tests; windows are computed from it.
NOW = datetime(2026, 3, 10, 12, 0, 0)


def insert_source(table, *rows):
    """Seed rows into a POS source table."""
    with db.engines[SOURCE_BIND_KEY].begin() as conn:
        for row in rows:
            conn.execute(table.insert().values(**row))


def delete_source(table, *criteria):
    with db.engines[SOURCE_BIND_KEY].begin() as conn:
        conn.execute(table.delete().where(*criteria))


def add_table(codigo, estado, *, cont=None, sector="Sala", nota_time=None):
    insert_source(mesa, {
        "codigo": codigo,
        "estado": estado,
        "sector": sector,
        "cont": cont,
        "nota_time": nota_time,
    })


def add_order_line(cont, *, mesa_id="T1", data=NOW, codigo="P1", designacao="Produto", quant=1, valor=0):
    insert_source(pedido, {
        "cont": cont,
        "mesa": mesa_id,
        "cliente": None,
        "data": data,
        "codigo": codigo,
        "designacao": designacao,
        "quant": quant,
        "valor": valor,
    })


def add_expense(expense_id, *, data=NOW, descricao="Gas", valor=10, obs=None, user_r="ana"):
    insert_source(despesas, {
        "id": expense_id,
        "data": data,
        "descricao": descricao,
        "valor": valor,
        "obs": obs,
        "user_r": user_r,
    })


def add_shift(shift_id, *, abertura=NOW, fecho=None, total_pago=0, desp_caixa=0):
    insert_source(movimentos_caixa, {
        "id": shift_id,
        "abertura": abertura,
        "fecho": fecho,
        "total_pago": total_pago,
        "desp_caixa": desp_caixa,
    })
