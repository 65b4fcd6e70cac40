from .source import mesa, pedido, despesas, movimentos_caixa
from .reporting import TableStatus, Order, OrderItem, Expense, CashMovement
from .sync_log import SyncJobLog

__all__ = [
    'mesa', 'pedido', 'despesas', 'movimentos_caixa',
    'TableStatus', 'Order', 'OrderItem', 'Expense', 'CashMovement',
    'SyncJobLog',
]
