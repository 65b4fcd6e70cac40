"""reporting store schema

Revision ID: 0001_reporting_store
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the reporting (destination) store populated by the sync worker:
- tables_status: one row per dining table, keyed by table id
- orders / order_items: tabs and their line items
- expenses: 1:1 mirror of source expenses
- cash_movements: IN/OUT fan-out of shift cash totals
- sync_job_log: append-only audit trail of sync batches

The POS source store is never migrated from here.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_reporting_store'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'tables_status',
        sa.Column('table_id', sa.String(length=32), nullable=False),
        sa.Column('table_name', sa.String(length=128), nullable=True),
        sa.Column('area_name', sa.String(length=128), nullable=True),
        sa.Column('sector_name', sa.String(length=128), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('opened_at', sa.DateTime(), nullable=True),
        sa.Column('last_order_at', sa.DateTime(), nullable=True),
        sa.Column('current_total', sa.Numeric(18, 2), nullable=False),
        sa.Column('orders_count', sa.Integer(), nullable=False),
        sa.Column('operator_name', sa.String(length=128), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('table_id'),
    )
    op.create_index('ix_tables_status_status', 'tables_status', ['status'])

    op.create_table(
        'orders',
        sa.Column('order_id', sa.String(length=32), nullable=False),
        sa.Column('table_id', sa.String(length=32), nullable=True),
        sa.Column('table_name', sa.String(length=128), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('opened_at', sa.DateTime(), nullable=False),
        sa.Column('closed_at', sa.DateTime(), nullable=True),
        sa.Column('operator_name', sa.String(length=128), nullable=True),
        sa.Column('total', sa.Numeric(18, 2), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('order_id'),
    )
    op.create_index('ix_orders_table_id', 'orders', ['table_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_opened_at', 'orders', ['opened_at'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.String(length=32), nullable=False),
        sa.Column('product_id', sa.String(length=64), nullable=True),
        sa.Column('product_name', sa.String(length=255), nullable=True),
        sa.Column('qty', sa.Numeric(18, 3), nullable=False),
        sa.Column('unit_price', sa.Numeric(18, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['order_id'], ['orders.order_id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table(
        'expenses',
        sa.Column('expense_id', sa.String(length=50), nullable=False),
        sa.Column('expense_type', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('spent_at', sa.DateTime(), nullable=True),
        sa.Column('operator_name', sa.String(length=128), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('expense_id'),
    )
    op.create_index('ix_expenses_spent_at', 'expenses', ['spent_at'])

    op.create_table(
        'cash_movements',
        sa.Column('movement_id', sa.String(length=64), nullable=False),
        sa.Column('movement_type', sa.String(length=8), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('moved_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('movement_id'),
    )
    op.create_index('ix_cash_movements_movement_type', 'cash_movements', ['movement_type'])
    op.create_index('ix_cash_movements_moved_at', 'cash_movements', ['moved_at'])

    op.create_table(
        'sync_job_log',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('batch_id', sa.String(length=36), nullable=False),
        sa.Column('job_name', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('finished_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_sync_job_log_batch_id', 'sync_job_log', ['batch_id'])
    op.create_index('ix_sync_job_log_job_name', 'sync_job_log', ['job_name'])
    op.create_index('ix_sync_job_log_started_at', 'sync_job_log', ['started_at'])
    op.create_index('ix_sync_job_log_batch_job', 'sync_job_log', ['batch_id', 'job_name'])


def downgrade():
    op.drop_table('sync_job_log')
    op.drop_table('cash_movements')
    op.drop_table('expenses')
    op.drop_index('ix_order_items_order_id', table_name='order_items')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('tables_status')
