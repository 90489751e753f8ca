"""Initial migration - create orders and payments tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('total_number', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency_code', sa.String(3), nullable=False),
        sa.Column('customer_name', sa.String(255), nullable=True),
        sa.Column('state', sa.String(50), nullable=False, server_default='draft'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'payments',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('state', sa.String(50), nullable=False, server_default='completed'),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('payment_gateway', sa.String(64), nullable=False),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('remote_id', sa.String(255), nullable=True),
        sa.Column('remote_state', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('order_id', 'remote_id', name='uq_payments_order_remote'),
    )

    op.create_index('ix_payments_order_id', 'payments', ['order_id'])
    op.create_index('ix_payments_remote_id', 'payments', ['remote_id'])


def downgrade() -> None:
    op.drop_index('ix_payments_remote_id', table_name='payments')
    op.drop_index('ix_payments_order_id', table_name='payments')

    op.drop_table('payments')
    op.drop_table('orders')
