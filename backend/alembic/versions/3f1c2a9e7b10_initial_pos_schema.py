"""Initial point-of-sale schema

Revision ID: 3f1c2a9e7b10
Revises: 
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# Revision identifiers used by Alembic
revision: str = '3f1c2a9e7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

sale_type = sa.Enum('UNIT', 'WEIGHT', name='saletype')
inventory_type = sa.Enum('UNIT', 'WEIGHT', 'VACUUM_PACKED', name='inventorytype')
user_role = sa.Enum('ADMIN', 'MANAGER', 'CASHIER', name='userrole')
cash_status = sa.Enum('OPEN', 'CLOSED', name='cashsessionstatus')
movement_type = sa.Enum('DEPOSIT', 'WITHDRAWAL', 'ADJUSTMENT', name='cashmovementtype')
sale_status = sa.Enum('COMPLETED', 'CANCELLED', name='salestatus')
payment_method = sa.Enum('CASH', 'CARD', 'TRANSFER', 'MIXED', name='paymentmethod')
order_status = sa.Enum('PENDING', 'CONFIRMED', 'READY', 'DELIVERED', 'CANCELLED', name='orderstatus')


def _id():
    return sa.Column('id', sa.Integer(), primary_key=True)


def _created():
    return sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        _id(),
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=False),
        sa.Column('pin_hash', sa.String(), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table(
        'customers',
        _id(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('notes', sa.String(), nullable=True),
        _created(),
    )
    op.create_index('ix_customers_name', 'customers', ['name'])
    op.create_index('ix_customers_phone', 'customers', ['phone'], unique=True)

    op.create_table(
        'products',
        _id(),
        sa.Column('sku', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('barcode', sa.String(), nullable=True),
        sa.Column('sale_type', sale_type, nullable=False),
        sa.Column('inventory_type', inventory_type, nullable=False),
        sa.Column('unit', sa.String(), nullable=False),
        sa.Column('price', sa.Float(), sa.CheckConstraint('price >= 0'), nullable=False),
        sa.Column('cost_price', sa.Float(), nullable=True),
        sa.Column('discount_price', sa.Float(), nullable=True),
        sa.Column('discount_active', sa.Boolean(), nullable=False),
        sa.Column('stock_units', sa.Integer(), sa.CheckConstraint('stock_units >= 0'), nullable=True),
        sa.Column('min_stock_alert', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_favorite', sa.Boolean(), nullable=False),
        _created(),
    )
    op.create_index('ix_products_sku', 'products', ['sku'], unique=True)
    op.create_index('ix_products_name', 'products', ['name'])
    op.create_index('ix_products_category', 'products', ['category'])
    op.create_index('ix_products_barcode', 'products', ['barcode'], unique=True)

    op.create_table(
        'orders',
        _id(),
        sa.Column('order_number', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column('customer_name', sa.String(), nullable=False),
        sa.Column('customer_phone', sa.String(), nullable=True),
        sa.Column('status', order_status, nullable=False),
        sa.Column('delivery_date', sa.Date(), nullable=False),
        sa.Column('delivery_time', sa.String(), nullable=True),
        sa.Column('subtotal', sa.Float(), nullable=False),
        sa.Column('discount', sa.Float(), nullable=False),
        sa.Column('total', sa.Float(), nullable=False),
        sa.Column('deposit', sa.Float(), nullable=False),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('internal_notes', sa.String(), nullable=True),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=True),
        _created(),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancellation_reason', sa.String(), nullable=True),
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
    op.create_index('ix_orders_customer_id', 'orders', ['customer_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_delivery_date', 'orders', ['delivery_date'])

    op.create_table(
        'cash_sessions',
        _id(),
        sa.Column('terminal_id', sa.String(), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', cash_status, nullable=False),
        sa.Column('opening_amount', sa.Float(), nullable=False),
        sa.Column('opening_notes', sa.String(), nullable=True),
        sa.Column('opened_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('closed_by_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('closing_notes', sa.String(), nullable=True),
        sa.Column('expected_amount', sa.Float(), nullable=True),
        sa.Column('closing_amount', sa.Float(), nullable=True),
        sa.Column('difference_amount', sa.Float(), nullable=True),
    )
    op.create_index('ix_cash_sessions_terminal_id', 'cash_sessions', ['terminal_id'])
    op.create_index('ix_cash_sessions_status', 'cash_sessions', ['status'])

    op.create_table(
        'sales',
        _id(),
        sa.Column('cash_session_id', sa.Integer(), sa.ForeignKey('cash_sessions.id'), nullable=False),
        sa.Column('cashier_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id'), nullable=True),
        sa.Column('status', sale_status, nullable=False),
        sa.Column('subtotal', sa.Float(), nullable=False),
        sa.Column('discount', sa.Float(), nullable=False),
        sa.Column('total', sa.Float(), nullable=False),
        sa.Column('payment_method', payment_method, nullable=False),
        sa.Column('cash_amount', sa.Float(), nullable=True),
        sa.Column('card_amount', sa.Float(), nullable=True),
        sa.Column('transfer_amount', sa.Float(), nullable=True),
        sa.Column('change_amount', sa.Float(), nullable=True),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('customer_name', sa.String(), nullable=True),
        sa.Column('cancellation_reason', sa.String(), nullable=True),
        _created(),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_sales_cash_session_id', 'sales', ['cash_session_id'])
    op.create_index('ix_sales_status', 'sales', ['status'])
    op.create_index('ix_sales_created_at', 'sales', ['created_at'])

    op.create_table(
        'product_batches',
        _id(),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('batch_number', sa.String(), nullable=False),
        sa.Column('actual_weight', sa.Float(), sa.CheckConstraint('actual_weight > 0'), nullable=False),
        sa.Column('unit_price', sa.Float(), sa.CheckConstraint('unit_price >= 0'), nullable=False),
        sa.Column('unit_cost', sa.Float(), nullable=True),
        sa.Column('is_sold', sa.Boolean(), nullable=False),
        sa.Column('reserved_order_id', sa.Integer(), sa.ForeignKey('orders.id'), nullable=True),
        sa.Column('sale_id', sa.Integer(), sa.ForeignKey('sales.id'), nullable=True),
        sa.Column('packed_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('expiry_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.String(), nullable=True),
    )
    op.create_index('ix_product_batches_product_id', 'product_batches', ['product_id'])
    op.create_index('ix_product_batches_batch_number', 'product_batches', ['batch_number'], unique=True)
    op.create_index('ix_product_batches_is_sold', 'product_batches', ['is_sold'])
    op.create_index('ix_product_batches_reserved_order_id', 'product_batches', ['reserved_order_id'])

    op.create_table(
        'order_items',
        _id(),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('batch_id', sa.Integer(), sa.ForeignKey('product_batches.id'), nullable=True),
        sa.Column('product_name', sa.String(), nullable=False),
        sa.Column('product_sku', sa.String(), nullable=False),
        sa.Column('sale_type', sale_type, nullable=False),
        sa.Column('unit', sa.String(), nullable=False),
        sa.Column('qty', sa.Float(), nullable=False),
        sa.Column('unit_price', sa.Float(), nullable=False),
        sa.Column('discount', sa.Float(), nullable=False),
        sa.Column('subtotal', sa.Float(), nullable=False),
        sa.Column('total', sa.Float(), nullable=False),
        sa.Column('notes', sa.String(), nullable=True),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table(
        'sale_items',
        _id(),
        sa.Column('sale_id', sa.Integer(), sa.ForeignKey('sales.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('batch_id', sa.Integer(), sa.ForeignKey('product_batches.id'), nullable=True),
        sa.Column('product_name', sa.String(), nullable=False),
        sa.Column('sale_type', sale_type, nullable=False),
        sa.Column('scanned_barcode', sa.String(), nullable=True),
        sa.Column('qty', sa.Float(), nullable=False),
        sa.Column('unit_price', sa.Float(), nullable=False),
        sa.Column('effective_unit_price', sa.Float(), nullable=True),
        sa.Column('discount', sa.Float(), nullable=False),
        sa.Column('subtotal', sa.Float(), nullable=False),
        sa.Column('total', sa.Float(), nullable=False),
    )
    op.create_index('ix_sale_items_sale_id', 'sale_items', ['sale_id'])

    op.create_table(
        'cash_movements',
        _id(),
        sa.Column('cash_session_id', sa.Integer(), sa.ForeignKey('cash_sessions.id'), nullable=False),
        sa.Column('type', movement_type, nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('reason', sa.String(), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        _created(),
    )
    op.create_index('ix_cash_movements_cash_session_id', 'cash_movements', ['cash_session_id'])

    op.create_table(
        'carts',
        _id(),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.String(), nullable=True),
        sa.Column('state', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_carts_user_id', 'carts', ['user_id'])
    op.create_index('ix_carts_status', 'carts', ['status'])

    op.create_table(
        'logs',
        _id(),
        sa.Column('ts', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('action', sa.String(length=50), nullable=True),
        sa.Column('resource', sa.String(length=50), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('ip', sa.String(length=64), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
    )
    op.create_index('ix_logs_ts', 'logs', ['ts'])
    op.create_index('ix_logs_action', 'logs', ['action'])
    op.create_index('ix_logs_resource', 'logs', ['resource'])
    op.create_index('ix_logs_status', 'logs', ['status'])
    op.create_index('ix_logs_resource_ts', 'logs', ['resource', 'ts'])


def downgrade() -> None:
    """Downgrade schema."""
    for table in ('logs', 'carts', 'cash_movements', 'sale_items', 'order_items', 'product_batches',
                  'sales', 'cash_sessions', 'orders', 'products', 'customers', 'users'):
        op.drop_table(table)
    bind = op.get_bind()
    for enum_type in (order_status, payment_method, sale_status, movement_type, cash_status,
                      user_role, inventory_type, sale_type):
        enum_type.drop(bind, checkfirst=True)
