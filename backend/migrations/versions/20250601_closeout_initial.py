"""Initial schema: stores, tables, catalog, live orders, sales cycles, archive, daily sales

Revision ID: 20250601_initial
Revises:
Create Date: 2025-06-01

This migration adds:
1. Stores with business hours and accounting settings
2. Dining tables (checkout lock row)
3. Menu items, options and toppings
4. Live orders with price snapshots
5. Sales cycles and the immutable order archive
6. Daily sales aggregates
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20250601_initial'
down_revision = None
branch_labels = None
depends_on = None

NOW = sa.text('(CURRENT_TIMESTAMP)')


def upgrade():
    # ==========================================================================
    # 1. STORES
    # ==========================================================================
    op.create_table('stores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=True),
        sa.Column('timezone', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code', name='uq_stores_code'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('stores', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_stores_code'), ['code'], unique=False)

    op.create_table('store_business_hours',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('open_time', sa.String(length=5), nullable=False),
        sa.Column('close_time', sa.String(length=5), nullable=False),
        sa.Column('is_next_day', sa.Boolean(), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id', 'day_of_week', name='uq_store_business_hours_store_dow'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('store_business_hours', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_store_business_hours_store_id'), ['store_id'], unique=False)
    op.create_index(
        'uq_store_business_hours_default', 'store_business_hours', ['store_id'], unique=True,
        sqlite_where=sa.text('day_of_week IS NULL'), postgresql_where=sa.text('day_of_week IS NULL'),
    )

    op.create_table('accounting_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('day_rollover_time', sa.String(length=5), nullable=False),
        sa.Column('tax_rate_bps', sa.Integer(), nullable=False),
        sa.Column('count_delivered_unbilled', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id'),
        sqlite_autoincrement=True
    )

    # ==========================================================================
    # 2. DINING TABLES
    # ==========================================================================
    op.create_table('dining_tables',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('area', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('checkout_requested', sa.Boolean(), nullable=False),
        sa.Column('checkout_requested_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id', 'number', name='uq_dining_tables_store_number'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('dining_tables', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_dining_tables_store_id'), ['store_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_dining_tables_checkout_requested'), ['checkout_requested'], unique=False)

    # ==========================================================================
    # 3. CATALOG
    # ==========================================================================
    for name in ('menu_items', 'menu_options', 'menu_toppings'):
        columns = [
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('store_id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=100), nullable=False),
            sa.Column('price', sa.Integer(), nullable=False),
        ]
        if name == 'menu_items':
            columns += [
                sa.Column('available', sa.Boolean(), nullable=False),
                sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
            ]
        else:
            columns.append(sa.Column('active', sa.Boolean(), nullable=False))
        op.create_table(name,
            *columns,
            sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sqlite_autoincrement=True
        )
        with op.batch_alter_table(name, schema=None) as batch_op:
            batch_op.create_index(batch_op.f(f'ix_{name}_store_id'), ['store_id'], unique=False)

    # ==========================================================================
    # 4. LIVE ORDERS
    # ==========================================================================
    op.create_table('orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('table_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('total_items', sa.Integer(), nullable=False),
        sa.Column('total_amount', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.ForeignKeyConstraint(['table_id'], ['dining_tables.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('orders', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_orders_store_id'), ['store_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_orders_table_id'), ['table_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_orders_status'), ['status'], unique=False)
        batch_op.create_index('ix_orders_store_status_updated', ['store_id', 'status', 'updated_at'], unique=False)

    op.create_table('order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('menu_item_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('base_price', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Integer(), nullable=False),
        sa.Column('total_price', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ),
        sa.ForeignKeyConstraint(['menu_item_id'], ['menu_items.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('order_items', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_order_items_order_id'), ['order_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_order_items_menu_item_id'), ['menu_item_id'], unique=False)

    for name, ref_column, ref_table in (
        ('order_item_options', 'option_id', 'menu_options'),
        ('order_item_toppings', 'topping_id', 'menu_toppings'),
    ):
        op.create_table(name,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('order_item_id', sa.Integer(), nullable=False),
            sa.Column(ref_column, sa.Integer(), nullable=True),
            sa.Column('name', sa.String(length=100), nullable=False),
            sa.Column('price', sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(['order_item_id'], ['order_items.id'], ),
            sa.ForeignKeyConstraint([ref_column], [f'{ref_table}.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sqlite_autoincrement=True
        )
        with op.batch_alter_table(name, schema=None) as batch_op:
            batch_op.create_index(batch_op.f(f'ix_{name}_order_item_id'), ['order_item_id'], unique=False)

    # ==========================================================================
    # 5. SALES CYCLES AND ARCHIVE
    # ==========================================================================
    op.create_table('sales_cycles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('table_id', sa.Integer(), nullable=False),
        sa.Column('cycle_number', sa.Integer(), nullable=False),
        sa.Column('accounting_date', sa.String(length=10), nullable=False),
        sa.Column('total_amount', sa.Integer(), nullable=False),
        sa.Column('total_items', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.ForeignKeyConstraint(['table_id'], ['dining_tables.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('table_id', 'accounting_date', 'cycle_number', name='uq_sales_cycles_table_date_number'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sales_cycles', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_sales_cycles_store_id'), ['store_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_sales_cycles_table_id'), ['table_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_sales_cycles_accounting_date'), ['accounting_date'], unique=False)
        batch_op.create_index(batch_op.f('ix_sales_cycles_status'), ['status'], unique=False)
        batch_op.create_index('ix_sales_cycles_table_completed', ['table_id', 'completed_at'], unique=False)
        batch_op.create_index('ix_sales_cycles_store_status_completed', ['store_id', 'status', 'completed_at'], unique=False)

    op.create_table('archived_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sales_cycle_id', sa.Integer(), nullable=False),
        sa.Column('original_order_id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('table_id', sa.Integer(), nullable=False),
        sa.Column('table_number', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('total_items', sa.Integer(), nullable=False),
        sa.Column('total_amount', sa.Integer(), nullable=False),
        sa.Column('original_created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('archived_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['sales_cycle_id'], ['sales_cycles.id'], ),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.ForeignKeyConstraint(['table_id'], ['dining_tables.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('archived_orders', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_archived_orders_sales_cycle_id'), ['sales_cycle_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_archived_orders_store_id'), ['store_id'], unique=False)
        batch_op.create_index('ix_archived_orders_store_archived', ['store_id', 'archived_at'], unique=False)

    op.create_table('archived_order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('archived_order_id', sa.Integer(), nullable=False),
        sa.Column('original_item_id', sa.Integer(), nullable=False),
        sa.Column('menu_item_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Integer(), nullable=False),
        sa.Column('total_price', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('original_created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('archived_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['archived_order_id'], ['archived_orders.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('archived_order_items', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_archived_order_items_archived_order_id'), ['archived_order_id'], unique=False)

    for name in ('archived_order_item_options', 'archived_order_item_toppings'):
        op.create_table(name,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('archived_order_item_id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=100), nullable=False),
            sa.Column('price', sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(['archived_order_item_id'], ['archived_order_items.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sqlite_autoincrement=True
        )
        with op.batch_alter_table(name, schema=None) as batch_op:
            batch_op.create_index(batch_op.f(f'ix_{name}_archived_order_item_id'), ['archived_order_item_id'], unique=False)

    # ==========================================================================
    # 6. DAILY SALES
    # ==========================================================================
    op.create_table('daily_sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('accounting_date', sa.String(length=10), nullable=False),
        sa.Column('total_orders', sa.Integer(), nullable=False),
        sa.Column('total_items', sa.Integer(), nullable=False),
        sa.Column('total_amount', sa.Integer(), nullable=False),
        sa.Column('tax_amount', sa.Integer(), nullable=False),
        sa.Column('period_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('period_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_finalized', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id', 'accounting_date', name='uq_daily_sales_store_date'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('daily_sales', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_daily_sales_store_id'), ['store_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_daily_sales_accounting_date'), ['accounting_date'], unique=False)


def downgrade():
    for name in (
        'daily_sales',
        'archived_order_item_toppings',
        'archived_order_item_options',
        'archived_order_items',
        'archived_orders',
        'sales_cycles',
        'order_item_toppings',
        'order_item_options',
        'order_items',
        'orders',
        'menu_toppings',
        'menu_options',
        'menu_items',
        'dining_tables',
        'accounting_settings',
        'store_business_hours',
        'stores',
    ):
        op.drop_table(name)
