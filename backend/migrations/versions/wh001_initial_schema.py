"""Initial warehouse schema: users, warehouses, memberships, invitations, stores, products

MULTI-TENANT MIGRATION:
1. Creates 'users' mirrored from the external identity provider
2. Creates 'warehouses' as the tenant root
3. Creates 'memberships' with a unique (warehouse_id, user_id) pair
4. Creates 'invitations' with a partial unique index on pending (email, warehouse_id)
5. Creates 'stores' and 'products' scoped below warehouses

Revision ID: wh001_initial_schema
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'wh001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # STEP 1: Identity
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('external_auth_id', sa.String(length=128), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_users_external_auth_id', 'users', ['external_auth_id'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # ==========================================================================
    # STEP 2: Tenancy
    # ==========================================================================
    op.create_table('warehouses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_warehouses_name', 'warehouses', ['name'])
    op.create_index('ix_warehouses_created_by_user_id', 'warehouses', ['created_by_user_id'])

    op.create_table('memberships',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('warehouse_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('invited_by_user_id', sa.Integer(), nullable=True),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['invited_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('warehouse_id', 'user_id', name='uq_memberships_warehouse_user'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_memberships_user', 'memberships', ['user_id'])
    op.create_index('ix_memberships_warehouse', 'memberships', ['warehouse_id'])

    op.create_table('invitations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('warehouse_id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('invited_by_user_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('invited_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id']),
        sa.ForeignKeyConstraint(['invited_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_invitations_email_warehouse', 'invitations', ['email', 'warehouse_id'])
    op.create_index('ix_invitations_warehouse', 'invitations', ['warehouse_id'])
    # At most one pending invitation per (email, warehouse)
    op.create_index(
        'uq_invitations_pending_email_warehouse',
        'invitations',
        ['email', 'warehouse_id'],
        unique=True,
        sqlite_where=sa.text("status = 'pending'"),
        postgresql_where=sa.text("status = 'pending'"),
    )

    # ==========================================================================
    # STEP 3: Hierarchy below the warehouse
    # ==========================================================================
    op.create_table('stores',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('warehouse_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('store_type', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_stores_warehouse_id', 'stores', ['warehouse_id'])

    op.create_table('products',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unit', sa.String(length=32), nullable=False, server_default='pcs'),
        sa.Column('price', sa.String(length=32), nullable=False, server_default='0'),
        sa.Column('image_ref', sa.String(length=255), nullable=True),
        sa.Column('search_vector', sa.JSON(), nullable=True),
        sa.Column('low_stock_threshold', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('out_of_stock_threshold', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reorder_point', sa.Integer(), nullable=False, server_default='20'),
        sa.Column('critical_low_threshold', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('overstock_threshold', sa.Integer(), nullable=False, server_default='1000'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_products_store_id', 'products', ['store_id'])
    op.create_index('ix_products_store_name', 'products', ['store_id', 'name'])


def downgrade():
    op.drop_index('ix_products_store_name', table_name='products')
    op.drop_index('ix_products_store_id', table_name='products')
    op.drop_table('products')

    op.drop_index('ix_stores_warehouse_id', table_name='stores')
    op.drop_table('stores')

    op.drop_index('uq_invitations_pending_email_warehouse', table_name='invitations')
    op.drop_index('ix_invitations_warehouse', table_name='invitations')
    op.drop_index('ix_invitations_email_warehouse', table_name='invitations')
    op.drop_table('invitations')

    op.drop_index('ix_memberships_warehouse', table_name='memberships')
    op.drop_index('ix_memberships_user', table_name='memberships')
    op.drop_table('memberships')

    op.drop_index('ix_warehouses_created_by_user_id', table_name='warehouses')
    op.drop_index('ix_warehouses_name', table_name='warehouses')
    op.drop_table('warehouses')

    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_external_auth_id', table_name='users')
    op.drop_table('users')
