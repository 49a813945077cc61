"""Initial schema - creates all tables for the stock service

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    orderstatus_enum = sa.Enum('PLACED', 'PAID', 'DISPATCHED', name='orderstatus')
    role_enum = sa.Enum('ADMIN', 'SELLER', name='role')

    # Catalogue
    op.create_table(
        'products',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_products_category', 'products', ['category'])

    op.create_table(
        'product_variations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('sku', sa.String(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.String(36), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('stock >= 0', name='ck_product_variations_stock_non_negative'),
    )
    op.create_index('ix_product_variations_sku', 'product_variations', ['sku'], unique=True)
    op.create_index('ix_product_variations_product_id', 'product_variations', ['product_id'])

    op.create_table(
        'variation_attributes',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('value', sa.String(), nullable=False),
        sa.Column('variation_id', sa.String(36), sa.ForeignKey('product_variations.id', ondelete='CASCADE'), nullable=False),
    )
    op.create_index('ix_variation_attributes_variation_id', 'variation_attributes', ['variation_id'])

    op.create_table(
        'raw_materials',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('unit', sa.String(), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('supplier', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'bom',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('variation_id', sa.String(36), sa.ForeignKey('product_variations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('raw_material_id', sa.String(36), sa.ForeignKey('raw_materials.id'), nullable=False),
        sa.Column('quantity_required', sa.Float(), nullable=False),
    )
    op.create_index('ix_bom_variation_id', 'bom', ['variation_id'])
    op.create_index('ix_bom_raw_material_id', 'bom', ['raw_material_id'])

    # Orders
    op.create_table(
        'orders',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('status', orderstatus_enum, nullable=False),
        sa.Column('total_amount', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('order_id', sa.String(36), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.String(36), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('variation_id', sa.String(36), sa.ForeignKey('product_variations.id'), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])
    op.create_index('ix_order_items_product_id', 'order_items', ['product_id'])

    # Webhooks
    op.create_table(
        'webhook_subscriptions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('endpoint', sa.String(), nullable=False),
        sa.Column('sku', sa.String(), nullable=True),
        sa.Column('min_stock', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_webhook_subscriptions_sku', 'webhook_subscriptions', ['sku'])

    # Auth
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password', sa.String(), nullable=False),
        sa.Column('role', role_enum, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'refresh_tokens',
        sa.Column('token', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_refresh_tokens_user_id', 'refresh_tokens', ['user_id'])


def downgrade() -> None:
    op.drop_table('refresh_tokens')
    op.drop_table('users')
    op.drop_table('webhook_subscriptions')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('bom')
    op.drop_table('raw_materials')
    op.drop_table('variation_attributes')
    op.drop_table('product_variations')
    op.drop_table('products')

    sa.Enum(name='role').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='orderstatus').drop(op.get_bind(), checkfirst=True)
