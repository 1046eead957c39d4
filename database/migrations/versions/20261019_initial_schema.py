"""Initial schema - flow definitions, graph, executions, commerce tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create tables for the automation engine"""

    op.create_table(
        'flow_definitions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('organization_id', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('version', sa.String(length=50), nullable=False, server_default='1.0.0'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_flow_definitions_organization_id'), 'flow_definitions', ['organization_id'], unique=False)
    op.create_index(op.f('ix_flow_definitions_status'), 'flow_definitions', ['status'], unique=False)

    # Node and edge ids come from the editor: unique per flow only
    op.create_table(
        'flow_nodes',
        sa.Column('flow_id', sa.String(length=36), nullable=False),
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('config', sa.JSON(), nullable=False),
        sa.Column('position', sa.JSON(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['flow_id'], ['flow_definitions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('flow_id', 'id')
    )

    op.create_table(
        'flow_edges',
        sa.Column('flow_id', sa.String(length=36), nullable=False),
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('source_node_id', sa.String(length=255), nullable=False),
        sa.Column('target_node_id', sa.String(length=255), nullable=False),
        sa.Column('condition_label', sa.Text(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['flow_id'], ['flow_definitions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('flow_id', 'id')
    )

    op.create_table(
        'flow_executions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('flow_id', sa.String(length=36), nullable=False),
        sa.Column('organization_id', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('logs', sa.JSON(), nullable=False),
        sa.Column('context', sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(['flow_id'], ['flow_definitions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_flow_executions_flow_id'), 'flow_executions', ['flow_id'], unique=False)
    op.create_index(op.f('ix_flow_executions_organization_id'), 'flow_executions', ['organization_id'], unique=False)
    op.create_index(op.f('ix_flow_executions_status'), 'flow_executions', ['status'], unique=False)

    # Commerce tables written by the built-in actions
    op.create_table(
        'products',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('organization_id', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_products_organization_id'), 'products', ['organization_id'], unique=False)

    op.create_table(
        'inventory_movements',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('organization_id', sa.String(length=255), nullable=False),
        sa.Column('product_id', sa.String(length=36), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('before_stock', sa.Integer(), nullable=True),
        sa.Column('after_stock', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_inventory_movements_organization_id'), 'inventory_movements', ['organization_id'], unique=False)
    op.create_index(op.f('ix_inventory_movements_product_id'), 'inventory_movements', ['product_id'], unique=False)

    op.create_table(
        'sales',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('organization_id', sa.String(length=255), nullable=False),
        sa.Column('product_id', sa.String(length=36), nullable=True),
        sa.Column('customer_id', sa.String(length=36), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('total_price', sa.Float(), nullable=False),
        sa.Column('payment_status', sa.String(length=50), nullable=False),
        sa.Column('delivery_status', sa.String(length=50), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_sales_organization_id'), 'sales', ['organization_id'], unique=False)

    op.create_table(
        'notifications',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('organization_id', sa.String(length=255), nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('priority', sa.String(length=20), nullable=False),
        sa.Column('read', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_notifications_organization_id'), 'notifications', ['organization_id'], unique=False)
    op.create_index(op.f('ix_notifications_user_id'), 'notifications', ['user_id'], unique=False)

    op.create_table(
        'deals',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('organization_id', sa.String(length=255), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_deals_organization_id'), 'deals', ['organization_id'], unique=False)


def downgrade() -> None:
    """Drop all tables"""
    op.drop_table('deals')
    op.drop_table('notifications')
    op.drop_table('sales')
    op.drop_table('inventory_movements')
    op.drop_table('products')
    op.drop_table('flow_executions')
    op.drop_table('flow_edges')
    op.drop_table('flow_nodes')
    op.drop_table('flow_definitions')
