"""Create cash registers, sessions, movements, sales and receipts tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ENUM, UUID

# revision identifiers, used by Alembic.
revision: str = 'a1b2c3d4e5f6'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── users / owners / pets ────────────────────────
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column(
            'role',
            sa.Enum('admin', 'veterinarian', 'receptionist', 'assistant', name='userrole'),
            nullable=False,
        ),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'owners',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('identification_number', sa.String(20), nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'pets',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('owner_id', UUID(as_uuid=True), sa.ForeignKey('owners.id'), nullable=False),
        sa.Column('internal_id', sa.String(30), nullable=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('species', sa.String(50), nullable=False),
        sa.Column('breed', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_pet_owner', 'pets', ['owner_id'])

    # ── catálogo ──────────────────────────────────────
    op.create_table(
        'products',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(300), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column(
            'unit_type',
            sa.Enum(
                'unidad', 'caja', 'frasco', 'bolsa', 'mililitro', 'tableta', 'otro',
                name='unittype',
            ),
            nullable=False,
        ),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('current_stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('min_stock', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('requires_prescription', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('current_stock >= 0', name='ck_product_stock_non_negative'),
    )
    op.create_index('idx_product_name', 'products', ['name'])

    op.create_table(
        'services',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column(
            'category',
            sa.Enum(
                'consultation', 'vaccination', 'surgery', 'grooming',
                'laboratory', 'hospitalization', 'other',
                name='servicecategory',
            ),
            nullable=False,
        ),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('name', name='uq_service_name'),
    )
    op.create_index('idx_service_category', 'services', ['category'])

    # ── caja ──────────────────────────────────────────
    op.create_table(
        'cash_registers',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('location', sa.String(200), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'cash_sessions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('session_number', sa.String(20), nullable=False, unique=True),
        sa.Column('cash_register_id', UUID(as_uuid=True), sa.ForeignKey('cash_registers.id'), nullable=False),
        sa.Column('opened_by', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('closed_by', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column(
            'status',
            sa.Enum('OPEN', 'CLOSED', name='cashsessionstatus'),
            nullable=False,
            server_default='OPEN',
        ),
        sa.Column('initial_cash', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_sales', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total_cash', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total_card', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total_transfer', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('expected_cash', sa.Numeric(12, 2), nullable=True),
        sa.Column('actual_cash', sa.Numeric(12, 2), nullable=True),
        sa.Column('difference', sa.Numeric(12, 2), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('opened_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        'uq_cash_session_register_open', 'cash_sessions', ['cash_register_id'],
        unique=True, postgresql_where=sa.text("status = 'OPEN'"),
    )
    op.create_index('idx_cash_session_register_status', 'cash_sessions', ['cash_register_id', 'status'])
    op.create_index('idx_cash_session_opened_at', 'cash_sessions', ['opened_at'])

    op.create_table(
        'cash_movements',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('cash_session_id', UUID(as_uuid=True), sa.ForeignKey('cash_sessions.id'), nullable=False),
        sa.Column('performed_by', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column(
            'movement_type',
            sa.Enum('IN', 'OUT', 'ADJUSTMENT', 'EXPIRED', 'LOST', name='movementtype'),
            nullable=False,
        ),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('reason', sa.String(500), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_movement_session', 'cash_movements', ['cash_session_id'])
    op.create_index('idx_movement_created_at', 'cash_movements', ['created_at'])

    # ── ventas ────────────────────────────────────────
    op.create_table(
        'sales',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('sale_number', sa.String(20), nullable=False, unique=True),
        sa.Column('cash_session_id', UUID(as_uuid=True), sa.ForeignKey('cash_sessions.id'), nullable=False),
        sa.Column('owner_id', UUID(as_uuid=True), sa.ForeignKey('owners.id'), nullable=True),
        sa.Column('sold_by', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column(
            'payment_method',
            sa.Enum('CASH', 'CARD', 'TRANSFER', 'CREDIT', name='paymentmethod'),
            nullable=False,
            server_default='CASH',
        ),
        sa.Column(
            'payment_status',
            sa.Enum('PAID', 'PENDING', name='paymentstatus'),
            nullable=False,
            server_default='PAID',
        ),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        sa.Column('total', sa.Numeric(12, 2), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_sale_session', 'sales', ['cash_session_id'])
    op.create_index('idx_sale_created_at', 'sales', ['created_at'])

    op.create_table(
        'sale_items',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('sale_id', UUID(as_uuid=True), sa.ForeignKey('sales.id'), nullable=False),
        sa.Column(
            'item_type',
            sa.Enum('PRODUCT', 'SERVICE', name='saleitemtype'),
            nullable=False,
        ),
        sa.Column('product_id', UUID(as_uuid=True), sa.ForeignKey('products.id'), nullable=True),
        sa.Column('service_id', UUID(as_uuid=True), sa.ForeignKey('services.id'), nullable=True),
        sa.Column('description', sa.String(300), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('total', sa.Numeric(12, 2), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_sale_item_quantity_positive'),
        sa.CheckConstraint(
            '(product_id IS NULL) <> (service_id IS NULL)',
            name='ck_sale_item_product_xor_service',
        ),
    )
    op.create_index('idx_sale_item_sale', 'sale_items', ['sale_id'])

    op.create_table(
        'receipts',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('receipt_number', sa.String(20), nullable=False, unique=True),
        sa.Column('sale_id', UUID(as_uuid=True), sa.ForeignKey('sales.id'), nullable=False, unique=True),
        sa.Column('pet_id', UUID(as_uuid=True), sa.ForeignKey('pets.id'), nullable=True),
        sa.Column('owner_id', UUID(as_uuid=True), sa.ForeignKey('owners.id'), nullable=True),
        sa.Column('veterinarian_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('issue_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column(
            'payment_method',
            ENUM(name='paymentmethod', create_type=False),
            nullable=False,
        ),
        sa.Column(
            'payment_status',
            ENUM(name='paymentstatus', create_type=False),
            nullable=False,
            server_default='PAID',
        ),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_receipt_issue_date', 'receipts', ['issue_date'])

    # ── correlativos diarios ──────────────────────────
    op.create_table(
        'daily_sequences',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column(
            'sequence_type',
            sa.Enum('cash_session', 'sale', 'receipt', name='sequencetype'),
            nullable=False,
        ),
        sa.Column('day', sa.Date(), nullable=False),
        sa.Column('last_number', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint('sequence_type', 'day', name='uq_daily_sequence_type_day'),
    )


def downgrade() -> None:
    op.drop_table('daily_sequences')
    op.drop_table('receipts')
    op.drop_table('sale_items')
    op.drop_table('sales')
    op.drop_table('cash_movements')
    op.drop_table('cash_sessions')
    op.drop_table('cash_registers')
    op.drop_table('services')
    op.drop_table('products')
    op.drop_table('pets')
    op.drop_table('owners')
    op.drop_table('users')

    # Limpiar enums
    for enum_name in (
        'sequencetype', 'saleitemtype', 'paymentstatus', 'paymentmethod',
        'movementtype', 'cashsessionstatus', 'servicecategory', 'unittype', 'userrole',
    ):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
