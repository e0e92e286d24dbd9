"""initial billing schema

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by_id', sa.String(), nullable=True),
        sa.Column('updated_by_id', sa.String(), nullable=True),
        sa.Column('deleted_by_id', sa.String(), nullable=True),
    ]


def upgrade() -> None:
    # Properties
    op.create_table('properties',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('address', sa.String(), nullable=False),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id')
    )

    # Property administrators
    op.create_table('property_administrators',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('property_id', 'user_id', name='uq_property_administrator')
    )
    op.create_index(op.f('ix_property_administrators_user_id'), 'property_administrators', ['user_id'])

    # Rentals
    op.create_table('rentals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.DATE(), nullable=False),
        sa.Column('end_date', sa.DATE(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_rentals_user_id'), 'rentals', ['user_id'])
    op.create_index(op.f('ix_rentals_property_id'), 'rentals', ['property_id'])

    # Electricity bills
    op.create_table('electricity_bills',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('period_start', sa.DATE(), nullable=False),
        sa.Column('period_end', sa.DATE(), nullable=False),
        sa.Column('total_kwh', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('total_cost', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('file_url', sa.String(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('total_kwh > 0', name='ck_electricity_bill_kwh_positive'),
        sa.CheckConstraint('total_cost > 0', name='ck_electricity_bill_cost_positive'),
        sa.CheckConstraint('period_start < period_end', name='ck_electricity_bill_period')
    )
    op.create_index(op.f('ix_electricity_bills_property_id'), 'electricity_bills', ['property_id'])

    # Water bills
    op.create_table('water_bills',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('period_start', sa.DATE(), nullable=False),
        sa.Column('period_end', sa.DATE(), nullable=False),
        sa.Column('total_consumption', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('total_cost', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('file_url', sa.String(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('total_consumption > 0', name='ck_water_bill_consumption_positive'),
        sa.CheckConstraint('total_cost > 0', name='ck_water_bill_cost_positive'),
        sa.CheckConstraint('period_start < period_end', name='ck_water_bill_period')
    )
    op.create_index(op.f('ix_water_bills_property_id'), 'water_bills', ['property_id'])

    # Invoices
    op.create_table('invoices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('rental_id', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('water_cost', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('energy_cost', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('total_cost', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('receipt_url', sa.String(), nullable=True),
        sa.Column('invoice_url', sa.String(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['rental_id'], ['rentals.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('rental_id', 'month', 'year', name='uq_invoice_rental_period'),
        sa.CheckConstraint('month >= 1 AND month <= 12', name='ck_invoice_month')
    )
    op.create_index(op.f('ix_invoices_rental_id'), 'invoices', ['rental_id'])
    op.create_index('ix_invoices_period', 'invoices', ['year', 'month'])

    # Payments
    op.create_table('payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('rental_id', sa.Integer(), nullable=True),
        sa.Column('invoice_id', sa.Integer(), nullable=True),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('payment_method', sa.String(), nullable=False),
        sa.Column('reference', sa.String(length=255), nullable=True),
        sa.Column('receipt_url', sa.String(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['rental_id'], ['rentals.id'], ),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('amount > 0', name='ck_payment_amount_positive'),
        sa.CheckConstraint(
            '(rental_id IS NULL AND invoice_id IS NOT NULL) OR (rental_id IS NOT NULL AND invoice_id IS NULL)',
            name='ck_payment_single_parent'
        )
    )
    op.create_index(op.f('ix_payments_rental_id'), 'payments', ['rental_id'])
    op.create_index(op.f('ix_payments_invoice_id'), 'payments', ['invoice_id'])


def downgrade() -> None:
    op.drop_table('payments')
    op.drop_table('invoices')
    op.drop_table('water_bills')
    op.drop_table('electricity_bills')
    op.drop_table('rentals')
    op.drop_table('property_administrators')
    op.drop_table('properties')
