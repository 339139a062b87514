"""Initial billing schema

Revision ID: 001
Revises: 
Create Date: 2024-01-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # One billing profile per account
    op.create_table(
        'user_billing',
        sa.Column('account_id', sa.String(), nullable=False),
        sa.Column('customer_ref', sa.String(), nullable=True),
        sa.Column('subscription_ref', sa.String(), nullable=True),
        sa.Column('credit_balance_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('next_billing_date', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('account_id')
    )
    op.create_index(op.f('ix_user_billing_account_id'), 'user_billing', ['account_id'], unique=False)

    # Global billing settings, single row
    op.create_table(
        'billing_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('setup_fee_cents', sa.Integer(), nullable=False),
        sa.Column('monthly_fee_cents', sa.Integer(), nullable=False),
        sa.Column('call_cost_multiplier', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_billing_settings_id'), 'billing_settings', ['id'], unique=False)


def downgrade() -> None:
    op.drop_table('billing_settings')
    op.drop_table('user_billing')
