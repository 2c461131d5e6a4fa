"""Add scheme period and period reward tables

Revision ID: 20261016_000002
Revises: 20261016_000001
Create Date: 2026-10-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261016_000002'
down_revision: Union[str, None] = '20261016_000001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'scheme_periods',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('scheme_id', sa.Integer(), nullable=False),
        sa.Column('period_index', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['scheme_id'], ['schemes.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('scheme_id', 'period_index', name='uq_scheme_periods_index'),
        sa.CheckConstraint('period_index >= 1', name='check_scheme_period_index_positive'),
        sa.CheckConstraint('end_date > start_date', name='check_scheme_period_bounds'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_scheme_periods_scheme_id', 'scheme_periods', ['scheme_id'])

    op.create_table(
        'period_rewards',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('period_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('is_cover', sa.Boolean(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['period_id'], ['scheme_periods.id'], ondelete='CASCADE'),
        sa.CheckConstraint('quantity >= 1', name='check_period_reward_quantity'),
        sa.CheckConstraint('sort_order >= 0', name='check_period_reward_sort_order'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_period_rewards_period_id', 'period_rewards', ['period_id'])


def downgrade() -> None:
    op.drop_table('period_rewards')
    op.drop_table('scheme_periods')
