"""Create scheme, card ledger, commission and winner tables

Revision ID: 20261016_000001
Revises: 
Create Date: 2026-10-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261016_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

OPEN_ENROLLMENT = sa.text("subscription_status IN ('active', 'paused')")
COMPLETED = sa.text("status = 'completed'")


def upgrade() -> None:
    op.create_table(
        'schemes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('subscription_amount', sa.BigInteger(), nullable=False),
        sa.Column('subscription_cycle', sa.String(20), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('number_of_winners', sa.Integer(), nullable=False),
        sa.Column('max_participants', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('direct_commission_bps', sa.Integer(), nullable=True),
        sa.Column('indirect_commission_bps', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('subscription_amount > 0', name='check_scheme_amount_positive'),
        sa.CheckConstraint('duration >= 1', name='check_scheme_duration_positive'),
        sa.CheckConstraint('number_of_winners >= 1', name='check_scheme_winners_positive'),
        sa.CheckConstraint(
            'direct_commission_bps IS NULL OR '
            '(direct_commission_bps >= 0 AND direct_commission_bps <= 10000)',
            name='check_scheme_direct_bps_range',
        ),
        sa.CheckConstraint(
            'indirect_commission_bps IS NULL OR '
            '(indirect_commission_bps >= 0 AND indirect_commission_bps <= 10000)',
            name='check_scheme_indirect_bps_range',
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_schemes_status', 'schemes', ['status'])

    op.create_table(
        'prizes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('scheme_id', sa.Integer(), nullable=False),
        sa.Column('rank', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('prize_type', sa.String(20), nullable=False),
        sa.Column('cash_amount', sa.BigInteger(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['scheme_id'], ['schemes.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('scheme_id', 'rank', name='uq_prizes_scheme_rank'),
        sa.CheckConstraint('rank > 0', name='check_prize_rank_positive'),
        sa.CheckConstraint(
            'cash_amount IS NULL OR cash_amount > 0',
            name='check_prize_cash_amount_positive',
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_prizes_scheme_id', 'prizes', ['scheme_id'])

    op.create_table(
        'referral_levels',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('commission_bps', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('level'),
        sa.CheckConstraint('level IN (1, 2)', name='check_referral_level_range'),
        sa.CheckConstraint(
            'commission_bps >= 0 AND commission_bps <= 10000',
            name='check_referral_level_bps_range',
        ),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'cards',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('scheme_id', sa.Integer(), nullable=False),
        sa.Column('cardholder_name', sa.String(255), nullable=False),
        sa.Column('phone_number', sa.String(20), nullable=True),
        sa.Column('payment_method', sa.String(20), nullable=False),
        sa.Column('mandate_id', sa.String(100), nullable=True),
        sa.Column('subscription_status', sa.String(20), nullable=False),
        sa.Column('kyc_status', sa.String(20), nullable=False),
        sa.Column('payment_status', sa.String(20), nullable=False),
        sa.Column('status_reason', sa.Text(), nullable=True),
        sa.Column('status_changed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('total_wallet_balance', sa.BigInteger(), nullable=False),
        sa.Column('commission_wallet_balance', sa.BigInteger(), nullable=False),
        sa.Column('total_payments_made', sa.Integer(), nullable=False),
        sa.Column('last_payment_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ref_l1_user_id', sa.String(64), nullable=True),
        sa.Column('ref_l1_card_id', sa.Integer(), nullable=True),
        sa.Column('ref_l2_user_id', sa.String(64), nullable=True),
        sa.Column('ref_l2_card_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['scheme_id'], ['schemes.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['ref_l1_card_id'], ['cards.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['ref_l2_card_id'], ['cards.id'], ondelete='SET NULL'),
        sa.CheckConstraint('total_payments_made >= 0', name='check_card_payments_non_negative'),
        sa.CheckConstraint('total_wallet_balance >= 0', name='check_card_wallet_non_negative'),
        sa.CheckConstraint(
            'commission_wallet_balance >= 0',
            name='check_card_commission_wallet_non_negative',
        ),
        sa.CheckConstraint(
            'ref_l1_user_id IS NULL OR ref_l1_user_id <> user_id',
            name='check_card_no_self_referral_l1',
        ),
        sa.CheckConstraint(
            'ref_l2_user_id IS NULL OR ref_l2_user_id <> user_id',
            name='check_card_no_self_referral_l2',
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_cards_user_id', 'cards', ['user_id'])
    op.create_index('ix_cards_scheme_id', 'cards', ['scheme_id'])
    op.create_index('ix_cards_subscription_status', 'cards', ['subscription_status'])
    op.create_index('ix_cards_payment_status', 'cards', ['payment_status'])
    op.create_index('ix_cards_ref_l1_user_id', 'cards', ['ref_l1_user_id'])
    op.create_index('ix_cards_ref_l2_user_id', 'cards', ['ref_l2_user_id'])
    op.create_index('idx_cards_scheme_status', 'cards', ['scheme_id', 'subscription_status'])
    op.create_index(
        'uq_cards_open_enrollment',
        'cards',
        ['user_id', 'scheme_id'],
        unique=True,
        postgresql_where=OPEN_ENROLLMENT,
        sqlite_where=OPEN_ENROLLMENT,
    )

    op.create_table(
        'payment_records',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('card_id', sa.Integer(), nullable=False),
        sa.Column('scheme_id', sa.Integer(), nullable=False),
        sa.Column('period_index', sa.Integer(), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('payment_method', sa.String(20), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('gateway_txid', sa.String(64), nullable=True),
        sa.Column('failure_reason', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['card_id'], ['cards.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['scheme_id'], ['schemes.id'], ondelete='RESTRICT'),
        sa.CheckConstraint('period_index >= 1', name='check_payment_period_positive'),
        sa.CheckConstraint('amount > 0', name='check_payment_amount_positive'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_payment_records_card_id', 'payment_records', ['card_id'])
    op.create_index('ix_payment_records_status', 'payment_records', ['status'])
    op.create_index('ix_payment_records_gateway_txid', 'payment_records', ['gateway_txid'])
    op.create_index(
        'idx_payment_records_scheme_period',
        'payment_records',
        ['scheme_id', 'period_index'],
    )
    op.create_index(
        'uq_payment_records_completed_period',
        'payment_records',
        ['card_id', 'period_index'],
        unique=True,
        postgresql_where=COMPLETED,
        sqlite_where=COMPLETED,
    )

    op.create_table(
        'commission_entries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('beneficiary_user_id', sa.String(64), nullable=False),
        sa.Column('beneficiary_card_id', sa.Integer(), nullable=True),
        sa.Column('source_payment_id', sa.Integer(), nullable=False),
        sa.Column('source_card_id', sa.Integer(), nullable=False),
        sa.Column('level', sa.String(20), nullable=False),
        sa.Column('rate_bps', sa.Integer(), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['beneficiary_card_id'], ['cards.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['source_payment_id'], ['payment_records.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['source_card_id'], ['cards.id'], ondelete='RESTRICT'),
        sa.UniqueConstraint(
            'source_payment_id', 'level', name='uq_commission_entries_payment_level'
        ),
        sa.CheckConstraint('amount > 0', name='check_commission_amount_positive'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'ix_commission_entries_beneficiary_user_id',
        'commission_entries',
        ['beneficiary_user_id'],
    )
    op.create_index(
        'ix_commission_entries_beneficiary_card_id',
        'commission_entries',
        ['beneficiary_card_id'],
    )
    op.create_index(
        'ix_commission_entries_source_payment_id',
        'commission_entries',
        ['source_payment_id'],
    )
    op.create_index(
        'ix_commission_entries_source_card_id',
        'commission_entries',
        ['source_card_id'],
    )

    op.create_table(
        'winners',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('scheme_id', sa.Integer(), nullable=False),
        sa.Column('card_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('prize_id', sa.Integer(), nullable=True),
        sa.Column('rank', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('win_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('claimed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('delivery_address', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(64), nullable=True),
        sa.ForeignKeyConstraint(['scheme_id'], ['schemes.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['card_id'], ['cards.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['prize_id'], ['prizes.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('scheme_id', 'rank', name='uq_winners_scheme_rank'),
        sa.UniqueConstraint('scheme_id', 'card_id', name='uq_winners_scheme_card'),
        sa.CheckConstraint('rank > 0', name='check_winner_rank_positive'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_winners_scheme_id', 'winners', ['scheme_id'])
    op.create_index('ix_winners_card_id', 'winners', ['card_id'])
    op.create_index('ix_winners_status', 'winners', ['status'])

    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('card_id', sa.Integer(), nullable=False),
        sa.Column('period_index', sa.Integer(), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('payment_method', sa.String(20), nullable=False),
        sa.Column('gateway_txid', sa.String(64), nullable=False),
        sa.Column('redirect_url', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('failure_reason', sa.Text(), nullable=True),
        sa.Column('payment_record_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('settled_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['card_id'], ['cards.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['payment_record_id'], ['payment_records.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('gateway_txid'),
        sa.CheckConstraint('amount > 0', name='check_invoice_amount_positive'),
        sa.CheckConstraint('period_index >= 1', name='check_invoice_period_positive'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_invoices_user_id', 'invoices', ['user_id'])
    op.create_index('ix_invoices_card_id', 'invoices', ['card_id'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])


def downgrade() -> None:
    op.drop_table('invoices')
    op.drop_table('winners')
    op.drop_table('commission_entries')
    op.drop_table('payment_records')
    op.drop_table('cards')
    op.drop_table('referral_levels')
    op.drop_table('prizes')
    op.drop_table('schemes')
