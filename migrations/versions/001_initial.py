"""Initial migration - create all tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Tracked listings
    op.create_table(
        'asin_data',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', sa.String(100), nullable=False, index=True),
        sa.Column('asin', sa.String(20), nullable=False, index=True),
        sa.Column('title', sa.Text, nullable=True),
        sa.Column('country', sa.String(10), nullable=False, server_default='com'),
        sa.Column('page_count', sa.Integer, nullable=True),
        sa.Column('price', sa.Numeric(12, 2), nullable=True),
        sa.Column('interior_type', sa.String(20), nullable=False, server_default='bw'),
        sa.Column('trim_size', sa.String(50), nullable=True),
        sa.Column('dimensions_raw', sa.String(200), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Scraped samples
    op.create_table(
        'asin_history',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('listing_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('asin_data.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(), index=True),
        sa.Column('bsr', sa.Integer, nullable=True),
        sa.Column('price', sa.Numeric(12, 2), nullable=True),
        sa.Column('review_count', sa.Integer, nullable=True),
    )

    # Notification snapshots (insert only)
    op.create_table(
        'notification_snapshots',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', sa.String(100), nullable=False, index=True),
        sa.Column('asin', sa.String(20), nullable=False, index=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('net_impact', sa.Float, nullable=False, server_default='0'),
        sa.Column('sentiment', sa.String(50), nullable=False),
        sa.Column('drivers', sa.Text, nullable=False, server_default='[]'),
        sa.Column('recommendations', sa.Text, nullable=False, server_default='[]'),
        sa.Column('confidence', sa.String(10), nullable=False),
        sa.Column('details', sa.Text, nullable=False, server_default='{}'),
        sa.Column('algo_version', sa.String(50), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
    )

    # Daily rollups
    op.create_table(
        'notification_daily_rollup',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(100), nullable=False, index=True),
        sa.Column('asin', sa.String(20), nullable=False, index=True),
        sa.Column('date', sa.Date, nullable=False, index=True),
        sa.Column('better', sa.Integer, nullable=False, server_default='0'),
        sa.Column('worse', sa.Integer, nullable=False, server_default='0'),
        sa.Column('stable', sa.Integer, nullable=False, server_default='0'),
        sa.Column('net_impact_avg', sa.Float, nullable=False, server_default='0'),
        sa.Column('weights', sa.Text, nullable=True),
    )

    # Feedback events
    op.create_table(
        'notification_feedback',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('snapshot_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('notification_snapshots.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(100), nullable=False, index=True),
        sa.Column('asin', sa.String(20), nullable=False),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('sign', sa.String(10), nullable=False, server_default='positive'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Feedback ledgers
    op.create_table(
        'feedback_ledgers',
        sa.Column('user_id', sa.String(100), primary_key=True),
        sa.Column('ledger', sa.Text, nullable=False, server_default='{}'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Create unique constraints
    op.create_unique_constraint('uq_rollup_user_asin_date', 'notification_daily_rollup', ['user_id', 'asin', 'date'])


def downgrade() -> None:
    op.drop_table('feedback_ledgers')
    op.drop_table('notification_feedback')
    op.drop_table('notification_daily_rollup')
    op.drop_table('notification_snapshots')
    op.drop_table('asin_history')
    op.drop_table('asin_data')
