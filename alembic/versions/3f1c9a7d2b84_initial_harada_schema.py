"""initial harada schema

Revision ID: 3f1c9a7d2b84
Revises: 
Create Date: 2026-10-19 09:12:41.503118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b84'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'charts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', name='uq_chart_user'),
    )
    op.create_index('ix_charts_id', 'charts', ['id'])

    op.create_table(
        'cells',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('chart_id', sa.Integer(), sa.ForeignKey('charts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('row_index', sa.Integer(), nullable=False),
        sa.Column('col_index', sa.Integer(), nullable=False),
        sa.Column('cell_type', sa.String(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('chart_id', 'row_index', 'col_index', name='uq_cell_position'),
    )
    op.create_index('ix_cells_id', 'cells', ['id'])

    op.create_table(
        'cycles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('chart_id', sa.Integer(), sa.ForeignKey('charts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('week_start_date', sa.Date(), nullable=False),
        sa.Column('week_end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='planned'),
        sa.Column('start_journal', sa.Text(), nullable=False, server_default=''),
        sa.Column('end_review', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_cycles_id', 'cycles', ['id'])
    # Completed cycles are history; only the open one per week must be unique
    op.create_index(
        'uq_cycle_open_week',
        'cycles',
        ['chart_id', 'week_start_date'],
        unique=True,
        postgresql_where=sa.text("status != 'completed'"),
        sqlite_where=sa.text("status != 'completed'"),
    )

    op.create_table(
        'weekly_actions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('cycle_id', sa.Integer(), sa.ForeignKey('cycles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('cell_id', sa.Integer(), sa.ForeignKey('cells.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_selected', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('completion_status', sa.String(), nullable=False, server_default='not_started'),
        sa.Column('reflection_notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('completed_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('score IS NULL OR (score >= 0 AND score <= 5)', name='ck_weekly_action_score'),
    )
    op.create_index('ix_weekly_actions_id', 'weekly_actions', ['id'])
    op.create_index('ix_weekly_actions_cycle_id', 'weekly_actions', ['cycle_id'])


def downgrade() -> None:
    op.drop_table('weekly_actions')
    op.drop_index('uq_cycle_open_week', table_name='cycles')
    op.drop_table('cycles')
    op.drop_table('cells')
    op.drop_table('charts')
    op.drop_table('users')
