"""initial_schema

Revision ID: initial_schema
Revises: 
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'initial_schema'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    # Create pomodoro_sessions table
    op.create_table(
        'pomodoro_sessions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('task_id', sa.String(), nullable=True),
        sa.Column('mode', sa.String(), nullable=False),
        sa.Column('planned_duration_seconds', sa.Integer(), nullable=False),
        sa.Column('actual_duration_seconds', sa.Integer(), nullable=True),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("mode IN ('work', 'short_break', 'long_break')", name='ck_pomodoro_sessions_mode'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_pomodoro_sessions_user_id', 'pomodoro_sessions', ['user_id'])
    op.create_index('ix_pomodoro_sessions_user_completed', 'pomodoro_sessions', ['user_id', 'completed_at'])

    # Create stopwatch_sessions table
    op.create_table(
        'stopwatch_sessions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('task_id', sa.String(), nullable=True),
        sa.Column('duration_seconds', sa.Integer(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('ended_at', sa.DateTime(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('duration_seconds > 0', name='ck_stopwatch_sessions_duration'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_stopwatch_sessions_user_id', 'stopwatch_sessions', ['user_id'])
    op.create_index('ix_stopwatch_sessions_user_started', 'stopwatch_sessions', ['user_id', 'started_at'])

def downgrade():
    op.drop_index('ix_stopwatch_sessions_user_started', table_name='stopwatch_sessions')
    op.drop_index('ix_stopwatch_sessions_user_id', table_name='stopwatch_sessions')
    op.drop_table('stopwatch_sessions')
    op.drop_index('ix_pomodoro_sessions_user_completed', table_name='pomodoro_sessions')
    op.drop_index('ix_pomodoro_sessions_user_id', table_name='pomodoro_sessions')
    op.drop_table('pomodoro_sessions')
