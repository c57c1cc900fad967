"""Call log schema

Revision ID: 001
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'exchange_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('call_sid', sa.String(), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('user_input', sa.Text(), nullable=False),
        sa.Column('assistant_reply', sa.Text(), nullable=False),
        sa.Column('tool_used', sa.String(), nullable=True),
        sa.Column('tool_success', sa.Boolean(), nullable=True),
        sa.Column('session_state', sa.String(), nullable=False),
        sa.Column('source', sa.String(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_exchange_logs_id'), 'exchange_logs', ['id'], unique=False)
    op.create_index(op.f('ix_exchange_logs_call_sid'), 'exchange_logs', ['call_sid'], unique=False)

    op.create_table(
        'missed_calls',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('call_sid', sa.String(), nullable=False),
        sa.Column('phone_number', sa.String(), nullable=True),
        sa.Column('reason', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_missed_calls_id'), 'missed_calls', ['id'], unique=False)
    op.create_index(op.f('ix_missed_calls_call_sid'), 'missed_calls', ['call_sid'], unique=False)

    op.create_table(
        'session_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('call_sid', sa.String(), nullable=False),
        sa.Column('session_type', sa.String(), nullable=False),
        sa.Column('state', sa.String(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('ended_at', sa.DateTime(), nullable=True),
        sa.Column('exchanges', sa.JSON(), nullable=True),
        sa.Column('decisions', sa.JSON(), nullable=True),
        sa.Column('insights', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_session_logs_id'), 'session_logs', ['id'], unique=False)
    op.create_index(op.f('ix_session_logs_call_sid'), 'session_logs', ['call_sid'], unique=False)


def downgrade() -> None:
    op.drop_table('session_logs')
    op.drop_table('missed_calls')
    op.drop_table('exchange_logs')
