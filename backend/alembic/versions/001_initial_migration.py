"""Initial migration

Revision ID: 001
Revises:
Create Date: 2024-01-08 10:12:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create users table
    op.create_table('users',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('username', sa.String(length=100), nullable=False),
    sa.Column('full_name', sa.String(length=255), nullable=True),
    sa.Column('email', sa.String(length=255), nullable=True),
    sa.Column('hashed_password', sa.String(length=255), nullable=False),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    sa.Column('is_manager', sa.Boolean(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('email')
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)

    # Create time_entries table
    op.create_table('time_entries',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('uuid', sa.String(length=36), nullable=False),
    sa.Column('user_id', sa.Integer(), nullable=False),
    sa.Column('clock_in_time', sa.DateTime(), nullable=False),
    sa.Column('clock_out_time', sa.DateTime(), nullable=True),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('total_break_minutes', sa.Integer(), nullable=False),
    sa.Column('notes', sa.Text(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('uuid')
    )
    op.create_index(op.f('ix_time_entries_id'), 'time_entries', ['id'], unique=False)
    op.create_index(op.f('ix_time_entries_user_id'), 'time_entries', ['user_id'], unique=False)
    op.create_index(op.f('ix_time_entries_clock_in_time'), 'time_entries', ['clock_in_time'], unique=False)
    op.create_index('idx_time_entries_user_clock_in', 'time_entries', ['user_id', 'clock_in_time'], unique=False)
    # At most one active session per user
    op.create_index(
        'uq_time_entries_one_active_per_user',
        'time_entries',
        ['user_id'],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'")
    )

    # Create time_breaks table
    op.create_table('time_breaks',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('uuid', sa.String(length=36), nullable=False),
    sa.Column('time_entry_id', sa.Integer(), nullable=False),
    sa.Column('start_time', sa.DateTime(), nullable=False),
    sa.Column('end_time', sa.DateTime(), nullable=True),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.ForeignKeyConstraint(['time_entry_id'], ['time_entries.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('uuid')
    )
    op.create_index(op.f('ix_time_breaks_id'), 'time_breaks', ['id'], unique=False)
    op.create_index(op.f('ix_time_breaks_time_entry_id'), 'time_breaks', ['time_entry_id'], unique=False)
    # At most one active break per session
    op.create_index(
        'uq_time_breaks_one_active_per_entry',
        'time_breaks',
        ['time_entry_id'],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'")
    )

    # Create time_entry_audits table (no FK to time_entries: rows outlive deleted entries)
    op.create_table('time_entry_audits',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('uuid', sa.String(length=36), nullable=False),
    sa.Column('time_entry_id', sa.Integer(), nullable=False),
    sa.Column('modified_by_user_id', sa.Integer(), nullable=False),
    sa.Column('action', sa.String(length=30), nullable=False),
    sa.Column('field_name', sa.String(length=50), nullable=True),
    sa.Column('old_value', sa.Text(), nullable=True),
    sa.Column('new_value', sa.Text(), nullable=True),
    sa.Column('reason', sa.Text(), nullable=True),
    sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
    sa.ForeignKeyConstraint(['modified_by_user_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('uuid')
    )
    op.create_index(op.f('ix_time_entry_audits_id'), 'time_entry_audits', ['id'], unique=False)
    op.create_index(op.f('ix_time_entry_audits_time_entry_id'), 'time_entry_audits', ['time_entry_id'], unique=False)
    op.create_index('idx_time_entry_audits_entry_created', 'time_entry_audits', ['time_entry_id', 'created_at'], unique=False)
    op.create_index('idx_time_entry_audits_action', 'time_entry_audits', ['action'], unique=False)


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_index('idx_time_entry_audits_action', table_name='time_entry_audits')
    op.drop_index('idx_time_entry_audits_entry_created', table_name='time_entry_audits')
    op.drop_index(op.f('ix_time_entry_audits_time_entry_id'), table_name='time_entry_audits')
    op.drop_index(op.f('ix_time_entry_audits_id'), table_name='time_entry_audits')
    op.drop_table('time_entry_audits')

    op.drop_index('uq_time_breaks_one_active_per_entry', table_name='time_breaks')
    op.drop_index(op.f('ix_time_breaks_time_entry_id'), table_name='time_breaks')
    op.drop_index(op.f('ix_time_breaks_id'), table_name='time_breaks')
    op.drop_table('time_breaks')

    op.drop_index('uq_time_entries_one_active_per_user', table_name='time_entries')
    op.drop_index('idx_time_entries_user_clock_in', table_name='time_entries')
    op.drop_index(op.f('ix_time_entries_clock_in_time'), table_name='time_entries')
    op.drop_index(op.f('ix_time_entries_user_id'), table_name='time_entries')
    op.drop_index(op.f('ix_time_entries_id'), table_name='time_entries')
    op.drop_table('time_entries')

    op.drop_index(op.f('ix_users_username'), table_name='users')
    op.drop_index(op.f('ix_users_id'), table_name='users')
    op.drop_table('users')
