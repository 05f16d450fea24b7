"""Create users, accounts, profiles and calendar source tables

Revision ID: 001_create_core_tables
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_create_core_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        'app_users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('is_app_admin', sa.Boolean(), default=False),
        sa.Column('has_complimentary_access', sa.Boolean(), default=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_app_users_email', 'app_users', ['email'])

    op.create_table(
        'accounts',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('owner_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('display_name', sa.String(255), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['owner_user_id'], ['app_users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'account_members',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('account_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='viewer'),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['app_users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('account_id', 'user_id'),
    )
    op.create_index('ix_account_members_account_id', 'account_members', ['account_id'])
    op.create_index('ix_account_members_user_id', 'account_members', ['user_id'])

    op.create_table(
        'profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('account_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('type', sa.String(50), nullable=False, server_default='relative'),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('preferred_name', sa.String(255), nullable=True),
        sa.Column('relationship', sa.String(100), nullable=True),
        sa.Column('birthday', sa.Date(), nullable=True),
        sa.Column('is_deceased', sa.Boolean(), default=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('sort_order', sa.Integer(), default=0),
        sa.Column('linked_user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('source_user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('synced_fields', postgresql.ARRAY(sa.Text()), nullable=True),
        sa.Column('sync_connection_id', postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_profiles_account_id', 'profiles', ['account_id'])

    op.create_table(
        'profile_syncs',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('invitation_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('inviter_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('inviter_account_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('inviter_source_profile_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('acceptor_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('acceptor_account_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('severed_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_profile_syncs_inviter_user_id', 'profile_syncs', ['inviter_user_id'])
    op.create_index('ix_profile_syncs_acceptor_user_id', 'profile_syncs', ['acceptor_user_id'])

    op.create_table(
        'appointments',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('account_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('profile_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('type', sa.String(50), nullable=False, server_default='general'),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time', sa.Time(), nullable=True),
        sa.Column('location', sa.String(500), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('reminder_offset_minutes', sa.Integer(), nullable=True),
        sa.Column('is_completed', sa.Boolean(), default=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['profile_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_appointments_account_id', 'appointments', ['account_id'])
    op.create_index('ix_appointments_date', 'appointments', ['date'])

    op.create_table(
        'countdowns',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('account_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('subtitle', sa.String(500), nullable=True),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('has_time', sa.Boolean(), default=False),
        sa.Column('type', sa.String(50), nullable=False, server_default='countdown'),
        sa.Column('custom_type', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('group_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('reminder_offset_minutes', sa.Integer(), nullable=True),
        sa.Column('is_recurring', sa.Boolean(), default=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_countdowns_account_id', 'countdowns', ['account_id'])
    op.create_index('ix_countdowns_date', 'countdowns', ['date'])
    op.create_index('ix_countdowns_group_id', 'countdowns', ['group_id'])

    op.create_table(
        'medications',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('account_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('profile_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('strength', sa.String(100), nullable=True),
        sa.Column('form', sa.String(100), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_paused', sa.Boolean(), default=False),
        sa.Column('paused_at', sa.DateTime(), nullable=True),
        sa.Column('sort_order', sa.Integer(), default=0),
        *_timestamps(),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['profile_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_medications_account_id', 'medications', ['account_id'])

    op.create_table(
        'medication_schedules',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('account_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('medication_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('schedule_type', sa.String(20), nullable=False, server_default='scheduled'),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('days_of_week', postgresql.ARRAY(sa.Integer()), nullable=True),
        sa.Column('schedule_entries', postgresql.JSONB(), nullable=True),
        sa.Column('dose_description', sa.String(255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['medication_id'], ['medications.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_medication_schedules_medication_id', 'medication_schedules', ['medication_id'])

    op.create_table(
        'todo_lists',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('account_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('list_type', sa.String(100), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_todo_lists_account_id', 'todo_lists', ['account_id'])


def downgrade() -> None:
    op.drop_index('ix_todo_lists_account_id', table_name='todo_lists')
    op.drop_table('todo_lists')
    op.drop_index('ix_medication_schedules_medication_id', table_name='medication_schedules')
    op.drop_table('medication_schedules')
    op.drop_index('ix_medications_account_id', table_name='medications')
    op.drop_table('medications')
    op.drop_index('ix_countdowns_group_id', table_name='countdowns')
    op.drop_index('ix_countdowns_date', table_name='countdowns')
    op.drop_index('ix_countdowns_account_id', table_name='countdowns')
    op.drop_table('countdowns')
    op.drop_index('ix_appointments_date', table_name='appointments')
    op.drop_index('ix_appointments_account_id', table_name='appointments')
    op.drop_table('appointments')
    op.drop_index('ix_profile_syncs_acceptor_user_id', table_name='profile_syncs')
    op.drop_index('ix_profile_syncs_inviter_user_id', table_name='profile_syncs')
    op.drop_table('profile_syncs')
    op.drop_index('ix_profiles_account_id', table_name='profiles')
    op.drop_table('profiles')
    op.drop_index('ix_account_members_user_id', table_name='account_members')
    op.drop_index('ix_account_members_account_id', table_name='account_members')
    op.drop_table('account_members')
    op.drop_table('accounts')
    op.drop_index('ix_app_users_email', table_name='app_users')
    op.drop_table('app_users')
