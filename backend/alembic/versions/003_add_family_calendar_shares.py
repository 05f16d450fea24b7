"""Add family calendar share tables and event cleanup triggers

Revision ID: 003_add_family_calendar_shares
Revises: 002_add_notes
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '003_add_family_calendar_shares'
down_revision: Union[str, None] = '002_add_notes'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'family_calendar_shares',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('account_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('event_type', sa.String(20), nullable=False),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('shared_by_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_type', 'event_id'),
        sa.CheckConstraint("event_type IN ('appointment', 'countdown')", name='ck_family_calendar_shares_event_type'),
    )
    op.create_index('ix_family_calendar_shares_account_id', 'family_calendar_shares', ['account_id'])
    op.create_index('ix_family_calendar_shares_event_id', 'family_calendar_shares', ['event_id'])

    op.create_table(
        'family_calendar_share_members',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('share_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('member_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['share_id'], ['family_calendar_shares.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('share_id', 'member_user_id'),
    )
    op.create_index('ix_family_calendar_share_members_share_id', 'family_calendar_share_members', ['share_id'])
    op.create_index(
        'ix_family_calendar_share_members_member_user_id',
        'family_calendar_share_members',
        ['member_user_id'],
    )

    # Shares point at events by (event_type, event_id), so deleting an event
    # removes its share through a trigger rather than a foreign key
    op.execute("""
        CREATE OR REPLACE FUNCTION delete_family_calendar_share()
        RETURNS TRIGGER AS $$
        BEGIN
            DELETE FROM family_calendar_shares
            WHERE event_type = TG_ARGV[0] AND event_id = OLD.id;
            RETURN OLD;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TRIGGER appointments_delete_family_share
        AFTER DELETE ON appointments
        FOR EACH ROW EXECUTE FUNCTION delete_family_calendar_share('appointment');
    """)
    op.execute("""
        CREATE TRIGGER countdowns_delete_family_share
        AFTER DELETE ON countdowns
        FOR EACH ROW EXECUTE FUNCTION delete_family_calendar_share('countdown');
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS countdowns_delete_family_share ON countdowns")
    op.execute("DROP TRIGGER IF EXISTS appointments_delete_family_share ON appointments")
    op.execute("DROP FUNCTION IF EXISTS delete_family_calendar_share()")
    op.drop_index('ix_family_calendar_share_members_member_user_id', table_name='family_calendar_share_members')
    op.drop_index('ix_family_calendar_share_members_share_id', table_name='family_calendar_share_members')
    op.drop_table('family_calendar_share_members')
    op.drop_index('ix_family_calendar_shares_event_id', table_name='family_calendar_shares')
    op.drop_index('ix_family_calendar_shares_account_id', table_name='family_calendar_shares')
    op.drop_table('family_calendar_shares')
