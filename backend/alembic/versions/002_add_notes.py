"""Add notes table

Revision ID: 002_add_notes
Revises: 001_create_core_tables
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '002_add_notes'
down_revision: Union[str, None] = '001_create_core_tables'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'notes',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, server_default=sa.text('gen_random_uuid()')),
        sa.Column('account_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('local_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(500), nullable=False, server_default=''),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('content_plain_text', sa.Text(), nullable=False, server_default=''),
        sa.Column('theme', sa.String(50), nullable=False, server_default='standard'),
        sa.Column('is_pinned', sa.Boolean(), default=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('account_id', 'local_id'),
    )
    op.create_index('ix_notes_account_id', 'notes', ['account_id'])
    op.create_index('ix_notes_user_id', 'notes', ['user_id'])
    op.create_index('ix_notes_local_id', 'notes', ['local_id'])
    op.create_index('ix_notes_updated_at', 'notes', ['updated_at'])


def downgrade() -> None:
    op.drop_index('ix_notes_updated_at', table_name='notes')
    op.drop_index('ix_notes_local_id', table_name='notes')
    op.drop_index('ix_notes_user_id', table_name='notes')
    op.drop_index('ix_notes_account_id', table_name='notes')
    op.drop_table('notes')
