"""create_study_groups_table

Revision ID: 4c2d7e91a0b3
Revises:
Create Date: 2026-10-19 10:02:17.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4c2d7e91a0b3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the study_groups aggregate table."""
    op.create_table('study_groups',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('subject', sa.String(length=100), nullable=False),
        sa.Column('creator_id', sa.UUID(), nullable=False),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('access_code', sa.String(length=16), nullable=True),
        sa.Column('max_members', sa.Integer(), nullable=False, server_default='50'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('tags', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('members', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('meetings', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('messages', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('max_members BETWEEN 2 AND 100', name='ck_study_groups_max_members'),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'archived')", name='ck_study_groups_status'
        ),
        sa.CheckConstraint(
            '(is_public AND access_code IS NULL) OR (NOT is_public AND access_code IS NOT NULL)',
            name='ck_study_groups_access_code',
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('access_code', name='uq_study_groups_access_code'),
    )
    op.create_index('ix_study_groups_subject', 'study_groups', ['subject'], unique=False)
    op.create_index('ix_study_groups_creator_id', 'study_groups', ['creator_id'], unique=False)
    # Membership lookups ("my groups") filter on the embedded member list
    op.execute(
        "CREATE INDEX ix_study_groups_members ON study_groups "
        "USING gin (members jsonb_path_ops);"
    )


def downgrade() -> None:
    """Drop the study_groups aggregate table."""
    op.execute("DROP INDEX IF EXISTS ix_study_groups_members;")
    op.drop_index('ix_study_groups_creator_id', table_name='study_groups')
    op.drop_index('ix_study_groups_subject', table_name='study_groups')
    op.drop_table('study_groups')
