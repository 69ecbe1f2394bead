"""Initial migration - meetings, insights, topics, embeddings

Revision ID: 001
Revises: 
Create Date: 2025-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


meeting_status = postgresql.ENUM('processing', 'ready', 'failed', name='meeting_status', create_type=False)
action_item_priority = postgresql.ENUM('low', 'medium', 'high', name='action_item_priority', create_type=False)
action_item_status = postgresql.ENUM('pending', 'in_progress', 'completed', name='action_item_status', create_type=False)


def upgrade() -> None:
    conn = op.get_bind()
    inspector = sa.inspect(conn)

    # Skip if meetings table already exists (migration already run)
    if 'meetings' in inspector.get_table_names():
        return

    meeting_status.create(conn, checkfirst=True)
    action_item_priority.create(conn, checkfirst=True)
    action_item_status.create(conn, checkfirst=True)

    # Create meetings table
    op.create_table(
        'meetings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('title', sa.String(500), nullable=True),
        sa.Column('status', meeting_status, nullable=True),
        sa.Column('transcript', sa.Text(), nullable=True),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('audio_url', sa.String(2000), nullable=True),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_index('ix_meetings_status', 'meetings', ['status'])
    op.create_index('ix_meetings_status_updated', 'meetings', ['status', 'updated_at'])

    # Create action_items table
    op.create_table(
        'action_items',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('meeting_id', sa.String(36), sa.ForeignKey('meetings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('priority', action_item_priority, nullable=False, server_default='medium'),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('status', action_item_status, nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_index('ix_action_items_meeting_id', 'action_items', ['meeting_id'])
    op.create_index('ix_action_items_status', 'action_items', ['status'])

    # Create decisions table
    op.create_table(
        'decisions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('meeting_id', sa.String(36), sa.ForeignKey('meetings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('decision_text', sa.Text(), nullable=False),
        sa.Column('context', sa.Text(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('decided_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_index('ix_decisions_meeting_id', 'decisions', ['meeting_id'])

    # Create topics table
    op.create_table(
        'topics',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('meeting_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('last_discussed', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    # Create meeting_topics link table
    op.create_table(
        'meeting_topics',
        sa.Column('meeting_id', sa.String(36), sa.ForeignKey('meetings.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('topic_id', sa.String(36), sa.ForeignKey('topics.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_index('ix_meeting_topics_topic_id', 'meeting_topics', ['topic_id'])

    # Create meeting_embeddings table
    op.create_table(
        'meeting_embeddings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('meeting_id', sa.String(36), sa.ForeignKey('meetings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('chunk_index', sa.Integer(), nullable=False),
        sa.Column('chunk_text', sa.Text(), nullable=False),
        sa.Column('embedding', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_index('ix_meeting_embeddings_meeting_chunk', 'meeting_embeddings', ['meeting_id', 'chunk_index'])


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_table('meeting_embeddings')
    op.drop_table('meeting_topics')
    op.drop_table('topics')
    op.drop_table('decisions')
    op.drop_table('action_items')
    op.drop_table('meetings')

    bind = op.get_bind()
    action_item_status.drop(bind, checkfirst=True)
    action_item_priority.drop(bind, checkfirst=True)
    meeting_status.drop(bind, checkfirst=True)
