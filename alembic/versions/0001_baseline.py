"""Baseline migration - members, catalog, scheduling workflow and club content

Revision ID: 0001_baseline
Revises:
Create Date: 2025-03-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(updated: bool = True) -> list[sa.Column]:
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), nullable=False)]
    if updated:
        columns.append(sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False))
    return columns


def _member_fk(name: str = 'user_id', nullable: bool = False, ondelete: str = 'CASCADE') -> sa.Column:
    return sa.Column(
        name, sa.Uuid(), sa.ForeignKey('members.id', ondelete=ondelete), nullable=nullable
    )


def upgrade() -> None:
    """Create all tables."""

    # ==========================================================================
    # Members
    # ==========================================================================
    op.create_table(
        'members',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('avatar_url', sa.String(500), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='pending'),
        *_timestamps(),
        sa.CheckConstraint(
            "role IN ('admin', 'member', 'visitor', 'pending')", name='ck_members_role'
        ),
    )

    # ==========================================================================
    # Book catalog
    # ==========================================================================
    op.create_table(
        'books',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('author', sa.String(255), nullable=False),
        sa.Column('cover_url', sa.String(500), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('isbn', sa.String(20), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('selection_reason', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='waiting'),
        _member_fk('created_by', nullable=True, ondelete='SET NULL'),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('waiting', 'nominated', 'selected', 'completed')",
            name='ck_books_status',
        ),
    )
    op.create_index('idx_books_status', 'books', ['status'])

    # ==========================================================================
    # Scheduling
    # ==========================================================================
    op.create_table(
        'schedule_votes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        _member_fk(),
        sa.Column('vote_date', sa.Date(), nullable=False),
        *_timestamps(updated=False),
        sa.UniqueConstraint('user_id', 'vote_date', name='uq_schedule_votes_user_date'),
    )
    op.create_index('idx_schedule_votes_date', 'schedule_votes', ['vote_date'])

    op.create_table(
        'schedules',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('meeting_date', sa.Date(), nullable=False, unique=True),
        sa.Column('meeting_time', sa.Time(), nullable=True),
        sa.Column('location', sa.String(255), nullable=True),
        _member_fk('presenter_id', nullable=True, ondelete='SET NULL'),
        sa.Column(
            'selected_book_id', sa.Uuid(),
            sa.ForeignKey('books.id', ondelete='SET NULL'), nullable=True,
        ),
        _member_fk('created_by', nullable=True, ondelete='SET NULL'),
        sa.Column('status', sa.String(20), nullable=False, server_default='confirmed'),
        sa.Column('is_revealed', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )

    op.create_table(
        'schedule_book_candidates',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'schedule_id', sa.Uuid(),
            sa.ForeignKey('schedules.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column(
            'book_id', sa.Uuid(), sa.ForeignKey('books.id', ondelete='CASCADE'), nullable=False
        ),
        *_timestamps(updated=False),
        sa.UniqueConstraint('schedule_id', 'book_id', name='uq_candidates_schedule_book'),
    )

    op.create_table(
        'book_votes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'schedule_id', sa.Uuid(),
            sa.ForeignKey('schedules.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column(
            'book_id', sa.Uuid(), sa.ForeignKey('books.id', ondelete='CASCADE'), nullable=False
        ),
        _member_fk(),
        *_timestamps(updated=False),
        sa.UniqueConstraint(
            'schedule_id', 'book_id', 'user_id', name='uq_book_votes_schedule_book_user'
        ),
    )

    op.create_table(
        'attendances',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'schedule_id', sa.Uuid(),
            sa.ForeignKey('schedules.id', ondelete='CASCADE'), nullable=False,
        ),
        _member_fk(),
        sa.Column('status', sa.String(20), nullable=False, server_default='attending'),
        *_timestamps(),
        sa.UniqueConstraint('schedule_id', 'user_id', name='uq_attendances_schedule_user'),
        sa.CheckConstraint(
            "status IN ('attending', 'not_attending', 'maybe')",
            name='ck_attendances_status',
        ),
    )

    # ==========================================================================
    # Meeting submissions
    # ==========================================================================
    op.create_table(
        'meeting_submissions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'schedule_id', sa.Uuid(),
            sa.ForeignKey('schedules.id', ondelete='CASCADE'), nullable=False,
        ),
        _member_fk(),
        sa.Column('discussion', sa.JSON(), nullable=False),
        sa.Column('one_liner', sa.String(500), nullable=True),
        sa.Column('rating', sa.Float(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('schedule_id', 'user_id', name='uq_submissions_schedule_user'),
        sa.CheckConstraint(
            'rating IS NULL OR (rating >= 0.5 AND rating <= 5)',
            name='ck_submissions_rating',
        ),
    )

    op.create_table(
        'submission_comments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'submission_id', sa.Uuid(),
            sa.ForeignKey('meeting_submissions.id', ondelete='CASCADE'), nullable=False,
        ),
        _member_fk(),
        sa.Column('content', sa.Text(), nullable=False),
        *_timestamps(updated=False),
    )

    op.create_table(
        'meeting_comments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'schedule_id', sa.Uuid(),
            sa.ForeignKey('schedules.id', ondelete='CASCADE'), nullable=False,
        ),
        _member_fk(),
        sa.Column('content', sa.Text(), nullable=False),
        *_timestamps(updated=False),
    )

    # ==========================================================================
    # Club content
    # ==========================================================================
    op.create_table(
        'board_posts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        _member_fk(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'board_comments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'post_id', sa.Uuid(),
            sa.ForeignKey('board_posts.id', ondelete='CASCADE'), nullable=False,
        ),
        _member_fk(),
        sa.Column('content', sa.Text(), nullable=False),
        *_timestamps(updated=False),
    )

    op.create_table(
        'discussions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'book_id', sa.Uuid(), sa.ForeignKey('books.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column(
            'schedule_id', sa.Uuid(),
            sa.ForeignKey('schedules.id', ondelete='SET NULL'), nullable=True,
        ),
        _member_fk(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'reviews',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'book_id', sa.Uuid(), sa.ForeignKey('books.id', ondelete='CASCADE'), nullable=False
        ),
        _member_fk(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_reviews_rating'),
    )

    op.create_table(
        'recaps',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'schedule_id', sa.Uuid(),
            sa.ForeignKey('schedules.id', ondelete='SET NULL'), nullable=True,
        ),
        _member_fk(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('photos', sa.JSON(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'comments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('commentable_type', sa.String(20), nullable=False),
        sa.Column('commentable_id', sa.Uuid(), nullable=False),
        _member_fk(),
        sa.Column('content', sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index('idx_comments_target', 'comments', ['commentable_type', 'commentable_id'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index('idx_comments_target', table_name='comments')
    for table in (
        'comments',
        'recaps',
        'reviews',
        'discussions',
        'board_comments',
        'board_posts',
        'meeting_comments',
        'submission_comments',
        'meeting_submissions',
        'attendances',
        'book_votes',
        'schedule_book_candidates',
        'schedules',
    ):
        op.drop_table(table)
    op.drop_index('idx_schedule_votes_date', table_name='schedule_votes')
    op.drop_table('schedule_votes')
    op.drop_index('idx_books_status', table_name='books')
    op.drop_table('books')
    op.drop_table('members')
