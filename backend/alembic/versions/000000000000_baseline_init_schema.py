"""baseline_init_schema

Revision ID: 000000000000
Revises:
Create Date: 2026-10-17 00:00:00.000000

This is the baseline migration that creates all core tables and types.
All other migrations should depend on this revision.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '000000000000'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


reading_status = sa.Enum('want_to_read', 'currently_reading', 'finished', 'paused', 'dnf', name='readingstatus')
reading_format = sa.Enum('physical', 'ebook', 'audiobook', name='readingformat')
goal_type = sa.Enum('books', 'pages', 'genres', 'consistency', name='goaltype')
goal_visibility = sa.Enum('public', 'private', name='goalvisibility')
goal_status = sa.Enum('active', 'completed', 'abandoned', name='goalstatus')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('auth_user_id', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('daily_reading_goal', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_auth_user_id'), 'users', ['auth_user_id'], unique=True)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'books',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('google_books_id', sa.String(), nullable=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('subtitle', sa.String(), nullable=True),
        sa.Column('authors', sa.JSON(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('subjects', sa.JSON(), nullable=False),
        sa.Column('publishers', sa.JSON(), nullable=False),
        sa.Column('publish_date', sa.String(), nullable=True),
        sa.Column('isbn_10', sa.String(), nullable=True),
        sa.Column('isbn_13', sa.String(), nullable=True),
        sa.Column('page_count', sa.Integer(), nullable=True),
        sa.Column('cover_url_small', sa.String(), nullable=True),
        sa.Column('cover_url_medium', sa.String(), nullable=True),
        sa.Column('cover_url_large', sa.String(), nullable=True),
        sa.Column('language', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_books_google_books_id'), 'books', ['google_books_id'], unique=True)

    op.create_table(
        'user_books',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('book_id', sa.Uuid(), nullable=False),
        sa.Column('status', reading_status, nullable=False),
        sa.Column('rating', sa.Float(), nullable=True),
        sa.Column('review_attributes', sa.JSON(), nullable=True),
        sa.Column('reading_format', reading_format, nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('date_added', sa.DateTime(), nullable=False),
        sa.Column('date_started', sa.DateTime(), nullable=True),
        sa.Column('date_finished', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['book_id'], ['books.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'book_id', name='uq_user_books_user_book')
    )
    op.create_index(op.f('ix_user_books_user_id'), 'user_books', ['user_id'], unique=False)
    op.create_index(op.f('ix_user_books_book_id'), 'user_books', ['book_id'], unique=False)

    op.create_table(
        'reading_sessions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('book_id', sa.Uuid(), nullable=False),
        sa.Column('session_date', sa.Date(), nullable=False),
        sa.Column('pages_read', sa.Integer(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.ForeignKeyConstraint(['book_id'], ['books.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_reading_sessions_user_id'), 'reading_sessions', ['user_id'], unique=False)
    op.create_index(op.f('ix_reading_sessions_book_id'), 'reading_sessions', ['book_id'], unique=False)
    op.create_index(op.f('ix_reading_sessions_session_date'), 'reading_sessions', ['session_date'], unique=False)
    op.create_index('idx_reading_sessions_user_date', 'reading_sessions', ['user_id', 'session_date'], unique=False)

    op.create_table(
        'reading_progress',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('book_id', sa.Uuid(), nullable=False),
        sa.Column('pages_read', sa.Integer(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['book_id'], ['books.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'book_id', name='uq_reading_progress_user_book')
    )
    op.create_index(op.f('ix_reading_progress_user_id'), 'reading_progress', ['user_id'], unique=False)
    op.create_index(op.f('ix_reading_progress_book_id'), 'reading_progress', ['book_id'], unique=False)

    op.create_table(
        'reading_goals',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('type', goal_type, nullable=False),
        sa.Column('target', sa.Integer(), nullable=False),
        sa.Column('current', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('visibility', goal_visibility, nullable=False),
        sa.Column('status', goal_status, nullable=False),
        sa.Column('period_months', sa.Integer(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_reading_goals_user_id'), 'reading_goals', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_reading_goals_user_id'), table_name='reading_goals')
    op.drop_table('reading_goals')
    op.drop_index(op.f('ix_reading_progress_book_id'), table_name='reading_progress')
    op.drop_index(op.f('ix_reading_progress_user_id'), table_name='reading_progress')
    op.drop_table('reading_progress')
    op.drop_index('idx_reading_sessions_user_date', table_name='reading_sessions')
    op.drop_index(op.f('ix_reading_sessions_session_date'), table_name='reading_sessions')
    op.drop_index(op.f('ix_reading_sessions_book_id'), table_name='reading_sessions')
    op.drop_index(op.f('ix_reading_sessions_user_id'), table_name='reading_sessions')
    op.drop_table('reading_sessions')
    op.drop_index(op.f('ix_user_books_book_id'), table_name='user_books')
    op.drop_index(op.f('ix_user_books_user_id'), table_name='user_books')
    op.drop_table('user_books')
    op.drop_index(op.f('ix_books_google_books_id'), table_name='books')
    op.drop_table('books')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_index(op.f('ix_users_auth_user_id'), table_name='users')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (goal_status, goal_visibility, goal_type, reading_format, reading_status):
        enum_type.drop(bind, checkfirst=True)
