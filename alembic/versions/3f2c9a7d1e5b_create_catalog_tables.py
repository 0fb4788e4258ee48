"""create catalog tables

Revision ID: 3f2c9a7d1e5b
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2c9a7d1e5b'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('authors',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False, comment="Author's full name"),
        sa.Column('born', sa.Integer(), nullable=True, comment='Year the author was born'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_authors_name'), 'authors', ['name'], unique=True)

    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False, comment='Unique login name'),
        sa.Column('password_hash', sa.String(length=255), nullable=False, comment='Bcrypt hashed password'),
        sa.Column('favorite_genre', sa.String(length=100), nullable=False, comment='Genre used to suggest books to the user'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)

    op.create_table('books',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False, comment='Book title'),
        sa.Column('published', sa.Integer(), nullable=False, comment='Year of publication'),
        sa.Column('author_id', sa.Integer(), nullable=False),
        sa.CheckConstraint('published >= 0', name='ck_books_published_non_negative'),
        sa.ForeignKeyConstraint(['author_id'], ['authors.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_books_title'), 'books', ['title'], unique=True)
    op.create_index(op.f('ix_books_published'), 'books', ['published'], unique=False)
    op.create_index(op.f('ix_books_author_id'), 'books', ['author_id'], unique=False)

    op.create_table('book_genres',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('book_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False, comment="Genre name (e.g. 'fantasy', 'refactoring')"),
        sa.ForeignKeyConstraint(['book_id'], ['books.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('book_id', 'name', name='uq_book_genres_book_name')
    )
    op.create_index(op.f('ix_book_genres_book_id'), 'book_genres', ['book_id'], unique=False)
    op.create_index(op.f('ix_book_genres_name'), 'book_genres', ['name'], unique=False)

    op.create_table('saved_books',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('book_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['book_id'], ['books.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'book_id', name='uq_saved_books_user_book')
    )
    op.create_index(op.f('ix_saved_books_user_id'), 'saved_books', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_saved_books_user_id'), table_name='saved_books')
    op.drop_table('saved_books')
    op.drop_index(op.f('ix_book_genres_name'), table_name='book_genres')
    op.drop_index(op.f('ix_book_genres_book_id'), table_name='book_genres')
    op.drop_table('book_genres')
    op.drop_index(op.f('ix_books_author_id'), table_name='books')
    op.drop_index(op.f('ix_books_published'), table_name='books')
    op.drop_index(op.f('ix_books_title'), table_name='books')
    op.drop_table('books')
    op.drop_index(op.f('ix_users_username'), table_name='users')
    op.drop_table('users')
    op.drop_index(op.f('ix_authors_name'), table_name='authors')
    op.drop_table('authors')
