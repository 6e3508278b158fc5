"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17 00:00:00
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("slug", sa.String(60), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_categories_slug", "categories", ["slug"], unique=True)
    op.create_index("ix_categories_created_at", "categories", ["created_at"])

    op.create_table(
        "articles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("slug", sa.String(350), nullable=False),
        sa.Column("sequence_id", sa.String(120), nullable=False),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("image_public_id", sa.String(255), nullable=True),
        sa.Column("author", sa.String(150), nullable=False, server_default=""),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.Column("category_id", sa.Integer(), nullable=False),
    )
    op.create_index("ix_articles_title", "articles", ["title"])
    op.create_index("ix_articles_slug", "articles", ["slug"], unique=True)
    op.create_index("ix_articles_sequence_id", "articles", ["sequence_id"], unique=True)
    op.create_index("ix_articles_created_at", "articles", ["created_at"])
    op.create_index("ix_articles_category_id", "articles", ["category_id"])
    op.create_index("ix_articles_category_id_created_at", "articles", ["category_id", "created_at"])

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("text", sa.String(1000), nullable=False),
        sa.Column("author", sa.String(150), nullable=False, server_default="Anonymous"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("article_id", sa.Integer(), nullable=False),
    )
    op.create_index("ix_comments_article_id", "comments", ["article_id"])

    op.create_table(
        "quotes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("content", sa.String(600), nullable=False),
        sa.Column("author", sa.String(100), nullable=False, server_default="Anonymous"),
        sa.Column("sequence_id", sa.String(40), nullable=False),
        sa.Column("is_visible", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_quotes_sequence_id", "quotes", ["sequence_id"], unique=True)
    op.create_index("ix_quotes_is_visible_created_at", "quotes", ["is_visible", "created_at"])

    op.create_table(
        "heroes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("sequence_id", sa.String(40), nullable=False),
        sa.Column("image_url", sa.String(500), nullable=False),
        sa.Column("image_public_id", sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_heroes_sequence_id", "heroes", ["sequence_id"], unique=True)
    op.create_index("ix_heroes_created_at", "heroes", ["created_at"])

    op.create_table(
        "photography",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("image_url", sa.String(500), nullable=False),
        sa.Column("public_id", sa.String(255), nullable=False),
        sa.Column("title", sa.String(200), nullable=True),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("width", sa.Integer(), nullable=True),
        sa.Column("height", sa.Integer(), nullable=True),
        sa.Column("format", sa.String(20), nullable=True),
        sa.Column("size", sa.Integer(), nullable=True),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_photography_is_active_created_at", "photography", ["is_active", "created_at"])

    op.create_table(
        "sequence_counters",
        sa.Column("partition", sa.String(100), primary_key=True),
        sa.Column("value", sa.Integer(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("sequence_counters")
    op.drop_index("ix_photography_is_active_created_at", table_name="photography")
    op.drop_table("photography")
    op.drop_index("ix_heroes_created_at", table_name="heroes")
    op.drop_index("ix_heroes_sequence_id", table_name="heroes")
    op.drop_table("heroes")
    op.drop_index("ix_quotes_is_visible_created_at", table_name="quotes")
    op.drop_index("ix_quotes_sequence_id", table_name="quotes")
    op.drop_table("quotes")
    op.drop_index("ix_comments_article_id", table_name="comments")
    op.drop_table("comments")
    for name in (
        "ix_articles_category_id_created_at",
        "ix_articles_category_id",
        "ix_articles_created_at",
        "ix_articles_sequence_id",
        "ix_articles_slug",
        "ix_articles_title",
    ):
        op.drop_index(name, table_name="articles")
    op.drop_table("articles")
    op.drop_index("ix_categories_created_at", table_name="categories")
    op.drop_index("ix_categories_slug", table_name="categories")
    op.drop_table("categories")
