"""create site, collection and content_item tables

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-10-19

Collections are unique by (site_id, slug); content items by
(site_id, collection_id, slug), which is also the bulk-import conflict key.
"""

from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "a1c2e3f4b5d6"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "site",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("domain", sa.String(length=255), nullable=True),
        sa.Column("subdomain", sa.String(length=100), nullable=True),
        sa.Column(
            "settings",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("subdomain"),
    )

    op.create_table(
        "collection",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("site_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("url_pattern", sa.String(length=500), nullable=False),
        sa.Column(
            "schema",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'{\"fields\": []}'::jsonb"),
            nullable=False,
        ),
        sa.Column(
            "settings",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["site_id"], ["site.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("site_id", "slug", name="uq_collection_site_slug"),
    )
    op.create_index("ix_collection_site_id", "collection", ["site_id"], unique=False)

    op.create_table(
        "content_item",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("site_id", sa.String(), nullable=False),
        sa.Column("collection_id", sa.String(), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column(
            "data",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.String(length=20),
            server_default=sa.text("'draft'"),
            nullable=False,
        ),
        sa.Column("draft_data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("author_id", sa.String(), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["site_id"], ["site.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["collection_id"], ["collection.id"], ondelete="CASCADE"
        ),
        sa.UniqueConstraint(
            "site_id",
            "collection_id",
            "slug",
            name="uq_content_item_site_collection_slug",
        ),
        sa.CheckConstraint(
            "status IN ('draft', 'published')", name="ck_content_item_status"
        ),
    )
    op.create_index("ix_content_item_site_id", "content_item", ["site_id"], unique=False)
    op.create_index(
        "ix_content_item_collection_id", "content_item", ["collection_id"], unique=False
    )
    op.create_index(
        "ix_content_item_author_id", "content_item", ["author_id"], unique=False
    )
    op.create_index(
        "ix_content_item_site_collection_status",
        "content_item",
        ["site_id", "collection_id", "status"],
        unique=False,
    )
    op.create_index(
        "ix_content_item_collection_updated",
        "content_item",
        ["collection_id", "updated_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_content_item_collection_updated", table_name="content_item")
    op.drop_index("ix_content_item_site_collection_status", table_name="content_item")
    op.drop_index("ix_content_item_author_id", table_name="content_item")
    op.drop_index("ix_content_item_collection_id", table_name="content_item")
    op.drop_index("ix_content_item_site_id", table_name="content_item")
    op.drop_table("content_item")
    op.drop_index("ix_collection_site_id", table_name="collection")
    op.drop_table("collection")
    op.drop_table("site")
