"""init schema (notes + attachments)

Revision ID: 20261019_0001
Revises: None
Create Date: 2026-10-19 00:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _table_exists(table_name: str) -> bool:
    bind = op.get_bind()
    insp = inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    if not _table_exists("attachments"):
        _ = op.create_table(
            "attachments",
            sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
            sa.Column("storage_key", sa.String(length=512), nullable=False),
            sa.Column("filename", sa.String(length=255), nullable=True),
            sa.Column("content_type", sa.String(length=255), nullable=True),
            sa.Column("size_bytes", sa.Integer(), nullable=False, server_default=sa.text("0")),
            sa.Column("sha256_hex", sa.String(length=64), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        )
        op.create_index(
            "ix_attachments_storage_key", "attachments", ["storage_key"], unique=True
        )
        op.create_index("ix_attachments_created_at", "attachments", ["created_at"], unique=False)

    if not _table_exists("notes"):
        _ = op.create_table(
            "notes",
            sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
            sa.Column("title", sa.String(length=200), nullable=False),
            sa.Column("content", sa.Text(), nullable=False, server_default=sa.text("''")),
            sa.Column(
                "attachment_id",
                sa.String(length=36),
                sa.ForeignKey("attachments.id"),
                nullable=True,
            ),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        )
        op.create_index("ix_notes_attachment_id", "notes", ["attachment_id"], unique=False)
        op.create_index("ix_notes_created_at", "notes", ["created_at"], unique=False)
        op.create_index("ix_notes_updated_at", "notes", ["updated_at"], unique=False)


def downgrade() -> None:
    if _table_exists("notes"):
        op.drop_index("ix_notes_updated_at", table_name="notes")
        op.drop_index("ix_notes_created_at", table_name="notes")
        op.drop_index("ix_notes_attachment_id", table_name="notes")
        op.drop_table("notes")

    if _table_exists("attachments"):
        op.drop_index("ix_attachments_created_at", table_name="attachments")
        op.drop_index("ix_attachments_storage_key", table_name="attachments")
        op.drop_table("attachments")
