"""stored_files (content store index)

Revision ID: 0002_stored_files
Revises: 0001_users
Create Date: 2026-10-17
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0002_stored_files"
down_revision = "0001_users"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "stored_files",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),

        sa.Column("content_ref", sa.String(length=256), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("content_type", sa.String(length=128), nullable=False),
        sa.Column("size_bytes", sa.Integer(), nullable=False),

        sa.Column(
            "uploader_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_stored_files_uploader"),
            nullable=False,
        ),
        sa.Column("uploader_wallet", sa.String(length=42), nullable=True),

        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_stored_files_uploader_id", "stored_files", ["uploader_id"])


def downgrade():
    op.drop_index("ix_stored_files_uploader_id", table_name="stored_files")
    op.drop_table("stored_files")
