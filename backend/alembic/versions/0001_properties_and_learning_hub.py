"""Properties and learning hub tables.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-18

Run with:
    alembic upgrade head
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def upgrade() -> None:
    op.create_table(
        "properties",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("portfolio_id", sa.String(36), nullable=False, index=True),
        sa.Column("user_id", sa.String(64), nullable=False, index=True),
        sa.Column("added_by", sa.String(64), nullable=True),
        sa.Column("address", sa.String(255), nullable=False),
        sa.Column("city", sa.String(100), server_default=""),
        sa.Column("state", sa.String(50), server_default=""),
        sa.Column("zip_code", sa.String(20), server_default=""),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("place_id", sa.String(255), nullable=True),
        sa.Column("full_address", sa.String(500), nullable=True),
        sa.Column("status", sa.String(20), server_default="draft", index=True),
        sa.Column("details", sa.JSON(), server_default="{}"),
        sa.Column("market_data", sa.JSON(), nullable=True),
        sa.Column("market_data_fetched_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "user_learning_progress",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False, index=True),
        sa.Column("content_type", sa.String(20), nullable=False),
        sa.Column("content_slug", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), server_default="viewed"),
        sa.Column("progress_data", sa.JSON(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "content_type", "content_slug", name="uq_learning_progress_item"),
    )

    op.create_table(
        "user_learning_bookmarks",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False, index=True),
        sa.Column("content_type", sa.String(20), nullable=False),
        sa.Column("content_slug", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "content_type", "content_slug", name="uq_learning_bookmark_item"),
    )


def downgrade() -> None:
    op.drop_table("user_learning_bookmarks")
    op.drop_table("user_learning_progress")
    op.drop_table("properties")
