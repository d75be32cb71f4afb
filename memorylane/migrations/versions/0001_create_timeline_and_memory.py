"""create timeline and memory tables

Revision ID: 0001
Revises:
Create Date: 2025-01-12
"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "timeline",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_timeline_slug", "timeline", ["slug"], unique=True)

    op.create_table(
        "memory",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True),
        sa.Column("timeline_id", sa.UUID(as_uuid=True), sa.ForeignKey("timeline.id"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=False),
        sa.Column("image_key", sa.Text(), nullable=False),
        sa.Column("date_of_event", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_memory_timeline_id", "memory", ["timeline_id"])


def downgrade():
    op.drop_index("ix_memory_timeline_id", table_name="memory")
    op.drop_table("memory")
    op.drop_index("ix_timeline_slug", table_name="timeline")
    op.drop_table("timeline")
