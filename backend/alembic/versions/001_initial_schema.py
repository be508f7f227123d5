"""Initial schema - disasters, audit log, resources, reports, cache.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "disasters",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("location_name", sa.String(500), nullable=False, server_default=""),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("tags", sa.JSON, nullable=False),
        sa.Column("owner_id", sa.String(100), nullable=False),
        sa.Column("location", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_disasters_created_at", "disasters", ["created_at"])

    op.create_table(
        "disaster_audit_entries",
        sa.Column("seq", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("disaster_id", UUID(as_uuid=True), nullable=False),
        sa.Column("action", sa.String(10), nullable=False),
        sa.Column("user_id", sa.String(100), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_disaster_audit_entries_disaster_id",
        "disaster_audit_entries", ["disaster_id"],
    )

    op.create_table(
        "resources",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "disaster_id", UUID(as_uuid=True),
            sa.ForeignKey("disasters.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("name", sa.String(300), nullable=False),
        sa.Column("location_name", sa.String(500), nullable=False),
        sa.Column("location", sa.Text, nullable=False),
        sa.Column("type", sa.String(100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_resources_disaster_id", "resources", ["disaster_id"])

    op.create_table(
        "reports",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "disaster_id", UUID(as_uuid=True),
            sa.ForeignKey("disasters.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("user_id", sa.String(100), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("image_url", sa.Text, nullable=True),
        sa.Column("verification_status", sa.Text, nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_reports_disaster_id", "reports", ["disaster_id"])

    op.create_table(
        "cache",
        sa.Column("key", sa.String(512), primary_key=True),
        sa.Column("value", sa.JSON, nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("cache")
    op.drop_index("ix_reports_disaster_id", table_name="reports")
    op.drop_table("reports")
    op.drop_index("ix_resources_disaster_id", table_name="resources")
    op.drop_table("resources")
    op.drop_index(
        "ix_disaster_audit_entries_disaster_id", table_name="disaster_audit_entries",
    )
    op.drop_table("disaster_audit_entries")
    op.drop_index("ix_disasters_created_at", table_name="disasters")
    op.drop_table("disasters")
