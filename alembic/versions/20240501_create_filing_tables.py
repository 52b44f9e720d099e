"""create_filing_tables

Revision ID: 20240501_filing
Revises:
Create Date: 2024-05-01

Create businesses, contacts and correspondence tables.
Correspondence keeps the pasted text in raw_text_original and enforces one
record per (business_id, content_hash).
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = "20240501_filing"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create filing tables."""
    op.create_table(
        "businesses",
        sa.Column(
            "id",
            UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("last_contacted_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )

    op.create_table(
        "contacts",
        sa.Column(
            "id",
            UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column(
            "business_id",
            UUID(as_uuid=True),
            sa.ForeignKey("businesses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("role", sa.String, nullable=True),
        sa.Column("email", sa.String, nullable=True),
        sa.Column("emails", ARRAY(sa.String), server_default="{}", nullable=False),
        sa.Column("phone", sa.String, nullable=True),
        sa.Column("phones", ARRAY(sa.String), server_default="{}", nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_contacts_business_id", "contacts", ["business_id"])

    op.create_table(
        "correspondence",
        sa.Column(
            "id",
            UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column(
            "business_id",
            UUID(as_uuid=True),
            sa.ForeignKey("businesses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "contact_id",
            UUID(as_uuid=True),
            sa.ForeignKey("contacts.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("user_id", UUID(as_uuid=True), nullable=True),
        # Text as pasted, never updated
        sa.Column("raw_text_original", sa.Text, nullable=False),
        sa.Column("formatted_text_original", sa.Text, nullable=True),
        sa.Column("formatted_text_current", sa.Text, nullable=True),
        sa.Column("entry_date", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("subject", sa.String, nullable=True),
        sa.Column("type", sa.String(16), nullable=True),
        sa.Column("direction", sa.String(16), nullable=True),
        sa.Column("action_needed", sa.String(32), server_default="none", nullable=False),
        sa.Column("due_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("formatting_status", sa.String(16), nullable=False),
        sa.Column("content_hash", sa.String(64), nullable=True),
        sa.Column("ai_metadata", JSONB, server_default="{}", nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint(
            "business_id", "content_hash", name="uq_correspondence_business_hash"
        ),
    )
    op.create_index(
        "ix_correspondence_business_entry_date",
        "correspondence",
        ["business_id", "entry_date"],
    )


def downgrade() -> None:
    """Drop filing tables."""
    op.drop_index("ix_correspondence_business_entry_date", table_name="correspondence")
    op.drop_table("correspondence")
    op.drop_index("ix_contacts_business_id", table_name="contacts")
    op.drop_table("contacts")
    op.drop_table("businesses")
