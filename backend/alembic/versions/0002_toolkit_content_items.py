"""toolkit content items

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: str | None = "0001"
branch_labels: str | Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    content_item_type = sa.Enum("article", "video", name="contentitemtype", native_enum=False)

    op.create_table(
        "toolkit_content_items",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "toolkit_id",
            sa.UUID(as_uuid=True),
            sa.ForeignKey("toolkits.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("type", content_item_type, nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("video_url", sa.String(length=2048), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(
        "ix_toolkit_content_items_toolkit_order",
        "toolkit_content_items",
        ["toolkit_id", "order_index"],
    )


def downgrade() -> None:
    op.drop_index("ix_toolkit_content_items_toolkit_order", table_name="toolkit_content_items")
    op.drop_table("toolkit_content_items")
