"""toolkits, coupons, purchases and internships

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    user_role = sa.Enum("member", "admin", name="userrole", native_enum=False)
    payment_status = sa.Enum("pending", "completed", name="paymentstatus", native_enum=False)
    internship_type = sa.Enum("remote", "hybrid", "onsite", name="internshiptype", native_enum=False)
    internship_timing = sa.Enum("full_time", "part_time", name="internshiptiming", native_enum=False)

    op.create_table(
        "users",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("role", user_role, nullable=False, server_default="member"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "toolkits",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("original_price", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "coupons",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("discount_amount", sa.Integer(), nullable=False),
        sa.Column("max_uses", sa.Integer(), nullable=True),
        sa.Column("current_uses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_uses_per_user", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("current_uses >= 0", name="ck_coupons_current_uses_non_negative"),
    )
    op.create_index(op.f("ix_coupons_code"), "coupons", ["code"], unique=True)

    op.create_table(
        "toolkit_purchases",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", sa.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("toolkit_id", sa.UUID(as_uuid=True), sa.ForeignKey("toolkits.id"), nullable=False),
        sa.Column(
            "coupon_id",
            sa.UUID(as_uuid=True),
            sa.ForeignKey("coupons.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("gateway_order_id", sa.String(length=120), nullable=True),
        sa.Column("gateway_payment_id", sa.String(length=120), nullable=True),
        sa.Column("payment_status", payment_status, nullable=False),
        sa.Column("amount_paid", sa.Integer(), nullable=False),
        sa.Column("discount_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("purchased_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f("ix_toolkit_purchases_gateway_order_id"), "toolkit_purchases", ["gateway_order_id"])
    op.create_index(
        "ix_toolkit_purchases_user_toolkit_status",
        "toolkit_purchases",
        ["user_id", "toolkit_id", "payment_status"],
    )
    op.create_index(
        "ix_toolkit_purchases_coupon_user_status",
        "toolkit_purchases",
        ["coupon_id", "user_id", "payment_status"],
    )

    op.create_table(
        "internships",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", internship_type, nullable=True),
        sa.Column("timing", internship_timing, nullable=True),
        sa.Column("link", sa.String(length=2048), nullable=False),
        sa.Column("stipend", sa.Integer(), nullable=True),
        sa.Column("duration", sa.String(length=100), nullable=True),
        sa.Column("experience", sa.String(length=100), nullable=True),
        sa.Column("location", sa.String(length=160), nullable=True),
        sa.Column("deadline", sa.Date(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("hiring_organization", sa.String(length=120), nullable=False),
        sa.Column("hiring_manager", sa.String(length=100), nullable=True),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("user_id", sa.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("internships")
    op.drop_index("ix_toolkit_purchases_coupon_user_status", table_name="toolkit_purchases")
    op.drop_index("ix_toolkit_purchases_user_toolkit_status", table_name="toolkit_purchases")
    op.drop_index(op.f("ix_toolkit_purchases_gateway_order_id"), table_name="toolkit_purchases")
    op.drop_table("toolkit_purchases")
    op.drop_index(op.f("ix_coupons_code"), table_name="coupons")
    op.drop_table("coupons")
    op.drop_table("toolkits")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
