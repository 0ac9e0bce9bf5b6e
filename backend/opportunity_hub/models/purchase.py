import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from opportunity_hub.db.base import Base
from opportunity_hub.models.coupon import Coupon
from opportunity_hub.models.toolkit import Toolkit


class PaymentStatus(str, enum.Enum):
    pending = "pending"
    completed = "completed"


class ToolkitPurchase(Base):
    """One row per purchase attempt; ownership is derived from completed rows."""

    __tablename__ = "toolkit_purchases"
    __table_args__ = (
        Index("ix_toolkit_purchases_user_toolkit_status", "user_id", "toolkit_id", "payment_status"),
        Index("ix_toolkit_purchases_coupon_user_status", "coupon_id", "user_id", "payment_status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    toolkit_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("toolkits.id"), nullable=False)
    coupon_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("coupons.id", ondelete="SET NULL"), nullable=True
    )
    gateway_order_id: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)
    gateway_payment_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, native_enum=False),
        nullable=False,
        default=PaymentStatus.pending,
    )
    amount_paid: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    discount_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    purchased_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    toolkit: Mapped[Toolkit] = relationship("Toolkit")
    coupon: Mapped[Coupon | None] = relationship("Coupon")
