from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from opportunity_hub.models.purchase import PaymentStatus


class PurchaseInitiateRequest(BaseModel):
    coupon_code: str | None = Field(default=None, max_length=50)


class GatewayOrderRead(BaseModel):
    id: str
    amount: int
    currency: str


class PurchaseRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    toolkit_id: UUID
    coupon_id: UUID | None = None
    gateway_order_id: str | None = None
    payment_status: PaymentStatus
    amount_paid: int
    discount_amount: int
    purchased_at: datetime | None = None
    created_at: datetime


class PurchaseInitiateResponse(BaseModel):
    free: bool
    order: GatewayOrderRead | None = None
    key_id: str | None = None
    purchase_id: UUID
    final_price: int
    discount_amount: int
    purchase: PurchaseRead


class PurchaseVerifyRequest(BaseModel):
    order_id: str = Field(min_length=1, max_length=120)
    payment_id: str = Field(min_length=1, max_length=120)
    signature: str = Field(min_length=1, max_length=256)


class PurchaseVerifyResponse(BaseModel):
    success: bool
