from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CouponRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    discount_amount: int
    max_uses: int | None = None
    current_uses: int
    max_uses_per_user: int | None = None
    is_active: bool
    expires_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class CouponCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    discount_amount: int = Field(gt=0)
    max_uses: int | None = Field(default=None, gt=0)
    max_uses_per_user: int | None = Field(default=1, gt=0)
    is_active: bool = True
    expires_at: datetime | None = None


class CouponUpdate(BaseModel):
    """Partial update; only fields present in the request body are applied.

    ``current_uses`` is deliberately absent: the counter only moves through
    redemption.
    """

    code: str | None = Field(default=None, min_length=1, max_length=50)
    discount_amount: int | None = Field(default=None, gt=0)
    max_uses: int | None = Field(default=None, gt=0)
    max_uses_per_user: int | None = Field(default=None, gt=0)
    is_active: bool | None = None
    expires_at: datetime | None = None


class CouponListResponse(BaseModel):
    coupons: list[CouponRead]


class CouponValidateRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    toolkit_id: UUID


class CouponSummary(BaseModel):
    id: UUID
    code: str
    discount_amount: int


class CouponValidateResponse(BaseModel):
    valid: bool
    discount_amount: int | None = None
    final_price: int | None = None
    error: str | None = None
    code: str | None = None
    coupon: CouponSummary | None = None
