from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from opportunity_hub.core import metrics
from opportunity_hub.models.coupon import Coupon
from opportunity_hub.models.purchase import PaymentStatus, ToolkitPurchase
from opportunity_hub.models.toolkit import Toolkit
from opportunity_hub.schemas.coupon import CouponCreate, CouponUpdate
from opportunity_hub.services import pricing
from opportunity_hub.services.errors import (
    CouponAlreadyUsed,
    CouponError,
    CouponExpired,
    CouponLimitReached,
    CouponNotActive,
    InvalidCoupon,
)

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def _as_utc(value: datetime) -> datetime:
    # SQLite returns naive datetimes for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def get_coupon_by_code(session: AsyncSession, *, code: str | None, refresh: bool = False) -> Coupon | None:
    cleaned = normalize_code(code)
    if not cleaned:
        return None
    stmt = select(Coupon).where(Coupon.code == cleaned)
    if refresh:
        stmt = stmt.execution_options(populate_existing=True)
    return (await session.execute(stmt)).scalar_one_or_none()


async def count_user_completed_uses(session: AsyncSession, *, coupon_id: UUID, user_id: UUID) -> int:
    return int(
        (
            await session.execute(
                select(func.count())
                .select_from(ToolkitPurchase)
                .where(
                    ToolkitPurchase.coupon_id == coupon_id,
                    ToolkitPurchase.user_id == user_id,
                    ToolkitPurchase.payment_status == PaymentStatus.completed,
                )
            )
        ).scalar_one()
    )


def check_coupon_status(coupon: Coupon, *, now: datetime | None = None) -> None:
    """Active and not expired. Both are one-way transitions, so a stale read is harmless."""
    now = now or _now()
    if not coupon.is_active:
        raise CouponNotActive()
    if coupon.expires_at is not None and _as_utc(coupon.expires_at) <= now:
        raise CouponExpired()


async def check_per_user_limit(session: AsyncSession, *, coupon: Coupon, user_id: UUID) -> None:
    # Counts completed purchases only; two concurrent first purchases by the same
    # user can both pass this check.
    if coupon.max_uses_per_user is None:
        return
    used = await count_user_completed_uses(session, coupon_id=coupon.id, user_id=user_id)
    if used >= int(coupon.max_uses_per_user):
        raise CouponAlreadyUsed()


def check_global_limit(coupon: Coupon) -> None:
    if coupon.max_uses is None:
        return
    if int(coupon.current_uses or 0) >= int(coupon.max_uses):
        raise CouponLimitReached()


async def evaluate_coupon(session: AsyncSession, *, coupon: Coupon, user_id: UUID | None) -> None:
    """Raise the first policy violation for ``coupon``; anonymous callers skip the per-user check."""
    check_coupon_status(coupon)
    if user_id is not None:
        await check_per_user_limit(session, coupon=coupon, user_id=user_id)
    check_global_limit(coupon)


async def _claim_coupon_use(session: AsyncSession, *, coupon_id: UUID) -> bool:
    current = func.coalesce(Coupon.current_uses, 0)
    result = await session.execute(
        update(Coupon)
        .where(Coupon.id == coupon_id, or_(Coupon.max_uses.is_(None), current < Coupon.max_uses))
        .values(current_uses=current + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


@dataclass(frozen=True)
class CouponRedemption:
    coupon_id: UUID
    code: str
    discount_amount: int


async def redeem_coupon(session: AsyncSession, *, code: str | None, user_id: UUID) -> CouponRedemption:
    """Consume one use of a coupon inside the session's open transaction.

    The global budget is enforced by a conditional ``UPDATE`` whose affected row
    count decides the winner when requests race for the last use; no process-level
    lock is involved. On any policy failure the transaction is rolled back before
    the error is raised. On success nothing is committed: the caller writes the
    purchase record and commits both together.
    """
    try:
        coupon = await get_coupon_by_code(session, code=code, refresh=True)
        if coupon is None:
            raise InvalidCoupon()
        await evaluate_coupon(session, coupon=coupon, user_id=user_id)
        if not await _claim_coupon_use(session, coupon_id=coupon.id):
            metrics.record_coupon_redemption_conflict()
            logger.info("coupon_redemption_conflict", extra={"coupon_id": str(coupon.id)})
            raise CouponLimitReached()
    except CouponError:
        await session.rollback()
        raise

    metrics.record_coupon_redemption()
    logger.info("coupon_redeemed", extra={"coupon_id": str(coupon.id), "user_id": str(user_id)})
    return CouponRedemption(coupon_id=coupon.id, code=coupon.code, discount_amount=int(coupon.discount_amount))


@dataclass(frozen=True)
class CouponPreview:
    valid: bool
    coupon: Coupon | None = None
    discount_amount: int | None = None
    final_price: int | None = None
    error: str | None = None
    error_code: str | None = None


async def preview_coupon(
    session: AsyncSession,
    *,
    code: str,
    toolkit: Toolkit,
    user_id: UUID | None,
) -> CouponPreview:
    """Read-only eligibility check; never touches ``current_uses``."""
    coupon = await get_coupon_by_code(session, code=code)
    try:
        if coupon is None:
            raise InvalidCoupon()
        await evaluate_coupon(session, coupon=coupon, user_id=user_id)
    except CouponError as exc:
        return CouponPreview(valid=False, coupon=coupon, error=exc.detail, error_code=exc.code)

    discount = int(coupon.discount_amount)
    return CouponPreview(
        valid=True,
        coupon=coupon,
        discount_amount=discount,
        final_price=pricing.final_price(toolkit.price, discount),
    )


async def list_coupons(session: AsyncSession) -> list[Coupon]:
    result = await session.execute(select(Coupon).order_by(Coupon.created_at.desc()))
    return list(result.scalars().all())


async def _ensure_code_available(session: AsyncSession, *, code: str, exclude_id: UUID | None = None) -> None:
    existing = await get_coupon_by_code(session, code=code)
    if existing is not None and existing.id != exclude_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Coupon code already exists")


async def create_coupon(session: AsyncSession, payload: CouponCreate) -> Coupon:
    code = normalize_code(payload.code)
    if not code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid coupon code")
    await _ensure_code_available(session, code=code)
    coupon = Coupon(
        code=code,
        discount_amount=payload.discount_amount,
        max_uses=payload.max_uses,
        current_uses=0,
        max_uses_per_user=payload.max_uses_per_user,
        is_active=payload.is_active,
        expires_at=payload.expires_at,
    )
    session.add(coupon)
    await session.commit()
    await session.refresh(coupon)
    logger.info("coupon_created", extra={"coupon_id": str(coupon.id), "code": coupon.code})
    return coupon


async def update_coupon(session: AsyncSession, *, coupon: Coupon, payload: CouponUpdate) -> Coupon:
    fields = payload.model_fields_set
    if "code" in fields:
        code = normalize_code(payload.code)
        if not code:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid coupon code")
        await _ensure_code_available(session, code=code, exclude_id=coupon.id)
        coupon.code = code
    if "discount_amount" in fields:
        if payload.discount_amount is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="discount_amount cannot be null")
        coupon.discount_amount = payload.discount_amount
    if "max_uses" in fields:
        if payload.max_uses is not None and payload.max_uses < (coupon.current_uses or 0):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="max_uses cannot be lower than current_uses",
            )
        coupon.max_uses = payload.max_uses
    if "max_uses_per_user" in fields:
        coupon.max_uses_per_user = payload.max_uses_per_user
    if "is_active" in fields:
        if payload.is_active is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="is_active cannot be null")
        coupon.is_active = payload.is_active
    if "expires_at" in fields:
        coupon.expires_at = payload.expires_at

    session.add(coupon)
    await session.commit()
    await session.refresh(coupon)
    logger.info("coupon_updated", extra={"coupon_id": str(coupon.id), "fields": sorted(fields)})
    return coupon


async def delete_coupon(session: AsyncSession, *, coupon: Coupon) -> None:
    coupon_id = str(coupon.id)
    await session.delete(coupon)
    await session.commit()
    logger.info("coupon_deleted", extra={"coupon_id": coupon_id})
