from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from opportunity_hub.core.dependencies import require_admin
from opportunity_hub.db.session import get_session
from opportunity_hub.models.coupon import Coupon
from opportunity_hub.models.user import User
from opportunity_hub.schemas.coupon import CouponCreate, CouponListResponse, CouponRead, CouponUpdate
from opportunity_hub.services import coupons as coupons_service

router = APIRouter(prefix="/admin/coupons", tags=["admin"])


async def _get_coupon_or_404(session: AsyncSession, coupon_id: UUID) -> Coupon:
    coupon = await session.get(Coupon, coupon_id)
    if coupon is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Coupon not found")
    return coupon


@router.get("", response_model=CouponListResponse)
async def admin_list_coupons(
    session: AsyncSession = Depends(get_session),
    _: User = Depends(require_admin),
) -> CouponListResponse:
    coupons = await coupons_service.list_coupons(session)
    return CouponListResponse(coupons=[CouponRead.model_validate(coupon) for coupon in coupons])


@router.post("", response_model=CouponRead, status_code=status.HTTP_201_CREATED)
async def admin_create_coupon(
    payload: CouponCreate,
    session: AsyncSession = Depends(get_session),
    _: User = Depends(require_admin),
) -> CouponRead:
    coupon = await coupons_service.create_coupon(session, payload)
    return CouponRead.model_validate(coupon)


@router.patch("/{coupon_id}", response_model=CouponRead)
async def admin_update_coupon(
    coupon_id: UUID,
    payload: CouponUpdate,
    session: AsyncSession = Depends(get_session),
    _: User = Depends(require_admin),
) -> CouponRead:
    coupon = await _get_coupon_or_404(session, coupon_id)
    coupon = await coupons_service.update_coupon(session, coupon=coupon, payload=payload)
    return CouponRead.model_validate(coupon)


@router.delete("/{coupon_id}")
async def admin_delete_coupon(
    coupon_id: UUID,
    session: AsyncSession = Depends(get_session),
    _: User = Depends(require_admin),
) -> dict[str, bool]:
    coupon = await _get_coupon_or_404(session, coupon_id)
    await coupons_service.delete_coupon(session, coupon=coupon)
    return {"success": True}
