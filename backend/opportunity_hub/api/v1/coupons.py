from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from opportunity_hub.core.config import settings
from opportunity_hub.core.dependencies import get_current_user_optional
from opportunity_hub.core.rate_limit import client_ip, per_identifier_limiter
from opportunity_hub.db.session import get_session
from opportunity_hub.models.user import User
from opportunity_hub.schemas.coupon import CouponSummary, CouponValidateRequest, CouponValidateResponse
from opportunity_hub.services import coupons as coupons_service
from opportunity_hub.services import purchases as purchases_service
from opportunity_hub.services.errors import ToolkitNotFound

router = APIRouter(prefix="/coupons", tags=["coupons"])

validate_rate_limit = per_identifier_limiter(
    client_ip,
    settings.coupon_validate_rate_limit,
    settings.coupon_validate_rate_window_seconds,
    key="coupons:validate",
)


@router.post("/validate", response_model=CouponValidateResponse)
async def validate_coupon(
    payload: CouponValidateRequest,
    _: None = Depends(validate_rate_limit),
    session: AsyncSession = Depends(get_session),
    current_user: User | None = Depends(get_current_user_optional),
) -> CouponValidateResponse:
    toolkit = await purchases_service.get_toolkit(session, payload.toolkit_id)
    if toolkit is None:
        raise ToolkitNotFound()

    user_id: UUID | None = current_user.id if current_user else None
    preview = await coupons_service.preview_coupon(session, code=payload.code, toolkit=toolkit, user_id=user_id)
    if not preview.valid or preview.coupon is None:
        return CouponValidateResponse(valid=False, error=preview.error, code=preview.error_code)
    return CouponValidateResponse(
        valid=True,
        discount_amount=preview.discount_amount,
        final_price=preview.final_price,
        coupon=CouponSummary(
            id=preview.coupon.id,
            code=preview.coupon.code,
            discount_amount=preview.coupon.discount_amount,
        ),
    )
