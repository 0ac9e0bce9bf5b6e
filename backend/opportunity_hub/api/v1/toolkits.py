import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from opportunity_hub.core.dependencies import get_current_user, get_current_user_optional
from opportunity_hub.db.session import get_session
from opportunity_hub.models.user import User
from opportunity_hub.schemas.purchase import (
    GatewayOrderRead,
    PurchaseInitiateRequest,
    PurchaseInitiateResponse,
    PurchaseRead,
    PurchaseVerifyRequest,
    PurchaseVerifyResponse,
)
from opportunity_hub.schemas.toolkit import ToolkitAccessRead, ToolkitDetail, ToolkitRead
from opportunity_hub.schemas.toolkit_content import ContentItemRead, ToolkitContentResponse, ToolkitSummary
from opportunity_hub.services import payment_gateway
from opportunity_hub.services import purchases as purchases_service
from opportunity_hub.services import toolkit_content as content_service
from opportunity_hub.services.errors import ToolkitNotFound
from opportunity_hub.services.payment_gateway import PaymentGateway, get_payment_gateway

router = APIRouter(prefix="/toolkits", tags=["toolkits"])
logger = logging.getLogger(__name__)


@router.get("", response_model=list[ToolkitRead])
async def list_toolkits(session: AsyncSession = Depends(get_session)) -> list[ToolkitRead]:
    toolkits = await purchases_service.list_active_toolkits(session)
    return [ToolkitRead.model_validate(toolkit) for toolkit in toolkits]


@router.get("/purchased", response_model=list[ToolkitRead])
async def list_purchased_toolkits(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> list[ToolkitRead]:
    toolkits = await purchases_service.list_purchased_toolkits(session, user_id=current_user.id)
    return [ToolkitRead.model_validate(toolkit) for toolkit in toolkits]


@router.get("/{toolkit_id}", response_model=ToolkitDetail)
async def get_toolkit(
    toolkit_id: UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User | None = Depends(get_current_user_optional),
) -> ToolkitDetail:
    toolkit = await purchases_service.get_toolkit(session, toolkit_id)
    if toolkit is None:
        raise ToolkitNotFound()
    has_purchased = False
    if current_user is not None:
        has_purchased = await purchases_service.has_access(session, user_id=current_user.id, toolkit_id=toolkit_id)
    # Owners keep seeing a toolkit after it is retired from the catalog.
    if not toolkit.is_active and not has_purchased:
        raise ToolkitNotFound()
    return ToolkitDetail(toolkit=ToolkitRead.model_validate(toolkit), has_purchased=has_purchased)


@router.get("/{toolkit_id}/access", response_model=ToolkitAccessRead)
async def get_toolkit_access(
    toolkit_id: UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User | None = Depends(get_current_user_optional),
) -> ToolkitAccessRead:
    if current_user is None:
        return ToolkitAccessRead(has_purchased=False)
    has_purchased = await purchases_service.has_access(session, user_id=current_user.id, toolkit_id=toolkit_id)
    return ToolkitAccessRead(has_purchased=has_purchased)


@router.get("/{toolkit_id}/content", response_model=ToolkitContentResponse)
async def get_toolkit_content(
    toolkit_id: UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> ToolkitContentResponse:
    toolkit, items = await content_service.get_toolkit_content(session, user_id=current_user.id, toolkit_id=toolkit_id)
    return ToolkitContentResponse(
        toolkit=ToolkitSummary.model_validate(toolkit),
        content_items=[ContentItemRead.model_validate(item) for item in items],
    )


@router.post("/{toolkit_id}/purchase", response_model=PurchaseInitiateResponse, status_code=status.HTTP_201_CREATED)
async def purchase_toolkit(
    toolkit_id: UUID,
    payload: PurchaseInitiateRequest | None = None,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> PurchaseInitiateResponse:
    result = await purchases_service.initiate_purchase(
        session,
        user_id=current_user.id,
        toolkit_id=toolkit_id,
        coupon_code=payload.coupon_code if payload else None,
        gateway=gateway,
    )
    return PurchaseInitiateResponse(
        free=result.free,
        order=GatewayOrderRead(id=result.order.id, amount=result.order.amount, currency=result.order.currency)
        if result.order
        else None,
        key_id=None if result.free else gateway.key_id,
        purchase_id=result.purchase.id,
        final_price=result.final_price,
        discount_amount=result.discount_amount,
        purchase=PurchaseRead.model_validate(result.purchase),
    )


@router.post("/{toolkit_id}/verify", response_model=PurchaseVerifyResponse)
async def verify_toolkit_purchase(
    toolkit_id: UUID,
    payload: PurchaseVerifyRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> PurchaseVerifyResponse:
    try:
        secret = payment_gateway.signing_secret()
    except RuntimeError:
        logger.error("payment_verification_not_configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Payment verification is not configured",
        )
    await purchases_service.finalize_purchase(
        session,
        user_id=current_user.id,
        toolkit_id=toolkit_id,
        order_id=payload.order_id,
        payment_id=payload.payment_id,
        signature=payload.signature,
        secret=secret,
    )
    return PurchaseVerifyResponse(success=True)
