from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from opportunity_hub.core import metrics
from opportunity_hub.core.config import settings
from opportunity_hub.models.purchase import PaymentStatus, ToolkitPurchase
from opportunity_hub.models.toolkit import Toolkit
from opportunity_hub.services import coupons as coupons_service
from opportunity_hub.services import pricing
from opportunity_hub.services.errors import (
    AlreadyPurchased,
    DomainError,
    Forbidden,
    PurchaseNotFound,
    ToolkitNotFound,
)
from opportunity_hub.services.payment_gateway import GatewayOrder, PaymentGateway
from opportunity_hub.services.payment_verification import verify_payment_signature

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def get_toolkit(session: AsyncSession, toolkit_id: UUID) -> Toolkit | None:
    return await session.get(Toolkit, toolkit_id)


async def list_active_toolkits(session: AsyncSession) -> list[Toolkit]:
    result = await session.execute(select(Toolkit).where(Toolkit.is_active.is_(True)).order_by(Toolkit.created_at.desc()))
    return list(result.scalars().all())


async def has_access(session: AsyncSession, *, user_id: UUID, toolkit_id: UUID) -> bool:
    """Ownership is derived from a completed purchase on every call, never cached."""
    row = (
        await session.execute(
            select(ToolkitPurchase.id)
            .where(
                ToolkitPurchase.user_id == user_id,
                ToolkitPurchase.toolkit_id == toolkit_id,
                ToolkitPurchase.payment_status == PaymentStatus.completed,
            )
            .limit(1)
        )
    ).first()
    return row is not None


async def list_purchased_toolkits(session: AsyncSession, *, user_id: UUID) -> list[Toolkit]:
    owned = select(ToolkitPurchase.toolkit_id).where(
        ToolkitPurchase.user_id == user_id,
        ToolkitPurchase.payment_status == PaymentStatus.completed,
    )
    result = await session.execute(select(Toolkit).where(Toolkit.id.in_(owned)).order_by(Toolkit.title))
    return list(result.scalars().all())


def _receipt_for(purchase: ToolkitPurchase) -> str:
    # Razorpay caps receipts at 40 characters.
    return f"tk_{str(purchase.toolkit_id)[-8:]}_{purchase.id.hex[:16]}"


@dataclass(frozen=True)
class PurchaseInitiation:
    purchase: ToolkitPurchase
    free: bool
    final_price: int
    discount_amount: int
    order: GatewayOrder | None = None


async def initiate_purchase(
    session: AsyncSession,
    *,
    user_id: UUID,
    toolkit_id: UUID,
    coupon_code: str | None,
    gateway: PaymentGateway,
) -> PurchaseInitiation:
    """Create a purchase attempt, consuming a coupon use when a code is given.

    Coupon redemption and the purchase row share one transaction. The gateway
    order is created only after that transaction commits, so no database locks
    are held across the network call. If the gateway then fails, the consumed
    coupon use is not given back and the pending row stays without an order id.
    """
    try:
        toolkit = await get_toolkit(session, toolkit_id)
        if toolkit is None or not toolkit.is_active:
            raise ToolkitNotFound()
        if await has_access(session, user_id=user_id, toolkit_id=toolkit_id):
            raise AlreadyPurchased()

        redemption: coupons_service.CouponRedemption | None = None
        if coupons_service.normalize_code(coupon_code):
            redemption = await coupons_service.redeem_coupon(session, code=coupon_code, user_id=user_id)

        discount = redemption.discount_amount if redemption else 0
        price = pricing.final_price(toolkit.price, discount)
        purchase = ToolkitPurchase(
            user_id=user_id,
            toolkit_id=toolkit_id,
            coupon_id=redemption.coupon_id if redemption else None,
            amount_paid=price,
            discount_amount=discount,
            payment_status=PaymentStatus.pending,
        )
        if price == 0:
            purchase.payment_status = PaymentStatus.completed
            purchase.purchased_at = _now()
        session.add(purchase)
        await session.commit()
    except DomainError:
        await session.rollback()
        raise

    await session.refresh(purchase)
    metrics.record_purchase_initiated()
    log_extra = {
        "purchase_id": str(purchase.id),
        "user_id": str(user_id),
        "toolkit_id": str(toolkit_id),
        "coupon_id": str(purchase.coupon_id) if purchase.coupon_id else None,
        "amount": price,
    }

    if price == 0:
        metrics.record_purchase_completed()
        logger.info("purchase_completed_free", extra=log_extra)
        return PurchaseInitiation(purchase=purchase, free=True, final_price=0, discount_amount=discount)

    order = await gateway.create_order(amount=price, currency=settings.payments_currency, receipt=_receipt_for(purchase))
    purchase.gateway_order_id = order.id
    session.add(purchase)
    await session.commit()
    await session.refresh(purchase)
    logger.info("purchase_initiated", extra={**log_extra, "order_id": order.id})
    return PurchaseInitiation(purchase=purchase, free=False, final_price=price, discount_amount=discount, order=order)


async def finalize_purchase(
    session: AsyncSession,
    *,
    user_id: UUID,
    toolkit_id: UUID,
    order_id: str,
    payment_id: str,
    signature: str,
    secret: str,
) -> ToolkitPurchase:
    """Verify the gateway signature and move the matching purchase to completed.

    Repeating a successful verification is a no-op that returns the completed
    purchase unchanged.
    """
    try:
        verify_payment_signature(order_id=order_id, payment_id=payment_id, signature=signature, secret=secret)

        purchase = (
            (
                await session.execute(
                    select(ToolkitPurchase)
                    .where(ToolkitPurchase.gateway_order_id == order_id, ToolkitPurchase.toolkit_id == toolkit_id)
                    .execution_options(populate_existing=True)
                )
            )
            .scalars()
            .first()
        )
        if purchase is None:
            raise PurchaseNotFound()
        if purchase.user_id != user_id:
            logger.warning(
                "purchase_owner_mismatch",
                extra={"purchase_id": str(purchase.id), "user_id": str(user_id)},
            )
            raise Forbidden()
    except DomainError:
        await session.rollback()
        raise

    if purchase.payment_status == PaymentStatus.completed:
        return purchase

    result = await session.execute(
        update(ToolkitPurchase)
        .where(ToolkitPurchase.id == purchase.id, ToolkitPurchase.payment_status == PaymentStatus.pending)
        .values(payment_status=PaymentStatus.completed, gateway_payment_id=payment_id, purchased_at=_now())
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    if result.rowcount == 1:
        metrics.record_purchase_completed()
        logger.info(
            "purchase_completed",
            extra={"purchase_id": str(purchase.id), "order_id": order_id, "payment_id": payment_id},
        )
    await session.refresh(purchase)
    return purchase
