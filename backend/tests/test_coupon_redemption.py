import asyncio
from uuid import UUID, uuid4

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from opportunity_hub.core import metrics
from opportunity_hub.models import Coupon, PaymentStatus, Toolkit, ToolkitPurchase, User
from opportunity_hub.services import coupons as coupons_service
from opportunity_hub.services import purchases as purchases_service
from opportunity_hub.services.errors import CouponLimitReached, InvalidCoupon
from opportunity_hub.services.payment_gateway import MockGateway


async def _create_users(session_factory: async_sessionmaker[AsyncSession], count: int) -> list[UUID]:
    async with session_factory() as session:
        users = [User(email=f"student{i}@example.com", name=f"Student {i}") for i in range(count)]
        session.add_all(users)
        await session.commit()
        return [user.id for user in users]


async def _create_coupon(session_factory: async_sessionmaker[AsyncSession], **kwargs) -> UUID:
    async with session_factory() as session:
        coupon = Coupon(**kwargs)
        session.add(coupon)
        await session.commit()
        return coupon.id


async def _current_uses(session_factory: async_sessionmaker[AsyncSession], coupon_id: UUID) -> int:
    async with session_factory() as session:
        return int((await session.execute(select(Coupon.current_uses).where(Coupon.id == coupon_id))).scalar_one())


@pytest.mark.anyio
async def test_last_use_succeeds_once_then_limit_reached(session_factory) -> None:
    user_a, user_b = await _create_users(session_factory, 2)
    coupon_id = await _create_coupon(session_factory, code="LAST", discount_amount=100, max_uses=5, current_uses=4)

    async with session_factory() as session:
        redemption = await coupons_service.redeem_coupon(session, code="last", user_id=user_a)
        await session.commit()
    assert redemption.coupon_id == coupon_id
    assert redemption.discount_amount == 100
    assert await _current_uses(session_factory, coupon_id) == 5

    async with session_factory() as session:
        with pytest.raises(CouponLimitReached):
            await coupons_service.redeem_coupon(session, code="LAST", user_id=user_b)
    assert await _current_uses(session_factory, coupon_id) == 5
    assert metrics.snapshot().get("coupon_redemptions") == 1


@pytest.mark.anyio
async def test_unknown_or_blank_code_is_invalid(session_factory) -> None:
    (user_id,) = await _create_users(session_factory, 1)
    async with session_factory() as session:
        with pytest.raises(InvalidCoupon):
            await coupons_service.redeem_coupon(session, code="MISSING", user_id=user_id)
        with pytest.raises(InvalidCoupon):
            await coupons_service.redeem_coupon(session, code="   ", user_id=user_id)
        # The session stays usable after the rollback.
        assert (await session.execute(select(func.count()).select_from(Coupon))).scalar_one() == 0


@pytest.mark.anyio
async def test_unlimited_coupon_keeps_counting(session_factory) -> None:
    user_ids = await _create_users(session_factory, 3)
    coupon_id = await _create_coupon(session_factory, code="OPEN", discount_amount=50, max_uses=None)

    for user_id in user_ids:
        async with session_factory() as session:
            await coupons_service.redeem_coupon(session, code="OPEN", user_id=user_id)
            await session.commit()

    assert await _current_uses(session_factory, coupon_id) == 3


@pytest.mark.anyio
async def test_conditional_claim_loses_to_a_committed_competitor(session_factory) -> None:
    (user_id,) = await _create_users(session_factory, 1)
    coupon_id = await _create_coupon(session_factory, code="ONE", discount_amount=100, max_uses=1)

    async with session_factory() as reader:
        coupon = await coupons_service.get_coupon_by_code(reader, code="ONE")
        assert coupon is not None
        await coupons_service.evaluate_coupon(reader, coupon=coupon, user_id=user_id)

        async with session_factory() as competitor:
            await competitor.execute(update(Coupon).where(Coupon.id == coupon_id).values(current_uses=1))
            await competitor.commit()

        assert await coupons_service._claim_coupon_use(reader, coupon_id=coupon_id) is False
        await reader.rollback()

    assert await _current_uses(session_factory, coupon_id) == 1


@pytest.mark.anyio
async def test_redeem_reports_limit_when_use_is_taken_after_validation(
    session_factory, monkeypatch: pytest.MonkeyPatch
) -> None:
    (user_a,) = await _create_users(session_factory, 1)
    coupon_id = await _create_coupon(session_factory, code="RACE", discount_amount=100, max_uses=1)
    original_evaluate = coupons_service.evaluate_coupon

    async def evaluate_then_lose_race(session, *, coupon, user_id):  # type: ignore[no-untyped-def]
        await original_evaluate(session, coupon=coupon, user_id=user_id)
        async with session_factory() as competitor:
            assert await coupons_service._claim_coupon_use(competitor, coupon_id=coupon.id) is True
            await competitor.commit()

    async with session_factory() as session:
        monkeypatch.setattr(coupons_service, "evaluate_coupon", evaluate_then_lose_race)
        with pytest.raises(CouponLimitReached):
            await coupons_service.redeem_coupon(session, code="RACE", user_id=user_a)

    assert await _current_uses(session_factory, coupon_id) == 1
    assert metrics.snapshot().get("coupon_redemption_conflicts") == 1


@pytest.mark.anyio
async def test_concurrent_initiations_never_overspend_a_coupon(session_factory) -> None:
    max_uses = 3
    attempts = 10 * max_uses
    user_ids = await _create_users(session_factory, attempts)
    coupon_id = await _create_coupon(session_factory, code="FREE100", discount_amount=1000, max_uses=max_uses)
    async with session_factory() as session:
        toolkit = Toolkit(title="Interview Kit", description="Questions", price=1000)
        session.add(toolkit)
        await session.commit()
        toolkit_id = toolkit.id

    gateway = MockGateway()

    async def attempt(user_id: UUID) -> str:
        async with session_factory() as session:
            try:
                await purchases_service.initiate_purchase(
                    session,
                    user_id=user_id,
                    toolkit_id=toolkit_id,
                    coupon_code="FREE100",
                    gateway=gateway,
                )
            except CouponLimitReached:
                return "limit"
            return "ok"

    outcomes = await asyncio.gather(*(attempt(user_id) for user_id in user_ids))

    assert outcomes.count("ok") == max_uses
    assert outcomes.count("limit") == attempts - max_uses
    assert await _current_uses(session_factory, coupon_id) == max_uses
    async with session_factory() as session:
        completed = (
            await session.execute(
                select(func.count())
                .select_from(ToolkitPurchase)
                .where(
                    ToolkitPurchase.coupon_id == coupon_id,
                    ToolkitPurchase.payment_status == PaymentStatus.completed,
                )
            )
        ).scalar_one()
    assert completed == max_uses
    assert gateway.orders == []


@pytest.mark.anyio
async def test_concurrent_redemptions_only_touch_the_redeemed_coupon(session_factory) -> None:
    user_ids = await _create_users(session_factory, 4)
    busy_id = await _create_coupon(session_factory, code="BUSY", discount_amount=10, max_uses=2)
    idle_id = await _create_coupon(session_factory, code="IDLE", discount_amount=10, max_uses=2)

    async def attempt(user_id: UUID) -> bool:
        async with session_factory() as session:
            try:
                await coupons_service.redeem_coupon(session, code="BUSY", user_id=user_id)
            except CouponLimitReached:
                return False
            await session.commit()
            return True

    results = await asyncio.gather(*(attempt(user_id) for user_id in user_ids + [uuid4()]))

    assert results.count(True) == 2
    assert await _current_uses(session_factory, busy_id) == 2
    assert await _current_uses(session_factory, idle_id) == 0
