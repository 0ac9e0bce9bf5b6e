import asyncio
from uuid import UUID, uuid4

from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from opportunity_hub.core.security import create_access_token
from opportunity_hub.db.base import Base
from opportunity_hub.db.session import get_session
from opportunity_hub.main import app
from opportunity_hub.models import Coupon, PaymentStatus, Toolkit, ToolkitPurchase, User


def make_test_client() -> tuple[TestClient, async_sessionmaker]:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

    async def init_models() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(init_models())

    async def override_get_session():
        async with SessionLocal() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    return TestClient(app), SessionLocal


def seed(session_factory: async_sessionmaker) -> dict[str, UUID]:
    async def _seed() -> dict[str, UUID]:
        async with session_factory() as session:
            user = User(email="student@example.com", name="Student")
            toolkit = Toolkit(title="Placement Toolkit", description="Templates", price=999)
            save = Coupon(code="SAVE500", discount_amount=500, max_uses=10, current_uses=2, max_uses_per_user=1)
            big = Coupon(code="BIGSAVE", discount_amount=5000, max_uses=None)
            session.add_all(
                [
                    user,
                    toolkit,
                    save,
                    big,
                    Coupon(code="PAUSED", discount_amount=100, is_active=False),
                    Coupon(code="GONE", discount_amount=100, max_uses=3, current_uses=3),
                ]
            )
            await session.commit()
            return {"user": user.id, "toolkit": toolkit.id, "save": save.id}

    return asyncio.run(_seed())


def current_uses(session_factory: async_sessionmaker, code: str) -> int:
    async def _read() -> int:
        async with session_factory() as session:
            return (await session.execute(select(Coupon.current_uses).where(Coupon.code == code))).scalar_one()

    return asyncio.run(_read())


def test_validate_returns_discount_and_price_without_consuming() -> None:
    client, session_factory = make_test_client()
    ids = seed(session_factory)

    for _ in range(3):
        res = client.post("/api/v1/coupons/validate", json={"code": "save500", "toolkit_id": str(ids["toolkit"])})
        assert res.status_code == 200, res.text
        body = res.json()
        assert body["valid"] is True
        assert body["discount_amount"] == 500
        assert body["final_price"] == 499
        assert body["coupon"] == {"id": str(ids["save"]), "code": "SAVE500", "discount_amount": 500}

    assert current_uses(session_factory, "SAVE500") == 2


def test_validate_floors_price_at_zero() -> None:
    client, session_factory = make_test_client()
    ids = seed(session_factory)

    res = client.post("/api/v1/coupons/validate", json={"code": "BIGSAVE", "toolkit_id": str(ids["toolkit"])})
    assert res.json()["final_price"] == 0


def test_validate_reports_ineligible_coupons_with_200() -> None:
    client, session_factory = make_test_client()
    ids = seed(session_factory)

    expectations = {
        "NOPE": ("invalid_coupon", "Invalid coupon code"),
        "PAUSED": ("coupon_not_active", "Coupon is not active"),
        "GONE": ("coupon_limit_reached", "Coupon usage limit reached"),
    }
    for code, (error_code, message) in expectations.items():
        res = client.post("/api/v1/coupons/validate", json={"code": code, "toolkit_id": str(ids["toolkit"])})
        assert res.status_code == 200, res.text
        body = res.json()
        assert body["valid"] is False
        assert body["code"] == error_code
        assert body["error"] == message
        assert body["final_price"] is None


def test_validate_applies_per_user_limit_for_signed_in_callers() -> None:
    client, session_factory = make_test_client()
    ids = seed(session_factory)

    async def _complete_purchase() -> None:
        async with session_factory() as session:
            session.add(
                ToolkitPurchase(
                    user_id=ids["user"],
                    toolkit_id=ids["toolkit"],
                    coupon_id=ids["save"],
                    amount_paid=499,
                    discount_amount=500,
                    payment_status=PaymentStatus.completed,
                )
            )
            await session.commit()

    asyncio.run(_complete_purchase())
    payload = {"code": "SAVE500", "toolkit_id": str(ids["toolkit"])}

    signed_in = client.post(
        "/api/v1/coupons/validate",
        json=payload,
        headers={"Authorization": f"Bearer {create_access_token(str(ids['user']))}"},
    )
    assert signed_in.json()["code"] == "coupon_already_used"

    anonymous = client.post("/api/v1/coupons/validate", json=payload)
    assert anonymous.json()["valid"] is True


def test_validate_unknown_toolkit_is_404() -> None:
    client, session_factory = make_test_client()
    seed(session_factory)

    res = client.post("/api/v1/coupons/validate", json={"code": "SAVE500", "toolkit_id": str(uuid4())})
    assert res.status_code == 404
    assert res.json() == {"detail": "Toolkit not found", "code": "toolkit_not_found"}


def test_validate_requires_code_and_toolkit() -> None:
    client, session_factory = make_test_client()
    seed(session_factory)

    res = client.post("/api/v1/coupons/validate", json={"code": "SAVE500"})
    assert res.status_code == 422
    assert res.json()["code"] == "validation_error"


def test_validate_is_rate_limited_per_client() -> None:
    client, session_factory = make_test_client()
    ids = seed(session_factory)
    payload = {"code": "SAVE500", "toolkit_id": str(ids["toolkit"])}

    statuses = [client.post("/api/v1/coupons/validate", json=payload).status_code for _ in range(31)]

    assert statuses[:30] == [200] * 30
    assert statuses[30] == 429
    limited = client.post("/api/v1/coupons/validate", json=payload)
    assert limited.json() == {"detail": "Too many requests", "code": None}
    assert int(limited.headers["Retry-After"]) >= 1
