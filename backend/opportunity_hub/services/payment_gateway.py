from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal, Protocol
from uuid import uuid4

import httpx

from opportunity_hub.core import metrics
from opportunity_hub.core.config import settings
from opportunity_hub.services.errors import PaymentGatewayError

logger = logging.getLogger(__name__)

PaymentsProvider = Literal["real", "mock"]


def payments_provider() -> PaymentsProvider:
    raw = (settings.payments_provider or "real").strip().lower()
    if raw in {"mock", "test"}:
        env = (settings.environment or "").strip().lower()
        if env in {"prod", "production"}:
            return "real"
        return "mock"
    return "real"


def is_mock_payments() -> bool:
    return payments_provider() == "mock"


@dataclass(frozen=True)
class GatewayOrder:
    id: str
    amount: int
    currency: str


class PaymentGateway(Protocol):
    key_id: str | None

    async def create_order(self, *, amount: int, currency: str, receipt: str) -> GatewayOrder: ...


class RazorpayGateway:
    """Razorpay Orders API client; amounts are in the currency's smallest unit."""

    def __init__(self, *, key_id: str, key_secret: str, base_url: str, timeout: float) -> None:
        self.key_id = key_id
        self._key_secret = key_secret
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def create_order(self, *, amount: int, currency: str, receipt: str) -> GatewayOrder:
        payload = {"amount": int(amount), "currency": currency, "receipt": receipt}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    f"{self._base_url}/orders",
                    auth=(self.key_id, self._key_secret),
                    json=payload,
                )
        except httpx.RequestError as exc:
            metrics.record_payment_gateway_failure()
            logger.warning("razorpay_request_failed", extra={"receipt": receipt, "error": str(exc)})
            raise PaymentGatewayError() from exc

        if resp.status_code >= 400:
            metrics.record_payment_gateway_failure()
            logger.warning(
                "razorpay_order_rejected",
                extra={"receipt": receipt, "status_code": resp.status_code, "body": resp.text[:500]},
            )
            raise PaymentGatewayError()

        try:
            data: Any = resp.json()
            return GatewayOrder(id=str(data["id"]), amount=int(data["amount"]), currency=str(data["currency"]))
        except (ValueError, KeyError, TypeError) as exc:
            metrics.record_payment_gateway_failure()
            logger.warning("razorpay_order_unparseable", extra={"receipt": receipt})
            raise PaymentGatewayError() from exc


class MockGateway:
    """Fabricates orders locally so the checkout flow can run without Razorpay."""

    def __init__(self, *, key_id: str | None = None) -> None:
        self.key_id = key_id or "rzp_test_mock"
        self.orders: list[GatewayOrder] = []

    async def create_order(self, *, amount: int, currency: str, receipt: str) -> GatewayOrder:
        order = GatewayOrder(id=f"order_mock_{uuid4().hex[:14]}", amount=int(amount), currency=currency)
        self.orders.append(order)
        logger.info("mock_order_created", extra={"receipt": receipt, "order_id": order.id, "amount": order.amount})
        return order


def signing_secret() -> str:
    secret = (settings.razorpay_key_secret or "").strip()
    if not secret:
        raise RuntimeError("RAZORPAY_KEY_SECRET is not configured")
    return secret


def get_payment_gateway() -> PaymentGateway:
    """FastAPI dependency returning the configured gateway."""
    if is_mock_payments():
        return MockGateway(key_id=settings.razorpay_key_id)
    key_id = (settings.razorpay_key_id or "").strip()
    if not key_id:
        raise RuntimeError("RAZORPAY_KEY_ID is not configured")
    return RazorpayGateway(
        key_id=key_id,
        key_secret=signing_secret(),
        base_url=settings.razorpay_base_url,
        timeout=settings.razorpay_timeout_seconds,
    )
