from fastapi.testclient import TestClient

from opportunity_hub.main import app
from opportunity_hub.services.errors import (
    AlreadyPurchased,
    CouponAlreadyUsed,
    CouponExpired,
    CouponLimitReached,
    CouponNotActive,
    DomainError,
    Forbidden,
    InvalidCoupon,
    InvalidSignature,
    PaymentGatewayError,
    PurchaseNotFound,
    ToolkitAccessDenied,
    ToolkitNotFound,
)

client = TestClient(app)


def test_http_error_shape():
    res = client.get("/api/v1/does-not-exist")
    assert res.status_code == 404
    body = res.json()
    assert set(body.keys()) == {"detail", "code"}
    assert body["detail"] == "Not Found"


def test_validation_error_shape():
    res = client.get("/api/v1/toolkits/not-a-uuid")
    assert res.status_code == 422
    body = res.json()
    assert body["code"] == "validation_error"
    assert isinstance(body["detail"], list)


def test_domain_errors_carry_stable_codes_and_statuses():
    table = {
        InvalidCoupon: ("invalid_coupon", 400, "Invalid coupon code"),
        CouponNotActive: ("coupon_not_active", 400, "Coupon is not active"),
        CouponExpired: ("coupon_expired", 400, "Coupon has expired"),
        CouponAlreadyUsed: ("coupon_already_used", 400, "You have already used this coupon"),
        CouponLimitReached: ("coupon_limit_reached", 400, "Coupon usage limit reached"),
        AlreadyPurchased: ("already_purchased", 400, "Toolkit already purchased"),
        ToolkitNotFound: ("toolkit_not_found", 404, "Toolkit not found"),
        PurchaseNotFound: ("purchase_not_found", 404, "Purchase not found"),
        Forbidden: ("forbidden", 403, "Purchase belongs to another user"),
        ToolkitAccessDenied: ("toolkit_access_denied", 403, "You do not have access to this toolkit"),
        InvalidSignature: ("invalid_signature", 400, "Invalid signature"),
        PaymentGatewayError: ("payment_gateway_error", 502, "Payment provider request failed"),
    }
    for error_cls, (code, status_code, message) in table.items():
        error = error_cls()
        assert isinstance(error, DomainError)
        assert (error.code, error.status_code, error.detail) == (code, status_code, message)
