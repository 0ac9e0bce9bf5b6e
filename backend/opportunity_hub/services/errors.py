"""Typed domain errors for the purchase and coupon flows.

Services roll back their session before raising one of these; the API layer
renders them through a single exception handler as ``{"detail", "code"}``.
"""

from __future__ import annotations

from fastapi import status


class DomainError(Exception):
    code: str = "domain_error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Request could not be completed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.detail = message or self.message


class CouponError(DomainError):
    """Any reason a coupon cannot be applied."""


class InvalidCoupon(CouponError):
    code = "invalid_coupon"
    message = "Invalid coupon code"


class CouponNotActive(CouponError):
    code = "coupon_not_active"
    message = "Coupon is not active"


class CouponExpired(CouponError):
    code = "coupon_expired"
    message = "Coupon has expired"


class CouponAlreadyUsed(CouponError):
    code = "coupon_already_used"
    message = "You have already used this coupon"


class CouponLimitReached(CouponError):
    code = "coupon_limit_reached"
    message = "Coupon usage limit reached"


class AlreadyPurchased(DomainError):
    code = "already_purchased"
    message = "Toolkit already purchased"


class ToolkitNotFound(DomainError):
    code = "toolkit_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Toolkit not found"


class ToolkitAccessDenied(DomainError):
    code = "toolkit_access_denied"
    status_code = status.HTTP_403_FORBIDDEN
    message = "You do not have access to this toolkit"


class PurchaseNotFound(DomainError):
    code = "purchase_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Purchase not found"


class Forbidden(DomainError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Purchase belongs to another user"


class InvalidSignature(DomainError):
    code = "invalid_signature"
    message = "Invalid signature"


class PaymentGatewayError(DomainError):
    code = "payment_gateway_error"
    status_code = status.HTTP_502_BAD_GATEWAY
    message = "Payment provider request failed"
