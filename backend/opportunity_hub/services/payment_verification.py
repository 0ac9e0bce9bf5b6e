from __future__ import annotations

import hashlib
import hmac
import logging

from opportunity_hub.core import metrics
from opportunity_hub.services.errors import InvalidSignature

logger = logging.getLogger(__name__)


def compute_signature(*, order_id: str, payment_id: str, secret: str) -> str:
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def is_valid_signature(*, order_id: str, payment_id: str, signature: str | None, secret: str) -> bool:
    expected = compute_signature(order_id=order_id, payment_id=payment_id, secret=secret)
    # compare_digest on str rejects non-ASCII input with TypeError; compare bytes instead.
    supplied = str(signature or "").encode("utf-8")
    return hmac.compare_digest(expected.encode("ascii"), supplied)


def verify_payment_signature(*, order_id: str, payment_id: str, signature: str | None, secret: str) -> None:
    """Raise ``InvalidSignature`` unless ``signature`` is the gateway HMAC of ``order_id|payment_id``."""
    if is_valid_signature(order_id=order_id, payment_id=payment_id, signature=signature, secret=secret):
        return
    metrics.record_signature_failure()
    # Neither signature is logged.
    logger.warning("purchase_signature_mismatch", extra={"order_id": order_id, "payment_id": payment_id})
    raise InvalidSignature()
