from collections import Counter
from threading import Lock
from typing import Dict, Counter as CounterType

_metrics: CounterType[str] = Counter()
_lock = Lock()


def _inc(key: str) -> None:
    with _lock:
        _metrics[key] += 1


def record_purchase_initiated() -> None:
    _inc("purchases_initiated")


def record_purchase_completed() -> None:
    _inc("purchases_completed")


def record_coupon_redemption() -> None:
    _inc("coupon_redemptions")


def record_coupon_redemption_conflict() -> None:
    _inc("coupon_redemption_conflicts")


def record_signature_failure() -> None:
    _inc("signature_failures")


def record_payment_gateway_failure() -> None:
    _inc("payment_gateway_failures")


def record_ingest_auth_failure() -> None:
    _inc("ingest_auth_failures")


def snapshot() -> Dict[str, int]:
    with _lock:
        return dict(_metrics)


def reset() -> None:
    with _lock:
        _metrics.clear()
