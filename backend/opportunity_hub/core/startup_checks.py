from __future__ import annotations

import logging

from opportunity_hub.core.config import settings

logger = logging.getLogger(__name__)


def _is_production() -> bool:
    env = (settings.environment or "").strip().lower()
    return env in {"prod", "production"}


def _append_if(problems: list[str], *, condition: bool, message: str) -> None:
    if condition:
        problems.append(message)


def _validate_core_production_settings(problems: list[str]) -> None:
    secret = (settings.secret_key or "").strip()
    _append_if(
        problems,
        condition=secret in {"", "dev-secret-key"} or len(secret) < 32,
        message="SECRET_KEY must be set to a strong random value (not the dev default).",
    )
    _append_if(
        problems,
        condition=not (settings.sentry_dsn or "").strip(),
        message="SENTRY_DSN must be configured in production.",
    )


def _validate_payment_settings(problems: list[str]) -> None:
    _append_if(
        problems,
        condition=(settings.payments_provider or "").strip().lower() in {"mock", "test"},
        message="PAYMENTS_PROVIDER must not be 'mock' in production.",
    )
    _append_if(
        problems,
        condition=not (settings.razorpay_key_id or "").strip() or not (settings.razorpay_key_secret or "").strip(),
        message="RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET must be set in production.",
    )


def _validate_ingest_settings(problems: list[str]) -> None:
    key = (settings.ingest_api_key or "").strip()
    if not key:
        # The ingest endpoint answers 500 until configured; not fatal for the rest of the API.
        logger.warning("ingest_api_key_not_configured")
        return
    _append_if(
        problems,
        condition=len(key) < 24,
        message="INGEST_API_KEY must be at least 24 characters long.",
    )
    _append_if(
        problems,
        condition=not (settings.ingest_user_id or "").strip(),
        message="INGEST_USER_ID must be set when INGEST_API_KEY is configured.",
    )


def validate_production_settings() -> None:
    """
    Fail fast on insecure defaults when running in production.

    Catches development secrets, the mock payment provider and half-configured
    ingest credentials before the app starts serving traffic.
    """
    if not _is_production():
        return

    problems: list[str] = []
    _validate_core_production_settings(problems)
    _validate_payment_settings(problems)
    _validate_ingest_settings(problems)

    if problems:
        raise RuntimeError("Production configuration checks failed:\n- " + "\n- ".join(problems))
