from __future__ import annotations

import hmac
import logging

from fastapi import HTTPException, Request, status

from opportunity_hub.core import metrics
from opportunity_hub.core.config import settings

logger = logging.getLogger(__name__)


def token_from_request(request: Request) -> str | None:
    bearer = (request.headers.get("authorization") or "").strip()
    if bearer.lower().startswith("bearer "):
        return bearer[7:].strip() or None
    for header in ("x-ingest-token", "x-api-key"):
        value = (request.headers.get(header) or "").strip()
        if value:
            return value
    return None


def tokens_match(supplied: str | None, expected: str) -> bool:
    """Constant-time token comparison.

    Both operands are NUL-padded to the same length before ``compare_digest`` so
    the comparison cost does not depend on the supplied length; the length check
    afterwards rejects inputs that only match once padded.
    """
    supplied_bytes = (supplied or "").encode("utf-8")
    expected_bytes = expected.encode("utf-8")
    size = max(len(supplied_bytes), len(expected_bytes))
    same_content = hmac.compare_digest(supplied_bytes.ljust(size, b"\0"), expected_bytes.ljust(size, b"\0"))
    same_length = len(supplied_bytes) == len(expected_bytes)
    return same_content and same_length


async def require_ingest_token(request: Request) -> None:
    """FastAPI dependency guarding the bulk ingest endpoint."""
    expected = (settings.ingest_api_key or "").strip()
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Ingest API key is not configured",
        )
    if not tokens_match(token_from_request(request), expected):
        metrics.record_ingest_auth_failure()
        logger.warning("ingest_token_rejected", extra={"path": request.url.path})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
