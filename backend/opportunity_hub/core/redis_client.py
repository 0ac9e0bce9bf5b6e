from __future__ import annotations

import logging

from redis.asyncio import Redis

from opportunity_hub.core.config import settings

logger = logging.getLogger(__name__)

_client: Redis | None = None


def get_redis() -> Redis | None:
    """Return a shared Redis client when REDIS_URL is configured."""
    global _client
    url = (settings.redis_url or "").strip()
    if not url:
        return None
    if _client is None:
        _client = Redis.from_url(url, encoding="utf-8", decode_responses=True)
    return _client


async def close_redis() -> None:
    global _client
    if _client is None:
        return
    try:
        await _client.aclose()
    except Exception as exc:  # pragma: no cover - shutdown best effort
        logger.warning("redis_close_failed", extra={"error": str(exc)})
    _client = None
