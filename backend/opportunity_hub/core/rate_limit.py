from __future__ import annotations

import logging
import math
import time
from collections import defaultdict, deque
from typing import Awaitable, Callable, DefaultDict, Deque, Hashable, Iterable

from fastapi import HTTPException, Request, status

from opportunity_hub.core.redis_client import get_redis

WindowBucket = Deque[float]

logger = logging.getLogger(__name__)


def _prune(bucket: WindowBucket, now: float, window_seconds: int) -> None:
    while bucket and now - bucket[0] > window_seconds:
        bucket.popleft()


def _drop_idle_buckets(buckets: DefaultDict[Hashable, WindowBucket], now: float, window_seconds: int) -> None:
    for ident in list(buckets):
        _prune(buckets[ident], now, window_seconds)
        if not buckets[ident]:
            del buckets[ident]


def _enforce_limit(bucket: WindowBucket, limit: int, window_seconds: int, now: float) -> None:
    _prune(bucket, now, window_seconds)
    if len(bucket) >= limit:
        retry_after_seconds = 1
        if bucket:
            retry_after_seconds = max(1, int(math.ceil(bucket[0] + window_seconds - now)))
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests",
            headers={"Retry-After": str(retry_after_seconds)},
        )
    bucket.append(now)


async def _enforce_limit_redis(
    *,
    key: Hashable,
    identifier: Hashable,
    limit: int,
    window_seconds: int,
    now: float,
) -> bool:
    client = get_redis()
    if client is None:
        return False
    if limit <= 0:
        return True
    try:
        now_int = int(now)
        window = now_int // max(1, int(window_seconds))
        redis_key = f"rate_limit:{key}:{identifier}:{window}"
        count = await client.incr(redis_key)
        if count == 1:
            await client.expire(redis_key, int(window_seconds))
        if int(count) > int(limit):
            retry_after_seconds = max(1, int(window_seconds) - (now_int % int(window_seconds or 1)))
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests",
                headers={"Retry-After": str(retry_after_seconds)},
            )
        return True
    except HTTPException:
        raise
    except Exception as exc:
        logger.warning("redis_rate_limit_failed", extra={"error": str(exc)})
        return False


def client_ip(request: Request) -> str:
    forwarded = (request.headers.get("x-forwarded-for") or "").split(",")[0].strip()
    if forwarded:
        return forwarded
    return request.client.host if request.client else "unknown"


def per_identifier_limiter(
    identifier_fn: Callable[[Request], Hashable],
    limit: int,
    window_seconds: int,
    key: Hashable,
) -> Callable[[Request], Awaitable[None]]:
    """
    Rate limiter keyed by a per-request identifier (client IP, user id).

    Uses Redis when REDIS_URL is configured so the window is shared across
    processes; otherwise falls back to an in-process sliding window.
    """
    buckets: DefaultDict[Hashable, WindowBucket] = defaultdict(deque)
    last_sweep = {"at": time.time()}

    async def dependency(request: Request) -> None:
        ident = identifier_fn(request)
        now = time.time()
        if now - last_sweep["at"] >= window_seconds:
            _drop_idle_buckets(buckets, now, window_seconds)
            last_sweep["at"] = now
        enforced = await _enforce_limit_redis(key=key, identifier=ident, limit=limit, window_seconds=window_seconds, now=now)
        if not enforced:
            _enforce_limit(buckets[ident], limit, window_seconds, now)

    dependency.buckets = buckets  # type: ignore[attr-defined]
    return dependency


def reset_buckets(buckets: Iterable[DefaultDict[Hashable, WindowBucket]]) -> None:
    """Helper for tests to clear limiter state."""
    for bucket in buckets:
        bucket.clear()
