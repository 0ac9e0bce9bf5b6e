import pytest
from fastapi import HTTPException
from starlette.requests import Request

from opportunity_hub.core import rate_limit


def _request(ip: str, forwarded_for: str | None = None) -> Request:
    headers = []
    if forwarded_for:
        headers.append((b"x-forwarded-for", forwarded_for.encode("latin-1")))
    return Request({"type": "http", "method": "POST", "path": "/", "headers": headers, "client": (ip, 1234)})


def test_client_ip_prefers_first_forwarded_address() -> None:
    assert rate_limit.client_ip(_request("10.0.0.1")) == "10.0.0.1"
    assert rate_limit.client_ip(_request("10.0.0.1", "203.0.113.7, 10.0.0.1")) == "203.0.113.7"


@pytest.mark.anyio
async def test_limiter_is_keyed_per_identifier() -> None:
    limiter = rate_limit.per_identifier_limiter(rate_limit.client_ip, 2, 60, key="test")

    await limiter(_request("198.51.100.1"))
    await limiter(_request("198.51.100.1"))
    with pytest.raises(HTTPException) as excinfo:
        await limiter(_request("198.51.100.1"))
    assert excinfo.value.status_code == 429
    assert int(excinfo.value.headers["Retry-After"]) >= 1

    await limiter(_request("198.51.100.2"))

    rate_limit.reset_buckets([limiter.buckets])
    await limiter(_request("198.51.100.1"))


@pytest.mark.anyio
async def test_redis_errors_fall_back_to_memory(monkeypatch: pytest.MonkeyPatch) -> None:
    class BrokenRedis:
        async def incr(self, key: str) -> int:
            raise ConnectionError("redis down")

    monkeypatch.setattr(rate_limit, "get_redis", lambda: BrokenRedis())
    limiter = rate_limit.per_identifier_limiter(rate_limit.client_ip, 1, 60, key="fallback")

    await limiter(_request("192.0.2.1"))
    with pytest.raises(HTTPException):
        await limiter(_request("192.0.2.1"))
    assert len(limiter.buckets["192.0.2.1"]) == 1


def test_prune_drops_entries_outside_window() -> None:
    from collections import deque

    bucket = deque([0.0, 50.0, 100.0])
    rate_limit._prune(bucket, now=120.0, window_seconds=60)
    assert list(bucket) == [100.0]


@pytest.mark.anyio
async def test_idle_client_buckets_are_dropped(monkeypatch: pytest.MonkeyPatch) -> None:
    clock = {"now": 1_000.0}
    monkeypatch.setattr(rate_limit.time, "time", lambda: clock["now"])
    limiter = rate_limit.per_identifier_limiter(rate_limit.client_ip, 5, 60, key="sweep")

    for octet in range(1, 4):
        await limiter(_request(f"203.0.113.{octet}"))
    assert len(limiter.buckets) == 3

    clock["now"] += 61
    await limiter(_request("203.0.113.9"))
    assert list(limiter.buckets) == ["203.0.113.9"]


def test_drop_idle_buckets_keeps_clients_inside_window() -> None:
    from collections import defaultdict, deque

    buckets = defaultdict(deque, {"old": deque([0.0]), "recent": deque([0.0, 90.0])})
    rate_limit._drop_idle_buckets(buckets, now=100.0, window_seconds=60)
    assert dict(buckets) == {"recent": deque([90.0])}
