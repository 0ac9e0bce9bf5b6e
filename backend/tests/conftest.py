import os
from collections.abc import AsyncIterator, Generator
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Keep pytest output high-signal by disabling outbound Sentry capture in tests.
os.environ["SENTRY_DSN"] = ""
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from opportunity_hub.api.v1 import coupons as coupons_api  # noqa: E402
from opportunity_hub.api.v1 import internships as internships_api  # noqa: E402
from opportunity_hub.core import metrics  # noqa: E402
from opportunity_hub.core.rate_limit import reset_buckets  # noqa: E402
from opportunity_hub.db.base import Base  # noqa: E402
from opportunity_hub.main import app  # noqa: E402


@pytest.fixture(scope="module")
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_process_state() -> Generator[None, None, None]:
    # Counters, limiter buckets and overrides are process-global and leak across tests.
    limiter_buckets = [coupons_api.validate_rate_limit.buckets, internships_api.ingest_rate_limit.buckets]
    metrics.reset()
    reset_buckets(limiter_buckets)
    yield
    metrics.reset()
    reset_buckets(limiter_buckets)
    app.dependency_overrides.clear()


@pytest.fixture
async def session_factory(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """File-backed SQLite so concurrent sessions get their own connections."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        future=True,
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield async_sessionmaker(engine, expire_on_commit=False)
    finally:
        await engine.dispose()
