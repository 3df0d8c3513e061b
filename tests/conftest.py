import httpx
import pytest
from fakeredis import aioredis as fakeredis
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine, AsyncSession
from sqlalchemy.pool import StaticPool

from geotrust.core.config import Settings
from geotrust.core.deps import get_db_session, get_ip_lookup, get_redis, get_settings_dep
from geotrust.core.security import create_access_token
from geotrust.models.base import Base
from geotrust.models import audit, place  # noqa: F401  register tables
from geotrust.schemas.location import IpLocation


class FakeIpLookup:
    """Stand-in for the network lookup; set `result` or `error` per test."""

    def __init__(self):
        self.result: IpLocation | None = None
        self.error: Exception | None = None
        self.calls = 0

    async def __call__(self) -> IpLocation | None:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        environment="development",
        database_url="sqlite+aiosqlite://",
        redis_url="redis://localhost:6379/0",
        jwt_secret_key="test-secret",
        jwt_algorithm="HS256",
        jwt_issuer="https://issuer.test",
        jwt_audience="geotrust-api",
        ip_lookup_timeout_seconds=0.5,
        fix_rate_limit_max=50,
        clues_per_game=2,
    )


@pytest.fixture()
async def redis():
    client = fakeredis.FakeRedis(decode_responses=True)
    try:
        yield client
    finally:
        await client.flushall()
        await client.aclose()


@pytest.fixture()
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    finally:
        await engine.dispose()


@pytest.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
def ip_lookup() -> FakeIpLookup:
    return FakeIpLookup()


@pytest.fixture()
def app(settings, redis, session_factory, ip_lookup):
    from geotrust.main import get_application

    application = get_application()

    async def _settings():
        return settings

    async def _redis():
        yield redis

    async def _db():
        async with session_factory() as session:
            yield session

    async def _ip_lookup():
        return ip_lookup

    application.dependency_overrides[get_settings_dep] = _settings
    application.dependency_overrides[get_redis] = _redis
    application.dependency_overrides[get_db_session] = _db
    application.dependency_overrides[get_ip_lookup] = _ip_lookup
    return application


@pytest.fixture()
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest.fixture()
def auth_headers(settings):
    def _make(session_id: str, player_id: str = "player-1") -> dict[str, str]:
        token = create_access_token(player_id, session_id, settings)
        return {"Authorization": f"Bearer {token}"}

    return _make
