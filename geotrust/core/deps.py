from collections.abc import AsyncGenerator
from redis import asyncio as aioredis
from redis.asyncio import ConnectionPool, Redis
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from geotrust.core.config import get_settings, Settings
from geotrust.db.session import async_session
from geotrust.services.history_store import RedisHistoryStore
from geotrust.services.ip_lookup import HttpIpLookup

_redis_pool: ConnectionPool | None = None


async def get_settings_dep() -> Settings:
    return get_settings()


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        yield session


def _ensure_redis_pool(url: str) -> ConnectionPool:
    global _redis_pool
    settings = get_settings()
    if not url.startswith("rediss://") and settings.environment != "development":
        raise RuntimeError("Redis URL must use TLS (rediss://) outside development")
    if _redis_pool is None:
        _redis_pool = ConnectionPool.from_url(
            url,
            max_connections=64,
            decode_responses=True,
            socket_timeout=1.0,
            socket_connect_timeout=1.0,
            health_check_interval=30,
        )
    return _redis_pool


async def get_redis(settings: Settings = Depends(get_settings_dep)):
    pool = _ensure_redis_pool(settings.redis_url)
    client: Redis = aioredis.Redis(connection_pool=pool)
    try:
        yield client
    finally:
        # keep the pool; release only this client
        await client.aclose()


async def get_history_store(
    redis=Depends(get_redis),
    settings: Settings = Depends(get_settings_dep),
) -> RedisHistoryStore:
    return RedisHistoryStore(redis, ttl_seconds=settings.history_ttl_seconds)


def _client_ip(request: Request, trusted_proxies: list[str]) -> str | None:
    peer = request.client.host if request.client else None
    forwarded = request.headers.get("x-forwarded-for")
    if not forwarded or peer not in trusted_proxies:
        return peer
    # right-most hop not added by one of our own proxies
    for hop in reversed([h.strip() for h in forwarded.split(",") if h.strip()]):
        if hop not in trusted_proxies:
            return hop
    return peer


async def get_ip_lookup(request: Request, settings: Settings = Depends(get_settings_dep)) -> HttpIpLookup:
    return HttpIpLookup(
        _client_ip(request, settings.trusted_proxies),
        base_url=settings.ip_lookup_url,
        timeout=settings.ip_lookup_timeout_seconds,
    )
