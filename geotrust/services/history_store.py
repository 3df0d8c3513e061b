import contextlib
import logging
from typing import AsyncIterator

from fastapi import HTTPException, status
from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import LockNotOwnedError

from geotrust.schemas.location import LocationFix
from geotrust.services.history import MAX_HISTORY, LocationHistory

logger = logging.getLogger(__name__)

LOCK_TTL_SECONDS = 5
LOCK_WAIT_SECONDS = 2.0


def _history_key(session_id: str) -> str:
    return f"hunt:history:{session_id}"


def _lock_key(session_id: str) -> str:
    return f"hunt:lock:{session_id}"


class RedisHistoryStore:
    """
    Session-scoped LocationHistory persisted as a capped redis list (newest first).
    """

    def __init__(self, redis: Redis, ttl_seconds: int, maxlen: int = MAX_HISTORY):
        self.redis = redis
        self.ttl_seconds = ttl_seconds
        self.maxlen = maxlen

    async def load(self, session_id: str) -> LocationHistory:
        raw = await self.redis.lrange(_history_key(session_id), 0, self.maxlen - 1)
        fixes: list[LocationFix] = []
        for item in reversed(raw):
            try:
                fixes.append(LocationFix.model_validate_json(item))
            except ValidationError:
                logger.warning("Dropping unreadable history entry for session %s", session_id)
                continue
        return LocationHistory(fixes, maxlen=self.maxlen)

    async def append(self, session_id: str, fix: LocationFix) -> None:
        key = _history_key(session_id)
        pipe = self.redis.pipeline(transaction=True)
        pipe.lpush(key, fix.model_dump_json())
        pipe.ltrim(key, 0, self.maxlen - 1)
        pipe.expire(key, self.ttl_seconds)
        await pipe.execute()

    async def clear(self, session_id: str) -> None:
        await self.redis.delete(_history_key(session_id))

    @contextlib.asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        """Serialize load/evaluate/append for one session across workers."""
        lock = self.redis.lock(
            _lock_key(session_id),
            timeout=LOCK_TTL_SECONDS,
            blocking_timeout=LOCK_WAIT_SECONDS,
        )
        if not await lock.acquire():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Session busy, retry")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockNotOwnedError:
                logger.warning("Session lock for %s expired before release", session_id)
