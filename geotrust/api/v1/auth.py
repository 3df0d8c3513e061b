import uuid

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from geotrust.core.auth import get_current_claims, revoked_session_key
from geotrust.core.config import Settings
from geotrust.core.deps import get_history_store, get_redis, get_settings_dep
from geotrust.core.security import create_access_token
from geotrust.services.history_store import RedisHistoryStore

router = APIRouter()


class SessionStartIn(BaseModel):
    player_id: str = Field(..., min_length=1, max_length=64)


class SessionToken(BaseModel):
    access_token: str
    session_id: str
    token_type: str = "bearer"


@router.post("/session", response_model=SessionToken)
async def start_session(
    payload: SessionStartIn,
    settings: Settings = Depends(get_settings_dep),
    store: RedisHistoryStore = Depends(get_history_store),
):
    session_id = uuid.uuid4().hex
    await store.clear(session_id)
    token = create_access_token(payload.player_id, session_id, settings)
    return SessionToken(access_token=token, session_id=session_id)


@router.post("/logout")
async def logout(
    claims=Depends(get_current_claims),
    redis=Depends(get_redis),
    store: RedisHistoryStore = Depends(get_history_store),
    settings: Settings = Depends(get_settings_dep),
):
    await store.clear(claims.session_id)
    await redis.set(revoked_session_key(claims.session_id), "1", ex=settings.jwt_expire_minutes * 60)
    return {"detail": "Logged out"}
