import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from geotrust.core.auth import get_current_claims, assert_session_access
from geotrust.core.config import Settings
from geotrust.core.deps import get_db_session, get_history_store, get_ip_lookup, get_redis, get_settings_dep
from geotrust.schemas.audit import SpoofAuditOut
from geotrust.schemas.location import (
    ConsistencyCheckIn,
    ConsistencyReport,
    HistoryOut,
    LocationFixIn,
    SpoofVerdict,
)
from geotrust.schemas.place import PlaceOut, PresenceResult
from geotrust.services.audit import list_spoof_audits, record_spoof
from geotrust.services.history_store import RedisHistoryStore
from geotrust.services.ip_lookup import HttpIpLookup
from geotrust.services.places import get_place
from geotrust.services.presence import verify_presence
from geotrust.services.trust import check_ip_consistency, check_timezone_consistency, evaluate_fix

logger = logging.getLogger(__name__)

router = APIRouter()


async def _enforce_fix_rate(redis, session_id: str, settings: Settings) -> None:
    rl_key = f"fixes:{session_id}"
    count = await redis.incr(rl_key)
    if count == 1:
        await redis.expire(rl_key, settings.fix_rate_limit_window)
    if count > settings.fix_rate_limit_max:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Too many location updates")


@router.post("/sessions/{session_id}/fixes", response_model=SpoofVerdict)
async def submit_fix(
    session_id: str,
    fix_in: LocationFixIn,
    commit: bool = True,
    store: RedisHistoryStore = Depends(get_history_store),
    session: AsyncSession = Depends(get_db_session),
    redis=Depends(get_redis),
    settings: Settings = Depends(get_settings_dep),
    claims=Depends(get_current_claims),
):
    assert_session_access(session_id, claims)
    await _enforce_fix_rate(redis, session_id, settings)

    fix = fix_in.to_fix()
    async with store.lock(session_id):
        history = await store.load(session_id)
        verdict = evaluate_fix(history, fix)
        if commit and not verdict.spoof_detected:
            await store.append(session_id, fix)

    if verdict.spoof_detected:
        await record_spoof(session, claims.sub, session_id, fix, verdict)
    return verdict


@router.get("/sessions/{session_id}/history", response_model=HistoryOut)
async def read_history(
    session_id: str,
    store: RedisHistoryStore = Depends(get_history_store),
    claims=Depends(get_current_claims),
):
    assert_session_access(session_id, claims)
    history = await store.load(session_id)
    return HistoryOut(session_id=session_id, fixes=history.snapshot())


@router.delete("/sessions/{session_id}/history", status_code=status.HTTP_204_NO_CONTENT)
async def reset_history(
    session_id: str,
    store: RedisHistoryStore = Depends(get_history_store),
    claims=Depends(get_current_claims),
):
    assert_session_access(session_id, claims)
    async with store.lock(session_id):
        await store.clear(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/sessions/{session_id}/consistency", response_model=ConsistencyReport)
async def network_consistency(
    session_id: str,
    payload: ConsistencyCheckIn,
    ip_lookup: HttpIpLookup = Depends(get_ip_lookup),
    settings: Settings = Depends(get_settings_dep),
    claims=Depends(get_current_claims),
):
    assert_session_access(session_id, claims)

    # One network call feeds both the distance and the timezone check.
    lookup_result = {}

    async def _lookup():
        lookup_result["location"] = await ip_lookup()
        return lookup_result["location"]

    ip_verdict = await check_ip_consistency(
        payload.latitude, payload.longitude, _lookup, timeout=settings.ip_lookup_timeout_seconds
    )
    ip_location = lookup_result.get("location")
    ip_timezone = ip_location.timezone if ip_location is not None else None
    tz_verdict = check_timezone_consistency(payload.browser_timezone, ip_timezone)
    if not ip_verdict.consistent or tz_verdict.detected:
        logger.info("Network mismatch for session %s", session_id)
    return ConsistencyReport(ip=ip_verdict, timezone=tz_verdict, ip_timezone=ip_timezone)


@router.post("/sessions/{session_id}/places/{place_id}/verify", response_model=PresenceResult)
async def verify_place(
    session_id: str,
    place_id: int,
    fix_in: LocationFixIn,
    store: RedisHistoryStore = Depends(get_history_store),
    session: AsyncSession = Depends(get_db_session),
    redis=Depends(get_redis),
    settings: Settings = Depends(get_settings_dep),
    claims=Depends(get_current_claims),
):
    assert_session_access(session_id, claims)
    await _enforce_fix_rate(redis, session_id, settings)
    place = PlaceOut.model_validate(await get_place(session, place_id))

    fix = fix_in.to_fix()
    async with store.lock(session_id):
        history = await store.load(session_id)
        verdict = evaluate_fix(history, fix)
        if not verdict.spoof_detected:
            await store.append(session_id, fix)

    if verdict.spoof_detected:
        await record_spoof(session, claims.sub, session_id, fix, verdict)
    return verify_presence(fix, place, verdict)


@router.get("/sessions/{session_id}/audit", response_model=list[SpoofAuditOut])
async def read_audit(
    session_id: str,
    session: AsyncSession = Depends(get_db_session),
    claims=Depends(get_current_claims),
):
    assert_session_access(session_id, claims)
    return await list_spoof_audits(session, session_id)
