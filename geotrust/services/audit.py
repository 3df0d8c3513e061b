import logging

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from geotrust.models.audit import SpoofAudit
from geotrust.schemas.location import LocationFix, SpoofVerdict

logger = logging.getLogger(__name__)

MAX_AUDIT_ROWS = 200


async def record_spoof(
    session: AsyncSession,
    user_id: str,
    session_id: str,
    fix: LocationFix,
    verdict: SpoofVerdict,
) -> None:
    logger.info("Spoof detected for session %s: %s", session_id, verdict.rule)
    await session.execute(
        insert(SpoofAudit).values(
            user_id=user_id,
            session_id=session_id,
            rule=verdict.rule or "unknown",
            reason=(verdict.reason or "")[:255],
            latitude=fix.latitude,
            longitude=fix.longitude,
            speed_mps=verdict.speed_mps,
        )
    )
    await session.commit()


async def list_spoof_audits(session: AsyncSession, session_id: str) -> list[SpoofAudit]:
    stmt = (
        select(SpoofAudit)
        .where(SpoofAudit.session_id == session_id)
        .order_by(SpoofAudit.created_at.desc(), SpoofAudit.id.desc())
        .limit(MAX_AUDIT_ROWS)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
