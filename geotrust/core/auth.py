from fastapi import Header, HTTPException, status, Depends
from geotrust.core.config import Settings
from geotrust.core.security import verify_token, TokenClaims
from geotrust.core.deps import get_redis, get_settings_dep


def revoked_session_key(session_id: str) -> str:
    return f"revoked:session:{session_id}"


async def get_current_claims(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_settings_dep),
    redis=Depends(get_redis),
) -> TokenClaims:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    token = authorization.split(" ", 1)[1]
    claims = verify_token(token, settings)
    if await redis.get(revoked_session_key(claims.session_id)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Session revoked")
    return claims


def assert_session_access(target_session_id: str, claims: TokenClaims) -> None:
    if claims.session_id != target_session_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Token not authorized for this session")
