import datetime as dt
import uuid
from typing import Any, Optional

from fastapi import HTTPException, status
from jose import jwt, JWTError
from pydantic import BaseModel, ValidationError

from geotrust.core.config import Settings


class TokenClaims(BaseModel):
    sub: str
    session_id: str
    exp: int
    typ: str
    jti: str | None = None
    aud: str | list[str] | None = None
    iss: str | None = None
    nbf: int | None = None
    iat: int | None = None


def _verification_key(settings: Settings) -> str:
    if settings.jwt_algorithm.startswith("HS"):
        if settings.jwt_secret_key:
            return settings.jwt_secret_key
    elif settings.jwt_public_key:
        return settings.jwt_public_key
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="No verification key available")


def _signing_key(settings: Settings) -> str:
    if settings.jwt_algorithm.startswith("HS"):
        if settings.jwt_secret_key:
            return settings.jwt_secret_key
    elif settings.jwt_private_key:
        return settings.jwt_private_key
    raise RuntimeError("No signing key configured; set JWT_SECRET_KEY or JWT_PRIVATE_KEY_PEM")


def _get_leeway(settings: Settings) -> int:
    return max(0, settings.jwt_clock_skew_seconds)


def verify_token(token: str, settings: Settings, expected_typ: str = "access") -> TokenClaims:
    """
    Verify a player JWT; enforce aud/iss when configured and the token type.
    """
    key = _verification_key(settings)
    options = {
        "verify_aud": settings.jwt_audience is not None,
        "verify_iss": settings.jwt_issuer is not None,
        "leeway": _get_leeway(settings),
    }
    try:
        payload = jwt.decode(
            token,
            key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options=options,
        )
        claims = TokenClaims(**payload)
    except (JWTError, ValidationError) as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token verification failed") from exc

    if claims.typ != expected_typ:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unexpected token type")
    return claims


def create_access_token(
    subject: str,
    session_id: str,
    settings: Settings,
    extra_headers: Optional[dict[str, Any]] = None,
) -> str:
    now = dt.datetime.now(dt.timezone.utc)
    expire = now + dt.timedelta(minutes=settings.jwt_expire_minutes)
    payload = {
        "sub": subject,
        "session_id": session_id,
        "exp": int(expire.timestamp()),
        "nbf": int(now.timestamp()),
        "iat": int(now.timestamp()),
        "typ": "access",
        "jti": str(uuid.uuid4()),
    }
    if settings.jwt_audience:
        payload["aud"] = settings.jwt_audience
    if settings.jwt_issuer:
        payload["iss"] = settings.jwt_issuer
    return jwt.encode(payload, _signing_key(settings), algorithm=settings.jwt_algorithm, headers=extra_headers)
