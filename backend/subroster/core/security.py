from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt

from subroster.core.config import get_settings


def create_access_token(subject: str, *, expires_delta: timedelta | None = None, extra: dict[str, Any] | None = None) -> str:
    """Mint a bearer token; production tokens come from the identity provider."""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims: dict[str, Any] = {"sub": str(subject), "exp": expire}
    if extra:
        claims.update(extra)
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any]:
    settings = get_settings()
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
