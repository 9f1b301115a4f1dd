"""JWT access tokens identifying the acting user (``sub`` is the user id).

Uses taskflow.core.config for secret and algorithm.
"""

from datetime import timedelta
from typing import Any, cast

from jose import JWTError, jwt

from taskflow.core.config import get_settings
from taskflow.shared.utils import utc_now


def create_access_token(
    user_id: str,
    expires_delta: timedelta | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """Create a signed token for user_id.

    Args:
        user_id: Subject of the token.
        expires_delta: Optional TTL; else uses settings.access_token_expire_minutes.
        extra_claims: Additional claims to embed.

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    ttl = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims: dict[str, Any] = {**(extra_claims or {}), "sub": user_id, "exp": utc_now() + ttl}
    encoded = jwt.encode(
        claims,
        settings.secret_key.get_secret_value(),
        algorithm=settings.algorithm,
    )
    return cast(str, encoded)


def verify_token(token: str) -> dict[str, Any]:
    """Verify and decode a JWT; exp and sub are required.

    Raises:
        ValueError: If token is invalid, expired, or missing required claims.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key.get_secret_value(),
            algorithms=[settings.algorithm],
            options={"require_exp": True, "require_sub": True},
        )
    except JWTError as e:
        raise ValueError(f"Invalid token: {e!s}") from e
    if not payload.get("sub"):
        raise ValueError("Token missing required claim: sub")
    return payload
