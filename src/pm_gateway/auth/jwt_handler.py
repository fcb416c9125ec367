"""JWT access tokens.

Tokens are issued by the surrounding application (login lives there); this
service only needs to verify them. create_access_token exists for local
tooling and tests, signing with the same shared JWT_SECRET.

MVP NOTE: HS256 with one shared secret and no revocation list. Once issued,
a token is valid until expiry.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from config.settings import settings
from src.pm_common.errors import InvalidTokenError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"


def create_access_token(
    user_id: str,
    display_name: str | None = None,
    expires_in: timedelta | None = None,
) -> str:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": user_id,
        "type": "access",
        "iat": now,
        "exp": now + (expires_in or timedelta(minutes=settings.JWT_EXPIRE_MINUTES)),
    }
    if display_name:
        payload["name"] = display_name
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Raises:
        InvalidTokenError: bad signature, expired, wrong type, or no subject.
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidTokenError() from None

    if payload.get("type") != "access" or not payload.get("sub"):
        raise InvalidTokenError()
    return payload
