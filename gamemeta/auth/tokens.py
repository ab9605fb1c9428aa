"""Bearer tokens identifying a contributor.

The real login flow lives outside this service; all the sync pipeline needs
is to turn an opaque token into a stable steam id, or refuse it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import jwt as pyjwt

from gamemeta.config.settings import Settings, get_settings
from gamemeta.services.errors import Unauthorized

logger = logging.getLogger("gamemeta.auth")

_ALGORITHM = "HS256"


def issue_token(steam_id: str, settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": steam_id,
        "iat": now,
        "exp": now + timedelta(seconds=settings.token_ttl_seconds),
    }
    return pyjwt.encode(payload, settings.jwt_secret, algorithm=_ALGORITHM)


def decode_token(token: str | None, settings: Settings | None = None) -> str:
    """Return the steam id carried by ``token``.

    Raises:
        Unauthorized: token missing, tampered with or expired.
    """
    if not token:
        raise Unauthorized("Missing contributor token")

    settings = settings or get_settings()
    try:
        payload = pyjwt.decode(token, settings.jwt_secret, algorithms=[_ALGORITHM])
    except pyjwt.ExpiredSignatureError as exc:
        raise Unauthorized("Token expired") from exc
    except pyjwt.InvalidTokenError as exc:
        logger.warning("Rejected contributor token: %s", exc)
        raise Unauthorized("Invalid token") from exc

    steam_id = payload.get("sub")
    if not isinstance(steam_id, str) or not steam_id:
        raise Unauthorized("Token has no subject")
    return steam_id


def bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization.removeprefix("Bearer ").strip() or None
