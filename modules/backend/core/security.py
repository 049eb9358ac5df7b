"""
Security Utilities.

Actor identity tokens (JWT) and the anti-forgery nonce carried by every
mutating board request.

Nonces follow the WordPress scheme: an HMAC over the actor id, the action
name and a time tick. A tick lasts half the configured lifetime and a nonce
is accepted for the current and the previous tick.
"""

import hashlib
import hmac
import time
from datetime import timedelta
from typing import Any

from jose import JWTError, jwt

from modules.backend.core.config import get_app_config, get_settings
from modules.backend.core.exceptions import AuthenticationError
from modules.backend.core.logging import get_logger
from modules.backend.core.utils import utc_now
from modules.backend.schemas.actor import Actor

logger = get_logger(__name__)


def create_access_token(
    actor_id: str,
    roles: list[str] | None = None,
    capabilities: list[str] | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT identifying an actor.

    Args:
        actor_id: Actor identifier, stored as ``sub``
        roles: Role names, expanded to capabilities on decode
        capabilities: Extra capabilities granted directly
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token
    """
    settings = get_settings()
    jwt_config = get_app_config().security.jwt

    if expires_delta is None:
        expires_delta = timedelta(minutes=jwt_config.access_token_expire_minutes)

    to_encode: dict[str, Any] = {
        "sub": actor_id,
        "roles": list(roles or []),
        "caps": list(capabilities or []),
        "exp": utc_now() + expires_delta,
        "type": "access",
        "aud": jwt_config.audience,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=jwt_config.algorithm)


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a JWT token.

    Raises:
        AuthenticationError: If token is invalid or expired
    """
    settings = get_settings()
    jwt_config = get_app_config().security.jwt
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[jwt_config.algorithm],
            audience=jwt_config.audience,
        )
    except JWTError as e:
        logger.warning("Token decode failed", extra={"error": str(e)})
        raise AuthenticationError("Invalid or expired token")


def actor_from_token(token: str) -> Actor:
    """
    Resolve the actor a bearer token stands for.

    Raises:
        AuthenticationError: If the token is invalid or has no subject
    """
    claims = decode_token(token)
    if claims.get("type") != "access" or not claims.get("sub"):
        raise AuthenticationError("Invalid or expired token")
    return Actor.from_claims(claims, get_app_config().board.roles)


def _nonce_tick(now: float | None = None) -> int:
    lifetime = get_app_config().security.nonce.lifetime_seconds
    now = time.time() if now is None else now
    return int(now // (lifetime / 2))


def _nonce_digest(actor_id: str, action: str, tick: int) -> str:
    secret = get_settings().nonce_secret.encode("utf-8")
    message = f"{tick}|{action}|{actor_id}".encode("utf-8")
    return hmac.new(secret, message, hashlib.sha256).hexdigest()[:32]


def create_nonce(actor_id: str, action: str | None = None, now: float | None = None) -> str:
    """Create an anti-forgery nonce for the actor."""
    action = action or get_app_config().security.nonce.action
    return _nonce_digest(actor_id, action, _nonce_tick(now))


def verify_nonce(
    nonce: str | None,
    actor_id: str,
    action: str | None = None,
    now: float | None = None,
) -> bool:
    """Return True if the nonce was issued to this actor in the current or previous tick."""
    if not nonce:
        return False
    action = action or get_app_config().security.nonce.action
    tick = _nonce_tick(now)
    given = nonce.encode("utf-8")
    for candidate in (tick, tick - 1):
        if hmac.compare_digest(given, _nonce_digest(actor_id, action, candidate).encode("utf-8")):
            return True
    return False
