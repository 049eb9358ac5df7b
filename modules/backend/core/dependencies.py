"""
FastAPI Dependencies.

Shared dependencies for request handling: the database session, the
request id, the acting user and the anti-forgery nonce check.
"""

import uuid
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from modules.backend.core.database import get_db_session
from modules.backend.core.exceptions import AuthenticationError, ForbiddenError
from modules.backend.core.logging import get_logger
from modules.backend.core.security import actor_from_token, verify_nonce
from modules.backend.schemas.actor import Actor

logger = get_logger(__name__)

# Type alias for database session dependency
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def get_request_id(x_request_id: str | None = Header(None)) -> str:
    """Extract or generate request ID from headers."""
    return x_request_id or str(uuid.uuid4())


RequestId = Annotated[str, Depends(get_request_id)]


async def get_current_actor(authorization: str | None = Header(None)) -> Actor:
    """
    Resolve the acting user from the ``Authorization: Bearer`` header.

    Raises:
        AuthenticationError: If the header is missing or the token is invalid
    """
    if not authorization:
        raise AuthenticationError("Authentication required")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Authentication required")
    return actor_from_token(token.strip())


CurrentActor = Annotated[Actor, Depends(get_current_actor)]


def ensure_nonce(nonce: str | None, actor: Actor) -> None:
    """
    Reject a request whose nonce was not issued to this actor.

    Raises:
        ForbiddenError: With code AUTHZ_INVALID_NONCE
    """
    if not verify_nonce(nonce, actor.id):
        logger.warning("Nonce rejected", extra={"actor_id": actor.id})
        raise ForbiddenError("Invalid nonce", code="AUTHZ_INVALID_NONCE")


async def verify_board_nonce(
    actor: CurrentActor,
    x_board_nonce: str | None = Header(None),
) -> Actor:
    """Actor of a mutating request, after checking the X-Board-Nonce header."""
    ensure_nonce(x_board_nonce, actor)
    return actor


NonceCheckedActor = Annotated[Actor, Depends(verify_board_nonce)]
