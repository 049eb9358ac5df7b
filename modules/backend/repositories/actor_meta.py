"""
Actor Meta Repository.

Key/value store scoped to an actor. Holds per-user board state such as the
set of collapsed notes.
"""

from sqlalchemy import delete, select

from modules.backend.models.note import ActorMeta
from modules.backend.repositories.base import BaseRepository


class ActorMetaRepository(BaseRepository[ActorMeta]):
    """Repository for ActorMeta rows."""

    model = ActorMeta

    async def get_value(self, actor_id: str, key: str) -> str | None:
        result = await self.session.execute(
            select(ActorMeta.meta_value).where(
                ActorMeta.actor_id == actor_id,
                ActorMeta.meta_key == key,
            )
        )
        return result.scalar_one_or_none()

    async def set_value(self, actor_id: str, key: str, value: str) -> None:
        """Write a complete replacement value for the actor's key."""
        result = await self.session.execute(
            select(ActorMeta).where(
                ActorMeta.actor_id == actor_id,
                ActorMeta.meta_key == key,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            self.session.add(ActorMeta(actor_id=actor_id, meta_key=key, meta_value=value))
        else:
            row.meta_value = value
        await self.session.flush()

    async def delete_key(self, key: str) -> int:
        """Remove a key for every actor. Returns the number of rows removed."""
        result = await self.session.execute(delete(ActorMeta).where(ActorMeta.meta_key == key))
        await self.session.flush()
        return result.rowcount or 0
