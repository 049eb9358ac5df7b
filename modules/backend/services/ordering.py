"""
Order Manager.

Keeps notes in a persisted board sequence. New notes go to the end
(current maximum + 1); a drag-and-drop reorder rewrites positions 1..n in
the order given.

The current maximum is cached for a short time so adding a note does not
scan every order value. Two actors adding notes at the same moment can
receive the same position; the board sort breaks such ties by creation time
and id, so the collision only affects display order.
"""

import time
from collections.abc import Callable, Iterable
from functools import lru_cache

from modules.backend.core.logging import get_logger
from modules.backend.models.note import META_ORDER
from modules.backend.repositories.note import NoteRepository

logger = get_logger(__name__)


class PositionCache:
    """Last-known maximum board position with a time-to-live."""

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._value: int | None = None
        self._stored_at = 0.0

    def get(self) -> int | None:
        if self._value is None:
            return None
        if self._clock() - self._stored_at > self.ttl_seconds:
            self._value = None
            return None
        return self._value

    def set(self, value: int) -> None:
        self._value = value
        self._stored_at = self._clock()

    def invalidate(self) -> None:
        self._value = None


@lru_cache
def get_position_cache() -> PositionCache:
    """Process-wide cache, TTL from board.yaml."""
    from modules.backend.core.config import get_app_config

    return PositionCache(get_app_config().board.max_position_cache_ttl_seconds)


class OrderManager:
    """Computes and persists note board positions."""

    def __init__(self, notes: NoteRepository, cache: PositionCache) -> None:
        self.notes = notes
        self.cache = cache

    async def current_max(self) -> int:
        """Largest stored position (0 when there are none), cached."""
        cached = self.cache.get()
        if cached is not None:
            return cached
        value = await self.notes.max_position()
        self.cache.set(value)
        return value

    async def next_position(self) -> int:
        """Position for a new note: one past the current maximum, 1 on an empty board."""
        return await self.current_max() + 1

    def record_position(self, position: int) -> None:
        """Refresh the cache after a note was stored at position."""
        cached = self.cache.get()
        if cached is None or position > cached:
            self.cache.set(position)

    def forget(self) -> None:
        """Drop the cached maximum (after deletes and reorders)."""
        self.cache.invalidate()

    async def reindex(self, ordered_ids: Iterable[str]) -> list[str]:
        """
        Assign positions 1, 2, 3, ... in list order.

        Ids that do not resolve to an existing note are skipped without
        consuming a position; repeated ids keep their first position. Notes
        missing from the list keep their current position.

        Returns:
            The note ids that were positioned, in order
        """
        wanted: list[str] = []
        for note_id in ordered_ids:
            note_id = str(note_id).strip()
            if note_id and note_id not in wanted:
                wanted.append(note_id)

        existing = await self.notes.existing_ids(wanted)
        positioned = [note_id for note_id in wanted if note_id in existing]

        for index, note_id in enumerate(positioned, start=1):
            await self.notes.set_meta(note_id, META_ORDER, str(index), touch=False)

        skipped = len(wanted) - len(positioned)
        if skipped:
            logger.debug("Reindex skipped unknown ids", extra={"skipped": skipped})

        self.forget()
        return positioned
