"""
Note Repository.

Data access layer for notes. Owns the canonical shape of a note record:
the ``notes`` row plus its ``note_meta`` values, resolved with defaults
(colour, visibility) and the checklist decoded.
"""

from collections.abc import Iterable

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from modules.backend.core import checklist as checklist_codec
from modules.backend.core.colors import normalize_hex_color
from modules.backend.core.exceptions import NotFoundError
from modules.backend.core.utils import utc_now
from modules.backend.models.note import (
    DEFAULT_COLOR,
    META_CHECKLIST,
    META_COLOR,
    META_ORDER,
    META_VISIBILITY,
    Note,
    NoteMeta,
    NoteRecord,
    Visibility,
)
from modules.backend.repositories.base import BaseRepository


def parse_position(raw: str | None) -> int | None:
    """Parse a stored order value; anything that is not an integer is None."""
    if raw is None:
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


class NoteRepository(BaseRepository[Note]):
    """
    Repository for notes and their metadata.

    Inherits standard CRUD operations from BaseRepository and adds the
    key/value meta store and record assembly.
    """

    model = Note

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    @staticmethod
    def to_record(note: Note, meta: dict[str, str]) -> NoteRecord:
        """
        Assemble a record from a note row and its meta values.

        Unknown or missing visibility reads as only_me; an unusable colour
        reads as the default colour.
        """
        return NoteRecord(
            id=note.id,
            owner_id=note.owner_id,
            title=note.title,
            color=normalize_hex_color(meta.get(META_COLOR)) or DEFAULT_COLOR,
            visibility=Visibility.parse(meta.get(META_VISIBILITY)) or Visibility.ONLY_ME,
            order_position=parse_position(meta.get(META_ORDER)),
            checklist=checklist_codec.decode(meta.get(META_CHECKLIST)),
            created_at=note.created_at,
            updated_at=note.updated_at,
        )

    async def get_record_or_none(self, note_id: str) -> NoteRecord | None:
        """Get the record for a note id, or None if it does not exist."""
        note = await self.get_by_id_or_none(note_id)
        if note is None:
            return None
        return self.to_record(note, await self.get_meta(note.id))

    async def get_record(self, note_id: str) -> NoteRecord:
        """
        Get the record for a note id.

        Raises:
            NotFoundError: If the note does not exist
        """
        record = await self.get_record_or_none(note_id)
        if record is None:
            raise NotFoundError("Note not found")
        return record

    async def list_records(self) -> list[NoteRecord]:
        """All notes, sorted ascending by board position."""
        notes = await self.get_all()
        meta = await self.get_meta_for(note.id for note in notes)
        records = [self.to_record(note, meta.get(note.id, {})) for note in notes]
        return sorted(records, key=NoteRecord.sort_key)

    async def create_note(self, owner_id: str, title: str, meta: dict[str, str]) -> Note:
        """Create a note row together with its initial meta values."""
        note = await self.create(owner_id=owner_id, title=title)
        for key, value in meta.items():
            self.session.add(NoteMeta(note_id=note.id, meta_key=key, meta_value=value))
        await self.session.flush()
        return note

    async def delete_note(self, note_id: str) -> None:
        """
        Delete a note and all of its meta in the current transaction.

        Raises:
            NotFoundError: If the note does not exist
        """
        note = await self.get_by_id(note_id)
        await self.session.execute(delete(NoteMeta).where(NoteMeta.note_id == note.id))
        await self.session.delete(note)
        await self.session.flush()

    async def touch(self, note_id: str) -> None:
        """Bump a note's updated_at."""
        await self.session.execute(
            update(Note).where(Note.id == note_id).values(updated_at=utc_now())
        )

    async def existing_ids(self, note_ids: Iterable[str]) -> set[str]:
        """The subset of note_ids that resolve to existing notes."""
        wanted = {str(note_id) for note_id in note_ids}
        if not wanted:
            return set()
        result = await self.session.execute(select(Note.id).where(Note.id.in_(sorted(wanted))))
        return set(result.scalars().all())

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Note))
        return result.scalar_one()

    async def purge(self) -> int:
        """Delete every note and all note meta. Returns the number of notes removed."""
        total = await self.count()
        await self.session.execute(delete(NoteMeta))
        await self.session.execute(delete(Note))
        await self.session.flush()
        return total

    # -------------------------------------------------------------------------
    # Meta store
    # -------------------------------------------------------------------------

    async def get_meta(self, note_id: str) -> dict[str, str]:
        """All meta values of one note."""
        return (await self.get_meta_for([note_id])).get(note_id, {})

    async def get_meta_for(self, note_ids: Iterable[str]) -> dict[str, dict[str, str]]:
        """Meta values for several notes, keyed by note id then meta key."""
        ids = list(note_ids)
        if not ids:
            return {}
        result = await self.session.execute(
            select(NoteMeta).where(NoteMeta.note_id.in_(ids))
        )
        meta: dict[str, dict[str, str]] = {}
        for row in result.scalars().all():
            meta.setdefault(row.note_id, {})[row.meta_key] = row.meta_value
        return meta

    async def set_meta(self, note_id: str, key: str, value: str, touch: bool = True) -> None:
        """Write one meta value, replacing any previous value."""
        result = await self.session.execute(
            select(NoteMeta).where(NoteMeta.note_id == note_id, NoteMeta.meta_key == key)
        )
        row = result.scalar_one_or_none()
        if row is None:
            self.session.add(NoteMeta(note_id=note_id, meta_key=key, meta_value=value))
        else:
            row.meta_value = value
        if touch:
            await self.touch(note_id)
        await self.session.flush()

    async def get_meta_values(self, key: str) -> list[str]:
        """Every stored value for a meta key, across all notes."""
        result = await self.session.execute(
            select(NoteMeta.meta_value).where(NoteMeta.meta_key == key)
        )
        return list(result.scalars().all())

    async def max_position(self) -> int:
        """Largest stored board position, or 0 when no note has one."""
        positions = [parse_position(value) for value in await self.get_meta_values(META_ORDER)]
        return max((p for p in positions if p is not None), default=0)
