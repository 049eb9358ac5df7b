"""
Board Service.

Business logic layer for the sticky-note board. Every operation takes the
acting user explicitly, checks board access, resolves the note, authorizes
through the AccessResolver and only then writes through the repositories.

Failures are raised as application exceptions (NotFoundError, ForbiddenError,
InvalidInputError); the API layer turns them into failure envelopes. A
rejected value never touches the stored one.

Edit rights do not imply view rights: when the actor may not see the note
they changed, a mutation returns a NoteReceipt carrying only the id.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from modules.backend.core import checklist as checklist_codec
from modules.backend.core.checklist import ChecklistFormatError, TaskItem
from modules.backend.core.colors import normalize_hex_color
from modules.backend.core.config_schema import BoardSchema
from modules.backend.core.exceptions import (
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from modules.backend.models.note import (
    ACTOR_META_COLLAPSED,
    DEFAULT_COLOR,
    META_CHECKLIST,
    META_COLOR,
    META_ORDER,
    META_VISIBILITY,
    NoteReceipt,
    NoteRecord,
    Visibility,
)
from modules.backend.repositories.actor_meta import ActorMetaRepository
from modules.backend.repositories.note import NoteRepository
from modules.backend.schemas.actor import Actor
from modules.backend.services.access import AccessResolver
from modules.backend.services.base import BaseService
from modules.backend.services.ordering import (
    OrderManager,
    PositionCache,
    get_position_cache,
)

TITLE_MAX_LENGTH = 255

NoteResult = NoteRecord | NoteReceipt


@dataclass
class BoardState:
    """What one actor sees on the board."""

    notes: list[NoteRecord]
    collapsed: set[str] = field(default_factory=set)
    color_presets: list[str] = field(default_factory=list)
    default_color: str = DEFAULT_COLOR


@dataclass
class TaskMove:
    """Result of moving a checklist item between notes."""

    item: TaskItem
    source: NoteRecord
    target: NoteRecord


def parse_order(raw: Any) -> list[str]:
    """
    Read a board order payload.

    Accepts a list of ids, a JSON array string or a comma-separated string.
    Blank entries are dropped.

    Raises:
        InvalidInputError: If the payload has an unsupported shape
    """
    if isinstance(raw, str):
        text = raw.strip()
        if text.startswith("["):
            try:
                raw = json.loads(text)
            except ValueError:
                raise InvalidInputError("Invalid order", details={"order": "Malformed JSON array"})
        else:
            raw = text.split(",")

    if not isinstance(raw, (list, tuple)):
        raise InvalidInputError("Invalid order", details={"order": "Expected a list of note ids"})

    return [str(item).strip() for item in raw if item is not None and str(item).strip()]


def parse_collapsed(raw: str | None) -> set[str]:
    """Read a stored collapsed-set; anything unreadable is an empty set."""
    if not raw:
        return set()
    try:
        value = json.loads(raw)
    except ValueError:
        return set()
    if not isinstance(value, list):
        return set()
    return {str(item) for item in value if isinstance(item, (str, int)) and str(item)}


class BoardService(BaseService):
    """
    Service for board business logic.

    Orchestrates the note and actor-meta repositories, the access resolver,
    the order manager and the checklist codec.
    """

    def __init__(
        self,
        session: AsyncSession,
        config: BoardSchema | None = None,
        position_cache: PositionCache | None = None,
    ) -> None:
        super().__init__(session)
        if config is None:
            from modules.backend.core.config import get_app_config

            config = get_app_config().board
        self.config = config
        self.notes = NoteRepository(session)
        self.actor_meta = ActorMetaRepository(session)
        self.access = AccessResolver(config.capabilities)
        self.ordering = OrderManager(self.notes, position_cache or get_position_cache())

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    def _require_board_access(self, actor: Actor) -> None:
        if not self.access.can_access_board(actor):
            raise ForbiddenError("You do not have access to the board")

    async def _authorized_record(
        self,
        actor: Actor,
        note_id: str,
        check: Callable[[Actor, NoteRecord], bool],
        message: str,
    ) -> NoteRecord:
        record = await self.notes.get_record(note_id)
        if not check(actor, record):
            raise ForbiddenError(message)
        return record

    async def _editable(self, actor: Actor, note_id: str) -> NoteRecord:
        return await self._authorized_record(
            actor, note_id, self.access.can_edit, "You cannot edit this note"
        )

    async def _movable(self, actor: Actor, note_id: str) -> NoteRecord:
        return await self._authorized_record(
            actor,
            note_id,
            lambda a, r: self.access.can_view(a, r) and self.access.can_edit(a, r),
            "You cannot move tasks on this note",
        )

    def _present(self, actor: Actor, record: NoteRecord) -> NoteResult:
        """The record itself, or only its id when the actor may not view it."""
        if self.access.can_view(actor, record):
            return record
        return NoteReceipt(id=record.id)

    async def _result(self, actor: Actor, note_id: str) -> NoteResult:
        return self._present(actor, await self.notes.get_record(note_id))

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def list_visible_notes(self, actor: Actor) -> list[NoteRecord]:
        """All notes the actor may view, ascending by board position."""
        self._require_board_access(actor)
        records = await self.notes.list_records()
        return [record for record in records if self.access.can_view(actor, record)]

    async def get_collapsed(self, actor: Actor) -> set[str]:
        """The actor's own collapsed-set."""
        return parse_collapsed(await self.actor_meta.get_value(actor.id, ACTOR_META_COLLAPSED))

    async def get_board(self, actor: Actor) -> BoardState:
        """Visible notes plus the actor's collapsed-set and colour presets."""
        notes = await self.list_visible_notes(actor)
        return BoardState(
            notes=notes,
            collapsed=await self.get_collapsed(actor),
            color_presets=list(self.config.color_presets),
            default_color=DEFAULT_COLOR,
        )

    async def get_note(self, actor: Actor, note_id: str) -> NoteRecord:
        """
        Get one note the actor may view.

        Raises:
            NotFoundError: If the note does not exist
            ForbiddenError: If the actor may not view it
        """
        self._require_board_access(actor)
        return await self._authorized_record(
            actor, note_id, self.access.can_view, "You cannot view this note"
        )

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def add_note(self, actor: Actor) -> NoteRecord:
        """Create a note with default fields at the end of the board."""
        self._require_board_access(actor)

        position = await self.ordering.next_position()
        self._log_operation("Adding note", actor_id=actor.id, position=position)

        note = await self._execute_db_operation(
            "add_note",
            self.notes.create_note(
                owner_id=actor.id,
                title=self.config.default_title,
                meta={
                    META_COLOR: DEFAULT_COLOR,
                    META_VISIBILITY: Visibility.ONLY_ME.value,
                    META_ORDER: str(position),
                    META_CHECKLIST: checklist_codec.encode([]),
                },
            ),
        )
        self.ordering.record_position(position)

        self._log_debug("Note created", note_id=note.id)
        return await self.notes.get_record(note.id)

    async def delete_note(self, actor: Actor, note_id: str) -> str:
        """
        Permanently delete a note and all of its metadata.

        Returns:
            The deleted note id
        """
        self._require_board_access(actor)
        record = await self._authorized_record(
            actor, note_id, self.access.can_delete, "You cannot delete this note"
        )

        self._log_operation("Deleting note", actor_id=actor.id, note_id=record.id)
        await self._execute_db_operation("delete_note", self.notes.delete_note(record.id))
        self.ordering.forget()
        return record.id

    async def rename_note(self, actor: Actor, note_id: str, title: str) -> NoteResult:
        """Change a note's title. An empty title is allowed."""
        self._require_board_access(actor)
        record = await self._editable(actor, note_id)

        title = (title or "").strip()
        self._validate_string_length(title, "title", TITLE_MAX_LENGTH)

        self._log_operation("Renaming note", actor_id=actor.id, note_id=record.id)
        await self._execute_db_operation("rename_note", self.notes.update(record.id, title=title))
        return await self._result(actor, record.id)

    async def recolor_note(self, actor: Actor, note_id: str, color: str) -> NoteResult:
        """
        Change a note's colour.

        Raises:
            InvalidInputError: If color is not a hex colour; the stored colour is kept
        """
        self._require_board_access(actor)
        record = await self._editable(actor, note_id)

        normalized = normalize_hex_color(color)
        if normalized is None:
            raise InvalidInputError(
                "Invalid color",
                details={"color": "Expected a hex colour like #RRGGBB"},
            )

        self._log_operation("Recolouring note", actor_id=actor.id, note_id=record.id, color=normalized)
        await self._execute_db_operation(
            "recolor_note",
            self.notes.set_meta(record.id, META_COLOR, normalized),
        )
        return await self._result(actor, record.id)

    async def set_visibility(self, actor: Actor, note_id: str, visibility: str) -> NoteResult:
        """
        Change who besides the owner may see a note.

        Raises:
            InvalidInputError: If visibility is not a known mode
        """
        self._require_board_access(actor)
        record = await self._editable(actor, note_id)

        parsed = Visibility.parse(visibility)
        if parsed is None:
            raise InvalidInputError(
                "Invalid visibility",
                details={"visibility": f"Expected one of {', '.join(v.value for v in Visibility)}"},
            )
        if parsed is record.visibility:
            return self._present(actor, record)

        self._log_operation(
            "Changing note visibility",
            actor_id=actor.id,
            note_id=record.id,
            visibility=parsed.value,
        )
        await self._execute_db_operation(
            "set_visibility",
            self.notes.set_meta(record.id, META_VISIBILITY, parsed.value),
        )
        return await self._result(actor, record.id)

    async def set_checklist(self, actor: Actor, note_id: str, raw_items: Any) -> NoteResult:
        """
        Replace a note's checklist.

        Raises:
            InvalidInputError: If the payload is not a list of items; the stored
                checklist is kept
        """
        self._require_board_access(actor)
        record = await self._editable(actor, note_id)

        try:
            items = checklist_codec.load(raw_items)
        except ChecklistFormatError as e:
            raise InvalidInputError("Invalid checklist", details={"checklist": str(e)})

        self._log_operation(
            "Saving checklist",
            actor_id=actor.id,
            note_id=record.id,
            items=len(items),
        )
        await self._execute_db_operation(
            "set_checklist",
            self.notes.set_meta(record.id, META_CHECKLIST, checklist_codec.encode(items)),
        )
        return await self._result(actor, record.id)

    async def move_task(
        self,
        actor: Actor,
        source_id: str,
        target_id: str,
        item_id: str,
        position: int | None = None,
    ) -> TaskMove:
        """
        Move a checklist item to another note (or within the same note).

        The item is inserted at position in the target list, or appended when
        position is omitted or out of range. If the target already holds an
        item with the same id, the moved item gets a fresh id.

        Raises:
            NotFoundError: If either note or the item does not exist
            ForbiddenError: If the actor cannot both view and edit either note
        """
        self._require_board_access(actor)
        source = await self._movable(actor, source_id)
        target = source if target_id == source.id else await self._movable(actor, target_id)

        remaining = [item for item in source.checklist if item.id != item_id]
        if len(remaining) == len(source.checklist):
            raise NotFoundError("Task not found")
        moved = next(item for item in source.checklist if item.id == item_id)

        destination = remaining if target is source else list(target.checklist)
        if any(item.id == moved.id for item in destination):
            moved = TaskItem(id=checklist_codec.new_item_id(), text=moved.text, completed=moved.completed)

        if position is None or not 0 <= position <= len(destination):
            destination.append(moved)
        else:
            destination.insert(position, moved)

        self._log_operation(
            "Moving task",
            actor_id=actor.id,
            source_id=source.id,
            target_id=target.id,
            item_id=moved.id,
        )

        if target is not source:
            await self._execute_db_operation(
                "move_task",
                self.notes.set_meta(source.id, META_CHECKLIST, checklist_codec.encode(remaining)),
            )
        await self._execute_db_operation(
            "move_task",
            self.notes.set_meta(target.id, META_CHECKLIST, checklist_codec.encode(destination)),
        )

        return TaskMove(
            item=moved,
            source=await self.notes.get_record(source.id),
            target=await self.notes.get_record(target.id),
        )

    async def toggle_collapsed(self, actor: Actor, note_id: str, collapsed: bool) -> set[str]:
        """
        Collapse or expand a note for this actor only.

        Returns:
            The actor's collapsed-set after the change
        """
        self._require_board_access(actor)
        record = await self._authorized_record(
            actor, note_id, self.access.can_view, "You cannot view this note"
        )

        current = await self.get_collapsed(actor)
        if collapsed:
            current.add(record.id)
        else:
            current.discard(record.id)
        current = await self.notes.existing_ids(current)

        self._log_operation(
            "Toggling collapsed",
            actor_id=actor.id,
            note_id=record.id,
            collapsed=collapsed,
        )
        await self._execute_db_operation(
            "toggle_collapsed",
            self.actor_meta.set_value(actor.id, ACTOR_META_COLLAPSED, json.dumps(sorted(current))),
        )
        return current

    async def reorder_board(self, actor: Actor, ordered_note_ids: Any) -> list[str]:
        """
        Persist a new board order.

        Returns:
            The ids that were positioned, in order

        Raises:
            InvalidInputError: If the order is empty or malformed
        """
        self._require_board_access(actor)

        ordered = parse_order(ordered_note_ids)
        if not ordered:
            raise InvalidInputError("Invalid order", details={"order": "Order is empty"})

        self._log_operation("Reordering board", actor_id=actor.id, count=len(ordered))
        return await self._execute_db_operation("reorder_board", self.ordering.reindex(ordered))

    async def purge_board(self) -> dict[str, int]:
        """
        Remove every note, all note metadata and every collapsed-set.

        Not reachable over HTTP; used by the command line.
        """
        self._log_operation("Purging board")
        notes = await self._execute_db_operation("purge_board", self.notes.purge())
        collapsed = await self._execute_db_operation(
            "purge_board",
            self.actor_meta.delete_key(ACTOR_META_COLLAPSED),
        )
        self.ordering.forget()
        return {"notes": notes, "collapsed_sets": collapsed}
