"""
Note Models.

A note is a row in ``notes`` (identity, owner, title) plus key/value rows in
``note_meta`` for its colour, visibility, board position and checklist.
Actor-scoped state (the collapsed-set) lives in ``actor_meta``.

NoteRecord is the assembled, read-side shape of a note that services and
schemas work with.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from modules.backend.core.checklist import TaskItem
from modules.backend.models.base import Base, TimestampMixin, UUIDMixin

DEFAULT_COLOR = "#fff9c4"

META_COLOR = "_board_note_color"
META_VISIBILITY = "_board_note_visibility"
META_ORDER = "_board_note_order"
META_CHECKLIST = "_board_note_checklist"

ACTOR_META_COLLAPSED = "board_notes_collapsed"


class Visibility(str, Enum):
    """Who besides the owner may see a note."""

    ONLY_ME = "only_me"
    ALL_ADMINS = "all_admins"
    EDITORS_AND_ABOVE = "editors_and_above"

    @classmethod
    def parse(cls, value: object) -> "Visibility | None":
        """Return the member for value, or None if it is not one."""
        try:
            return cls(value)
        except (ValueError, TypeError):
            return None


class Note(UUIDMixin, TimestampMixin, Base):
    """Note row. Owner is set at creation and never changes."""

    __tablename__ = "notes"

    owner_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, owner_id={self.owner_id!r}, title={self.title!r})>"


class NoteMeta(Base):
    """Per-note metadata value."""

    __tablename__ = "note_meta"
    __table_args__ = (UniqueConstraint("note_id", "meta_key", name="uq_note_meta_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    note_id: Mapped[str] = mapped_column(
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    meta_key: Mapped[str] = mapped_column(String(64), nullable=False)
    meta_value: Mapped[str] = mapped_column(Text, nullable=False, default="")


class ActorMeta(Base):
    """Per-actor metadata value."""

    __tablename__ = "actor_meta"
    __table_args__ = (UniqueConstraint("actor_id", "meta_key", name="uq_actor_meta_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    meta_key: Mapped[str] = mapped_column(String(64), nullable=False)
    meta_value: Mapped[str] = mapped_column(Text, nullable=False, default="")


@dataclass
class NoteRecord:
    """A note with its metadata resolved."""

    id: str
    owner_id: str
    title: str
    color: str
    visibility: Visibility
    order_position: int | None
    checklist: list[TaskItem] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def sort_key(self) -> tuple:
        """Ascending board order; unpositioned notes last, ties by creation then id."""
        return (
            self.order_position is None,
            self.order_position or 0,
            self.created_at or datetime.min,
            self.id,
        )


@dataclass(frozen=True)
class NoteReceipt:
    """Outcome of a change to a note the acting user may not see."""

    id: str
