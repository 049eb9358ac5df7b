"""
Note Schemas.

Pydantic schemas for board API request/response validation, and the
rendering of a NoteRecord into the card the board UI draws.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from modules.backend.models.note import NoteReceipt, NoteRecord, Visibility


# =============================================================================
# Responses
# =============================================================================


class TaskItemSchema(BaseModel):
    """One checklist entry."""

    id: str
    text: str
    completed: bool

    model_config = ConfigDict(from_attributes=True)


class NoteResponse(BaseModel):
    """Schema for a note in API responses."""

    id: str = Field(description="Note unique identifier")
    owner_id: str = Field(description="Actor who created the note")
    title: str = Field(description="Note title")
    color: str = Field(description="Background colour, #rrggbb")
    visibility: Visibility = Field(description="Who besides the owner may see the note")
    order_position: int | None = Field(description="Board position, ascending")
    checklist: list[TaskItemSchema] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class NoteCard(NoteResponse):
    """A note as drawn on one actor's board."""

    collapsed: bool = Field(default=False, description="Collapsed for the requesting actor")
    task_count: int = 0
    completed_count: int = 0


def render_note_card(record: NoteRecord, collapsed_ids: Iterable[str] = ()) -> NoteCard:
    """Render a note record as a card for the actor whose collapsed-set is given."""
    checklist = record.checklist
    return NoteCard(
        id=record.id,
        owner_id=record.owner_id,
        title=record.title,
        color=record.color,
        visibility=record.visibility,
        order_position=record.order_position,
        checklist=[TaskItemSchema.model_validate(item) for item in checklist],
        created_at=record.created_at,
        updated_at=record.updated_at,
        collapsed=record.id in set(collapsed_ids),
        task_count=len(checklist),
        completed_count=sum(1 for item in checklist if item.completed),
    )


class NoteUpdatedResponse(BaseModel):
    """A change to a note the caller may not view: only the id is returned."""

    id: str
    updated: bool = True

    model_config = ConfigDict(extra="forbid")


def render_note_result(
    result: NoteRecord | NoteReceipt,
    collapsed_ids: Iterable[str] = (),
) -> NoteCard | NoteUpdatedResponse:
    if isinstance(result, NoteReceipt):
        return NoteUpdatedResponse(id=result.id)
    return render_note_card(result, collapsed_ids)


class BoardResponse(BaseModel):
    """Everything needed to draw the board."""

    notes: list[NoteCard]
    color_presets: list[str]
    default_color: str


class DeletedResponse(BaseModel):
    id: str
    deleted: bool = True


class CollapsedResponse(BaseModel):
    note_id: str
    collapsed: bool
    collapsed_ids: list[str]


class OrderResponse(BaseModel):
    order: list[str] = Field(description="Note ids that received a position, in order")


class TaskMoveResponse(BaseModel):
    item: TaskItemSchema
    source: NoteCard
    target: NoteCard


class NonceResponse(BaseModel):
    nonce: str
    action: str
    expires_in: int = Field(description="Seconds the nonce stays valid at most")


# =============================================================================
# Requests
# =============================================================================


class RenameRequest(BaseModel):
    """Schema for renaming a note. Empty titles are allowed."""

    title: str = Field(default="", examples=["Release checklist"])


class RecolorRequest(BaseModel):
    color: str = Field(..., examples=["#bae6fd"])


class VisibilityRequest(BaseModel):
    visibility: str = Field(..., examples=["all_admins"])


class ChecklistRequest(BaseModel):
    """Checklist replacement. Items are normalized server side."""

    checklist: Any = Field(
        ...,
        description="List of {id, text, completed} items, or the same as a JSON string",
        examples=[[{"id": "a1", "text": "Ship it", "completed": False}]],
    )


class CollapseRequest(BaseModel):
    collapsed: bool


class ReorderRequest(BaseModel):
    order: Any = Field(
        ...,
        description="Note ids in board order: a list, a JSON array string or a comma-separated string",
        examples=[["note-a", "note-b"]],
    )


class MoveTaskRequest(BaseModel):
    target_note_id: str = Field(..., min_length=1)
    item_id: str = Field(..., min_length=1)
    position: int | None = Field(default=None, description="Index in the target list; append when omitted")


class ActionRequest(BaseModel):
    """
    A single board action, as posted by the board UI.

    ``payload`` carries the action's value: a title, colour, visibility,
    checklist, collapsed flag, order or move description.
    """

    action: str = Field(..., min_length=1, examples=["save_title"])
    note_id: str | None = None
    payload: Any = None
    nonce: str | None = None
