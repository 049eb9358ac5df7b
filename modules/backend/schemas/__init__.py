# Pydantic schemas package
from modules.backend.schemas.actor import Actor
from modules.backend.schemas.base import (
    ApiResponse,
    ErrorDetail,
    ErrorResponse,
    ResponseMetadata,
)
from modules.backend.schemas.note import (
    ActionRequest,
    BoardResponse,
    NoteCard,
    NoteResponse,
    render_note_card,
)

__all__ = [
    "ActionRequest",
    "Actor",
    "ApiResponse",
    "BoardResponse",
    "ErrorDetail",
    "ErrorResponse",
    "NoteCard",
    "NoteResponse",
    "ResponseMetadata",
    "render_note_card",
]
