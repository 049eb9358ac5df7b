"""
Board API Endpoints.

One endpoint per board operation. Reads need a bearer token; every
mutation additionally needs the X-Board-Nonce header issued by
``GET /board/nonce``.
"""

from fastapi import APIRouter

from modules.backend.core.config import get_app_config
from modules.backend.core.dependencies import (
    CurrentActor,
    DbSession,
    NonceCheckedActor,
    RequestId,
)
from modules.backend.core.security import create_nonce
from modules.backend.models.note import NoteReceipt, NoteRecord
from modules.backend.schemas.actor import Actor
from modules.backend.schemas.base import ApiResponse, ResponseMetadata
from modules.backend.schemas.note import (
    BoardResponse,
    ChecklistRequest,
    CollapsedResponse,
    CollapseRequest,
    DeletedResponse,
    MoveTaskRequest,
    NonceResponse,
    NoteCard,
    NoteUpdatedResponse,
    OrderResponse,
    RecolorRequest,
    RenameRequest,
    ReorderRequest,
    TaskItemSchema,
    TaskMoveResponse,
    VisibilityRequest,
    render_note_card,
    render_note_result,
)
from modules.backend.services.board import BoardService

router = APIRouter()

# Notes the caller edited but may not view come back as id only
NoteChangeData = NoteCard | NoteUpdatedResponse


def _meta(request_id: str) -> ResponseMetadata:
    return ResponseMetadata(request_id=request_id)


async def _card(service: BoardService, actor: Actor, record: NoteRecord) -> NoteCard:
    return render_note_card(record, await service.get_collapsed(actor))


async def _changed(
    service: BoardService,
    actor: Actor,
    result: NoteRecord | NoteReceipt,
) -> NoteChangeData:
    return render_note_result(result, await service.get_collapsed(actor))


@router.get(
    "",
    response_model=ApiResponse[BoardResponse],
    summary="Get the board",
    description="Notes visible to the caller, in board order, rendered as cards.",
)
async def get_board(
    actor: CurrentActor,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[BoardResponse]:
    """Get the caller's board."""
    board = await BoardService(db).get_board(actor)
    return ApiResponse(
        data=BoardResponse(
            notes=[render_note_card(record, board.collapsed) for record in board.notes],
            color_presets=board.color_presets,
            default_color=board.default_color,
        ),
        metadata=_meta(request_id),
    )


@router.get(
    "/nonce",
    response_model=ApiResponse[NonceResponse],
    summary="Issue an anti-forgery nonce",
)
async def get_nonce(
    actor: CurrentActor,
    request_id: RequestId,
) -> ApiResponse[NonceResponse]:
    """Issue a nonce for the caller's mutating requests."""
    nonce_config = get_app_config().security.nonce
    return ApiResponse(
        data=NonceResponse(
            nonce=create_nonce(actor.id),
            action=nonce_config.action,
            expires_in=nonce_config.lifetime_seconds,
        ),
        metadata=_meta(request_id),
    )


@router.get(
    "/notes/{note_id}",
    response_model=ApiResponse[NoteCard],
    summary="Get a note",
)
async def get_note(
    note_id: str,
    actor: CurrentActor,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[NoteCard]:
    service = BoardService(db)
    record = await service.get_note(actor, note_id)
    return ApiResponse(data=await _card(service, actor, record), metadata=_meta(request_id))


@router.post(
    "/notes",
    response_model=ApiResponse[NoteCard],
    status_code=201,
    summary="Add a note",
    description="Create a note with default title, colour and visibility at the end of the board.",
)
async def add_note(
    actor: NonceCheckedActor,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[NoteCard]:
    service = BoardService(db)
    record = await service.add_note(actor)
    return ApiResponse(data=await _card(service, actor, record), metadata=_meta(request_id))


@router.delete(
    "/notes/{note_id}",
    response_model=ApiResponse[DeletedResponse],
    summary="Delete a note",
)
async def delete_note(
    note_id: str,
    actor: NonceCheckedActor,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[DeletedResponse]:
    deleted_id = await BoardService(db).delete_note(actor, note_id)
    return ApiResponse(data=DeletedResponse(id=deleted_id), metadata=_meta(request_id))


@router.patch(
    "/notes/{note_id}/title",
    response_model=ApiResponse[NoteChangeData],
    summary="Rename a note",
)
async def rename_note(
    note_id: str,
    data: RenameRequest,
    actor: NonceCheckedActor,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[NoteChangeData]:
    service = BoardService(db)
    record = await service.rename_note(actor, note_id, data.title)
    return ApiResponse(data=await _changed(service, actor, record), metadata=_meta(request_id))


@router.patch(
    "/notes/{note_id}/color",
    response_model=ApiResponse[NoteChangeData],
    summary="Recolour a note",
)
async def recolor_note(
    note_id: str,
    data: RecolorRequest,
    actor: NonceCheckedActor,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[NoteChangeData]:
    service = BoardService(db)
    record = await service.recolor_note(actor, note_id, data.color)
    return ApiResponse(data=await _changed(service, actor, record), metadata=_meta(request_id))


@router.patch(
    "/notes/{note_id}/visibility",
    response_model=ApiResponse[NoteChangeData],
    summary="Change note visibility",
)
async def set_visibility(
    note_id: str,
    data: VisibilityRequest,
    actor: NonceCheckedActor,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[NoteChangeData]:
    service = BoardService(db)
    record = await service.set_visibility(actor, note_id, data.visibility)
    return ApiResponse(data=await _changed(service, actor, record), metadata=_meta(request_id))


@router.put(
    "/notes/{note_id}/checklist",
    response_model=ApiResponse[NoteChangeData],
    summary="Replace a note's checklist",
)
async def set_checklist(
    note_id: str,
    data: ChecklistRequest,
    actor: NonceCheckedActor,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[NoteChangeData]:
    service = BoardService(db)
    record = await service.set_checklist(actor, note_id, data.checklist)
    return ApiResponse(data=await _changed(service, actor, record), metadata=_meta(request_id))


@router.post(
    "/notes/{note_id}/checklist/move",
    response_model=ApiResponse[TaskMoveResponse],
    summary="Move a checklist item to another note",
)
async def move_task(
    note_id: str,
    data: MoveTaskRequest,
    actor: NonceCheckedActor,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[TaskMoveResponse]:
    service = BoardService(db)
    moved = await service.move_task(actor, note_id, data.target_note_id, data.item_id, data.position)
    collapsed = await service.get_collapsed(actor)
    return ApiResponse(
        data=TaskMoveResponse(
            item=TaskItemSchema.model_validate(moved.item),
            source=render_note_card(moved.source, collapsed),
            target=render_note_card(moved.target, collapsed),
        ),
        metadata=_meta(request_id),
    )


@router.put(
    "/notes/{note_id}/collapsed",
    response_model=ApiResponse[CollapsedResponse],
    summary="Collapse or expand a note for the caller",
)
async def toggle_collapsed(
    note_id: str,
    data: CollapseRequest,
    actor: NonceCheckedActor,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[CollapsedResponse]:
    collapsed = await BoardService(db).toggle_collapsed(actor, note_id, data.collapsed)
    return ApiResponse(
        data=CollapsedResponse(
            note_id=note_id,
            collapsed=note_id in collapsed,
            collapsed_ids=sorted(collapsed),
        ),
        metadata=_meta(request_id),
    )


@router.put(
    "/order",
    response_model=ApiResponse[OrderResponse],
    summary="Save the board order",
)
async def reorder_board(
    data: ReorderRequest,
    actor: NonceCheckedActor,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[OrderResponse]:
    order = await BoardService(db).reorder_board(actor, data.order)
    return ApiResponse(data=OrderResponse(order=order), metadata=_meta(request_id))
