"""
Board Action Endpoint.

Single entry point for the board UI's ``{action, note_id, payload, nonce}``
requests. Each action name maps onto one BoardService operation; the
result is returned in the same envelope as the per-operation endpoints.

Actions:
    add, delete, save_title, save_color, save_visibility, save_checklist,
    toggle_minimize, save_order, move_task
"""

from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from fastapi import APIRouter, Header
from pydantic import BaseModel

from modules.backend.core.dependencies import CurrentActor, DbSession, RequestId, ensure_nonce
from modules.backend.core.exceptions import InvalidInputError
from modules.backend.core.logging import get_logger
from modules.backend.core.utils import coerce_bool
from modules.backend.schemas.actor import Actor
from modules.backend.schemas.base import ApiResponse, ResponseMetadata
from modules.backend.schemas.note import (
    ActionRequest,
    CollapsedResponse,
    DeletedResponse,
    NoteCard,
    NoteUpdatedResponse,
    OrderResponse,
    TaskItemSchema,
    TaskMoveResponse,
    render_note_card,
    render_note_result,
)
from modules.backend.services.board import BoardService

router = APIRouter()
logger = get_logger(__name__)

ActionHandler = Callable[[BoardService, Actor, ActionRequest], Awaitable[BaseModel]]


def _value(payload: Any, key: str) -> Any:
    """The payload itself, or payload[key] when the payload is an object."""
    if isinstance(payload, Mapping):
        return payload.get(key)
    return payload


def _require_note_id(request: ActionRequest) -> str:
    if not request.note_id:
        raise InvalidInputError("Missing note id", details={"note_id": "Required for this action"})
    return request.note_id


def _require_str(value: Any, field: str) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        raise InvalidInputError(f"Invalid {field}", details={field: "Expected a string"})
    return value


async def _card(service: BoardService, actor: Actor, record: Any) -> NoteCard | NoteUpdatedResponse:
    return render_note_result(record, await service.get_collapsed(actor))


async def _add(service: BoardService, actor: Actor, request: ActionRequest) -> BaseModel:
    return await _card(service, actor, await service.add_note(actor))


async def _delete(service: BoardService, actor: Actor, request: ActionRequest) -> BaseModel:
    return DeletedResponse(id=await service.delete_note(actor, _require_note_id(request)))


async def _save_title(service: BoardService, actor: Actor, request: ActionRequest) -> BaseModel:
    title = _value(request.payload, "title")
    title = "" if title is None else _require_str(title, "title")
    record = await service.rename_note(actor, _require_note_id(request), title)
    return await _card(service, actor, record)


async def _save_color(service: BoardService, actor: Actor, request: ActionRequest) -> BaseModel:
    color = _require_str(_value(request.payload, "color"), "color")
    record = await service.recolor_note(actor, _require_note_id(request), color)
    return await _card(service, actor, record)


async def _save_visibility(service: BoardService, actor: Actor, request: ActionRequest) -> BaseModel:
    visibility = _require_str(_value(request.payload, "visibility"), "visibility")
    record = await service.set_visibility(actor, _require_note_id(request), visibility)
    return await _card(service, actor, record)


async def _save_checklist(service: BoardService, actor: Actor, request: ActionRequest) -> BaseModel:
    record = await service.set_checklist(
        actor, _require_note_id(request), _value(request.payload, "checklist")
    )
    return await _card(service, actor, record)


async def _toggle_minimize(service: BoardService, actor: Actor, request: ActionRequest) -> BaseModel:
    note_id = _require_note_id(request)
    collapsed = await service.toggle_collapsed(
        actor, note_id, coerce_bool(_value(request.payload, "collapsed"))
    )
    return CollapsedResponse(
        note_id=note_id,
        collapsed=note_id in collapsed,
        collapsed_ids=sorted(collapsed),
    )


async def _save_order(service: BoardService, actor: Actor, request: ActionRequest) -> BaseModel:
    order = await service.reorder_board(actor, _value(request.payload, "order"))
    return OrderResponse(order=order)


async def _move_task(service: BoardService, actor: Actor, request: ActionRequest) -> BaseModel:
    payload = request.payload if isinstance(request.payload, Mapping) else {}
    target_id = payload.get("target_note_id")
    item_id = payload.get("item_id")
    if not target_id or not item_id:
        raise InvalidInputError(
            "Invalid move",
            details={"payload": "target_note_id and item_id are required"},
        )

    position = payload.get("position")
    if position is not None:
        try:
            position = int(position)
        except (TypeError, ValueError):
            raise InvalidInputError("Invalid move", details={"position": "Expected an integer"})

    moved = await service.move_task(
        actor, _require_note_id(request), str(target_id), str(item_id), position
    )
    collapsed = await service.get_collapsed(actor)
    return TaskMoveResponse(
        item=TaskItemSchema.model_validate(moved.item),
        source=render_note_card(moved.source, collapsed),
        target=render_note_card(moved.target, collapsed),
    )


ACTION_HANDLERS: dict[str, ActionHandler] = {
    "add": _add,
    "delete": _delete,
    "save_title": _save_title,
    "save_color": _save_color,
    "save_visibility": _save_visibility,
    "save_checklist": _save_checklist,
    "toggle_minimize": _toggle_minimize,
    "save_order": _save_order,
    "move_task": _move_task,
}


async def dispatch_action(service: BoardService, actor: Actor, request: ActionRequest) -> BaseModel:
    """
    Run one board action.

    Raises:
        InvalidInputError: If the action name is unknown
    """
    handler = ACTION_HANDLERS.get(request.action)
    if handler is None:
        raise InvalidInputError(
            "Unknown action",
            details={"action": f"Expected one of {', '.join(sorted(ACTION_HANDLERS))}"},
        )
    logger.debug("Dispatching board action", extra={"action": request.action, "note_id": request.note_id})
    return await handler(service, actor, request)


@router.post(
    "",
    response_model=ApiResponse[Any],
    summary="Run a board action",
    description="Dispatch a board UI action. The nonce may be sent in the body or the X-Board-Nonce header.",
)
async def run_action(
    data: ActionRequest,
    actor: CurrentActor,
    db: DbSession,
    request_id: RequestId,
    x_board_nonce: str | None = Header(None),
) -> ApiResponse[Any]:
    ensure_nonce(data.nonce or x_board_nonce, actor)
    result = await dispatch_action(BoardService(db), actor, data)
    return ApiResponse(data=result, metadata=ResponseMetadata(request_id=request_id))
