"""
Checklist Codec.

Converts a note's checklist between its persisted form (a JSON array stored
in a single meta value) and a list of TaskItem values. Order is positional;
items carry no ordering field.

decode() never fails: malformed input yields an empty list. load() is the
strict variant used for inbound payloads, where a malformed payload must be
rejected rather than wipe the stored checklist.
"""

import json
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from typing import Any

from modules.backend.core.utils import coerce_bool


class ChecklistFormatError(ValueError):
    """Raised by load() when the payload is not a sequence of items."""


@dataclass(frozen=True)
class TaskItem:
    """One checklist entry."""

    id: str
    text: str
    completed: bool


def new_item_id() -> str:
    return uuid.uuid4().hex


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _parse(raw: Any) -> list[Any]:
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise ChecklistFormatError("checklist is not valid JSON") from e
    if isinstance(raw, (list, tuple)):
        return list(raw)
    raise ChecklistFormatError("checklist must be a list of items")


def normalize(elements: Iterable[Any]) -> list[TaskItem]:
    """
    Normalize raw elements into TaskItems.

    Non-mapping elements are dropped. Missing, empty, or repeated ids get a
    fresh id so ids stay unique within the list.
    """
    items: list[TaskItem] = []
    seen: set[str] = set()
    for element in elements:
        if isinstance(element, TaskItem):
            element = asdict(element)
        if not isinstance(element, Mapping):
            continue
        item_id = element.get("id")
        item_id = str(item_id) if item_id is not None else ""
        if not item_id.strip() or item_id in seen:
            item_id = new_item_id()
        seen.add(item_id)
        items.append(
            TaskItem(
                id=item_id,
                text=_coerce_text(element.get("text")),
                completed=coerce_bool(element.get("completed")),
            )
        )
    return items


def load(raw: Any) -> list[TaskItem]:
    """
    Strictly decode an inbound checklist payload.

    Raises:
        ChecklistFormatError: If the payload is not a list (or JSON list)
    """
    return normalize(_parse(raw))


def decode(raw: Any) -> list[TaskItem]:
    """Decode a persisted checklist; malformed input yields an empty list."""
    if raw is None:
        return []
    try:
        return load(raw)
    except ChecklistFormatError:
        return []


def encode(items: Iterable[TaskItem]) -> str:
    """Serialize items to the persisted JSON form, preserving order."""
    return json.dumps(
        [{"id": item.id, "text": item.text, "completed": bool(item.completed)} for item in items],
        ensure_ascii=False,
    )
