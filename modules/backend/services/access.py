"""
Access Control Resolver.

Decides who may see, edit, and delete a note. The capability names come
from board.yaml so deployments can map them onto their own role system.

Visibility rules (first match wins, default deny):
    1. The owner always sees their note.
    2. only_me            - nobody else.
    3. all_admins         - actors holding the view_all_admins capability.
    4. editors_and_above  - actors holding the view_editors_and_above capability.
    5. anything else      - nobody else.

Edit and delete follow the generic resource rule: the owner needs the
"own" capability, everyone else needs the "others" capability.
"""

from typing import Any

from modules.backend.core.config_schema import CapabilitiesSchema
from modules.backend.models.note import Visibility
from modules.backend.schemas.actor import Actor


def _owner_of(note: Any) -> str | None:
    owner = getattr(note, "owner_id", None)
    return None if owner is None else str(owner)


class AccessResolver:
    """Pure authorization checks over an actor and a note."""

    def __init__(self, capabilities: CapabilitiesSchema) -> None:
        self.capabilities = capabilities

    def _is_owner(self, actor: Actor, note: Any) -> bool:
        owner = _owner_of(note)
        return owner is not None and str(actor.id) == owner

    def can_access_board(self, actor: Actor) -> bool:
        return actor.has_cap(self.capabilities.board_access)

    def can_view(self, actor: Actor, note: Any) -> bool:
        """Whether actor may see note. Never raises; unknown input denies."""
        if self._is_owner(actor, note):
            return True

        visibility = Visibility.parse(getattr(note, "visibility", None))
        if visibility is Visibility.ALL_ADMINS:
            return actor.has_cap(self.capabilities.view_all_admins)
        if visibility is Visibility.EDITORS_AND_ABOVE:
            return actor.has_cap(self.capabilities.view_editors_and_above)
        return False

    def can_edit(self, actor: Actor, note: Any) -> bool:
        if self._is_owner(actor, note):
            return actor.has_cap(self.capabilities.edit_own)
        return actor.has_cap(self.capabilities.edit_others)

    def can_delete(self, actor: Actor, note: Any) -> bool:
        if self._is_owner(actor, note):
            return actor.has_cap(self.capabilities.delete_own)
        return actor.has_cap(self.capabilities.delete_others)
