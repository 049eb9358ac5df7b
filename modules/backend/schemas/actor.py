"""
Actor Schema.

The identity an operation runs as: an id plus the roles and capabilities
supplied by the identity provider.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Actor(BaseModel):
    """Authenticated user acting on the board."""

    id: str = Field(min_length=1)
    roles: frozenset[str] = frozenset()
    capabilities: frozenset[str] = frozenset()

    model_config = ConfigDict(frozen=True)

    def has_cap(self, capability: str) -> bool:
        return capability in self.capabilities

    @classmethod
    def from_claims(
        cls,
        claims: Mapping[str, Any],
        role_capabilities: Mapping[str, Iterable[str]] | None = None,
    ) -> "Actor":
        """
        Build an actor from token claims.

        Capabilities are the explicit ``caps`` claim plus everything granted
        by each role in ``role_capabilities``. Unknown roles grant nothing.
        """
        roles = frozenset(str(r) for r in claims.get("roles") or ())
        caps = set(str(c) for c in claims.get("caps") or ())
        for role in roles:
            caps.update((role_capabilities or {}).get(role, ()))
        return cls(id=str(claims.get("sub") or ""), roles=roles, capabilities=frozenset(caps))
