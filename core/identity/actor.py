"""
BOL Identity — Actor Context
==============================
Who is acting. The ledger stamps `created_by`, `closed_by` and audit
records with the current actor's display name.

Authentication is external. This module only carries the result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


SYSTEM_ACTOR_NAME = "System"


@dataclass(frozen=True)
class ActorContext:
    """Immutable identity of the current actor."""

    actor_id: str
    display_name: str

    def __post_init__(self):
        if not self.actor_id or not isinstance(self.actor_id, str):
            raise ValueError("actor_id must be a non-empty string.")
        if not isinstance(self.display_name, str):
            raise ValueError("display_name must be a string.")


class IdentityProvider(Protocol):
    """Injectable source of the current actor."""

    def current_actor(self) -> Optional[ActorContext]:
        ...  # pragma: no cover


class StaticIdentityProvider:
    """Fixed actor (or none). Used by tests, scripts and system jobs."""

    def __init__(self, actor: Optional[ActorContext] = None) -> None:
        self._actor = actor

    def current_actor(self) -> Optional[ActorContext]:
        return self._actor

    def switch(self, actor: Optional[ActorContext]) -> None:
        self._actor = actor


def resolve_display_name(
    provider: Optional[IdentityProvider],
    default: str = SYSTEM_ACTOR_NAME,
) -> str:
    """Display name of the current actor, or `default` when unknown."""
    actor = provider.current_actor() if provider is not None else None
    if actor is None or not actor.display_name:
        return default
    return actor.display_name


def resolve_actor_id(provider: Optional[IdentityProvider]) -> str:
    actor = provider.current_actor() if provider is not None else None
    return actor.actor_id if actor is not None else "system"
