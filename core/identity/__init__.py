"""
BOL Identity - Public API
=========================
Current-actor context used for authorship and audit stamping.
"""

from core.identity.actor import (
    SYSTEM_ACTOR_NAME,
    ActorContext,
    IdentityProvider,
    StaticIdentityProvider,
    resolve_actor_id,
    resolve_display_name,
)

__all__ = [
    "SYSTEM_ACTOR_NAME",
    "ActorContext",
    "IdentityProvider",
    "StaticIdentityProvider",
    "resolve_actor_id",
    "resolve_display_name",
]
