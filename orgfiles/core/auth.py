"""
Actor identity passed into every service call.

Resolving who the caller is (cookies, API keys, OIDC) belongs to the
transport layer; the services only need the resolved user id, or ``None``
for an anonymous caller.
"""

from __future__ import annotations

import uuid
from typing import Optional

from orgfiles.core.errors import UnauthenticatedError


class Actor:
    """An authenticated user on whose behalf an operation runs."""

    def __init__(self, user_id: uuid.UUID):
        self.user_id = user_id

    def __repr__(self) -> str:
        return f"Actor({self.user_id})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Actor) and other.user_id == self.user_id

    def __hash__(self) -> int:
        return hash(self.user_id)


def require_actor(actor: Optional[Actor]) -> Actor:
    """Return *actor* or raise ``UnauthenticatedError`` when there is none."""
    if actor is None:
        raise UnauthenticatedError()
    return actor
