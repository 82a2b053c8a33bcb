"""
Access evaluation: who may see, change, or delete which file.

Denials on this layer are return values (``None`` / ``False``), never
exceptions. Callers decide whether a denial becomes an empty result or a
``ForbiddenError``.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog

from orgfiles.core.auth import Actor
from orgfiles.models.file import File
from orgfiles.services.memberships import MembershipOracle
from orgfiles_shared.schemas.files import Membership

log = structlog.get_logger()


class FileAccess:
    """A granted file access: the file plus the membership that allowed it."""

    def __init__(self, file: File, membership: Membership):
        self.file = file
        self.membership = membership


async def authorize_org(
    actor: Optional[Actor],
    org_id: uuid.UUID,
    oracle: MembershipOracle,
) -> Optional[Membership]:
    """Return the actor's membership in *org_id*, or ``None`` if denied."""
    if actor is None:
        log.warning("access.denied", org_id=str(org_id), reason="unauthenticated")
        return None

    memberships = await oracle.get_memberships_for_actor(actor.user_id)
    membership = next((m for m in memberships if m.org_id == org_id), None)

    if membership is None:
        log.warning(
            "access.denied",
            user_id=str(actor.user_id),
            org_id=str(org_id),
            reason="not_a_member",
        )
        return None

    log.info(
        "access.granted",
        user_id=str(actor.user_id),
        org_id=str(org_id),
        role=membership.role.value,
    )
    return membership


async def authorize_file(
    actor: Optional[Actor],
    file: File,
    oracle: MembershipOracle,
) -> Optional[FileAccess]:
    """Files are visible to every member of their organization, creator or not."""
    membership = await authorize_org(actor, file.org_id, oracle)
    if membership is None:
        return None
    return FileAccess(file=file, membership=membership)


def can_mutate_or_delete(actor: Actor, file: File, membership: Membership) -> bool:
    """Owners and organization admins may delete or restore a file."""
    return file.owner_id == actor.user_id or membership.is_admin
