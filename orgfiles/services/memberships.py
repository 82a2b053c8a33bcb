"""
Membership lookups used for every authorization decision.

Memberships are owned by the user/organization service; this module only
reads them. Nothing here caches: each call reflects the current rows.
"""

from __future__ import annotations

import uuid
from typing import Protocol, Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from orgfiles.models.user_org import UserOrg
from orgfiles_shared.schemas.common import Role
from orgfiles_shared.schemas.files import Membership


class MembershipOracle(Protocol):
    async def get_memberships_for_actor(
        self, actor_id: uuid.UUID
    ) -> Sequence[Membership]: ...


class SqlMembershipOracle:
    """Reads memberships from the ``users_orgs`` table."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_memberships_for_actor(
        self, actor_id: uuid.UUID
    ) -> list[Membership]:
        result = await self._session.execute(
            select(UserOrg).where(UserOrg.user_id == actor_id)
        )
        return [
            Membership(org_id=row.org_id, role=_parse_role(row.role))
            for row in result.scalars().all()
        ]


def _parse_role(raw: str) -> Role:
    # Unknown roles from upstream grant plain membership, never admin.
    try:
        return Role(raw)
    except ValueError:
        return Role.MEMBER
