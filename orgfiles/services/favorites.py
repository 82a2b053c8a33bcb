"""
Favorites: a per-user bookmark on a file, independent of its delete state.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from orgfiles.core.auth import Actor, require_actor
from orgfiles.core.errors import ForbiddenError
from orgfiles.models.favorite import Favorite
from orgfiles.services.access import authorize_file, authorize_org
from orgfiles.services.files import get_file_or_404
from orgfiles.services.memberships import MembershipOracle, SqlMembershipOracle
from orgfiles_shared.schemas.files import FavoriteRead

log = structlog.get_logger()


async def toggle_favorite(
    actor: Optional[Actor],
    file_id: uuid.UUID,
    session: AsyncSession,
    oracle: MembershipOracle | None = None,
) -> bool:
    """Favorite the file if it is not yet, otherwise unfavorite it.

    Any member who can see the file may toggle; ownership is not required.
    Returns whether the file is a favorite afterwards.
    """
    actor = require_actor(actor)
    oracle = oracle or SqlMembershipOracle(session)

    file = await get_file_or_404(session, file_id)
    if await authorize_file(actor, file, oracle) is None:
        raise ForbiddenError("No access to file")

    result = await session.execute(
        select(Favorite).where(
            Favorite.user_id == actor.user_id,
            Favorite.org_id == file.org_id,
            Favorite.file_id == file.id,
        )
    )
    favorite = result.scalars().first()

    if favorite is None:
        session.add(Favorite(user_id=actor.user_id, org_id=file.org_id, file_id=file.id))
        await session.flush()
        log.info("favorites.added", user_id=str(actor.user_id), file_id=str(file.id))
        return True

    await session.delete(favorite)
    await session.flush()
    log.info("favorites.removed", user_id=str(actor.user_id), file_id=str(file.id))
    return False


async def list_favorites(
    actor: Optional[Actor],
    org_id: uuid.UUID,
    session: AsyncSession,
    oracle: MembershipOracle | None = None,
) -> list[FavoriteRead]:
    """All of the actor's favorites in *org_id*, flagged files included."""
    oracle = oracle or SqlMembershipOracle(session)
    if await authorize_org(actor, org_id, oracle) is None:
        return []

    result = await session.execute(
        select(Favorite).where(
            Favorite.user_id == actor.user_id,
            Favorite.org_id == org_id,
        )
    )
    return [to_read(f) for f in result.scalars().all()]


def to_read(favorite: Favorite) -> FavoriteRead:
    return FavoriteRead(
        id=favorite.id,
        user_id=favorite.user_id,
        org_id=favorite.org_id,
        file_id=favorite.file_id,
    )
