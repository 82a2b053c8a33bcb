"""
File service layer: upload registration, listing, soft delete, and purge.

Handles:
- Upload registration and file record creation for org members
- Filtered listing with concurrently resolved download URLs
- Soft delete / restore gated on ownership or the admin role
- The system purge sweep that removes flagged files for good
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Optional, Sequence

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from orgfiles.core.auth import Actor, require_actor
from orgfiles.core.errors import BlobUnavailableError, ForbiddenError, NotFoundError
from orgfiles.models.favorite import Favorite
from orgfiles.models.file import File
from orgfiles.services.access import authorize_file, authorize_org, can_mutate_or_delete
from orgfiles.services.memberships import MembershipOracle, SqlMembershipOracle
from orgfiles.services.storage import BlobStorageGateway
from orgfiles_shared.schemas.common import FileStatus
from orgfiles_shared.schemas.files import (
    FileCreate,
    FileFilters,
    FileRead,
    FileWithUrl,
    PurgeOutcome,
    PurgeReport,
    UploadTarget,
)

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def get_file_or_404(session: AsyncSession, file_id: uuid.UUID) -> File:
    file = await session.get(File, file_id)
    if not file:
        raise NotFoundError("File not found")
    return file


def to_read(file: File) -> FileRead:
    return FileRead(
        id=file.id,
        org_id=file.org_id,
        owner_id=file.owner_id,
        name=file.name,
        storage_ref=file.storage_ref,
        type=file.type,
        should_delete=file.should_delete,
        created_at=file.created_at,
        updated_at=file.updated_at,
    )


async def _resolve_url(gateway: BlobStorageGateway, file: File) -> Optional[str]:
    try:
        return await gateway.resolve_url(file.storage_ref)
    except Exception as exc:
        log.warning(
            "files.url_unresolved",
            file_id=str(file.id),
            storage_ref=file.storage_ref,
            error=str(exc),
        )
        return None


async def _authorize_mutation(
    actor: Optional[Actor],
    file_id: uuid.UUID,
    session: AsyncSession,
    oracle: MembershipOracle,
) -> File:
    actor = require_actor(actor)
    file = await get_file_or_404(session, file_id)

    access = await authorize_file(actor, file, oracle)
    if access is None:
        raise ForbiddenError("No access to file")

    if not can_mutate_or_delete(actor, file, access.membership):
        raise ForbiddenError("You do not have access to delete this file")
    return file


def _set_status(file: File, target: FileStatus) -> bool:
    """Move *file* to *target*; returns False when it is already there."""
    if file.status == target.value:
        return False
    file.status = target.value
    return True


# ---------------------------------------------------------------------------
# Upload registration & creation
# ---------------------------------------------------------------------------


async def generate_upload_url(
    actor: Optional[Actor], gateway: BlobStorageGateway
) -> UploadTarget:
    """Hand an authenticated caller somewhere to upload bytes to."""
    actor = require_actor(actor)
    target = await gateway.register_upload()
    log.info("files.upload_registered", user_id=str(actor.user_id), storage_ref=target.storage_ref)
    return target


async def create_file(
    actor: Optional[Actor],
    org_id: uuid.UUID,
    req: FileCreate,
    session: AsyncSession,
    oracle: MembershipOracle | None = None,
) -> uuid.UUID:
    """Register an uploaded blob as a live file owned by *actor*.

    Names are not unique; two files in one org may share a name.
    """
    actor = require_actor(actor)
    oracle = oracle or SqlMembershipOracle(session)

    if await authorize_org(actor, org_id, oracle) is None:
        raise ForbiddenError("You do not have access to this organization")

    file = File(
        org_id=org_id,
        owner_id=actor.user_id,
        name=req.name,
        storage_ref=req.storage_ref,
        type=req.type.value,
        status=FileStatus.LIVE.value,
    )
    session.add(file)
    await session.flush()

    log.info(
        "files.created",
        file_id=str(file.id),
        org_id=str(org_id),
        owner_id=str(actor.user_id),
        type=file.type,
    )
    return file.id


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


async def list_files(
    actor: Optional[Actor],
    org_id: uuid.UUID,
    filters: FileFilters,
    session: AsyncSession,
    gateway: BlobStorageGateway,
    oracle: MembershipOracle | None = None,
) -> list[FileWithUrl]:
    """List an org's files matching every given filter.

    An actor without access sees nothing rather than an error.
    """
    oracle = oracle or SqlMembershipOracle(session)
    if await authorize_org(actor, org_id, oracle) is None:
        return []

    query = select(File).where(File.org_id == org_id)

    if filters.favorites:
        favorite_ids = select(Favorite.file_id).where(
            Favorite.user_id == actor.user_id,
            Favorite.org_id == org_id,
        )
        query = query.where(File.id.in_(favorite_ids))

    wanted = FileStatus.FLAGGED if filters.deleted_only else FileStatus.LIVE
    query = query.where(File.status == wanted.value)

    if filters.type is not None:
        query = query.where(File.type == filters.type.value)

    result = await session.execute(query.order_by(File.created_at, File.id))
    files: Sequence[File] = result.scalars().all()

    if filters.query:
        # SQL lower() is ASCII-only on SQLite; fold names here instead.
        needle = filters.query.casefold()
        files = [f for f in files if needle in f.name.casefold()]

    # gather keeps input order regardless of completion order
    urls = await asyncio.gather(*(_resolve_url(gateway, f) for f in files))

    return [
        FileWithUrl(**to_read(f).model_dump(), url=url)
        for f, url in zip(files, urls)
    ]


# ---------------------------------------------------------------------------
# Soft delete / restore
# ---------------------------------------------------------------------------


async def delete_file(
    actor: Optional[Actor],
    file_id: uuid.UUID,
    session: AsyncSession,
    oracle: MembershipOracle | None = None,
) -> File:
    """Flag a file for purge. Deleting a flagged file is a no-op."""
    oracle = oracle or SqlMembershipOracle(session)
    file = await _authorize_mutation(actor, file_id, session, oracle)

    if _set_status(file, FileStatus.FLAGGED):
        session.add(file)
        await session.flush()
        log.info("files.flagged", file_id=str(file.id), by=str(actor.user_id))
    return file


async def restore_file(
    actor: Optional[Actor],
    file_id: uuid.UUID,
    session: AsyncSession,
    oracle: MembershipOracle | None = None,
) -> File:
    """Clear the purge flag. Restoring a live file is a no-op."""
    oracle = oracle or SqlMembershipOracle(session)
    file = await _authorize_mutation(actor, file_id, session, oracle)

    if _set_status(file, FileStatus.LIVE):
        session.add(file)
        await session.flush()
        log.info("files.restored", file_id=str(file.id), by=str(actor.user_id))
    return file


# ---------------------------------------------------------------------------
# Purge sweep
# ---------------------------------------------------------------------------


async def _delete_blob(gateway: BlobStorageGateway, file: File) -> Optional[Exception]:
    try:
        await gateway.delete_blob(file.storage_ref)
    except Exception as exc:
        return exc
    return None


async def purge_deleted_files(
    session: AsyncSession, gateway: BlobStorageGateway
) -> PurgeReport:
    """Physically remove every flagged file: blob first, then the record.

    Runs with system privilege. Each file is attempted once; a missing blob
    still lets the record go, any other storage failure keeps the record so
    the next sweep can retry it. Favorites pointing at purged files are
    removed alongside them.
    """
    result = await session.execute(
        select(File).where(File.status == FileStatus.FLAGGED.value)
    )
    files = result.scalars().all()

    errors = await asyncio.gather(*(_delete_blob(gateway, f) for f in files))

    report = PurgeReport()
    purged_ids: list[uuid.UUID] = []

    for file, error in zip(files, errors):
        if error is None:
            purged_ids.append(file.id)
            report.outcomes.append(
                PurgeOutcome(
                    file_id=file.id,
                    storage_ref=file.storage_ref,
                    blob_deleted=True,
                    record_deleted=True,
                )
            )
            continue

        drop_record = isinstance(error, BlobUnavailableError)
        log.warning(
            "files.purge_blob_failed",
            file_id=str(file.id),
            storage_ref=file.storage_ref,
            error=str(error),
            record_deleted=drop_record,
        )
        if drop_record:
            purged_ids.append(file.id)
        report.outcomes.append(
            PurgeOutcome(
                file_id=file.id,
                storage_ref=file.storage_ref,
                blob_deleted=False,
                record_deleted=drop_record,
                error=str(error),
            )
        )

    if purged_ids:
        await session.execute(delete(Favorite).where(Favorite.file_id.in_(purged_ids)))
        await session.execute(delete(File).where(File.id.in_(purged_ids)))
        await session.flush()

    log.info(
        "files.purge_completed",
        candidates=len(files),
        purged=report.purged,
        failed=len(report.failed),
    )
    return report
