"""
Shared fixtures: in-memory SQLite database, org memberships, fake blob store.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import orgfiles.models  # noqa: F401
from orgfiles.core.auth import Actor
from orgfiles.core.errors import BlobUnavailableError
from orgfiles.models.user_org import UserOrg
from orgfiles.services.files import create_file
from orgfiles_shared.schemas.common import FileType
from orgfiles_shared.schemas.files import FileCreate, UploadTarget


class FakeBlobGateway:
    """In-memory stand-in for the MinIO gateway."""

    def __init__(self):
        self.blobs: set[str] = set()
        self.deleted: list[str] = []
        self.unresolvable: set[str] = set()
        self.broken: set[str] = set()  # delete raises a non-blob error
        self.resolve_delays: dict[str, float] = {}

    def put(self, storage_ref: str) -> str:
        self.blobs.add(storage_ref)
        return storage_ref

    async def register_upload(self) -> UploadTarget:
        ref = self.put(uuid.uuid4().hex)
        return UploadTarget(
            storage_ref=ref,
            upload_url=f"https://blobs.test/upload/{ref}",
            expires_at=datetime.now(timezone.utc) + timedelta(minutes=15),
        )

    async def resolve_url(self, storage_ref: str) -> Optional[str]:
        await asyncio.sleep(self.resolve_delays.get(storage_ref, 0))
        if storage_ref in self.unresolvable:
            raise RuntimeError("storage backend timed out")
        if storage_ref not in self.blobs:
            return None
        return f"https://blobs.test/{storage_ref}"

    async def delete_blob(self, storage_ref: str) -> None:
        if storage_ref in self.broken:
            raise ConnectionError("storage backend unreachable")
        if storage_ref not in self.blobs:
            raise BlobUnavailableError(storage_ref)
        self.blobs.discard(storage_ref)
        self.deleted.append(storage_ref)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
async def async_engine():
    """Async in-memory SQLite engine with all tables created."""
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(async_engine):
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


# ---------------------------------------------------------------------------
# Actors and memberships
# ---------------------------------------------------------------------------

@pytest.fixture
def org_id():
    return uuid.uuid4()


@pytest.fixture
def other_org_id():
    return uuid.uuid4()


async def _join(session: AsyncSession, org_id: uuid.UUID, role: str) -> Actor:
    actor = Actor(uuid.uuid4())
    session.add(UserOrg(user_id=actor.user_id, org_id=org_id, role=role))
    await session.flush()
    return actor


@pytest.fixture
async def member(session, org_id):
    return await _join(session, org_id, "member")


@pytest.fixture
async def other_member(session, org_id):
    return await _join(session, org_id, "member")


@pytest.fixture
async def admin(session, org_id):
    return await _join(session, org_id, "admin")


@pytest.fixture
async def outsider(session, other_org_id):
    """Belongs to a different organization only."""
    return await _join(session, other_org_id, "admin")


@pytest.fixture
def gateway():
    return FakeBlobGateway()


@pytest.fixture
def make_file(session, org_id, gateway):
    """Create a file as *actor* with a blob already in the fake store."""

    async def _make(
        actor: Actor,
        name: str = "report.pdf",
        type: FileType = FileType.PDF,
        org: uuid.UUID | None = None,
    ) -> uuid.UUID:
        ref = gateway.put(uuid.uuid4().hex)
        return await create_file(
            actor,
            org or org_id,
            FileCreate(name=name, storage_ref=ref, type=type),
            session,
        )

    return _make
