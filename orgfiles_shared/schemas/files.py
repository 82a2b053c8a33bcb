"""File-related Pydantic schemas shared between the services and their callers."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .common import FileType, Role


# ---------------------------------------------------------------------------
# Membership
# ---------------------------------------------------------------------------

class Membership(BaseModel):
    """One organization the actor belongs to, with their role in it."""
    org_id: uuid.UUID
    role: Role = Role.MEMBER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


# ---------------------------------------------------------------------------
# Upload registration
# ---------------------------------------------------------------------------

class UploadTarget(BaseModel):
    """Where a client sends bytes, and the ref to register afterwards."""
    storage_ref: str
    upload_url: str
    expires_at: datetime


# ---------------------------------------------------------------------------
# File CRUD
# ---------------------------------------------------------------------------

class FileCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    storage_ref: str = Field(..., min_length=1)
    type: FileType


class FileFilters(BaseModel):
    """Listing filters; all given filters must match."""
    query: Optional[str] = None
    favorites: bool = False
    deleted_only: bool = False
    type: Optional[FileType] = None


class FileRead(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    owner_id: uuid.UUID
    name: str
    storage_ref: str
    type: FileType
    should_delete: bool
    created_at: datetime
    updated_at: datetime


class FileWithUrl(FileRead):
    url: Optional[str] = None  # None when the gateway could not resolve it


# ---------------------------------------------------------------------------
# Favorites
# ---------------------------------------------------------------------------

class FavoriteRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    org_id: uuid.UUID
    file_id: uuid.UUID


# ---------------------------------------------------------------------------
# Purge sweep
# ---------------------------------------------------------------------------

class PurgeOutcome(BaseModel):
    file_id: uuid.UUID
    storage_ref: str
    blob_deleted: bool
    record_deleted: bool
    error: Optional[str] = None


class PurgeReport(BaseModel):
    outcomes: List[PurgeOutcome] = Field(default_factory=list)

    @property
    def purged(self) -> int:
        return sum(1 for o in self.outcomes if o.record_deleted)

    @property
    def failed(self) -> List[PurgeOutcome]:
        return [o for o in self.outcomes if o.error is not None]
