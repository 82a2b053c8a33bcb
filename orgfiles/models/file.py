"""File record model."""

import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from orgfiles_shared.schemas.common import FileStatus

from .base import TimestampMixin, UUIDMixin


class File(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "files"
    __table_args__ = (
        sa.Index("ix_files_org_id_status", "org_id", "status"),
    )

    org_id: uuid.UUID = Field(nullable=False, index=True)
    owner_id: uuid.UUID = Field(nullable=False)
    name: str = Field(nullable=False)
    storage_ref: str = Field(nullable=False)
    type: str = Field(nullable=False)  # image | csv | pdf
    status: str = Field(default=FileStatus.LIVE.value, nullable=False, index=True)

    @property
    def should_delete(self) -> bool:
        return self.status == FileStatus.FLAGGED.value
