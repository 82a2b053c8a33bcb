"""Favorite relation: presence of a row means the user favorited the file."""

import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin


class Favorite(UUIDMixin, SQLModel, table=True):
    __tablename__ = "favorites"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "file_id", name="uq_favorites_user_file"),
        sa.Index("ix_favorites_user_org_file", "user_id", "org_id", "file_id"),
    )

    user_id: uuid.UUID = Field(nullable=False)
    org_id: uuid.UUID = Field(nullable=False)
    file_id: uuid.UUID = Field(foreign_key="files.id", nullable=False)
