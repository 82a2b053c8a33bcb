"""User-Organization membership (join table, owned by the membership service)."""

import uuid

from sqlmodel import Field, SQLModel


class UserOrg(SQLModel, table=True):
    __tablename__ = "users_orgs"

    user_id: uuid.UUID = Field(primary_key=True)
    org_id: uuid.UUID = Field(primary_key=True, index=True)
    role: str = Field(nullable=False, default="member")  # admin | member
