from __future__ import annotations

from typing import Optional

from sqlmodel import Field, SQLModel


class CollectionRole(SQLModel, table=True):
    """Permission held by a user on a collection.

    A user may hold several rows for the same collection.
    """

    __tablename__ = "collection_role"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    collection_id: int = Field(foreign_key="collection.id", nullable=False, index=True)
    permission: str = Field(max_length=16)  # read, write, admin
