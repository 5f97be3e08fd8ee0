from __future__ import annotations

from typing import Optional

from sqlmodel import Field, SQLModel


class Collection(SQLModel, table=True):
    """Named calendar collection that roles are granted on.

    The name is the collection path (``/team/``); resources are grouped by
    path prefix, not by a foreign key to this table.
    """

    __tablename__ = "collection"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True, max_length=1024)
