from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, Text, UniqueConstraint
from sqlmodel import Field, SQLModel


class CalendarResource(SQLModel, table=True):
    """Stored calendar object, content kept base64 encoded."""

    __tablename__ = "calendar"
    __table_args__ = (
        UniqueConstraint("rpath", "owner_id", name="uq_calendar_rpath_owner"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    rpath: str = Field(max_length=1024, index=True)
    content: str = Field(sa_column=Column(Text, nullable=False))
    owner_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    modified: datetime = Field(default_factory=datetime.utcnow, nullable=False)
