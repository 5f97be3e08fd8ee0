from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class InviteCreate(BaseModel):
    path: str = Field(min_length=1)
    recipient_name: str = Field(min_length=1, max_length=255)
    recipient_email: EmailStr
    subject: str = Field(min_length=1, max_length=255)

    @field_validator("recipient_name", "subject")
    @classmethod
    def single_line(cls, value: str) -> str:
        # Both end up in mail headers
        if "\r" in value or "\n" in value:
            raise ValueError("must not contain line breaks")
        return value


class InviteQueued(BaseModel):
    status: Literal["queued", "skipped"]
    task_id: Optional[str] = None
