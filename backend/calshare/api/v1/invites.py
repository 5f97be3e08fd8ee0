from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from calshare.api.deps import StoreDep
from calshare.schemas import InviteCreate, InviteQueued
from calshare.services.invites import dispatch_invite
from calshare.services.paths import is_collection

router = APIRouter()


@router.post(
    "/",
    response_model=InviteQueued,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Send a calendar invite for a stored event",
)
def create_invite(payload: InviteCreate, store: StoreDep) -> InviteQueued:
    content = None
    if not is_collection(payload.path):
        content = store.read_content(payload.path)
    if content is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Event not found"
        )

    task_id = dispatch_invite(
        recipient_name=payload.recipient_name,
        recipient_email=payload.recipient_email,
        content=content,
        subject=payload.subject,
    )
    if task_id is None:
        return InviteQueued(status="skipped")
    return InviteQueued(status="queued", task_id=task_id)
