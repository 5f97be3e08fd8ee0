from __future__ import annotations

from datetime import timezone
from email.utils import format_datetime
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, Response, status

from calshare.api.deps import StoreDep
from calshare.schemas import ResourceRead
from calshare.services.paths import is_collection
from calshare.services.store import ResourceStore, WriteStatus

router = APIRouter()

CALENDAR_MEDIA_TYPE = "text/calendar; charset=utf-8"


def _resource_path(rpath: str) -> str:
    return "/" + rpath


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND, detail="Resource not found"
    )


def _precondition_failed(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_412_PRECONDITION_FAILED, detail=detail)


async def read_calendar_body(request: Request) -> str:
    body = await request.body()
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Calendar data must be UTF-8",
        ) from None


def _current_etag(store: ResourceStore, path: str) -> Optional[str]:
    existing = store.get_resource(path)
    return existing.adapter.calculate_etag() if existing else None


@router.get(
    "/{rpath:path}",
    response_model=None,
    summary="Read an event or list a collection",
)
def read_resource(
    rpath: str,
    store: StoreDep,
    depth: int = Query(default=0, ge=0, le=1),
    if_none_match: Optional[str] = Header(default=None),
) -> Union[Response, List[ResourceRead]]:
    path = _resource_path(rpath)

    if is_collection(path):
        resources = store.list_resources(path, with_children=depth > 0)
        if not resources:
            raise _not_found()
        return [ResourceRead.from_resource(resource) for resource in resources]

    resource = store.get_resource(path)
    if resource is None:
        raise _not_found()

    adapter = resource.adapter
    etag = adapter.calculate_etag()
    headers = {
        "ETag": etag,
        "Last-Modified": format_datetime(
            adapter.get_mod_time().replace(tzinfo=timezone.utc), usegmt=True
        ),
    }
    if if_none_match is not None and if_none_match in (etag, "*"):
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers=headers)
    return Response(
        content=adapter.get_content(),
        media_type=CALENDAR_MEDIA_TYPE,
        headers=headers,
    )


@router.put(
    "/{rpath:path}",
    summary="Create or replace an event",
    responses={201: {"description": "Created"}, 204: {"description": "Updated"}},
)
def write_resource(
    rpath: str,
    store: StoreDep,
    content: str = Depends(read_calendar_body),
    if_match: Optional[str] = Header(default=None),
    if_none_match: Optional[str] = Header(default=None),
) -> Response:
    path = _resource_path(rpath)
    if is_collection(path):
        raise HTTPException(
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            detail="Collections cannot be written",
        )

    current = _current_etag(store, path)
    if if_match is not None and current is None:
        raise _precondition_failed("Resource does not exist")
    if if_none_match == "*" and current is not None:
        raise _precondition_failed("Resource already exists")

    if current is None:
        result = store.create_resource(path, content)
        status_code = status.HTTP_201_CREATED
    else:
        result = store.update_resource(path, content, expected_etag=if_match)
        status_code = status.HTTP_204_NO_CONTENT
    if result.status is WriteStatus.CONFLICT:
        raise _precondition_failed("Resource has changed")
    if not result.ok:
        raise _not_found()

    return Response(
        status_code=status_code,
        headers={"ETag": result.resource.adapter.calculate_etag()},
    )


@router.delete(
    "/{rpath:path}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an event",
)
def delete_resource(rpath: str, store: StoreDep) -> Response:
    result = store.delete_resource(_resource_path(rpath))
    if result.denied:
        raise _not_found()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
