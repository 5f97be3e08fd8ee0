from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from calshare.services.store import Resource


class ResourceRead(BaseModel):
    path: str
    is_collection: bool
    etag: str
    last_modified: datetime
    content_size: int

    @classmethod
    def from_resource(cls, resource: Resource) -> "ResourceRead":
        adapter = resource.adapter
        return cls(
            path=resource.path,
            is_collection=adapter.is_collection(),
            etag=adapter.calculate_etag(),
            last_modified=adapter.get_mod_time(),
            content_size=adapter.get_content_size(),
        )
