"""Non-failing per-resource view handed to the protocol layer."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from calshare.core.errors import CalshareError
from calshare.services.paths import is_collection

if TYPE_CHECKING:
    from calshare.services.store import ResourceStore

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1)


def unix_nanos(moment: datetime) -> int:
    """Nanoseconds since the epoch for a naive UTC datetime."""
    return (moment - EPOCH) // timedelta(microseconds=1) * 1000


def format_etag(size: int, modified: datetime) -> str:
    return f'"{size:x}{unix_nanos(modified):x}"'


class ResourceAdapter:
    """Lazy accessors over one stored resource.

    Every read goes back to the store, which re-checks read access. The
    protocol layer has no error channel here, so denial, absence and store
    failures all degrade to empty content, zero size and the epoch.
    """

    def __init__(self, store: ResourceStore, path: str) -> None:
        self._store = store
        self.path = path

    def __repr__(self) -> str:
        return f"ResourceAdapter({self.path!r})"

    def is_collection(self) -> bool:
        return is_collection(self.path)

    def get_content(self) -> str:
        if self.is_collection():
            return ""
        try:
            content = self._store.read_content(self.path)
        except CalshareError as exc:
            logger.error(f"Failed to read content of {self.path}: {exc}")
            return ""
        return content if content is not None else ""

    def get_content_size(self) -> int:
        """UTF-8 byte length, read from metadata without loading content."""
        if self.is_collection():
            return 0
        try:
            size = self._store.read_size(self.path)
        except CalshareError as exc:
            logger.error(f"Failed to read size of {self.path}: {exc}")
            return 0
        return size if size is not None else 0

    def get_mod_time(self) -> datetime:
        try:
            modified = self._store.read_modified(self.path)
        except CalshareError as exc:
            logger.error(f"Failed to read modification time of {self.path}: {exc}")
            return EPOCH
        if modified is None:
            logger.debug(f"No modification time for {self.path}")
            return EPOCH
        return modified

    def calculate_etag(self) -> str:
        if self.is_collection():
            return ""
        return format_etag(self.get_content_size(), self.get_mod_time())
