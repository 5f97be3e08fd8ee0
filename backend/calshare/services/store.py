"""Request-scoped storage of calendar resources for one authenticated user."""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Iterable, Optional

from sqlalchemy import delete, func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from calshare.core.errors import StoreFailure
from calshare.models import CalendarResource
from calshare.services.adapter import ResourceAdapter, format_etag
from calshare.services.auth import Principal
from calshare.services.paths import is_collection
from calshare.services.permissions import (
    ACCESS_POLICIES,
    ADMIN,
    MOST_PRIVILEGED,
    READ,
    WRITE,
    has_access,
)

logger = logging.getLogger(__name__)

ROOT = "/"

ResourceFilter = Callable[["Resource"], bool]


@dataclass(frozen=True)
class Resource:
    """Addressable resource; fields are read lazily through ``adapter``."""

    path: str
    adapter: ResourceAdapter

    @property
    def is_collection(self) -> bool:
        return self.adapter.is_collection()


class WriteStatus(str, Enum):
    OK = "ok"
    DENIED = "denied"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a mutation. Store failures are raised, not returned."""

    status: WriteStatus
    resource: Optional[Resource] = None

    @property
    def ok(self) -> bool:
        return self.status is WriteStatus.OK

    @property
    def denied(self) -> bool:
        return self.status is WriteStatus.DENIED


DENIED = WriteResult(WriteStatus.DENIED)
NOT_FOUND = WriteResult(WriteStatus.NOT_FOUND)
CONFLICT = WriteResult(WriteStatus.CONFLICT)


def encode_content(content: str) -> str:
    return base64.b64encode(content.encode("utf-8")).decode("ascii")


def decode_content(encoded: str) -> str:
    return base64.b64decode(encoded.encode("ascii"), validate=True).decode("utf-8")


def next_modified(previous: datetime | None, now: datetime | None = None) -> datetime:
    """Timestamp for an update, strictly later than ``previous``."""
    now = now or datetime.utcnow()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


class ResourceStore:
    """CRUD over calendar resources on behalf of ``principal``.

    Every operation checks the principal's role on the owning collection
    first. Denied reads come back empty and denied writes as
    ``WriteStatus.DENIED`` so that callers cannot learn whether a resource
    exists. Store errors are raised as :class:`StoreFailure`.
    """

    def __init__(
        self,
        session: Session,
        principal: Principal,
        policy: str = MOST_PRIVILEGED,
    ) -> None:
        if policy not in ACCESS_POLICIES:
            raise ValueError(f"Unknown access policy: {policy!r}")
        self.session = session
        self.principal = principal
        self.policy = policy

    @property
    def user_id(self) -> int:
        return self.principal.user_id

    def has_access(self, path: str, required: str) -> bool:
        return has_access(self.session, self.user_id, path, required, self.policy)

    def _resource(self, path: str) -> Resource:
        return Resource(path=path, adapter=ResourceAdapter(self, path))

    def _owned_paths(self, path: str | None = None) -> list[str]:
        statement = select(CalendarResource.rpath).where(
            CalendarResource.owner_id == self.user_id
        )
        if path is not None:
            statement = statement.where(CalendarResource.rpath == path)
        statement = statement.order_by(CalendarResource.rpath)
        try:
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as exc:
            logger.error(f"Failed to fetch resource paths for {path or ROOT}: {exc}")
            raise StoreFailure(path or ROOT, "failed to fetch resource paths") from exc

    def _fail_write(self, path: str, message: str, exc: Exception) -> StoreFailure:
        self.session.rollback()
        logger.error(f"{message} [{path}]: {exc}")
        return StoreFailure(path, message)

    # Enumeration

    def list_resources(self, path: str, with_children: bool = False) -> list[Resource]:
        """Resources visible at ``path``.

        For a collection path this includes the collection itself and, with
        ``with_children``, every resource the principal owns. Children are a
        flat owner-wide scan; nested collection depth is not considered.
        """
        logger.debug(f"Listing {path} (children={with_children})")
        if not self.has_access(path, READ):
            logger.info(f"No read access to collection of {path}")
            return []

        result = [self._resource(rpath) for rpath in self._owned_paths(path)]
        seen = {resource.path for resource in result}
        if is_collection(path):
            if path not in seen:
                result.append(self._resource(path))
                seen.add(path)
            if with_children:
                for rpath in self._owned_paths():
                    if rpath not in seen:
                        result.append(self._resource(rpath))
                        seen.add(rpath)
        return result

    def get_resource(self, path: str) -> Resource | None:
        """The resource at ``path``, or None when absent or not readable."""
        resources = self.list_resources(path, with_children=False)
        if not resources:
            logger.debug(f"Resource not found: {path}")
            return None
        return resources[0]

    def list_by_filter(
        self, path: str, predicate: ResourceFilter | None = None
    ) -> list[Resource]:
        """Every readable resource from the root that ``predicate`` accepts.

        ``path`` is accepted for interface compatibility; matching always
        starts at the root.
        """
        resources = self.list_resources(ROOT, with_children=True)
        if predicate is None:
            return resources
        return [resource for resource in resources if predicate(resource)]

    def list_by_paths(self, paths: Iterable[str]) -> list[Resource]:
        """Look up each path, skipping the ones that are not found."""
        results = []
        for path in paths:
            resource = self.get_resource(path)
            if resource is not None:
                results.append(resource)
        return results

    # Mutation

    def create_resource(self, path: str, content: str) -> WriteResult:
        logger.debug(f"Creating {path}")
        if not self.has_access(path, WRITE):
            logger.info(f"No write access to collection of {path}")
            return DENIED

        record = CalendarResource(
            rpath=path,
            content=encode_content(content),
            owner_id=self.user_id,
        )
        try:
            self.session.add(record)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail_write(path, "failed to insert resource", exc) from exc

        logger.info(f"Resource created {path}")
        return WriteResult(WriteStatus.OK, self._resource(path))

    def update_resource(
        self, path: str, content: str, expected_etag: str | None = None
    ) -> WriteResult:
        """Replace the content of an existing resource.

        With ``expected_etag`` the write only happens while the stored entity
        tag still matches: the UPDATE also filters on the modification time
        the tag was computed from, so a write that lands in between turns this
        one into ``WriteStatus.CONFLICT``. ``"*"`` only requires existence.
        """
        logger.debug(f"Updating {path}")
        if not self.has_access(path, WRITE):
            logger.info(f"No write access to collection of {path}")
            return DENIED

        version = self._stored_version(path)
        if version is None:
            logger.debug(f"Nothing to update at {path}")
            return NOT_FOUND
        previous, size = version

        conditions = [
            CalendarResource.rpath == path,
            CalendarResource.owner_id == self.user_id,
        ]
        guarded = expected_etag is not None and expected_etag != "*"
        if guarded:
            if expected_etag != format_etag(size, previous):
                logger.info(f"Entity tag mismatch on {path}")
                return CONFLICT
            conditions.append(CalendarResource.modified == previous)

        statement = (
            update(CalendarResource)
            .where(*conditions)
            .values(content=encode_content(content), modified=next_modified(previous))
        )
        try:
            outcome = self.session.execute(statement)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail_write(path, "failed to update resource", exc) from exc

        if outcome.rowcount == 0:
            if guarded and self._stored_version(path) is not None:
                logger.info(f"Concurrent update of {path}, entity tag is stale")
                return CONFLICT
            # Deleted by a concurrent request between the read and the update
            return NOT_FOUND
        logger.info(f"Resource updated {path}")
        return WriteResult(WriteStatus.OK, self._resource(path))

    def delete_resource(self, path: str) -> WriteResult:
        logger.debug(f"Deleting {path}")
        if not self.has_access(path, ADMIN):
            logger.info(f"No admin access to collection of {path}")
            return DENIED

        statement = delete(CalendarResource).where(
            CalendarResource.rpath == path,
            CalendarResource.owner_id == self.user_id,
        )
        try:
            self.session.execute(statement)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail_write(path, "failed to delete resource", exc) from exc

        logger.info(f"Resource deleted {path}")
        return WriteResult(WriteStatus.OK)

    # Field reads backing ResourceAdapter

    def _stored(self, path: str, column):
        statement = select(column).where(
            CalendarResource.rpath == path,
            CalendarResource.owner_id == self.user_id,
        )
        try:
            return self.session.exec(statement).first()
        except SQLAlchemyError as exc:
            logger.error(f"Failed to fetch {column.key} of {path}: {exc}")
            raise StoreFailure(path, f"failed to fetch {column.key}") from exc

    def _stored_modified(self, path: str) -> datetime | None:
        return self._stored(path, CalendarResource.modified)

    def _stored_version(self, path: str) -> tuple[datetime, int] | None:
        """Modification time and decoded byte size, without loading content.

        The size follows from the base64 length: every 4 characters encode
        3 bytes, minus one byte per trailing ``=``.
        """
        encoded_length = func.length(CalendarResource.content)
        padding = encoded_length - func.length(func.rtrim(CalendarResource.content, "="))
        statement = select(CalendarResource.modified, encoded_length, padding).where(
            CalendarResource.rpath == path,
            CalendarResource.owner_id == self.user_id,
        )
        try:
            row = self.session.exec(statement).first()
        except SQLAlchemyError as exc:
            logger.error(f"Failed to fetch version of {path}: {exc}")
            raise StoreFailure(path, "failed to fetch version") from exc
        if row is None:
            return None
        modified, length, pad = row
        return modified, length // 4 * 3 - pad

    def read_content(self, path: str) -> str | None:
        """Decoded content of ``path``; None when absent or not readable."""
        if not self.has_access(path, READ):
            return None
        encoded = self._stored(path, CalendarResource.content)
        if encoded is None:
            return None
        try:
            return decode_content(encoded)
        except (binascii.Error, UnicodeDecodeError) as exc:
            logger.error(f"Failed to decode content of {path}: {exc}")
            raise StoreFailure(path, "stored content is not decodable") from exc

    def read_size(self, path: str) -> int | None:
        """Decoded size of ``path`` in bytes; None when absent or not readable."""
        if not self.has_access(path, READ):
            return None
        version = self._stored_version(path)
        return version[1] if version is not None else None

    def read_modified(self, path: str) -> datetime | None:
        """Modification time of ``path``; None when absent or not readable."""
        if not self.has_access(path, READ):
            return None
        return self._stored_modified(path)
