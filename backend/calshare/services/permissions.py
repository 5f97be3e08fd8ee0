from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from calshare.core.errors import StoreFailure
from calshare.models import Collection, CollectionRole
from calshare.services.paths import collection_of

logger = logging.getLogger(__name__)

READ = "read"
WRITE = "write"
ADMIN = "admin"

PERMISSION_LEVELS = {READ: 1, WRITE: 2, ADMIN: 3}

FIRST_MATCH = "first_match"
MOST_PRIVILEGED = "most_privileged"
ACCESS_POLICIES = (FIRST_MATCH, MOST_PRIVILEGED)


def permission_level(permission: str) -> int:
    """Numeric level of a permission name, 0 for anything unknown."""
    return PERMISSION_LEVELS.get(permission, 0)


def _validate_required(required: str) -> int:
    level = permission_level(required)
    if not level:
        raise ValueError(f"Unknown permission level: {required!r}")
    return level


def evaluate_permissions(
    permissions: Sequence[str],
    required: str,
    policy: str = MOST_PRIVILEGED,
) -> bool:
    """Decide access from every role row a user holds on one collection.

    ``first_match`` lets the first row decide on its own: admin grants,
    write grants anything but admin, read grants only read.
    ``most_privileged`` grants when the highest level held reaches
    ``required``. An empty row set always denies.
    """
    required_level = _validate_required(required)
    if not permissions:
        return False

    if policy == FIRST_MATCH:
        return permission_level(permissions[0]) >= required_level
    if policy == MOST_PRIVILEGED:
        return max(permission_level(p) for p in permissions) >= required_level
    raise ValueError(f"Unknown access policy: {policy!r}")


def fetch_permissions(session: Session, user_id: int, path: str) -> list[str]:
    """Role rows of ``user_id`` on the collection owning ``path``, oldest first."""
    statement = (
        select(CollectionRole.permission)
        .join(Collection, Collection.id == CollectionRole.collection_id)
        .where(
            Collection.name == collection_of(path),
            CollectionRole.user_id == user_id,
        )
        .order_by(CollectionRole.id)
    )
    try:
        return list(session.exec(statement).all())
    except SQLAlchemyError as exc:
        logger.error(f"Failed to fetch permissions for {path}: {exc}")
        raise StoreFailure(path, "failed to fetch permissions") from exc


def has_access(
    session: Session,
    user_id: int,
    path: str,
    required: str,
    policy: str = MOST_PRIVILEGED,
) -> bool:
    """Whether ``user_id`` holds ``required`` on the collection of ``path``.

    A missing role is a deny; a failing query raises StoreFailure.
    """
    permissions = fetch_permissions(session, user_id, path)
    unknown = [p for p in permissions if p not in PERMISSION_LEVELS]
    if unknown:
        logger.warning(f"Ignoring unknown permissions {unknown} on {collection_of(path)}")
    return evaluate_permissions(permissions, required, policy)
