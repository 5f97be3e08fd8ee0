from __future__ import annotations

from sqlmodel import Session, select

from calshare.core.security import get_password_hash
from calshare.models import Collection, CollectionRole, User
from calshare.services.paths import SEPARATOR
from calshare.services.permissions import PERMISSION_LEVELS


def normalize_collection_name(name: str) -> str:
    """Collection names are absolute paths ending with a separator."""
    name = name.strip()
    if not name.startswith(SEPARATOR):
        name = SEPARATOR + name
    if not name.endswith(SEPARATOR):
        name += SEPARATOR
    return name


def create_user(
    session: Session,
    *,
    username: str,
    password: str,
    email: str,
) -> User:
    existing = session.exec(select(User).where(User.username == username)).one_or_none()
    if existing:
        raise ValueError(f"User {username} already exists")

    user = User(
        username=username,
        hashed_password=get_password_hash(password),
        email=email.lower(),
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def set_password(session: Session, user: User, password: str) -> None:
    user.hashed_password = get_password_hash(password)
    session.add(user)
    session.commit()


def get_or_create_collection(session: Session, name: str) -> Collection:
    name = normalize_collection_name(name)
    collection = session.exec(
        select(Collection).where(Collection.name == name)
    ).one_or_none()
    if collection:
        return collection

    collection = Collection(name=name)
    session.add(collection)
    session.commit()
    session.refresh(collection)
    return collection


def grant_role(
    session: Session,
    *,
    user_id: int,
    collection_name: str,
    permission: str,
) -> CollectionRole:
    """Add a role row; an identical existing row is returned unchanged."""
    if permission not in PERMISSION_LEVELS:
        raise ValueError(f"Unknown permission: {permission}")

    collection = get_or_create_collection(session, collection_name)
    existing = session.exec(
        select(CollectionRole).where(
            CollectionRole.user_id == user_id,
            CollectionRole.collection_id == collection.id,
            CollectionRole.permission == permission,
        )
    ).first()
    if existing:
        return existing

    role = CollectionRole(
        user_id=user_id,
        collection_id=collection.id,
        permission=permission,
    )
    session.add(role)
    session.commit()
    session.refresh(role)
    return role
