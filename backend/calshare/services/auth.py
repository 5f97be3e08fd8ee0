from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from calshare.core.errors import StoreFailure
from calshare.core.security import verify_password
from calshare.models import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller a request-scoped store acts for."""

    user_id: int
    username: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(user_id=user.id, username=user.username, email=user.email)


def authenticate(session: Session, username: str, password: str) -> Principal | None:
    """Check presented credentials against the stored bcrypt hash."""
    try:
        user = session.exec(select(User).where(User.username == username)).one_or_none()
    except SQLAlchemyError as exc:
        logger.error(f"Failed to fetch user [{username}]: {exc}")
        raise StoreFailure("/", "user lookup failed") from exc

    if user is None or not verify_password(password, user.hashed_password):
        logger.info(f"Rejected credentials for user [{username}]")
        return None
    return Principal.from_user(user)
