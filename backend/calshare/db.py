from __future__ import annotations

import logging
from collections.abc import Generator
from typing import Annotated

from fastapi import Depends
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from calshare import models  # noqa: F401  registers the tables on SQLModel.metadata
from calshare.core.config import settings
from calshare.core.errors import StoreFailure

logger = logging.getLogger(__name__)

SCHEMA_PROBE = text("SELECT 1 FROM calendar LIMIT 1")


def _build_engine() -> Engine:
    connect_args: dict = {}
    if settings.DATABASE_URL.startswith("sqlite"):
        connect_args = {
            "check_same_thread": False,
            "timeout": settings.DB_CONNECT_TIMEOUT,
        }
    elif settings.DATABASE_URL.startswith("postgresql"):
        connect_args = {
            "connect_timeout": settings.DB_CONNECT_TIMEOUT,
            "options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}",
        }
    return create_engine(
        settings.DATABASE_URL, connect_args=connect_args, pool_pre_ping=True
    )


engine = _build_engine()


def schema_present(bind: Engine) -> bool:
    """Run the read probe; any failure means the schema still has to be applied."""
    try:
        with bind.connect() as conn:
            conn.execute(SCHEMA_PROBE)
    except SQLAlchemyError:
        return False
    return True


def init_db(bind: Engine | None = None) -> bool:
    """Apply the schema once, inside a single serializable transaction.

    Returns True when the schema was applied, False when the probe showed it
    was already there. The transaction is rolled back if any statement fails.
    """
    bind = bind if bind is not None else engine
    if schema_present(bind):
        logger.debug("Schema probe succeeded, nothing to initialize")
        return False

    logger.info("Schema probe failed, applying schema")
    serializable = bind.execution_options(isolation_level="SERIALIZABLE")
    try:
        with serializable.begin() as conn:
            SQLModel.metadata.create_all(bind=conn)
    except SQLAlchemyError as exc:
        logger.error(f"Schema initialization failed, rolled back: {exc}")
        raise StoreFailure("/", "schema initialization failed") from exc
    logger.info("Schema applied")
    return True


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


SessionDep = Annotated[Session, Depends(get_session)]
