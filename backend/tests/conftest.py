from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from calshare.core import security
from calshare.db import get_session, init_db
from calshare.main import app
from calshare.services.accounts import create_user, grant_role
from calshare.services.auth import Principal
from calshare.services.store import ResourceStore

PASSWORD = "secret"


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Minimum bcrypt cost so fixtures stay quick."""
    gensalt = security.bcrypt.gensalt
    monkeypatch.setattr(security.bcrypt, "gensalt", lambda rounds=12: gensalt(rounds=4))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def make_user(session):
    def _make_user(username: str, password: str = PASSWORD):
        return create_user(
            session,
            username=username,
            password=password,
            email=f"{username}@example.com",
        )

    return _make_user


@pytest.fixture
def grant(session):
    def _grant(user, collection: str, permission: str):
        return grant_role(
            session,
            user_id=user.id,
            collection_name=collection,
            permission=permission,
        )

    return _grant


@pytest.fixture
def store_for(session):
    def _store_for(user, policy: str = "most_privileged") -> ResourceStore:
        return ResourceStore(session, Principal.from_user(user), policy=policy)

    return _store_for


@pytest.fixture
def client(engine):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()
