import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from calshare.core.errors import StoreFailure
from calshare.db import init_db, schema_present


@pytest.fixture
def blank_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


def test_applies_schema_once(blank_engine):
    assert not schema_present(blank_engine)

    assert init_db(blank_engine) is True
    assert init_db(blank_engine) is False

    tables = set(inspect(blank_engine).get_table_names())
    assert {"calendar", "collection", "collection_role", "users"} <= tables


def test_failed_initialization_raises_store_failure(blank_engine, monkeypatch):
    def broken_create_all(*args, **kwargs):
        raise OperationalError("CREATE TABLE", {}, Exception("disk full"))

    monkeypatch.setattr(SQLModel.metadata, "create_all", broken_create_all)

    with pytest.raises(StoreFailure):
        init_db(blank_engine)
    assert not schema_present(blank_engine)
