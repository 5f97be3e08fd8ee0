from datetime import datetime

import pytest
from sqlmodel import select

from calshare.core.errors import StoreFailure
from calshare.models import CalendarResource
from calshare.services.adapter import EPOCH, format_etag, unix_nanos

EVENT = "BEGIN:VEVENT\nSUMMARY:Planning\nEND:VEVENT"


@pytest.fixture
def writer(make_user, grant):
    user = make_user("writer")
    grant(user, "/cal/", "write")
    return user


@pytest.fixture
def event(store_for, writer):
    return store_for(writer).create_resource("/cal/event1.ics", EVENT).resource


def test_unix_nanos():
    assert unix_nanos(EPOCH) == 0
    assert unix_nanos(datetime(1970, 1, 1, 0, 0, 1, 5)) == 1_000_005_000


def test_format_etag():
    assert format_etag(26, datetime(1970, 1, 1, 0, 0, 1)) == '"1a3b9aca00"'


class TestEtag:
    def test_derived_from_size_and_modified(self, event):
        adapter = event.adapter

        expected = format_etag(len(EVENT.encode("utf-8")), adapter.get_mod_time())

        assert adapter.calculate_etag() == expected
        assert adapter.calculate_etag().startswith('"')

    def test_stable_without_changes(self, event):
        assert event.adapter.calculate_etag() == event.adapter.calculate_etag()

    def test_changes_on_update(self, store_for, writer, event):
        before = event.adapter.calculate_etag()

        store_for(writer).update_resource("/cal/event1.ics", EVENT)

        assert event.adapter.calculate_etag() != before

    def test_equal_tags_mean_equal_size_and_time(self, store_for, writer, event):
        other = store_for(writer).create_resource("/cal/event2.ics", EVENT).resource
        if other.adapter.calculate_etag() == event.adapter.calculate_etag():
            assert other.adapter.get_mod_time() == event.adapter.get_mod_time()
        assert other.adapter.get_content_size() == event.adapter.get_content_size()

    def test_empty_for_collections(self, store_for, writer):
        collection = store_for(writer).get_resource("/cal/")

        assert collection.is_collection
        assert collection.adapter.calculate_etag() == ""
        assert collection.adapter.get_content() == ""


class TestAccessors:
    def test_content_size_counts_utf8_bytes(self, store_for, writer):
        resource = store_for(writer).create_resource("/cal/u.ics", "é").resource

        assert resource.adapter.get_content_size() == 2

    def test_mod_time_matches_store(self, session, event):
        stored = session.exec(select(CalendarResource.modified)).one()

        assert event.adapter.get_mod_time() == stored

    def test_defaults_after_delete(self, store_for, make_user, grant):
        owner = make_user("owner")
        grant(owner, "/cal/", "admin")
        store = store_for(owner)
        resource = store.create_resource("/cal/gone.ics", EVENT).resource
        store.delete_resource("/cal/gone.ics")

        assert resource.adapter.get_content() == ""
        assert resource.adapter.get_content_size() == 0
        assert resource.adapter.get_mod_time() == EPOCH

    def test_access_is_rechecked_on_every_read(self, session, event, writer):
        from calshare.models import CollectionRole

        for role in session.exec(select(CollectionRole)).all():
            session.delete(role)
        session.commit()

        assert event.adapter.get_content() == ""
        assert event.adapter.get_mod_time() == EPOCH
        assert event.adapter.calculate_etag() == format_etag(0, EPOCH)

    def test_store_failures_degrade_to_defaults(self, event, monkeypatch):
        store = event.adapter._store

        def broken(path):
            raise StoreFailure(path, "connection lost")

        monkeypatch.setattr(store, "read_content", broken)
        monkeypatch.setattr(store, "read_modified", broken)
        monkeypatch.setattr(store, "read_size", broken)

        assert event.adapter.get_content() == ""
        assert event.adapter.get_content_size() == 0
        assert event.adapter.get_mod_time() == EPOCH
        assert event.adapter.is_collection() is False

    def test_etag_and_size_never_load_content(self, event, monkeypatch):
        store = event.adapter._store

        def unexpected(path):
            raise AssertionError(f"content of {path} was loaded")

        monkeypatch.setattr(store, "read_content", unexpected)

        assert event.adapter.get_content_size() == len(EVENT.encode("utf-8"))
        assert event.adapter.calculate_etag() == format_etag(
            len(EVENT.encode("utf-8")), event.adapter.get_mod_time()
        )
