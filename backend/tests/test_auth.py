import pytest

from calshare.core.security import get_password_hash, verify_password
from calshare.services.accounts import create_user, grant_role, normalize_collection_name
from calshare.services.auth import Principal, authenticate


def test_password_hash_round_trip():
    hashed = get_password_hash("hunter2")

    assert hashed != "hunter2"
    assert verify_password("hunter2", hashed)
    assert not verify_password("hunter3", hashed)


def test_malformed_hash_does_not_verify():
    assert not verify_password("hunter2", "not-a-bcrypt-hash")


class TestAuthenticate:
    def test_valid_credentials_resolve_principal(self, session, make_user):
        user = make_user("alice", password="s3cret")

        principal = authenticate(session, "alice", "s3cret")

        assert principal == Principal(user_id=user.id, username="alice", email="alice@example.com")

    def test_wrong_password(self, session, make_user):
        make_user("alice", password="s3cret")

        assert authenticate(session, "alice", "wrong") is None

    def test_unknown_user(self, session):
        assert authenticate(session, "nobody", "s3cret") is None


class TestAccounts:
    def test_duplicate_username_is_rejected(self, session, make_user):
        make_user("alice")

        with pytest.raises(ValueError):
            create_user(session, username="alice", password="x", email="a@example.com")

    def test_grant_role_is_idempotent(self, session, make_user):
        alice = make_user("alice")

        first = grant_role(session, user_id=alice.id, collection_name="cal", permission="read")
        second = grant_role(session, user_id=alice.id, collection_name="/cal/", permission="read")

        assert first.id == second.id

    def test_grant_role_rejects_unknown_permission(self, session, make_user):
        alice = make_user("alice")

        with pytest.raises(ValueError):
            grant_role(session, user_id=alice.id, collection_name="/cal/", permission="owner")

    @pytest.mark.parametrize(
        "name, expected",
        [("cal", "/cal/"), ("/cal", "/cal/"), ("/cal/", "/cal/"), ("/", "/"), (" team/ ", "/team/")],
    )
    def test_normalize_collection_name(self, name, expected):
        assert normalize_collection_name(name) == expected
