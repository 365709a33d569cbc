"""Tests for user upsert and login verification."""

from gradestore.core.models import User


def _user_rows(store, username):
    return store.connection.execute(
        "SELECT * FROM User WHERE Username = ?", (username,)
    ).fetchall()


class TestAddOrUpdateUser:
    """Tests for GradeStore.add_or_update_user."""

    def test_insert_returns_id(self, store, ana):
        """New user gets a positive id."""
        user_id = store.add_or_update_user(ana, "secret")
        assert user_id > 0

    def test_distinct_users_get_distinct_ids(self, store, ana, carlos):
        assert store.add_or_update_user(ana, "a") != store.add_or_update_user(carlos, "c")

    def test_upsert_leaves_single_row_with_new_password(self, store, ana):
        """Second call overwrites the password, no duplicate row."""
        store.add_or_update_user(ana, "p1")
        store.add_or_update_user(ana, "p2")

        rows = _user_rows(store, "ana")
        assert len(rows) == 1
        assert rows[0]["Password"] == "p2"

    def test_upsert_overwrites_names(self, store, ana):
        store.add_or_update_user(ana, "pw")
        store.add_or_update_user(User("ana", "Anabel", "Gómez"), "pw")

        row = _user_rows(store, "ana")[0]
        assert row["Firstname"] == "Anabel"
        assert row["Lastname"] == "Gómez"

    def test_upsert_keeps_user_id(self, store, ana):
        """Updating a user keeps the original UserId."""
        first = store.add_or_update_user(ana, "p1")
        second = store.add_or_update_user(ana, "p2")
        assert first == second


class TestVerifyLogin:
    """Tests for GradeStore.verify_login."""

    def test_valid_credentials(self, store, ana):
        store.add_or_update_user(ana, "secret")
        assert store.verify_login("ana", "secret") is True

    def test_wrong_password(self, store, ana):
        store.add_or_update_user(ana, "secret")
        assert store.verify_login("ana", "Secret") is False

    def test_unknown_user(self, store):
        assert store.verify_login("nobody", "secret") is False

    def test_username_is_case_sensitive(self, store, ana):
        store.add_or_update_user(ana, "secret")
        assert store.verify_login("ANA", "secret") is False

    def test_old_password_rejected_after_update(self, store, ana):
        store.add_or_update_user(ana, "p1")
        store.add_or_update_user(ana, "p2")

        assert store.verify_login("ana", "p1") is False
        assert store.verify_login("ana", "p2") is True
