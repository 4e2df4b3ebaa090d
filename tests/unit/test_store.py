"""
Unit tests for the in-memory user store.
"""

import threading

import pytest

from userapi.store import User, UserStore, is_truthy


class TestIsTruthy:
    """JavaScript truthiness rules."""

    @pytest.mark.parametrize("value", [None, False, 0, 0.0, float("nan"), ""])
    def test_falsy(self, value):
        assert is_truthy(value) is False

    @pytest.mark.parametrize("value", ["0", " ", 1, -1, 0.5, True, [], {}, "Ann", 10**400, -10**400])
    def test_truthy(self, value):
        assert is_truthy(value) is True


class TestUserStore:
    """Tests for UserStore."""

    def test_ids_start_at_one_and_increase(self, store: UserStore):
        ann = store.create("Ann", 30)
        bo = store.create("Bo", 25)

        assert ann == User(id=1, name="Ann", age=30)
        assert bo.id == 2
        assert [u.id for u in store.list_all()] == [1, 2]

    def test_ids_are_not_reused_after_delete(self, store: UserStore):
        store.create("A", 1)
        store.create("B", 2)
        store.create("C", 3)
        store.delete_by_id(2)

        assert store.create("D", 4).id == 4
        assert [u.name for u in store.list_all()] == ["A", "C", "D"]

    def test_list_all_is_a_snapshot(self, store: UserStore):
        store.create("Ann", 30)
        snapshot = store.list_all()
        snapshot.clear()

        assert store.count() == 1

    def test_get_by_id(self, store: UserStore):
        ann = store.create("Ann", 30)

        assert store.get_by_id(1) is ann
        assert store.get_by_id(99) is None
        assert store.get_by_id(None) is None

    def test_update_only_truthy_fields(self, store: UserStore):
        store.create("Ann", 30)

        user = store.update(1, {"age": 31})
        assert user.to_dict() == {"id": 1, "name": "Ann", "age": 31}

        user = store.update(1, {"name": "", "age": 0})
        assert user.to_dict() == {"id": 1, "name": "Ann", "age": 31}

    def test_update_ignores_unknown_fields(self, store: UserStore):
        store.create("Ann", 30)
        user = store.update(1, {"id": 7, "role": "admin"})

        assert user.to_dict() == {"id": 1, "name": "Ann", "age": 30}

    def test_update_missing_user(self, store: UserStore):
        assert store.update(5, {"name": "X"}) is None

    def test_delete_unknown_is_silent(self, store: UserStore):
        store.create("Ann", 30)
        store.delete_by_id(42)
        store.delete_by_id(None)

        assert len(store) == 1

    def test_clear_resets_ids(self, store: UserStore):
        store.create("Ann", 30)
        store.clear()

        assert store.count() == 0
        assert store.create("Bo", 25).id == 1

    def test_concurrent_creates_get_distinct_ids(self, store: UserStore):
        def worker():
            for _ in range(50):
                store.create("x", 1)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        ids = [u.id for u in store.list_all()]
        assert len(ids) == 400
        assert sorted(ids) == list(range(1, 401))
