"""
Unit tests for InMemoryUserStore, including concurrent access.
"""

import threading
import uuid
from concurrent.futures import ThreadPoolExecutor

import pytest

from userservice.users.models import ValidationError
from userservice.users.store import InMemoryUserStore, UserNotFoundError, UserStore


class TestInMemoryUserStore:
    """Single-threaded behavior."""

    def test_is_a_user_store(self, store):
        assert isinstance(store, UserStore)

    def test_create_assigns_distinct_ids(self, store):
        first = store.create("Ada", "ada@example.com")
        second = store.create("Ada", "ada@example.com")

        assert first.id != second.id
        assert isinstance(first.id, uuid.UUID)
        assert len(store) == 2

    def test_create_stores_trimmed_values(self, store):
        user = store.create("  Ada ", " ada@example.com ")

        assert user.name == "Ada"
        assert user.email == "ada@example.com"

    def test_create_invalid_stores_nothing(self, store):
        with pytest.raises(ValidationError):
            store.create("Ada", "invalid-email")

        assert len(store) == 0

    def test_create_then_find(self, store):
        user = store.create("Ada", "ada@example.com")

        assert store.find_by_id(user.id) == user
        assert user.id in store

    def test_find_missing_returns_none(self, store):
        assert store.find_by_id(uuid.uuid4()) is None

    def test_update_email_keeps_id_and_name(self, store):
        user = store.create("Ada", "ada@example.com")

        updated = store.update(user.id, email="ada@lovelace.dev")

        assert updated.id == user.id
        assert updated.name == "Ada"
        assert updated.email == "ada@lovelace.dev"
        assert store.find_by_id(user.id) == updated

    def test_update_name_only(self, store):
        user = store.create("Ada", "ada@example.com")

        updated = store.update(user.id, name="Countess")

        assert updated.name == "Countess"
        assert updated.email == "ada@example.com"

    def test_update_missing_raises(self, store):
        missing = uuid.uuid4()

        with pytest.raises(UserNotFoundError) as exc_info:
            store.update(missing, email="a@b.co")

        assert exc_info.value.user_id == missing
        assert str(exc_info.value) == f"User with id {missing} not found"

    def test_update_invalid_keeps_old_value(self, store):
        user = store.create("Ada", "ada@example.com")

        with pytest.raises(ValidationError):
            store.update(user.id, email="nope")

        assert store.find_by_id(user.id) == user

    def test_delete(self, store):
        user = store.create("Ada", "ada@example.com")

        store.delete(user.id)

        assert store.find_by_id(user.id) is None
        assert user.id not in store
        with pytest.raises(UserNotFoundError):
            store.delete(user.id)

    def test_find_all_is_a_snapshot(self, store):
        users = [store.create(f"User {i}", f"user{i}@example.com") for i in range(3)]

        snapshot = store.find_all()
        store.create("Late", "late@example.com")

        assert sorted(u.id for u in snapshot) == sorted(u.id for u in users)
        assert len(store.find_all()) == 4

    def test_stripes_must_be_positive(self):
        with pytest.raises(ValueError):
            InMemoryUserStore(stripes=0)


class TestConcurrency:
    """Behavior under concurrent callers."""

    def test_concurrent_creates(self, store):
        """10 concurrent creates all land and are retrievable."""
        with ThreadPoolExecutor(max_workers=10) as pool:
            users = list(pool.map(
                lambda i: store.create(f"User {i}", f"user{i}@example.com"),
                range(10),
            ))

        assert len({u.id for u in users}) == 10
        assert len(store) == 10
        for user in users:
            assert store.find_by_id(user.id) == user

    def test_concurrent_updates_same_id(self, store):
        """The final email is exactly one of the concurrently written values."""
        user = store.create("Ada", "ada@example.com")
        emails = [f"ada{i}@example.com" for i in range(5)]
        barrier = threading.Barrier(len(emails))

        def update(email):
            barrier.wait()
            return store.update(user.id, email=email)

        with ThreadPoolExecutor(max_workers=len(emails)) as pool:
            results = list(pool.map(update, emails))

        final = store.find_by_id(user.id)
        assert final is not None
        assert final.email in emails
        assert final.name == "Ada"
        assert {r.email for r in results} == set(emails)

    def test_updates_racing_delete_never_resurrect(self, store):
        """Once delete wins, later updates see NotFound rather than re-inserting."""
        user = store.create("Ada", "ada@example.com")
        outcomes = []
        lock = threading.Lock()

        def update(i):
            try:
                store.update(user.id, email=f"ada{i}@example.com")
                result = "updated"
            except UserNotFoundError:
                result = "missing"
            with lock:
                outcomes.append(result)

        with ThreadPoolExecutor(max_workers=8) as pool:
            futures = [pool.submit(update, i) for i in range(20)]
            pool.submit(store.delete, user.id).result()
            for future in futures:
                future.result()

        assert user.id not in store
        assert len(outcomes) == 20

    def test_many_ids_in_parallel(self):
        """Operations on different ids all complete with few stripes."""
        store = InMemoryUserStore(stripes=2)
        users = [store.create(f"U{i}", f"u{i}@example.com") for i in range(50)]

        def churn(user):
            store.update(user.id, email=f"new-{user.name}@example.com")
            return store.find_by_id(user.id)

        with ThreadPoolExecutor(max_workers=10) as pool:
            results = list(pool.map(churn, users))

        for user, result in zip(users, results):
            assert result.email == f"new-{user.name}@example.com"
