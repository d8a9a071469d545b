"""Tests for the session handle."""

import pytest

from zypto_session import (
    DEFAULT_NAME,
    ArgumentError,
    MemoryStore,
    Session,
    SessionManager,
    StateError,
)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def session(store: MemoryStore) -> Session:
    return Session(SessionManager(store, session_id="sid-1"))


@pytest.fixture
def active(session: Session) -> Session:
    return session.initialize()


class TestLifecycle:
    def test_default_name(self, session: Session):
        assert session.name == DEFAULT_NAME == "ZyptoSession"

    def test_initialize_is_idempotent(self, session: Session):
        session.initialize()
        session.initialize()
        assert session.running() is True

    def test_release_twice_fails(self, active: Session):
        active.release()
        with pytest.raises(StateError):
            active.release()

    def test_chaining(self, session: Session):
        result = session.set_name("Shop").initialize().regenerate()
        assert result is session
        assert session.manager.name == "Shop"

    def test_set_name_after_initialize_has_no_effect(self, active: Session):
        active.set_name("Other")
        assert active.name == "Other"
        assert active.manager.name == DEFAULT_NAME

    def test_set_name_default(self, session: Session):
        session.set_name("Other").set_name()
        assert session.name == DEFAULT_NAME

    def test_named_sessions_are_separate(self, store: MemoryStore):
        first = Session(SessionManager(store, session_id="sid-1"), name="A").initialize()
        first["k"] = "a"
        first.release()

        second = Session(SessionManager(store, session_id="sid-1"), name="B").initialize()
        assert "k" not in second

    def test_invalidate(self, active: Session):
        active.set_many({"a": 1, "b": 2})
        old_id = active.manager.session_id

        active.invalidate()

        assert active.running() is True
        assert active.manager.session_id != old_id
        assert active.has("a") is False
        assert active.has("b") is False

    def test_invalidate_keeps_old_record(self, active: Session, store: MemoryStore):
        active["a"] = 1
        active.manager.commit()
        active.invalidate()
        assert store.read(DEFAULT_NAME, "sid-1") == {"a": 1}

    def test_regenerate_destroy_old(self, active: Session, store: MemoryStore):
        active["a"] = 1
        active.manager.commit()
        active.regenerate(destroy_old=True)
        assert store.exists(DEFAULT_NAME, "sid-1") is False

    def test_discard(self, active: Session):
        active["a"] = 1
        active.discard()
        assert active.running() is True
        assert "a" not in active

    def test_discard_and_finish(self, active: Session, store: MemoryStore):
        active["a"] = 1
        active.discard(finish_session=True)
        assert active.running() is False
        assert store.exists(DEFAULT_NAME, "sid-1") is False

    def test_initialize_without_global(self, store: MemoryStore):
        mirror: dict = {}
        session = Session(SessionManager(store, mirror=mirror))
        session.initialize(populate_global=False)
        session["a"] = 1
        assert mirror == {}

    def test_initialize_uses_handle_default(self, store: MemoryStore):
        mirror: dict = {}
        session = Session(SessionManager(store, mirror=mirror), populate_global=False)
        session.initialize()
        session["a"] = 1
        assert mirror == {}

        session.release()
        session.initialize(populate_global=True)
        assert mirror == {"a": 1}


class TestCollection:
    def test_set_then_get(self, active: Session):
        active.set("key", "value")
        assert active.get("key") == "value"

    def test_delete_then_has(self, active: Session):
        active.set("key", "value")
        active.delete("key")
        assert active.has("key") is False

    def test_has_never_set(self, active: Session):
        assert active.has("never") is False

    def test_get_many(self, active: Session):
        active.set("a", 5)
        assert active.get_many(["a", "b"], default=0, defaults={"b": 9}) == {"a": 5, "b": 9}

    def test_bulk_variants(self, active: Session):
        active.set_many({"a": 1, "b": 2})
        assert active.has_many(["a", "b", "c"]) == {"a": True, "b": True, "c": False}
        active.delete_many(["a", "c"])
        assert active.has_many(["a", "b"]) == {"a": False, "b": True}

    def test_index_access(self, active: Session):
        active["user"] = "ada"
        assert active["user"] == "ada"
        assert "user" in active

        del active["user"]
        assert "user" not in active
        assert active["user"] is None

    def test_index_delete_absent(self, active: Session):
        del active["missing"]

    def test_index_write_without_key(self, active: Session):
        with pytest.raises(ArgumentError, match="append"):
            active[None] = "value"

    def test_not_iterable(self, active: Session):
        with pytest.raises(TypeError):
            iter(active)

    def test_access_before_initialize(self, session: Session):
        with pytest.raises(StateError):
            session["a"] = 1
        with pytest.raises(StateError):
            session.get("a")


class TestContextManager:
    def test_releases_on_success(self, session: Session, store: MemoryStore):
        with session as s:
            s["a"] = 1
            assert s.running() is True

        assert session.running() is False
        assert store.read(DEFAULT_NAME, "sid-1") == {"a": 1}

    def test_discards_on_error(self, session: Session, store: MemoryStore):
        with pytest.raises(RuntimeError, match="boom"):
            with session as s:
                s["a"] = 1
                raise RuntimeError("boom")

        assert session.running() is False
        assert store.exists(DEFAULT_NAME, "sid-1") is False

    def test_released_inside_block(self, session: Session):
        with session as s:
            s.release()
        assert session.running() is False

    def test_repr(self, session: Session):
        assert repr(session) == "Session(name='ZyptoSession', stopped)"
        session.initialize()
        assert "running" in repr(session)
