"""
Tests for the session store: eviction, reset and per-key serialization.
"""
import threading

from models import AwaitingComparison
from sessions import IdleTimeout, NeverEvict, Session, SessionStore


class TestSessionStore:
    """Test creation, lookup and reset."""

    def test_get_or_create_is_stable(self):
        store = SessionStore()
        a = store.get_or_create("a")
        assert store.get_or_create("a") is a
        assert "a" in store
        assert len(store) == 1

    def test_sessions_are_independent(self):
        store = SessionStore()
        a = store.get_or_create("a")
        b = store.get_or_create("b")
        a.state.phase = AwaitingComparison(options=["full"])
        assert b.state.phase.kind == "idle"

    def test_delete_is_idempotent(self):
        store = SessionStore()
        store.get_or_create("a")
        assert store.delete("a") is True
        assert store.delete("a") is False
        assert store.get("a") is None

    def test_reset_gives_fresh_state(self):
        store = SessionStore()
        a = store.get_or_create("a")
        a.state.compared_levels.add("basic")
        store.delete("a")
        assert store.get_or_create("a").state.compared_levels == set()

    def test_open_updates_last_active(self, clock):
        clock.advance(5.0)
        store = SessionStore(clock=clock)
        with store.open("a") as sess:
            clock.advance(2.0)
        assert sess.last_active == 7.0


class TestEviction:
    """Test idle-timeout eviction."""

    def test_idle_session_evicted_on_next_create(self, clock):
        store = SessionStore(IdleTimeout(10), clock=clock)
        store.get_or_create("a")
        clock.advance(11)
        store.get_or_create("b")
        assert "a" not in store
        assert "b" in store

    def test_active_session_kept(self, clock):
        store = SessionStore(IdleTimeout(10), clock=clock)
        store.get_or_create("a")
        clock.advance(9)
        assert store.sweep() == 0
        assert "a" in store

    def test_never_evict(self, clock):
        store = SessionStore(NeverEvict(), clock=clock)
        store.get_or_create("a")
        clock.advance(10 ** 9)
        assert store.sweep() == 0

    def test_busy_session_survives_sweep(self, clock):
        store = SessionStore(IdleTimeout(10), clock=clock)
        sess = store.get_or_create("a")
        held = threading.Event()
        release = threading.Event()

        def hold():
            with sess.lock:
                held.set()
                release.wait(5)

        t = threading.Thread(target=hold)
        t.start()
        try:
            assert held.wait(5)
            clock.advance(60)
            assert store.sweep() == 0
            assert "a" in store
        finally:
            release.set()
            t.join(5)

        assert store.sweep() == 1

    def test_idle_timeout_boundary(self):
        policy = IdleTimeout(10)
        assert not policy.is_expired(Session(key="a", last_active=0.0), 10.0)
        assert policy.is_expired(Session(key="a", last_active=0.0), 10.5)


class TestSerialization:
    """Test that turns on one key never interleave."""

    def test_open_blocks_second_turn_on_same_key(self):
        store = SessionStore()
        order = []
        first_in = threading.Event()
        release = threading.Event()

        def first():
            with store.open("k"):
                order.append("first-start")
                first_in.set()
                release.wait(5)
                order.append("first-end")

        def second():
            with store.open("k"):
                order.append("second")

        t1 = threading.Thread(target=first)
        t1.start()
        assert first_in.wait(5)
        t2 = threading.Thread(target=second)
        t2.start()
        t2.join(0.2)
        assert order == ["first-start"]
        release.set()
        t1.join(5)
        t2.join(5)
        assert order == ["first-start", "first-end", "second"]
