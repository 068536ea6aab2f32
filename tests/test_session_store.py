# test_session_store.py - Tests for per-peer session storage and locking
import threading

import pytest

from escrow_messenger.core.ratchet import init_session
from escrow_messenger.core.session_store import SessionStore
from escrow_messenger.security.certificates import Identity
from escrow_messenger.utils.error_handler import ErrorCode, ProtocolStateError


def new_state():
    return init_session(Identity.generate(), Identity.generate().public_key)


def test_get_unknown_peer_raises():
    store = SessionStore()
    with pytest.raises(ProtocolStateError) as excinfo:
        store.get("nobody")
    assert excinfo.value.error_code == ErrorCode.SESSION_NOT_FOUND
    with pytest.raises(ProtocolStateError):
        with store.session("nobody"):
            pass


def test_create_overwrites_existing_session():
    store = SessionStore()
    first, second = new_state(), new_state()
    store.create("bob", first)
    store.create("bob", second)
    assert store.get("bob") is second
    assert len(store) == 1


def test_session_yields_stored_state_in_place():
    store = SessionStore()
    state = new_state()
    store.create("bob", state)
    with store.session("bob") as held:
        held.turn = True
    assert store.get("bob") is state
    assert state.turn is True


def test_peers_remove_and_contains():
    store = SessionStore()
    store.create("carol", new_state())
    store.create("bob", new_state())
    assert store.peers() == ["bob", "carol"]
    assert "bob" in store
    assert store.remove("bob") is True
    assert store.remove("bob") is False
    assert not store.has("bob")


def test_session_holds_peer_lock_but_not_other_peers():
    store = SessionStore()
    store.create("bob", new_state())
    store.create("carol", new_state())
    results = {}

    def try_locks():
        bob_lock = store._lock_for("bob")
        carol_lock = store._lock_for("carol")
        results["bob"] = bob_lock.acquire(blocking=False)
        results["carol"] = carol_lock.acquire(blocking=False)
        if results["carol"]:
            carol_lock.release()

    with store.session("bob"):
        worker = threading.Thread(target=try_locks)
        worker.start()
        worker.join()

    assert results == {"bob": False, "carol": True}


def test_remove_releases_peer_lock():
    store = SessionStore()
    store.create("bob", new_state())
    with store.session("bob"):
        pass
    assert "bob" in store._locks
    store.remove("bob")
    assert "bob" not in store._locks
    store.create("bob", new_state())
    with store.session("bob") as state:
        assert state is store.get("bob")
