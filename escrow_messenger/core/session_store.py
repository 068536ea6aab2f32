# session_store.py - One ratchet state per peer, with per-peer locking
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List

from ..utils.error_handler import ErrorCode, create_state_error
from .ratchet import RatchetState


class SessionStore:
    """Mapping from peer identifier to its RatchetState.

    A send or receive must hold the peer's lock for its whole
    read-modify-write of the state. Sessions of different peers never share
    a lock.
    """

    def __init__(self):
        self._sessions: Dict[str, RatchetState] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, peer_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(peer_id)
            if lock is None:
                lock = self._locks[peer_id] = threading.RLock()
            return lock

    def create(self, peer_id: str, state: RatchetState) -> None:
        """Install a fresh session, replacing any existing one for the peer"""
        with self._lock_for(peer_id):
            self._sessions[peer_id] = state

    def has(self, peer_id: str) -> bool:
        return peer_id in self._sessions

    def get(self, peer_id: str) -> RatchetState:
        state = self._sessions.get(peer_id)
        if state is None:
            raise create_state_error(
                ErrorCode.SESSION_NOT_FOUND,
                f"No established session for peer {peer_id!r}",
                {'peer_id': peer_id}
            )
        return state

    @contextmanager
    def session(self, peer_id: str) -> Iterator[RatchetState]:
        with self._lock_for(peer_id):
            yield self.get(peer_id)

    def remove(self, peer_id: str) -> bool:
        with self._lock_for(peer_id):
            removed = self._sessions.pop(peer_id, None) is not None
            with self._guard:
                self._locks.pop(peer_id, None)
        return removed

    def peers(self) -> List[str]:
        return sorted(self._sessions)

    def __len__(self):
        return len(self._sessions)

    def __contains__(self, peer_id):
        return self.has(peer_id)
