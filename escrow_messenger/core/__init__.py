# Core Ratchet Module
"""
Primitives, the turn-based ratchet engine and the per-peer session store.
"""

from .ratchet import RatchetState, init_session, ratchet_encrypt, ratchet_decrypt
from .session_store import SessionStore

__all__ = ['RatchetState', 'init_session', 'ratchet_encrypt', 'ratchet_decrypt', 'SessionStore']
