# Escrow Messenger
"""
Session management and ratcheting core for point-to-point messaging
with per-message key escrow.

This package provides:
- Certificate-based session establishment
- Turn-based root and chain ratchets
- Per-message wrapping of message keys for an oversight authority
- Canonical header encoding bound to every ciphertext
"""

__version__ = "1.0.0"

from .messenger import MessengerClient
from .core.ratchet import RatchetState
from .core.session_store import SessionStore
from .security.certificates import Certificate, CertificateAuthority, Identity
from .security.escrow import EscrowEncoder, EscrowPayload, OversightAuthority
from .utils.config import MessengerConfig
from .utils.error_handler import (
    AuthenticationError,
    MessengerError,
    ProtocolStateError,
    TrustError,
)
from .utils.message_handler import MessageHandler, MessageHeader

__all__ = [
    'MessengerClient',
    'RatchetState',
    'SessionStore',
    'Certificate',
    'CertificateAuthority',
    'Identity',
    'EscrowEncoder',
    'EscrowPayload',
    'OversightAuthority',
    'MessengerConfig',
    'MessengerError',
    'TrustError',
    'AuthenticationError',
    'ProtocolStateError',
    'MessageHandler',
    'MessageHeader',
]
