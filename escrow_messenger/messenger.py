# messenger.py - Messaging client: certificates, sessions and escrowed messages
import logging
from typing import List, Optional, Tuple

from cryptography.hazmat.primitives.asymmetric import ec, x25519

from .core.ratchet import RatchetState, init_session, ratchet_decrypt, ratchet_encrypt
from .core.session_store import SessionStore
from .security.certificates import Certificate, CertificateTrust, Identity
from .security.escrow import EscrowEncoder
from .utils.config import DEFAULT_CONFIG, MessengerConfig
from .utils.error_handler import (
    CryptographicError,
    ErrorCode,
    ErrorHandler,
    MessengerError,
    create_state_error,
    create_trust_error,
)
from .utils.message_handler import MessageHeader

logger = logging.getLogger(__name__)


class MessengerClient:
    """
    End-to-end messaging client with per-message key escrow.

    Peers are identified by the username of their certificate. A session is
    created when a peer's certificate is accepted and then advanced by every
    send and receive.
    """

    def __init__(self, ca_public_key: ec.EllipticCurvePublicKey,
                 oversight_public_key: x25519.X25519PublicKey,
                 config: Optional[MessengerConfig] = None,
                 error_handler: Optional[ErrorHandler] = None):
        self.config = config or DEFAULT_CONFIG
        self.error_handler = error_handler or ErrorHandler(logger_name=self.config.logger_name)
        self.trust = CertificateTrust(ca_public_key)
        self.escrow = EscrowEncoder(oversight_public_key, self.config)
        self.sessions = SessionStore()
        self.identity: Optional[Identity] = None
        self.username: Optional[str] = None

    def issue_certificate(self, username: str) -> Certificate:
        """Generate a new identity key pair and return its certificate.

        The new identity replaces the previous one; sessions that already
        exist keep the key pair they were created with.
        """
        self.error_handler.validate_parameter("username", username, str, min_length=1)
        self.identity = Identity.generate()
        self.username = username
        logger.info("Issued certificate for %s", username)
        return Certificate(username, self.identity.public_key)

    def accept_certificate(self, certificate: Certificate, signature: bytes) -> None:
        if self.identity is None:
            raise create_state_error(
                ErrorCode.IDENTITY_MISSING,
                "Issue a certificate before accepting peer certificates"
            )
        try:
            self.trust.verify(certificate, signature)
            try:
                state = init_session(self.identity, certificate.public_key)
            except CryptographicError as e:
                raise create_trust_error(
                    ErrorCode.CERTIFICATE_INVALID,
                    f"Certificate key for {certificate.username!r} is unusable: {e.message}",
                    {"username": certificate.username}
                )
            self.trust.record(certificate)
            self.sessions.create(certificate.username, state)
        except Exception as e:
            self.error_handler.handle_error(e, f"accept_certificate for {certificate.username}")
            raise
        logger.info("Established session with %s", certificate.username)

    def send(self, peer_id: str, plaintext: str) -> Tuple[MessageHeader, bytes]:
        self.error_handler.validate_parameter("plaintext", plaintext, str)
        try:
            plaintext.encode("utf-8")
        except UnicodeEncodeError as e:
            raise MessengerError(ErrorCode.INVALID_PARAMETER, f"Plaintext is not valid UTF-8 text: {e}")
        try:
            with self.sessions.session(peer_id) as state:
                return ratchet_encrypt(state, plaintext, self.escrow, self.config)
        except Exception as e:
            self.error_handler.handle_error(e, f"send to {peer_id}")
            raise

    def receive(self, peer_id: str, message: Tuple[MessageHeader, bytes]) -> str:
        header, ciphertext = message
        try:
            with self.sessions.session(peer_id) as state:
                return ratchet_decrypt(state, header, ciphertext, self.config)
        except Exception as e:
            self.error_handler.handle_error(e, f"receive from {peer_id}")
            raise

    def session_state(self, peer_id: str) -> RatchetState:
        return self.sessions.get(peer_id)

    def peers(self) -> List[str]:
        return self.sessions.peers()
