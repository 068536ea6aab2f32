# escrow.py - Per-message key escrow for the oversight authority
import logging
from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives.asymmetric import x25519

from ..core.primitives import (
    KeyPair,
    authenticated_decrypt,
    authenticated_encrypt,
    derive_subkey,
    diffie_hellman,
    generate_key_pair,
    public_key_bytes,
    public_key_from_bytes,
    random_nonce,
)
from ..utils.config import DEFAULT_CONFIG, MessengerConfig
from ..utils.error_handler import CryptographicError, ErrorCode, create_auth_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EscrowPayload:
    """Escrow triple carried in every message header"""
    encapsulated_public_key: bytes
    wrapped_key: bytes
    escrow_iv: bytes


class EscrowEncoder:
    """Wraps message keys for a fixed oversight public key.

    Every call uses a fresh ephemeral key pair and nonce, so escrow output
    never depends on the conversing parties' ratchet state.
    """

    def __init__(self, oversight_public_key: x25519.X25519PublicKey,
                 config: Optional[MessengerConfig] = None):
        self.oversight_public_key = oversight_public_key
        self.config = config or DEFAULT_CONFIG

    def wrap(self, escrow_key: bytes) -> EscrowPayload:
        ephemeral = generate_key_pair()
        shared_secret = diffie_hellman(ephemeral.private_key, self.oversight_public_key)
        wrapping_key = derive_subkey(shared_secret, self.config.escrow_wrap_label)
        escrow_iv = random_nonce(self.config.nonce_size)
        wrapped_key = authenticated_encrypt(wrapping_key, escrow_key, escrow_iv)
        return EscrowPayload(
            encapsulated_public_key=public_key_bytes(ephemeral.public_key),
            wrapped_key=wrapped_key,
            escrow_iv=escrow_iv,
        )


class OversightAuthority:
    """Holder of the oversight private key: recovers escrowed message keys."""

    def __init__(self, key_pair: Optional[KeyPair] = None,
                 config: Optional[MessengerConfig] = None):
        self.key_pair = key_pair or generate_key_pair()
        self.config = config or DEFAULT_CONFIG

    @property
    def public_key(self) -> x25519.X25519PublicKey:
        return self.key_pair.public_key

    def unwrap(self, payload: EscrowPayload) -> bytes:
        try:
            encapsulated = public_key_from_bytes(payload.encapsulated_public_key)
            shared_secret = diffie_hellman(self.key_pair.private_key, encapsulated)
        except (ValueError, CryptographicError) as e:
            raise create_auth_error(ErrorCode.MESSAGE_FORMAT_INVALID, f"Bad encapsulated key: {e}")
        wrapping_key = derive_subkey(shared_secret, self.config.escrow_wrap_label)
        return authenticated_decrypt(wrapping_key, payload.wrapped_key, payload.escrow_iv)

    def decrypt_message(self, header, ciphertext: bytes) -> str:
        """Decrypt an intercepted message using only its escrow payload"""
        # Imported here: the codec depends on EscrowPayload from this module
        from ..utils.message_handler import MessageHandler

        message_key = self.unwrap(header.escrow)
        associated_data = MessageHandler(self.config).header_bytes(header)
        plaintext = authenticated_decrypt(message_key, ciphertext, header.receiver_iv, associated_data)
        logger.debug("Recovered escrowed message of %d bytes", len(plaintext))
        return plaintext.decode("utf-8")
