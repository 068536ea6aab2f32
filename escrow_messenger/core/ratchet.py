# ratchet.py - Root and chain ratchets with turn-based stepping
"""
Turn-based double ratchet.

Each session keeps a single root key seeded from the DH of the two
certified long-term keys. A root-ratchet step runs whenever the direction
of the conversation changes: the sender generates a fresh key pair, the
receiver reuses its current private key with the key from the header.
Every message additionally steps the symmetric chain for its direction.

Delivery is assumed in-order and lock-step; there is no skipped-key store.
"""

import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional, Tuple

from cryptography.hazmat.primitives.asymmetric import x25519

from .primitives import (
    KeyPair,
    authenticated_decrypt,
    authenticated_encrypt,
    derive_subkey,
    derive_two_keys,
    diffie_hellman,
    generate_key_pair,
    public_key_bytes,
    public_key_from_bytes,
    random_nonce,
)
from ..utils.config import DEFAULT_CONFIG, MessengerConfig
from ..utils.error_handler import (
    CryptographicError,
    ErrorCode,
    create_auth_error,
    create_state_error,
)
from ..utils.message_handler import MessageHandler, MessageHeader

logger = logging.getLogger(__name__)


@dataclass
class RatchetState:
    local_key_pair: KeyPair
    remote_public_key: x25519.X25519PublicKey
    root_key: bytes
    sending_chain_key: Optional[bytes] = None
    receiving_chain_key: Optional[bytes] = None
    turn: bool = False          # True if we sent the most recent message
    initialized: bool = False   # True once a message has been received
    root_epoch: int = 1


class RootStep(NamedTuple):
    root_key: bytes
    chain_key: bytes
    key_pair: KeyPair


class ChainStep(NamedTuple):
    chain_key: bytes
    message_key: bytes
    escrow_key: bytes


def init_session(identity, their_public_key: x25519.X25519PublicKey) -> RatchetState:
    """Seed a session from the DH of our identity key and the peer's certified key"""
    key_pair = identity.key_pair
    return RatchetState(
        local_key_pair=key_pair,
        remote_public_key=their_public_key,
        root_key=diffie_hellman(key_pair.private_key, their_public_key),
    )


def kdf_root(root_key: bytes, remote_public_key: x25519.X25519PublicKey,
             key_pair: Optional[KeyPair] = None,
             label: bytes = DEFAULT_CONFIG.root_label) -> RootStep:
    """
    Advance the root key.

    The sender passes no key pair and gets a freshly generated one back; the
    receiver passes its current pair so that both ends compute the same DH.
    """
    if key_pair is None:
        key_pair = generate_key_pair()
    shared_secret = diffie_hellman(key_pair.private_key, remote_public_key)
    new_root_key, chain_key = derive_two_keys(root_key, shared_secret, label)
    return RootStep(new_root_key, chain_key, key_pair)


def kdf_chain(chain_key: bytes,
              chain_label: bytes = DEFAULT_CONFIG.chain_label,
              message_label: bytes = DEFAULT_CONFIG.message_label) -> ChainStep:
    if chain_key is None:
        raise create_state_error(ErrorCode.CHAIN_KEY_MISSING, "Chain key cannot be None in kdf_chain")

    next_chain_key = derive_subkey(chain_key, chain_label)
    message_key = derive_subkey(chain_key, message_label)
    # Escrow material is the exported form of the message key itself
    escrow_key = message_key
    return ChainStep(next_chain_key, message_key, escrow_key)


def ratchet_encrypt(state: RatchetState, plaintext: str, escrow_encoder,
                    config: MessengerConfig = DEFAULT_CONFIG) -> Tuple[MessageHeader, bytes]:
    root_key = state.root_key
    key_pair = state.local_key_pair
    sending_chain_key = state.sending_chain_key
    root_epoch = state.root_epoch

    if not state.turn:
        step = kdf_root(root_key, state.remote_public_key, label=config.root_label)
        root_key, sending_chain_key, key_pair = step
        root_epoch += 1
        logger.debug("Sending root ratchet step, epoch %d", root_epoch)

    chain = kdf_chain(sending_chain_key, config.chain_label, config.message_label)

    header = MessageHeader(
        sender_public_key=public_key_bytes(key_pair.public_key),
        receiver_iv=random_nonce(config.nonce_size),
        escrow=escrow_encoder.wrap(chain.escrow_key),
    )
    ciphertext = authenticated_encrypt(
        chain.message_key,
        plaintext.encode('utf-8'),
        header.receiver_iv,
        MessageHandler.header_bytes(header),
    )

    state.root_key = root_key
    state.local_key_pair = key_pair
    state.sending_chain_key = chain.chain_key
    state.root_epoch = root_epoch
    state.turn = True
    return header, ciphertext


def ratchet_decrypt(state: RatchetState, header: MessageHeader, ciphertext: bytes,
                    config: MessengerConfig = DEFAULT_CONFIG) -> str:
    root_key = state.root_key
    remote_public_key = state.remote_public_key
    receiving_chain_key = state.receiving_chain_key
    root_epoch = state.root_epoch

    if state.turn or not state.initialized:
        try:
            remote_public_key = public_key_from_bytes(header.sender_public_key)
            step = kdf_root(root_key, remote_public_key, state.local_key_pair, config.root_label)
        except (ValueError, CryptographicError) as e:
            raise create_auth_error(ErrorCode.AUTHENTICATION_FAILED, f"Unusable sender key in header: {e}")
        root_key, receiving_chain_key, _ = step
        root_epoch += 1
        logger.debug("Receiving root ratchet step, epoch %d", root_epoch)

    chain = kdf_chain(receiving_chain_key, config.chain_label, config.message_label)
    plaintext = authenticated_decrypt(
        chain.message_key,
        ciphertext,
        header.receiver_iv,
        MessageHandler.header_bytes(header),
    )
    try:
        text = plaintext.decode('utf-8')
    except UnicodeDecodeError as e:
        raise create_auth_error(ErrorCode.MESSAGE_FORMAT_INVALID, f"Plaintext is not UTF-8: {e}")

    state.remote_public_key = remote_public_key
    state.root_key = root_key
    state.receiving_chain_key = chain.chain_key
    state.root_epoch = root_epoch
    state.initialized = True
    state.turn = False
    return text
