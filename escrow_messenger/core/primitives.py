# primitives.py - Cryptographic primitives consumed by the ratchet
import os
import base64
from typing import NamedTuple, Tuple

from cryptography.exceptions import InvalidSignature, InvalidTag
from cryptography.hazmat.primitives import hashes, hmac, serialization
from cryptography.hazmat.primitives.asymmetric import ec, x25519
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from ..utils.error_handler import ErrorCode, create_auth_error, create_crypto_error

KEY_LENGTH = 32
NONCE_SIZE = 12


class KeyPair(NamedTuple):
    private_key: x25519.X25519PrivateKey
    public_key: x25519.X25519PublicKey


# Helpers
def b64(b: bytes) -> str:
    return base64.b64encode(b).decode()

def ub64(s: str) -> bytes:
    return base64.b64decode(s.encode(), validate=True)

def public_key_bytes(pk: x25519.X25519PublicKey) -> bytes:
    return pk.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw
    )

def public_key_from_bytes(b: bytes) -> x25519.X25519PublicKey:
    return x25519.X25519PublicKey.from_public_bytes(b)


# Key generation and DH
def generate_key_pair() -> KeyPair:
    sk = x25519.X25519PrivateKey.generate()
    return KeyPair(sk, sk.public_key())

def diffie_hellman(sk: x25519.X25519PrivateKey, pk: x25519.X25519PublicKey) -> bytes:
    try:
        return sk.exchange(pk)
    except ValueError as e:
        # X25519 rejects low-order points with an all-zero shared secret
        raise create_crypto_error(ErrorCode.DH_EXCHANGE_FAILED, f"DH exchange failed: {e}")


# Key derivation
def derive_two_keys(input_key: bytes, salt: bytes, label: bytes) -> Tuple[bytes, bytes]:
    derived = HKDF(
        algorithm=hashes.SHA256(),
        length=2 * KEY_LENGTH,
        salt=salt,
        info=label,
    ).derive(input_key)
    return derived[:KEY_LENGTH], derived[KEY_LENGTH:]

def derive_subkey(input_key: bytes, label: bytes) -> bytes:
    if input_key is None:
        raise ValueError("Input key cannot be None in derive_subkey")
    h = hmac.HMAC(input_key, hashes.SHA256())
    h.update(label)
    return h.finalize()


# AEAD helpers
def random_nonce(size: int = NONCE_SIZE) -> bytes:
    return os.urandom(size)

def authenticated_encrypt(key: bytes, plaintext: bytes, nonce: bytes, associated_data: bytes = b"") -> bytes:
    return AESGCM(key).encrypt(nonce, plaintext, associated_data)

def authenticated_decrypt(key: bytes, ciphertext: bytes, nonce: bytes, associated_data: bytes = b"") -> bytes:
    try:
        return AESGCM(key).decrypt(nonce, ciphertext, associated_data)
    except InvalidTag:
        raise create_auth_error(ErrorCode.AUTHENTICATION_FAILED, "AEAD tag verification failed")
    except ValueError as e:
        # Raised for nonces of an unsupported length
        raise create_auth_error(ErrorCode.AUTHENTICATION_FAILED, f"AEAD decryption rejected input: {e}")


# Signatures (certificate authority)
def generate_signing_key_pair() -> Tuple[ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey]:
    sk = ec.generate_private_key(ec.SECP256R1())
    return sk, sk.public_key()

def sign_message(sk: ec.EllipticCurvePrivateKey, message: bytes) -> bytes:
    return sk.sign(message, ec.ECDSA(hashes.SHA256()))

def verify_signature(authority_public_key: ec.EllipticCurvePublicKey, message: bytes, signature: bytes) -> bool:
    try:
        authority_public_key.verify(signature, message, ec.ECDSA(hashes.SHA256()))
        return True
    except InvalidSignature:
        return False
