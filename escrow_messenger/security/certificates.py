# certificates.py - Identity key pairs and CA-signed certificates
import binascii
import json
import logging
from typing import Any, Dict, Optional

from cryptography.hazmat.primitives.asymmetric import ec, x25519

from ..core.primitives import (
    KeyPair,
    b64,
    generate_key_pair,
    generate_signing_key_pair,
    public_key_bytes,
    public_key_from_bytes,
    sign_message,
    ub64,
    verify_signature,
)
from ..utils.error_handler import ErrorCode, create_state_error, create_trust_error

logger = logging.getLogger(__name__)


class Identity:
    """Long-term identity key pair of the local user"""

    def __init__(self, key_pair: KeyPair):
        self.key_pair = key_pair

    @classmethod
    def generate(cls) -> "Identity":
        return cls(generate_key_pair())

    @property
    def public_key(self) -> x25519.X25519PublicKey:
        return self.key_pair.public_key


class Certificate:
    """Binding of a username to a long-term public key"""

    __slots__ = ('_username', '_public_key')

    def __init__(self, username: str, public_key: x25519.X25519PublicKey):
        self._username = username
        self._public_key = public_key

    @property
    def username(self) -> str:
        return self._username

    @property
    def public_key(self) -> x25519.X25519PublicKey:
        return self._public_key

    def to_dict(self) -> Dict[str, str]:
        return {
            'username': self._username,
            'publicKey': b64(public_key_bytes(self._public_key)),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Certificate":
        try:
            username = data['username']
            public_key = public_key_from_bytes(ub64(data['publicKey']))
        except (KeyError, TypeError, ValueError, binascii.Error) as e:
            raise create_trust_error(ErrorCode.CERTIFICATE_MALFORMED, f"Malformed certificate: {e}")
        if not isinstance(username, str):
            raise create_trust_error(ErrorCode.CERTIFICATE_MALFORMED, "Certificate username must be a string")
        return cls(username, public_key)

    def canonical_bytes(self) -> bytes:
        """Bytes covered by the certificate authority's signature"""
        return json.dumps(self.to_dict(), separators=(',', ':')).encode('utf-8')

    def __eq__(self, other):
        if not isinstance(other, Certificate):
            return NotImplemented
        return self.canonical_bytes() == other.canonical_bytes()

    def __hash__(self):
        return hash(self.canonical_bytes())

    def __repr__(self):
        return f"Certificate(username={self._username!r})"


class CertificateAuthority:
    """Signs certificates; peers verify them with the authority's public key"""

    def __init__(self, signing_key: Optional[ec.EllipticCurvePrivateKey] = None):
        if signing_key is None:
            signing_key, _ = generate_signing_key_pair()
        self.signing_key = signing_key

    @property
    def public_key(self) -> ec.EllipticCurvePublicKey:
        return self.signing_key.public_key()

    def sign(self, certificate: Certificate) -> bytes:
        return sign_message(self.signing_key, certificate.canonical_bytes())


class CertificateTrust:
    """Verifies peer certificates and records the keys of trusted peers"""

    def __init__(self, ca_public_key: ec.EllipticCurvePublicKey):
        self.ca_public_key = ca_public_key
        self.trusted_keys: Dict[str, x25519.X25519PublicKey] = {}

    def verify(self, certificate: Certificate, signature: bytes) -> None:
        if not isinstance(signature, (bytes, bytearray)) or not verify_signature(
                self.ca_public_key, certificate.canonical_bytes(), bytes(signature)):
            raise create_trust_error(
                ErrorCode.CERTIFICATE_INVALID,
                f"Certificate signature invalid for {certificate.username!r}",
                {'username': certificate.username}
            )

    def record(self, certificate: Certificate) -> x25519.X25519PublicKey:
        """Trust a certificate that has already been verified"""
        if certificate.username in self.trusted_keys:
            logger.warning("Replacing trusted key for %s; session will be reset", certificate.username)
        self.trusted_keys[certificate.username] = certificate.public_key
        return certificate.public_key

    def accept(self, certificate: Certificate, signature: bytes) -> x25519.X25519PublicKey:
        self.verify(certificate, signature)
        return self.record(certificate)

    def public_key_for(self, username: str) -> x25519.X25519PublicKey:
        if username not in self.trusted_keys:
            raise create_state_error(ErrorCode.SESSION_NOT_FOUND, f"No trusted certificate for {username!r}")
        return self.trusted_keys[username]

    def is_trusted(self, username: str) -> bool:
        return username in self.trusted_keys
