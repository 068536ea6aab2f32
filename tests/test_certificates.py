# test_certificates.py - Tests for certificate issuing and trust
import pytest

from escrow_messenger import Certificate, ProtocolStateError, TrustError
from escrow_messenger.core.primitives import public_key_bytes
from escrow_messenger.security.certificates import CertificateAuthority, CertificateTrust, Identity
from escrow_messenger.utils.error_handler import ErrorCode


def test_canonical_bytes_are_fixed():
    identity = Identity.generate()
    certificate = Certificate("alice", identity.public_key)
    encoded = certificate.canonical_bytes()
    assert encoded.startswith(b'{"username":"alice","publicKey":"')
    assert b" " not in encoded
    assert Certificate.from_dict(certificate.to_dict()) == certificate


def test_certificate_is_immutable():
    certificate = Certificate("alice", Identity.generate().public_key)
    with pytest.raises(AttributeError):
        certificate.username = "mallory"


def test_from_dict_rejects_malformed_data():
    with pytest.raises(TrustError) as excinfo:
        Certificate.from_dict({"username": "alice", "publicKey": "not base64!"})
    assert excinfo.value.error_code == ErrorCode.CERTIFICATE_MALFORMED
    with pytest.raises(TrustError):
        Certificate.from_dict({"username": "alice"})


def test_accept_records_trusted_key(ca):
    trust = CertificateTrust(ca.public_key)
    certificate = Certificate("bob", Identity.generate().public_key)
    key = trust.accept(certificate, ca.sign(certificate))
    assert key is certificate.public_key
    assert trust.is_trusted("bob")
    assert trust.public_key_for("bob") is key


def test_mutated_certificate_is_rejected(ca):
    trust = CertificateTrust(ca.public_key)
    certificate = Certificate("bob", Identity.generate().public_key)
    signature = ca.sign(certificate)
    forged = Certificate("mallory", certificate.public_key)
    with pytest.raises(TrustError) as excinfo:
        trust.accept(forged, signature)
    assert excinfo.value.error_code == ErrorCode.CERTIFICATE_INVALID
    assert not trust.is_trusted("mallory")


def test_signature_from_other_authority_is_rejected(ca):
    trust = CertificateTrust(ca.public_key)
    certificate = Certificate("bob", Identity.generate().public_key)
    with pytest.raises(TrustError):
        trust.accept(certificate, CertificateAuthority().sign(certificate))
    with pytest.raises(TrustError):
        trust.accept(certificate, "not bytes")


def test_public_key_for_unknown_peer():
    trust = CertificateTrust(CertificateAuthority().public_key)
    with pytest.raises(ProtocolStateError):
        trust.public_key_for("nobody")


def test_identity_generates_distinct_keys():
    first, second = Identity.generate(), Identity.generate()
    assert public_key_bytes(first.public_key) != public_key_bytes(second.public_key)
