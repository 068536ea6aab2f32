# conftest.py - Shared fixtures: certificate authority, oversight key and client pairs
import pytest

from escrow_messenger import Certificate, CertificateAuthority, MessengerClient, OversightAuthority


@pytest.fixture
def ca():
    return CertificateAuthority()


@pytest.fixture
def oversight():
    return OversightAuthority()


@pytest.fixture
def make_client(ca, oversight):
    def _make(username, config=None):
        client = MessengerClient(ca.public_key, oversight.public_key, config=config)
        client.issue_certificate(username)
        return client
    return _make


@pytest.fixture
def introduce(ca):
    """Have every client accept every other client's current certificate"""
    def _introduce(*clients):
        certificates = [Certificate(c.username, c.identity.public_key) for c in clients]
        for client in clients:
            for certificate in certificates:
                if certificate.username != client.username:
                    client.accept_certificate(certificate, ca.sign(certificate))
    return _introduce


@pytest.fixture
def pair(make_client, introduce):
    alice = make_client("alice")
    bob = make_client("bob")
    introduce(alice, bob)
    return alice, bob
