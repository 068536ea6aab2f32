# test_message_handler.py - Tests for header encoding and the wire envelope
import json

import pytest

from escrow_messenger.security.escrow import EscrowPayload
from escrow_messenger.utils.config import MessengerConfig
from escrow_messenger.utils.error_handler import AuthenticationError, ErrorCode
from escrow_messenger.utils.message_handler import HEADER_FIELDS, MessageHandler, MessageHeader


@pytest.fixture
def header():
    return MessageHeader(
        sender_public_key=b"\x01" * 32,
        receiver_iv=b"\x02" * 12,
        escrow=EscrowPayload(b"\x03" * 32, b"\x04" * 48, b"\x05" * 12),
    )


def test_header_bytes_field_order_and_compactness(header):
    encoded = MessageHandler.header_bytes(header)
    assert list(json.loads(encoded)) == list(HEADER_FIELDS)
    assert b" " not in encoded
    assert MessageHandler.header_bytes(MessageHeader.deserialize(header.serialize())) == encoded


def test_header_bytes_differ_per_field(header):
    base = MessageHandler.header_bytes(header)
    variants = [
        MessageHeader(b"\x09" * 32, header.receiver_iv, header.escrow),
        MessageHeader(header.sender_public_key, b"\x09" * 12, header.escrow),
        MessageHeader(header.sender_public_key, header.receiver_iv,
                      EscrowPayload(b"\x09" * 32, b"\x04" * 48, b"\x05" * 12)),
    ]
    for variant in variants:
        assert MessageHandler.header_bytes(variant) != base


def test_wire_roundtrip(header):
    handler = MessageHandler()
    wire = handler.serialize_message(header, b"ciphertext")
    assert handler.deserialize_message(wire) == (header, b"ciphertext")


def test_deserialize_rejects_bad_input(header):
    handler = MessageHandler()
    with pytest.raises(AuthenticationError):
        handler.deserialize_message("{not json")
    with pytest.raises(AuthenticationError):
        handler.deserialize_message("[]")

    message = json.loads(handler.serialize_message(header, b"ct"))
    del message['header']['cGov']
    with pytest.raises(AuthenticationError) as excinfo:
        handler.deserialize_message(json.dumps(message))
    assert excinfo.value.error_code == ErrorCode.MESSAGE_FORMAT_INVALID

    message = json.loads(handler.serialize_message(header, b"ct"))
    message['ciphertext'] = "***"
    with pytest.raises(AuthenticationError):
        handler.deserialize_message(json.dumps(message))


def test_deserialize_rejects_other_version(header):
    wire = MessageHandler(MessengerConfig(protocol_version="2.0")).serialize_message(header, b"ct")
    with pytest.raises(AuthenticationError) as excinfo:
        MessageHandler().deserialize_message(wire)
    assert excinfo.value.error_code == ErrorCode.UNSUPPORTED_VERSION
