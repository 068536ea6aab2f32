# message_handler.py - Canonical header encoding and wire message format
import binascii
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..core.primitives import b64, ub64
from ..security.escrow import EscrowPayload
from .config import DEFAULT_CONFIG, MessengerConfig
from .error_handler import ErrorCode, create_auth_error

# Field order is part of the protocol: the encoded header is the AEAD
# associated data and both ends must produce identical bytes.
HEADER_FIELDS = ('senderPublicKey', 'receiver_iv', 'vGov', 'cGov', 'ivGov')


@dataclass(frozen=True)
class MessageHeader:
    sender_public_key: bytes
    receiver_iv: bytes
    escrow: EscrowPayload

    def serialize(self) -> Dict[str, str]:
        return {
            'senderPublicKey': b64(self.sender_public_key),
            'receiver_iv': b64(self.receiver_iv),
            'vGov': b64(self.escrow.encapsulated_public_key),
            'cGov': b64(self.escrow.wrapped_key),
            'ivGov': b64(self.escrow.escrow_iv),
        }

    @staticmethod
    def deserialize(val: Dict[str, Any]) -> "MessageHeader":
        if not isinstance(val, dict):
            raise create_auth_error(ErrorCode.MESSAGE_FORMAT_INVALID, "Header must be a mapping")
        missing = [field for field in HEADER_FIELDS if field not in val]
        if missing:
            raise create_auth_error(
                ErrorCode.MESSAGE_FORMAT_INVALID,
                f"Missing header fields: {', '.join(missing)}"
            )
        try:
            decoded = {field: ub64(val[field]) for field in HEADER_FIELDS}
        except (binascii.Error, AttributeError, TypeError) as e:
            raise create_auth_error(ErrorCode.MESSAGE_FORMAT_INVALID, f"Header field is not base64: {e}")
        return MessageHeader(
            sender_public_key=decoded['senderPublicKey'],
            receiver_iv=decoded['receiver_iv'],
            escrow=EscrowPayload(
                encapsulated_public_key=decoded['vGov'],
                wrapped_key=decoded['cGov'],
                escrow_iv=decoded['ivGov'],
            ),
        )


class MessageHandler:
    """Builds the associated data for a header and the JSON wire envelope"""

    def __init__(self, config: Optional[MessengerConfig] = None):
        self.config = config or DEFAULT_CONFIG

    @staticmethod
    def header_bytes(header: MessageHeader) -> bytes:
        return json.dumps(header.serialize(), separators=(',', ':')).encode('utf-8')

    def serialize_message(self, header: MessageHeader, ciphertext: bytes) -> str:
        """Serialize a (header, ciphertext) pair to JSON for transmission"""
        return json.dumps({
            'version': self.config.protocol_version,
            'header': header.serialize(),
            'ciphertext': b64(ciphertext),
        })

    def deserialize_message(self, message_json: str) -> Tuple[MessageHeader, bytes]:
        try:
            message = json.loads(message_json)
        except json.JSONDecodeError as e:
            raise create_auth_error(ErrorCode.MESSAGE_FORMAT_INVALID, f"Invalid JSON message: {e}")

        if not isinstance(message, dict):
            raise create_auth_error(ErrorCode.MESSAGE_FORMAT_INVALID, "Message must be a JSON object")
        for field in ('version', 'header', 'ciphertext'):
            if field not in message:
                raise create_auth_error(ErrorCode.MESSAGE_FORMAT_INVALID, f"Missing required field: {field}")

        if message['version'] != self.config.protocol_version:
            raise create_auth_error(
                ErrorCode.UNSUPPORTED_VERSION,
                f"Unsupported protocol version: {message['version']}"
            )

        header = MessageHeader.deserialize(message['header'])
        try:
            ciphertext = ub64(message['ciphertext'])
        except (binascii.Error, AttributeError, TypeError) as e:
            raise create_auth_error(ErrorCode.MESSAGE_FORMAT_INVALID, f"Ciphertext is not base64: {e}")
        return header, ciphertext
