# config.py - Protocol constants shared by both ends of a conversation
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict


@dataclass(frozen=True)
class MessengerConfig:
    # Both peers must agree on every label, otherwise no message authenticates.
    root_label: bytes = b"escrow-messenger/root"
    chain_label: bytes = b"escrow-messenger/chain"
    message_label: bytes = b"escrow-messenger/message"
    escrow_wrap_label: bytes = b"escrow-messenger/escrow-wrap"
    nonce_size: int = 12
    protocol_version: str = "1.0"
    logger_name: str = "EscrowMessenger"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MessengerConfig":
        known = {field.name: field for field in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                raise ValueError(f"Unknown configuration key: {key}")
            if known[key].type is bytes and isinstance(value, str):
                value = value.encode("utf-8")
            values[key] = value
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, bytes):
                data[key] = value.decode("utf-8")
        return data


DEFAULT_CONFIG = MessengerConfig()
