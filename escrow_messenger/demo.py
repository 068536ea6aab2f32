#!/usr/bin/env python3
"""
Escrow Messenger demonstration.

Runs a short conversation between two clients, shows the root epoch on
both sides after every message, and lets the oversight authority recover
each intercepted message from its escrow payload alone.
"""

import argparse
import logging
import sys

from .messenger import MessengerClient
from .security.certificates import CertificateAuthority
from .security.escrow import OversightAuthority
from .utils.error_handler import AuthenticationError
from .utils.message_handler import MessageHandler

DEFAULT_SCRIPT = [
    ("bob", "hi"),
    ("alice", "hello"),
    ("alice", "how are you?"),
    ("bob", "fine, thanks"),
]


def build_pair(ca, oversight, first="alice", second="bob"):
    """Create two clients that trust each other's certificates"""
    clients = {
        first: MessengerClient(ca.public_key, oversight.public_key),
        second: MessengerClient(ca.public_key, oversight.public_key),
    }
    certificates = {name: client.issue_certificate(name) for name, client in clients.items()}
    for name, client in clients.items():
        for peer, certificate in certificates.items():
            if peer != name:
                client.accept_certificate(certificate, ca.sign(certificate))
    return clients


def run_conversation(script, show_escrow=False, tamper=False, out=None):
    if out is None:
        out = sys.stdout
    ca = CertificateAuthority()
    oversight = OversightAuthority()
    clients = build_pair(ca, oversight)
    handler = MessageHandler()

    for index, (sender, text) in enumerate(script, start=1):
        receiver = "bob" if sender == "alice" else "alice"
        header, ciphertext = clients[sender].send(receiver, text)
        wire = handler.serialize_message(header, ciphertext)
        print(f"{index}. {sender} -> {receiver}: {len(wire)} bytes on the wire", file=out)

        if show_escrow:
            recovered = oversight.decrypt_message(header, ciphertext)
            print(f"   oversight recovered: {recovered!r}", file=out)

        received_header, received_ciphertext = handler.deserialize_message(wire)
        if tamper and index == 1:
            forged = bytearray(received_ciphertext)
            forged[0] ^= 0x01
            try:
                clients[receiver].receive(sender, (received_header, bytes(forged)))
            except AuthenticationError as e:
                print(f"   tampered copy rejected: {e}", file=out)

        plaintext = clients[receiver].receive(sender, (received_header, received_ciphertext))
        epochs = (clients[sender].session_state(receiver).root_epoch,
                  clients[receiver].session_state(sender).root_epoch)
        print(f"   {receiver} read {plaintext!r} (root epochs {epochs[0]}/{epochs[1]})", file=out)

    return clients


def main(argv=None):
    parser = argparse.ArgumentParser(description="Escrow Messenger conversation demo")
    parser.add_argument("messages", nargs="*",
                        help="messages as sender:text, e.g. alice:hello (default: built-in script)")
    parser.add_argument("--show-escrow", action="store_true",
                        help="decrypt every message with the oversight key")
    parser.add_argument("--tamper", action="store_true",
                        help="deliver a forged copy of the first message before the real one")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    script = DEFAULT_SCRIPT
    if args.messages:
        script = []
        for item in args.messages:
            sender, sep, text = item.partition(":")
            if not sep or sender not in ("alice", "bob"):
                parser.error(f"expected alice:<text> or bob:<text>, got {item!r}")
            script.append((sender, text))

    run_conversation(script, show_escrow=args.show_escrow, tamper=args.tamper)
    return 0


if __name__ == '__main__':
    sys.exit(main())
