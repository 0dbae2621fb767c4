"""Authenticated wire codec selected by the ``secret`` option.

Every Socket.IO packet is serialized to JSON and sealed with AES-GCM using a
key derived from the shared secret. Frames are sent as binary websocket
messages: ``nonce (12 bytes) || ciphertext || tag``.
"""

from __future__ import annotations

import hashlib
import os
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from socketio import packet

NONCE_SIZE = 12


def derive_key(secret: str) -> bytes:
    return hashlib.sha256(secret.encode("utf-8")).digest()


class SecretPacket(packet.Packet):
    """Packet class for ``AsyncServer(serializer=...)``; bind a key via create_packet_class."""

    uses_binary_events = False
    key: bytes = b""

    def encode(self) -> bytes:
        body: dict[str, Any] = {"type": self.packet_type, "nsp": self.namespace, "data": self.data}
        if self.id is not None:
            body["id"] = self.id
        plaintext = self.json.dumps(body, separators=(",", ":")).encode("utf-8")
        nonce = os.urandom(NONCE_SIZE)
        return nonce + AESGCM(self.key).encrypt(nonce, plaintext, None)

    def decode(self, encoded_packet: Any) -> int:
        if not isinstance(encoded_packet, (bytes, bytearray)) or len(encoded_packet) <= NONCE_SIZE:
            raise ValueError("secret codec expects a sealed binary frame")
        nonce, sealed = bytes(encoded_packet[:NONCE_SIZE]), bytes(encoded_packet[NONCE_SIZE:])
        try:
            plaintext = AESGCM(self.key).decrypt(nonce, sealed, None)
        except InvalidTag:
            raise ValueError("secret codec could not authenticate frame") from None
        body = self.json.loads(plaintext.decode("utf-8"))
        self.packet_type = body["type"]
        self.namespace = body.get("nsp")
        self.data = body.get("data")
        self.id = body.get("id")
        return 0


def create_packet_class(secret: str | None) -> type[packet.Packet]:
    """Plain JSON packets without a secret, sealed packets with one."""
    if not secret:
        return packet.Packet
    return type("SecretPacket", (SecretPacket,), {"key": derive_key(secret)})
