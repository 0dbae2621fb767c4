"""Transport adapters: wire codecs for the Socket.IO layer."""

from nanorpc.transport.codec import SecretPacket, create_packet_class

__all__ = ["SecretPacket", "create_packet_class"]
