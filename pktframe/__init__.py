"""Framed binary packets with header, length, command, payload and CRC-32 trailer."""

__version__ = "0.1.0"
__all__ = ["packet", "demo"]