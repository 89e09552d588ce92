"""Framed binary packets with a length field, a command and a CRC-32 trailer.

Frame layout::

    [header][length][command][payload ...][crc32]

The header, length and command fields and the CRC are written in the byte
order the packet was configured with. The length field counts the command,
the payload and the 4-byte CRC. Typed values appended to the payload
(integers, length-prefixed strings, JSON) use the host's native byte order.

Each thread that uses a :class:`Packet` works on its own private state, so
one instance can be shared between threads.
"""

from __future__ import annotations

import json
import sys
import threading
import zlib
from enum import IntEnum
from typing import Any, Literal

CRC_SIZE = 4
_MAX_HEADER_BYTES = 4
_MAX_LENGTH_BYTES = 4
_MAX_COMMAND_BYTES = 2


class ByteOrder(IntEnum):
    """Byte order used for the frame fields."""

    BIG = 0
    LITTLE = 1

    @property
    def codec(self) -> Literal["big", "little"]:
        """The name :meth:`int.to_bytes` expects for this order."""
        return "big" if self is ByteOrder.BIG else "little"


class PacketError(Exception):
    """Raised when a packet cannot be built, decoded or read."""


def crc32(data: bytes, key: int = 0) -> int:
    """CRC-32 (IEEE) of ``data``, seeded with ``key``."""
    return zlib.crc32(data, key & 0xFFFFFFFF) & 0xFFFFFFFF


def _dump_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


class _Context(threading.local):
    """Per-thread working state of a packet."""

    def __init__(self) -> None:
        self.command = 0
        self.data: bytes | None = None
        self.staged: bytearray | None = None
        self.fetch_offset = 0
        self.fetch_remain = 0
        self.payload = b""


class Packet:
    """Builds and decodes frames; state is kept separately for every thread."""

    def __init__(
        self,
        byte_order: ByteOrder | int,
        header_data: int,
        header_byte: int,
        length_byte: int = 4,
        command_byte: int = 2,
        crc_key: int = 0,
    ) -> None:
        if not 0 <= header_byte <= _MAX_HEADER_BYTES:
            raise ValueError(f"header_byte must be 0..{_MAX_HEADER_BYTES}, got {header_byte}")
        if not 1 <= length_byte <= _MAX_LENGTH_BYTES:
            raise ValueError(f"length_byte must be 1..{_MAX_LENGTH_BYTES}, got {length_byte}")
        if not 0 <= command_byte <= _MAX_COMMAND_BYTES:
            raise ValueError(f"command_byte must be 0..{_MAX_COMMAND_BYTES}, got {command_byte}")
        self._order = ByteOrder(byte_order)
        self._header_byte = header_byte
        self._length_byte = length_byte
        self._command_byte = command_byte
        self._header_data = header_data & 0xFFFFFFFF
        self._crc_key = crc_key & 0xFFFFFFFF
        self._ctx = _Context()

    # -- field encoding -------------------------------------------------

    def _pack(self, value: int, size: int) -> bytes:
        mask = (1 << (8 * size)) - 1
        return (value & mask).to_bytes(size, self._order.codec)

    def _unpack(self, raw: bytes) -> int:
        return int.from_bytes(raw, self._order.codec)

    def _crc_ok(self, frame: bytes) -> bool:
        if len(frame) < CRC_SIZE:
            return False
        expected = crc32(frame[:-CRC_SIZE], self._crc_key)
        return expected == self._unpack(frame[-CRC_SIZE:])

    # -- building and decoding ------------------------------------------

    def serialize(self) -> bytes:
        """Frame the staged payload with the current command and return the frame."""
        ctx = self._ctx
        body = bytes(ctx.staged) if ctx.staged is not None else b""
        data_length = self._command_byte + len(body) + CRC_SIZE
        if data_length >= 1 << (8 * self._length_byte):
            raise PacketError(
                f"frame length {data_length} does not fit in {self._length_byte} length byte(s)"
            )

        frame = bytearray()
        frame += self._pack(self._header_data, self._header_byte)
        frame += self._pack(data_length, self._length_byte)
        frame += self._pack(ctx.command, self._command_byte)
        frame += body
        frame += self._pack(crc32(bytes(frame), self._crc_key), CRC_SIZE)

        ctx.data = bytes(frame)
        ctx.payload = body
        ctx.staged = None
        ctx.fetch_offset = 0
        return ctx.data

    def unserialize(self) -> bytes:
        """Decode the frame given by :meth:`set_data` (or the last built frame).

        On success the payload becomes the readable data and is returned.
        """
        ctx = self._ctx
        if ctx.staged is None:
            if ctx.data is None:
                raise PacketError("no data to unserialize")
            ctx.staged = bytearray(ctx.data)

        frame = bytes(ctx.staged)
        if not self._crc_ok(frame):
            raise PacketError("CRC check failed")

        fixed = self._header_byte + self._length_byte + self._command_byte + CRC_SIZE
        if len(frame) < fixed:
            raise PacketError(f"frame of {len(frame)} bytes is shorter than its {fixed} fixed bytes")

        offset = self._header_byte
        length = self._unpack(frame[offset:offset + self._length_byte])
        offset += self._length_byte
        ctx.command = self._unpack(frame[offset:offset + self._command_byte])
        offset += self._command_byte

        body_length = length - self._command_byte - CRC_SIZE
        if body_length < 0 or offset + body_length > len(frame):
            raise PacketError(f"length field {length} does not match a frame of {len(frame)} bytes")

        body = frame[offset:offset + body_length]
        ctx.data = body
        ctx.payload = body
        ctx.fetch_remain = body_length
        ctx.staged = None
        ctx.fetch_offset = 0
        return body

    # -- staging --------------------------------------------------------

    def set_command(self, command: int) -> None:
        """Set the command written by the next :meth:`serialize`."""
        self._ctx.command = command & 0xFFFF

    def set_data(self, data: bytes) -> None:
        """Replace the staged bytes, e.g. with a received frame to decode."""
        self._ctx.staged = bytearray(data)

    def append_payload(self, data: bytes) -> Packet:
        """Append raw bytes to the staged payload."""
        if not data:
            return self
        ctx = self._ctx
        if ctx.staged is None:
            ctx.staged = bytearray()
        ctx.staged += data
        return self

    def append_int(self, value: int, size: int = 4, signed: bool = True) -> Packet:
        """Append an integer of ``size`` bytes in native byte order."""
        return self.append_payload(value.to_bytes(size, sys.byteorder, signed=signed))

    def append_string(self, text: str) -> Packet:
        """Append a UTF-8 string prefixed by its 4-byte length."""
        encoded = text.encode("utf-8")
        self.append_int(len(encoded), 4, signed=False)
        return self.append_payload(encoded)

    def append_json(self, value: Any) -> Packet:
        """Append a value as compact JSON text (a length-prefixed string)."""
        return self.append_string(_dump_json(value))

    def remove_payload(self, index: int, length: int) -> None:
        """Remove up to ``length`` staged bytes starting at ``index``."""
        ctx = self._ctx
        if index < 0 or length <= 0 or ctx.staged is None:
            return
        del ctx.staged[index:index + length]

    def insert_payload(self, index: int, data: bytes) -> None:
        """Insert bytes into the staged payload before ``index``."""
        if index < 0 or not data:
            return
        ctx = self._ctx
        if ctx.staged is None:
            ctx.staged = bytearray()
        if index > len(ctx.staged):
            raise PacketError(f"insert index {index} is beyond the {len(ctx.staged)} staged bytes")
        ctx.staged[index:index] = data

    def release_data(self) -> None:
        """Drop the staged bytes and rewind reading."""
        ctx = self._ctx
        ctx.staged = None
        ctx.fetch_offset = 0

    # -- reading --------------------------------------------------------

    def fetch_payload(self, size: int | None = None) -> bytes:
        """Read the next ``size`` bytes of the data, or all that remain."""
        ctx = self._ctx
        data = ctx.data or b""
        if size is None:
            size = len(data) - ctx.fetch_offset
        if size <= 0 or ctx.fetch_offset + size > len(data):
            raise PacketError(
                f"cannot fetch {size} byte(s) at offset {ctx.fetch_offset} of {len(data)}"
            )
        chunk = data[ctx.fetch_offset:ctx.fetch_offset + size]
        ctx.fetch_offset += size
        ctx.fetch_remain = len(data) - ctx.fetch_offset
        return chunk

    def fetch_int(self, size: int = 4, signed: bool = True) -> int:
        """Read an integer of ``size`` bytes in native byte order."""
        return int.from_bytes(self.fetch_payload(size), sys.byteorder, signed=signed)

    def fetch_string(self) -> str:
        """Read a length-prefixed UTF-8 string."""
        length = self.fetch_int(4, signed=False)
        if length == 0:
            return ""
        raw = self.fetch_payload(length)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise PacketError(f"string is not valid UTF-8: {exc}") from exc

    def fetch_json(self) -> Any:
        """Read a length-prefixed JSON document."""
        if self.remain_bytes() < 4:
            raise PacketError("not enough bytes left for a JSON length prefix")
        text = self.fetch_string()
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise PacketError(f"invalid JSON: {exc}") from exc

    def remain_bytes(self) -> int:
        """Number of bytes still unread after the last fetch or decode."""
        return self._ctx.fetch_remain

    # -- results --------------------------------------------------------

    def data(self) -> bytes:
        """The built frame after :meth:`serialize`, the payload after :meth:`unserialize`."""
        return self._ctx.data or b""

    def command(self) -> int:
        """The current command."""
        return self._ctx.command

    def payload(self) -> bytes:
        """The payload of the last built or decoded frame."""
        return self._ctx.payload