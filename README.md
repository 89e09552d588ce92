# pktframe

Build and parse framed binary packets of this shape:

```
[header][length][command][payload ...][crc32]
```

- **header**: 0 to 4 bytes, a fixed marker value
- **length**: 1 to 4 bytes, the size of command + payload + CRC
- **command**: 0 to 2 bytes; a width of zero leaves it out
- **payload**: any number of bytes
- **crc32**: always 4 bytes, a CRC-32 over everything before it, seeded with a key

The header, length, command and CRC fields are written in big- or little-endian
order, chosen per packet with `ByteOrder.BIG` or `ByteOrder.LITTLE`. Typed
values placed in the payload (integers, strings, JSON) use the host's native
byte order.

Each thread that uses a `Packet` works on its own state, so one `Packet` object
can be shared between threads.

## Install

```
pip install pktframe
```

No third-party packages are needed.

## Building a packet

```python
from pktframe.packet import ByteOrder, Packet

pkt = Packet(ByteOrder.BIG, 0xFFAA, 2, 4, 2, 0x12345678)
pkt.set_command(1)
pkt.append_json({"app_name": "a.out", "app_size": 1025})
pkt.append_int(1, 4, True)
frame = pkt.serialize()  # the complete frame, also available as pkt.data()

body = pkt.payload()     # just the payload bytes
```

The constructor arguments are the byte order, the header value, the header
width, the length width (default 4), the command width (default 2) and the CRC
key (default 0). Widths outside their ranges raise `ValueError`.

- `append_payload(data)` adds raw bytes.
- `append_int(value, size, signed)` adds an integer of `size` bytes.
- `append_string(text)` adds a 4-byte length followed by the UTF-8 text.
- `append_json(value)` adds compact JSON (keys sorted) as a length-prefixed string.
- `insert_payload(index, data)` and `remove_payload(index, length)` edit the
  pending bytes before `serialize` is called; inserting past the end raises
  `PacketError`.
- `release_data()` drops the pending bytes.

The append methods return the packet, so calls can be chained.
`serialize` raises `PacketError` if the frame length does not fit in the
length field.

## Parsing a packet

```python
pkt.set_data(frame)
pkt.unserialize()        # raises PacketError on a bad CRC or length

print(pkt.command())
info = pkt.fetch_json()
count = pkt.fetch_int(4, True)
print(pkt.remain_bytes())
```

After `unserialize`, `data()` and `payload()` both return the decoded payload.
`fetch_payload(size)` reads raw bytes from the current position (all remaining
bytes when `size` is omitted), and `fetch_string()` reads a length-prefixed
string. Reading past the end, invalid UTF-8, invalid JSON or a bad frame raise
`PacketError`.

`crc32(data, key)` is also available on its own.

## Demo

```
pktframe-demo
```

Builds two packets, prints each frame and payload in hex, then parses them
back and prints the worker number, the decoded command, the JSON and the
integer, between `begin!` and `end!` lines.

## What it does not do

`pktframe` only builds and parses frames in memory. It does not open sockets,
read from streams or split a byte stream into frames; feeding it one complete
frame at a time is up to the caller.