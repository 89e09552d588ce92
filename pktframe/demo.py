"""Build, print and decode a few sample frames from worker threads."""

from __future__ import annotations

import argparse
import json
import threading
from collections.abc import Sequence

from pktframe.packet import ByteOrder, Packet, PacketError

MAX_THREADS_COUNT = 1
MAX_CYCLE_COUNT = 2


def _hex(data: bytes) -> str:
    return " ".join(f"{byte:02x}" for byte in data)


def run_cycle(packet: Packet, worker_id: int, cycle: int) -> list[str]:
    """Build one frame, decode it again and return the report lines."""
    document = {"app_name": "a.out", "app_size": 1024 + cycle}
    packet.set_command(cycle)
    packet.append_json(document)
    packet.append_int(cycle)
    frame = packet.serialize()

    lines = []
    if frame:
        lines.append(f"data:{_hex(frame)}")
    payload = packet.payload()
    if payload:
        lines.append(f"payload:{_hex(payload)}")

    packet.set_data(frame)
    try:
        packet.unserialize()
        decoded = packet.fetch_json()
        value = packet.fetch_int()
        dumped = json.dumps(decoded, separators=(",", ":"), sort_keys=True, ensure_ascii=False)
        lines.append(f"{worker_id}->{packet.command()}->{dumped}->{value}")
    except PacketError as exc:
        lines.append(str(exc))
    return lines


def main(argv: Sequence[str] | None = None) -> int:
    """Run the sample workers and print what they build and decode."""
    argparse.ArgumentParser(description=__doc__).parse_args(argv)
    print("begin!")

    packet = Packet(ByteOrder.BIG, 0xFFAA, 2, 4, 2, 0x12345678)
    print_lock = threading.Lock()

    def task(worker_id: int) -> None:
        for cycle in range(MAX_CYCLE_COUNT):
            lines = run_cycle(packet, worker_id, cycle)
            with print_lock:
                print("\n".join(lines))

    workers = [threading.Thread(target=task, args=(i,)) for i in range(MAX_THREADS_COUNT)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()

    print("end!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())