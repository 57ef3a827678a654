"""Raw packets as exchanged with the host MIDI transport.

Packet layout::

    +-------------+--------------------------+------------------+
    | Status byte | Data bytes               | Unused capacity  |
    | 1 byte      | 0-2 (channel) / n (SysEx)| ignored          |
    +-------------+--------------------------+------------------+

- A packet holds at most 256 meaningful bytes.
- ``length`` is authoritative: bytes in the buffer beyond it are never read.
- A packet list carries a declared packet count; traversal stops there.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import islice
from typing import Iterator

MAX_PACKET_SIZE = 256


@dataclass(frozen=True)
class RawPacket:
    """One length-tagged MIDI packet."""

    data: bytes
    length: int | None = None
    timestamp: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))
        if self.length is None:
            object.__setattr__(self, "length", len(self.data))
        if self.length < 0:
            raise ValueError(f"Packet length must not be negative, got {self.length}")
        if self.length > MAX_PACKET_SIZE:
            raise ValueError(
                f"Packet length must be at most {MAX_PACKET_SIZE}, got {self.length}"
            )
        if self.length > len(self.data):
            raise ValueError(
                f"Declared length {self.length} exceeds buffer of {len(self.data)} bytes"
            )

    @property
    def payload(self) -> bytes:
        """Exactly ``length`` bytes of the buffer."""
        return self.data[: self.length]

    def __repr__(self) -> str:
        payload = self.payload
        return (
            f"RawPacket(length={self.length}, "
            f"data={payload.hex(' ') if payload else '(empty)'})"
        )


@dataclass
class PacketList:
    """A batch of packets delivered by one transport callback."""

    packets: list[RawPacket] = field(default_factory=list)
    num_packets: int = -1

    def __post_init__(self) -> None:
        if self.num_packets < 0:
            self.num_packets = len(self.packets)

    def __iter__(self) -> Iterator[RawPacket]:
        return islice(self.packets, self.num_packets)

    def __len__(self) -> int:
        return min(self.num_packets, len(self.packets))

    @classmethod
    def of(cls, *payloads: bytes, timestamp: int = 0) -> PacketList:
        """Build a packet list with one packet per payload."""
        return cls([RawPacket(p, timestamp=timestamp) for p in payloads])
