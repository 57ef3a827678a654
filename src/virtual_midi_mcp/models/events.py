"""Typed MIDI events produced by the decoder.

One dataclass per message variant. Channels are 1-based.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import ClassVar, Union

from .values import StatusCode, status_byte


@dataclass(frozen=True)
class NoteOff:
    channel: int
    note: int
    velocity: int

    code: ClassVar[StatusCode] = StatusCode.NOTE_OFF

    def to_bytes(self) -> bytes:
        return bytes([status_byte(self.code, self.channel), self.note, self.velocity])

    def to_dict(self) -> dict:
        return {"type": "note_off", **asdict(self)}


@dataclass(frozen=True)
class NoteOn:
    channel: int
    note: int
    velocity: int

    code: ClassVar[StatusCode] = StatusCode.NOTE_ON

    def to_bytes(self) -> bytes:
        return bytes([status_byte(self.code, self.channel), self.note, self.velocity])

    def to_dict(self) -> dict:
        return {"type": "note_on", **asdict(self)}


@dataclass(frozen=True)
class PolyAftertouch:
    channel: int
    note: int
    pressure: int

    code: ClassVar[StatusCode] = StatusCode.POLY_AFTERTOUCH

    def to_bytes(self) -> bytes:
        return bytes([status_byte(self.code, self.channel), self.note, self.pressure])

    def to_dict(self) -> dict:
        return {"type": "poly_aftertouch", **asdict(self)}


@dataclass(frozen=True)
class ControlChange:
    channel: int
    controller: int
    value: int

    code: ClassVar[StatusCode] = StatusCode.CONTROL_CHANGE

    def to_bytes(self) -> bytes:
        return bytes([status_byte(self.code, self.channel), self.controller, self.value])

    def to_dict(self) -> dict:
        return {"type": "control_change", **asdict(self)}


@dataclass(frozen=True)
class ProgramChange:
    channel: int
    program: int

    code: ClassVar[StatusCode] = StatusCode.PROGRAM_CHANGE

    def to_bytes(self) -> bytes:
        return bytes([status_byte(self.code, self.channel), self.program])

    def to_dict(self) -> dict:
        return {"type": "program_change", **asdict(self)}


@dataclass(frozen=True)
class MonoAftertouch:
    channel: int
    pressure: int

    code: ClassVar[StatusCode] = StatusCode.MONO_AFTERTOUCH

    def to_bytes(self) -> bytes:
        return bytes([status_byte(self.code, self.channel), self.pressure])

    def to_dict(self) -> dict:
        return {"type": "mono_aftertouch", **asdict(self)}


@dataclass(frozen=True)
class Pitchbend:
    """Pitch bend with the raw LSB (``data1``) and MSB (``data2``)."""

    channel: int
    data1: int
    data2: int

    code: ClassVar[StatusCode] = StatusCode.PITCHBEND

    @property
    def value(self) -> int:
        """14-bit bend amount, 8192 is centre."""
        return (self.data2 << 7) | self.data1

    def to_bytes(self) -> bytes:
        return bytes([status_byte(self.code, self.channel), self.data1, self.data2])

    def to_dict(self) -> dict:
        return {"type": "pitchbend", **asdict(self), "value": self.value}


@dataclass(frozen=True)
class SysEx:
    """System Exclusive message, including its leading 0xF0."""

    data: bytes
    length: int

    code: ClassVar[StatusCode] = StatusCode.SYSEX

    def to_bytes(self) -> bytes:
        return bytes(self.data[: self.length])

    def to_dict(self) -> dict:
        return {
            "type": "sysex",
            "data": self.data.hex(" "),
            "length": self.length,
        }

    def __repr__(self) -> str:
        return f"SysEx(data={self.data.hex(' ')}, length={self.length})"


MidiEvent = Union[
    NoteOff,
    NoteOn,
    PolyAftertouch,
    ControlChange,
    ProgramChange,
    MonoAftertouch,
    Pitchbend,
    SysEx,
]
