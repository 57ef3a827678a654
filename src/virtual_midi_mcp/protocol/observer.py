"""Observer interface for decoded incoming MIDI, plus stock observers."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections import deque

from ..models.config import DEFAULT_HISTORY_SIZE
from ..models.events import (
    ControlChange,
    MidiEvent,
    MonoAftertouch,
    NoteOff,
    NoteOn,
    Pitchbend,
    PolyAftertouch,
    ProgramChange,
    SysEx,
)

logger = logging.getLogger(__name__)


class MidiObserver(ABC):
    """Receives decoded MIDI events, one callback per message type.

    Only :meth:`log_incoming_raw_midi_data` is optional.
    """

    @abstractmethod
    def received_note_off(self, channel: int, note: int, velocity: int) -> None: ...

    @abstractmethod
    def received_note_on(self, channel: int, note: int, velocity: int) -> None: ...

    @abstractmethod
    def received_poly_aftertouch(self, channel: int, note: int, pressure: int) -> None: ...

    @abstractmethod
    def received_control_change(self, channel: int, controller: int, value: int) -> None: ...

    @abstractmethod
    def received_program_change(self, channel: int, program: int) -> None: ...

    @abstractmethod
    def received_mono_aftertouch(self, channel: int, pressure: int) -> None: ...

    @abstractmethod
    def received_pitchbend(self, channel: int, data1: int, data2: int) -> None: ...

    @abstractmethod
    def received_sysex(self, data: bytes, length: int) -> None: ...

    def log_incoming_raw_midi_data(self, data: bytes, length: int) -> None:
        """Called with every packet's bytes before it is decoded.

        Runs for unrecognized and malformed packets too.
        """


def deliver(observer: MidiObserver, event: MidiEvent) -> None:
    """Invoke the observer callback matching ``event``'s type."""
    if isinstance(event, NoteOff):
        observer.received_note_off(event.channel, event.note, event.velocity)
    elif isinstance(event, NoteOn):
        observer.received_note_on(event.channel, event.note, event.velocity)
    elif isinstance(event, PolyAftertouch):
        observer.received_poly_aftertouch(event.channel, event.note, event.pressure)
    elif isinstance(event, ControlChange):
        observer.received_control_change(event.channel, event.controller, event.value)
    elif isinstance(event, ProgramChange):
        observer.received_program_change(event.channel, event.program)
    elif isinstance(event, MonoAftertouch):
        observer.received_mono_aftertouch(event.channel, event.pressure)
    elif isinstance(event, Pitchbend):
        observer.received_pitchbend(event.channel, event.data1, event.data2)
    elif isinstance(event, SysEx):
        observer.received_sysex(event.data, event.length)
    else:
        raise TypeError(f"Not a MIDI event: {event!r}")


class EventRecorder(MidiObserver):
    """Keeps the most recent events and raw packets in memory.

    Callbacks may arrive on the transport's thread, so history access is
    locked.
    """

    def __init__(self, maxlen: int = DEFAULT_HISTORY_SIZE) -> None:
        self._events: deque[MidiEvent] = deque(maxlen=maxlen)
        self._raw: deque[bytes] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def _record(self, event: MidiEvent) -> None:
        with self._lock:
            self._events.append(event)

    def received_note_off(self, channel, note, velocity):
        self._record(NoteOff(channel, note, velocity))

    def received_note_on(self, channel, note, velocity):
        self._record(NoteOn(channel, note, velocity))

    def received_poly_aftertouch(self, channel, note, pressure):
        self._record(PolyAftertouch(channel, note, pressure))

    def received_control_change(self, channel, controller, value):
        self._record(ControlChange(channel, controller, value))

    def received_program_change(self, channel, program):
        self._record(ProgramChange(channel, program))

    def received_mono_aftertouch(self, channel, pressure):
        self._record(MonoAftertouch(channel, pressure))

    def received_pitchbend(self, channel, data1, data2):
        self._record(Pitchbend(channel, data1, data2))

    def received_sysex(self, data, length):
        self._record(SysEx(bytes(data), length))

    def log_incoming_raw_midi_data(self, data, length):
        with self._lock:
            self._raw.append(bytes(data[:length]))

    def events(self, limit: int | None = None) -> list[MidiEvent]:
        """Recorded events, oldest first, at most the last ``limit``."""
        with self._lock:
            events = list(self._events)
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return events

    def raw_packets(self) -> list[bytes]:
        with self._lock:
            return list(self._raw)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
            self._raw.clear()


class LoggingObserver(MidiObserver):
    """Logs every incoming event; raw bytes go to DEBUG as hex."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def received_note_off(self, channel, note, velocity):
        self._log.info("Note Off: CH%d N%d V%d", channel, note, velocity)

    def received_note_on(self, channel, note, velocity):
        self._log.info("Note On: CH%d N%d V%d", channel, note, velocity)

    def received_poly_aftertouch(self, channel, note, pressure):
        self._log.info("Poly Aftertouch: CH%d N%d P%d", channel, note, pressure)

    def received_control_change(self, channel, controller, value):
        self._log.info("CC: CH%d CC%d V%d", channel, controller, value)

    def received_program_change(self, channel, program):
        self._log.info("Program Change: CH%d P%d", channel, program)

    def received_mono_aftertouch(self, channel, pressure):
        self._log.info("Mono Aftertouch: CH%d P%d", channel, pressure)

    def received_pitchbend(self, channel, data1, data2):
        self._log.info("Pitch Bend: CH%d %d", channel, (data2 << 7) | data1)

    def received_sysex(self, data, length):
        self._log.info("SysEx: %d bytes", length)

    def log_incoming_raw_midi_data(self, data, length):
        self._log.debug(
            "MIDI received: %s length: %d", bytes(data).hex(" ").upper(), length
        )
