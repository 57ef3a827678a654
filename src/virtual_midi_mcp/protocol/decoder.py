"""Incoming packet traversal and status-byte dispatch."""

from __future__ import annotations

import logging
import threading
from typing import Iterator

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
from ..models.values import StatusCode, data_byte_count, split_status
from .observer import MidiObserver, deliver
from .packets import PacketList

logger = logging.getLogger(__name__)

# Channel status code -> event class, argument order matches the event fields
CHANNEL_EVENTS: dict[int, type] = {
    StatusCode.NOTE_OFF: NoteOff,
    StatusCode.NOTE_ON: NoteOn,
    StatusCode.POLY_AFTERTOUCH: PolyAftertouch,
    StatusCode.CONTROL_CHANGE: ControlChange,
    StatusCode.PROGRAM_CHANGE: ProgramChange,
    StatusCode.MONO_AFTERTOUCH: MonoAftertouch,
    StatusCode.PITCHBEND: Pitchbend,
}


def decode_packet(payload: bytes) -> MidiEvent | None:
    """Decode one packet's bytes into an event.

    Returns ``None`` for empty packets, unknown status bytes, and channel
    messages missing data bytes.
    """
    if not payload:
        return None

    # Other system messages (0xF1-0xFF) share the high nibble but are not SysEx
    if payload[0] == StatusCode.SYSEX:
        return SysEx(data=bytes(payload), length=len(payload))

    code, channel = split_status(payload[0])

    event_cls = CHANNEL_EVENTS.get(code)
    if event_cls is None:
        return None

    count = data_byte_count(StatusCode(code))
    if len(payload) < 1 + count:
        return None
    return event_cls(channel, *payload[1 : 1 + count])


class Decoder:
    """Decodes packet lists and delivers events to the current observer.

    The observer slot may be replaced at any time; each packet list is
    dispatched to whichever observer was attached when it arrived.
    """

    def __init__(self, observer: MidiObserver | None = None) -> None:
        self._observer = observer
        self._lock = threading.Lock()

    @property
    def observer(self) -> MidiObserver | None:
        with self._lock:
            return self._observer

    @observer.setter
    def observer(self, observer: MidiObserver | None) -> None:
        with self._lock:
            self._observer = observer

    def events(
        self,
        packet_list: PacketList,
        observer: MidiObserver | None = None,
    ) -> Iterator[MidiEvent]:
        """Lazily decode ``packet_list`` in order.

        If ``observer`` is given, its raw-data hook sees every packet
        before decoding.
        """
        for packet in packet_list:
            payload = packet.payload
            if observer is not None:
                observer.log_incoming_raw_midi_data(payload, len(payload))

            event = decode_packet(payload)
            if event is None:
                logger.debug(
                    "Ignored packet: %s", payload.hex(" ") if payload else "(empty)"
                )
                continue
            yield event

    def dispatch(self, packet_list: PacketList) -> int:
        """Deliver every event in ``packet_list`` to the observer.

        Returns:
            Number of events delivered.
        """
        observer = self.observer
        delivered = 0
        for event in self.events(packet_list, observer):
            if observer is not None:
                deliver(observer, event)
                delivered += 1
        return delivered
