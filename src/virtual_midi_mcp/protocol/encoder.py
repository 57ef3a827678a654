"""Outgoing message builders and the encoder that feeds the transport.

Builders validate their arguments and raise
:class:`~virtual_midi_mcp.models.values.InvalidMidiValueError` on bad input.
:class:`Encoder` wraps them and applies the configured
:class:`~virtual_midi_mcp.models.values.ValidationPolicy` before handing
packets to the injected send capability.
"""

from __future__ import annotations

import logging
from typing import Callable

from ..models.values import (
    InvalidMidiValueError,
    StatusCode,
    SysExSizeExceededError,
    ValidationPolicy,
    data_byte_count,
    status_byte,
    validate_channel,
    validate_data_byte,
)
from .packets import MAX_PACKET_SIZE, RawPacket

logger = logging.getLogger(__name__)

SendPacket = Callable[[RawPacket], None]


def build_channel_message(
    code: StatusCode,
    channel: int,
    data1: int,
    data2: int | None = None,
) -> RawPacket:
    """Build a 2- or 3-byte channel-voice packet.

    Args:
        code: Base status code (0x80-0xE0).
        channel: MIDI channel 1-16.
        data1: First data byte 0-127.
        data2: Second data byte 0-127, omitted for 2-byte messages.
    """
    if code == StatusCode.SYSEX:
        raise ValueError("SysEx is not a channel message, use build_sysex()")
    expected = data_byte_count(code)
    given = 1 if data2 is None else 2
    if given != expected:
        raise ValueError(
            f"{code.name} takes {expected} data byte(s), got {given}"
        )

    validate_channel(channel)
    data = [validate_data_byte(data1, "data1")]
    if data2 is not None:
        data.append(validate_data_byte(data2, "data2"))
    return RawPacket(bytes([status_byte(code, channel), *data]))


def build_note_off(channel: int, note: int, velocity: int) -> RawPacket:
    return build_channel_message(StatusCode.NOTE_OFF, channel, note, velocity)


def build_note_on(channel: int, note: int, velocity: int) -> RawPacket:
    return build_channel_message(StatusCode.NOTE_ON, channel, note, velocity)


def build_poly_aftertouch(channel: int, note: int, pressure: int) -> RawPacket:
    return build_channel_message(StatusCode.POLY_AFTERTOUCH, channel, note, pressure)


def build_control_change(channel: int, controller: int, value: int) -> RawPacket:
    return build_channel_message(StatusCode.CONTROL_CHANGE, channel, controller, value)


def build_program_change(channel: int, program: int) -> RawPacket:
    return build_channel_message(StatusCode.PROGRAM_CHANGE, channel, program)


def build_mono_aftertouch(channel: int, pressure: int) -> RawPacket:
    return build_channel_message(StatusCode.MONO_AFTERTOUCH, channel, pressure)


def build_pitchbend(channel: int, data1: int, data2: int) -> RawPacket:
    """Build a pitch bend packet from its LSB (``data1``) and MSB (``data2``)."""
    return build_channel_message(StatusCode.PITCHBEND, channel, data1, data2)


def build_sysex(data: bytes) -> RawPacket:
    """Build a single SysEx packet holding ``data`` verbatim.

    No 0xF0/0xF7 framing is added; callers supply the complete message.

    Raises:
        SysExSizeExceededError: If ``data`` is longer than 256 bytes.
    """
    data = bytes(data)
    if len(data) > MAX_PACKET_SIZE:
        raise SysExSizeExceededError(len(data), MAX_PACKET_SIZE)
    return RawPacket(data)


def build_raw_message(status: int, data1: int, data2: int | None = None) -> RawPacket:
    """Build a packet from an arbitrary status byte and 1-2 data bytes.

    Only byte range (0-255) is enforced.
    """
    data = [status, data1] if data2 is None else [status, data1, data2]
    return RawPacket(bytes(data))


class Encoder:
    """Turns outgoing requests into packets for the transport.

    Usage::

        sent = []
        encoder = Encoder(sent.append)
        encoder.send_note_on(1, 60, 100)   # sent == [RawPacket(90 3c 64)]
        encoder.send_note_on(17, 60, 100)  # dropped, nothing sent
    """

    def __init__(
        self,
        send: SendPacket,
        policy: ValidationPolicy = ValidationPolicy.SILENT,
    ) -> None:
        self._send = send
        self.policy = policy

    def _emit(self, build: Callable[..., RawPacket], *args: int) -> None:
        try:
            packet = build(*args)
        except InvalidMidiValueError as e:
            if self.policy is ValidationPolicy.STRICT:
                raise
            logger.debug("Dropped %s%r: %s", build.__name__, args, e)
            return
        self._send(packet)

    def send_note_off(self, channel: int, note: int, velocity: int) -> None:
        self._emit(build_note_off, channel, note, velocity)

    def send_note_on(self, channel: int, note: int, velocity: int) -> None:
        self._emit(build_note_on, channel, note, velocity)

    def send_poly_aftertouch(self, channel: int, note: int, pressure: int) -> None:
        self._emit(build_poly_aftertouch, channel, note, pressure)

    def send_control_change(self, channel: int, controller: int, value: int) -> None:
        self._emit(build_control_change, channel, controller, value)

    def send_program_change(self, channel: int, program: int) -> None:
        self._emit(build_program_change, channel, program)

    def send_mono_aftertouch(self, channel: int, pressure: int) -> None:
        self._emit(build_mono_aftertouch, channel, pressure)

    def send_pitchbend(self, channel: int, data1: int, data2: int) -> None:
        self._emit(build_pitchbend, channel, data1, data2)

    def send_sysex(self, data: bytes) -> None:
        """Send one SysEx packet.

        Raises:
            SysExSizeExceededError: If ``data`` is longer than 256 bytes.
                Raised under either policy; nothing is sent.
        """
        try:
            packet = build_sysex(data)
        except SysExSizeExceededError as e:
            logger.warning("%s", e)
            raise
        self._send(packet)

    def send_raw_message(self, status: int, data1: int, data2: int | None = None) -> None:
        """Send a status byte with one or two data bytes, unvalidated."""
        self._send(build_raw_message(status, data1, data2))
