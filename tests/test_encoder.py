"""Tests for outgoing message builders and the encoder."""

import logging

import pytest

from virtual_midi_mcp.models.values import (
    InvalidMidiValueError,
    StatusCode,
    SysExSizeExceededError,
    ValidationPolicy,
)
from virtual_midi_mcp.protocol.encoder import (
    Encoder,
    build_channel_message,
    build_note_on,
    build_program_change,
    build_raw_message,
    build_sysex,
)

SEND_CALLS = [
    ("send_note_off", (60, 0)),
    ("send_note_on", (60, 100)),
    ("send_poly_aftertouch", (60, 10)),
    ("send_control_change", (7, 100)),
    ("send_program_change", (5,)),
    ("send_mono_aftertouch", (20,)),
    ("send_pitchbend", (0, 64)),
]


def _encoder(policy=ValidationPolicy.SILENT):
    sent = []
    return Encoder(sent.append, policy), sent


def test_note_on_packet():
    """Note On channel 1 should be [0x90, note, velocity]."""
    encoder, sent = _encoder()
    encoder.send_note_on(1, 60, 100)
    assert len(sent) == 1
    assert sent[0].payload == bytes([0x90, 60, 100])
    assert sent[0].length == 3


def test_note_off_channel_16():
    """Channel 16 should use status low nibble 0xF."""
    encoder, sent = _encoder()
    encoder.send_note_off(16, 0, 0)
    assert [p.payload for p in sent] == [bytes([0x8F, 0, 0])]


def test_program_change_is_two_bytes():
    """Program Change carries a single data byte."""
    encoder, sent = _encoder()
    encoder.send_program_change(1, 5)
    assert [p.payload for p in sent] == [bytes([0xC0, 5])]


def test_mono_aftertouch_is_two_bytes():
    encoder, sent = _encoder()
    encoder.send_mono_aftertouch(3, 90)
    assert [p.payload for p in sent] == [bytes([0xD2, 90])]


def test_status_bytes_per_message_type():
    """Each send method should use its own status family on channel 10."""
    encoder, sent = _encoder()
    for method, args in SEND_CALLS:
        getattr(encoder, method)(10, *args)
    assert [p.payload[0] for p in sent] == [
        0x89, 0x99, 0xA9, 0xB9, 0xC9, 0xD9, 0xE9,
    ]


@pytest.mark.parametrize("method,args", SEND_CALLS)
@pytest.mark.parametrize("channel", [0, 17, -1, 255])
def test_invalid_channel_sends_nothing(method, args, channel):
    """Out-of-range channels are dropped silently by default."""
    encoder, sent = _encoder()
    getattr(encoder, method)(channel, *args)
    assert sent == []


@pytest.mark.parametrize("method,args", SEND_CALLS)
def test_invalid_data_byte_sends_nothing(method, args):
    """Any data byte above 127 drops the whole message."""
    encoder, sent = _encoder()
    for i in range(len(args)):
        bad = list(args)
        bad[i] = 128
        getattr(encoder, method)(1, *bad)
        bad[i] = -1
        getattr(encoder, method)(1, *bad)
    assert sent == []


def test_control_change_validates_value():
    """The controller value is range checked like every other data byte."""
    encoder, sent = _encoder()
    encoder.send_control_change(1, 7, 200)
    assert sent == []


def test_strict_policy_raises():
    """STRICT policy surfaces validation failures."""
    encoder, sent = _encoder(ValidationPolicy.STRICT)
    with pytest.raises(InvalidMidiValueError) as exc_info:
        encoder.send_note_on(17, 60, 100)
    assert exc_info.value.field == "channel"
    assert exc_info.value.value == 17
    assert sent == []


def test_strict_policy_still_sends_valid():
    encoder, sent = _encoder(ValidationPolicy.STRICT)
    encoder.send_control_change(2, 64, 127)
    assert [p.payload for p in sent] == [bytes([0xB1, 64, 127])]


def test_bool_is_not_a_data_byte():
    """True/False are not accepted as MIDI values."""
    with pytest.raises(InvalidMidiValueError):
        build_note_on(1, True, 100)


def test_sysex_at_limit():
    """A 256-byte SysEx goes out verbatim in one packet."""
    encoder, sent = _encoder()
    data = bytes([0xF0]) + bytes(range(127)) * 2 + bytes([0x7F])
    assert len(data) == 256
    encoder.send_sysex(data)
    assert len(sent) == 1
    assert sent[0].length == 256
    assert sent[0].payload == data


def test_sysex_over_limit():
    """A 257-byte SysEx is reported and nothing is sent."""
    encoder, sent = _encoder()
    with pytest.raises(SysExSizeExceededError) as exc_info:
        encoder.send_sysex(bytes(257))
    assert exc_info.value.size == 257
    assert exc_info.value.limit == 256
    assert sent == []


def test_sysex_no_framing_added():
    """The encoder neither adds nor requires F0/F7 framing."""
    packet = build_sysex(b"\x01\x02")
    assert packet.payload == b"\x01\x02"


def test_build_channel_message_rejects_wrong_arity():
    with pytest.raises(ValueError):
        build_channel_message(StatusCode.PROGRAM_CHANGE, 1, 5, 6)
    with pytest.raises(ValueError):
        build_channel_message(StatusCode.NOTE_ON, 1, 60)


def test_build_channel_message_rejects_sysex():
    with pytest.raises(ValueError):
        build_channel_message(StatusCode.SYSEX, 1, 0)


def test_build_program_change_length():
    assert build_program_change(16, 127).payload == bytes([0xCF, 127])


def test_send_raw_message():
    """Raw messages pass through without MIDI range checks."""
    encoder, sent = _encoder()
    encoder.send_raw_message(0xF2, 0x10, 0x20)
    encoder.send_raw_message(0xC3, 200)
    assert [p.payload for p in sent] == [
        bytes([0xF2, 0x10, 0x20]),
        bytes([0xC3, 200]),
    ]


def test_build_raw_message_rejects_non_bytes():
    with pytest.raises(ValueError):
        build_raw_message(0x90, 256, 0)


def test_sysex_over_limit_is_logged(caplog):
    """The size overflow is logged at WARNING before it is raised."""
    encoder, _ = _encoder()
    with caplog.at_level(logging.WARNING, logger="virtual_midi_mcp.protocol.encoder"):
        with pytest.raises(SysExSizeExceededError):
            encoder.send_sysex(bytes(257))
    records = [r for r in caplog.records if r.name == "virtual_midi_mcp.protocol.encoder"]
    assert len(records) == 1
    assert records[0].levelno == logging.WARNING
    assert "256" in records[0].getMessage()
