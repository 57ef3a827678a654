"""Value ranges, status codes and validation errors shared by the codec.

Status byte layout::

    +-----------------+-----------------+
    | message type    | channel offset  |
    | high nibble 8-F | low nibble 0-F  |
    +-----------------+-----------------+

The channel offset is ``channel - 1`` for channel-voice messages and is
meaningless for System Exclusive (0xF0).
"""

from __future__ import annotations

from enum import Enum, IntEnum

CHANNEL_RANGE = range(1, 17)
DATA_BYTE_RANGE = range(0, 128)


class StatusCode(IntEnum):
    """Base status codes (high nibble, channel offset zero)."""

    NOTE_OFF = 0x80
    NOTE_ON = 0x90
    POLY_AFTERTOUCH = 0xA0
    CONTROL_CHANGE = 0xB0
    PROGRAM_CHANGE = 0xC0
    MONO_AFTERTOUCH = 0xD0
    PITCHBEND = 0xE0
    SYSEX = 0xF0


# Channel messages carrying a single data byte
ONE_DATA_BYTE_CODES = frozenset(
    {StatusCode.PROGRAM_CHANGE, StatusCode.MONO_AFTERTOUCH}
)


class ValidationPolicy(Enum):
    """What the encoder does with out-of-range input.

    ``SILENT`` drops the message without telling the caller.
    ``STRICT`` raises :class:`InvalidMidiValueError`.
    """

    SILENT = "silent"
    STRICT = "strict"


class InvalidMidiValueError(ValueError):
    """A channel or data byte fell outside its valid range."""

    def __init__(self, field: str, value: object, valid: range) -> None:
        self.field = field
        self.value = value
        super().__init__(
            f"{field} must be {valid.start}-{valid.stop - 1}, got {value!r}"
        )


class SysExSizeExceededError(ValueError):
    """A SysEx message does not fit in a single packet."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(
            f"SysEx message exceeded maximum packet size of {limit} bytes "
            f"(got {size})"
        )


def _in_range(value: object, valid: range) -> bool:
    # bool is an int subclass but never a MIDI value
    return isinstance(value, int) and not isinstance(value, bool) and value in valid


def validate_channel(channel: object) -> int:
    """Return ``channel`` unchanged if it is 1-16, else raise."""
    if not _in_range(channel, CHANNEL_RANGE):
        raise InvalidMidiValueError("channel", channel, CHANNEL_RANGE)
    return channel


def validate_data_byte(value: object, field: str = "data byte") -> int:
    """Return ``value`` unchanged if it is 0-127, else raise."""
    if not _in_range(value, DATA_BYTE_RANGE):
        raise InvalidMidiValueError(field, value, DATA_BYTE_RANGE)
    return value


def data_byte_count(code: StatusCode) -> int:
    """Number of data bytes following a channel status byte."""
    return 1 if code in ONE_DATA_BYTE_CODES else 2


def status_byte(code: StatusCode, channel: int) -> int:
    """Compose a status byte from a base code and a 1-based channel."""
    return code | (channel - 1)


def split_status(byte: int) -> tuple[int, int]:
    """Split a status byte into ``(base code, 1-based channel)``."""
    return byte & 0xF0, (byte & 0x0F) + 1
