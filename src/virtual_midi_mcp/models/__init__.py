"""Data models for MIDI values, events, and device settings."""

from .config import DeviceConfig
from .events import (
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
from .values import (
    InvalidMidiValueError,
    StatusCode,
    SysExSizeExceededError,
    ValidationPolicy,
)
