"""Host MIDI transport adapters."""

from .rtmidi_port import PortInfo, RtMidiVirtualPort
