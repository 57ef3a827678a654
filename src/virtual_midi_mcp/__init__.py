"""Virtual MIDI device with a typed message codec and an MCP control surface."""

from .device import VirtualMidiDevice
from .models.config import DeviceConfig
from .models.values import ValidationPolicy
from .protocol.observer import MidiObserver

__version__ = "0.1.0"
