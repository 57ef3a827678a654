"""MCP server entry point for the virtual MIDI device.

Exposes tools, resources, and prompts via the Model Context Protocol
using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Any, Callable

from mcp.server.fastmcp import FastMCP

from .device import VirtualMidiDevice
from .models.config import DeviceConfig
from .models.values import (
    InvalidMidiValueError,
    SysExSizeExceededError,
    ValidationPolicy,
)
from .protocol.observer import EventRecorder

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "virtual-midi",
    instructions=(
        "Control a virtual MIDI device: send channel-voice and SysEx "
        "messages and read what other applications sent to it."
    ),
)

# Global device state
_device: VirtualMidiDevice | None = None
_recorder: EventRecorder | None = None


def _get_device() -> VirtualMidiDevice:
    """Get the open device, raising if there is none."""
    if _device is None or not _device.connected:
        raise RuntimeError(
            "No virtual MIDI device is open. Use the 'open_device' tool first."
        )
    return _device


def _send(method: Callable[..., None], *args: Any) -> dict[str, Any] | None:
    """Call a device send method, turning validation failures into errors."""
    try:
        method(*args)
    except (InvalidMidiValueError, SysExSizeExceededError) as e:
        return {"error": str(e)}
    return None


# ─── DEVICE TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def open_device(name: str | None = None) -> dict[str, Any]:
    """Create the virtual MIDI endpoints on this host.

    Other applications will see "<name> Out" as a MIDI source and
    "<name> In" as a MIDI destination.

    Args:
        name: Base endpoint name (default from VIRTUAL_MIDI_NAME or "SBMidi").
    """
    global _device, _recorder
    if _device is not None and _device.connected:
        return {
            "connected": True,
            "message": "Already open",
            "name": _device.name,
        }

    config = DeviceConfig.from_env()
    # Tools report bad values instead of dropping them
    config = replace(config, policy=ValidationPolicy.STRICT)
    if name:
        config = replace(config, name=name)

    _recorder = EventRecorder(maxlen=config.history_size)
    _device = VirtualMidiDevice(config, observer=_recorder)
    try:
        _device.open()
    except ConnectionError as e:
        _device = None
        return {"error": str(e)}

    info = _device.port.info
    return {
        "connected": True,
        "name": info.name,
        "output": info.output_name,
        "input": info.input_name,
        "api": info.api,
    }


@mcp.tool()
def close_device() -> dict[str, bool]:
    """Remove the virtual MIDI endpoints."""
    global _device, _recorder
    _recorder = None
    if _device is None:
        return {"closed": True}
    _device.close()
    _device = None
    return {"closed": True}


@mcp.tool()
def device_status() -> dict[str, Any]:
    """Report whether the device is open and how many events it holds."""
    return _status()


def _status() -> dict[str, Any]:
    if _device is None or not _device.connected:
        return {"connected": False}
    info = _device.port.info
    return {
        "connected": True,
        "name": info.name,
        "output": info.output_name,
        "input": info.input_name,
        "api": info.api,
        "received_events": len(_recorder.events()) if _recorder else 0,
    }


# ─── CHANNEL-VOICE TOOLS ──────────────────────────────────────────────

@mcp.tool()
def send_note_on(channel: int, note: int, velocity: int) -> dict[str, Any]:
    """Send a Note On.

    Args:
        channel: MIDI channel (1-16).
        note: Note number (0-127, 60 is middle C).
        velocity: Velocity (0-127).
    """
    device = _get_device()
    error = _send(device.send_note_on, channel, note, velocity)
    return error or {"sent": "note_on", "channel": channel, "note": note, "velocity": velocity}


@mcp.tool()
def send_note_off(channel: int, note: int, velocity: int = 0) -> dict[str, Any]:
    """Send a Note Off.

    Args:
        channel: MIDI channel (1-16).
        note: Note number (0-127).
        velocity: Release velocity (0-127).
    """
    device = _get_device()
    error = _send(device.send_note_off, channel, note, velocity)
    return error or {"sent": "note_off", "channel": channel, "note": note, "velocity": velocity}


@mcp.tool()
def send_poly_aftertouch(channel: int, note: int, pressure: int) -> dict[str, Any]:
    """Send polyphonic key pressure for one note.

    Args:
        channel: MIDI channel (1-16).
        note: Note number (0-127).
        pressure: Pressure (0-127).
    """
    device = _get_device()
    error = _send(device.send_poly_aftertouch, channel, note, pressure)
    return error or {
        "sent": "poly_aftertouch",
        "channel": channel,
        "note": note,
        "pressure": pressure,
    }


@mcp.tool()
def send_control_change(channel: int, controller: int, value: int) -> dict[str, Any]:
    """Send a Control Change.

    Args:
        channel: MIDI channel (1-16).
        controller: Controller number (0-127, e.g. 7 volume, 64 sustain).
        value: Controller value (0-127).
    """
    device = _get_device()
    error = _send(device.send_control_change, channel, controller, value)
    return error or {
        "sent": "control_change",
        "channel": channel,
        "controller": controller,
        "value": value,
    }


@mcp.tool()
def send_program_change(channel: int, program: int) -> dict[str, Any]:
    """Send a Program Change.

    Args:
        channel: MIDI channel (1-16).
        program: Program number (0-127).
    """
    device = _get_device()
    error = _send(device.send_program_change, channel, program)
    return error or {"sent": "program_change", "channel": channel, "program": program}


@mcp.tool()
def send_mono_aftertouch(channel: int, pressure: int) -> dict[str, Any]:
    """Send channel pressure.

    Args:
        channel: MIDI channel (1-16).
        pressure: Pressure (0-127).
    """
    device = _get_device()
    error = _send(device.send_mono_aftertouch, channel, pressure)
    return error or {"sent": "mono_aftertouch", "channel": channel, "pressure": pressure}


@mcp.tool()
def send_pitchbend(channel: int, data1: int, data2: int) -> dict[str, Any]:
    """Send a Pitch Bend from its two 7-bit halves.

    Args:
        channel: MIDI channel (1-16).
        data1: Least significant 7 bits (0-127).
        data2: Most significant 7 bits (0-127). 0/64 is centre.
    """
    device = _get_device()
    error = _send(device.send_pitchbend, channel, data1, data2)
    return error or {
        "sent": "pitchbend",
        "channel": channel,
        "data1": data1,
        "data2": data2,
        "value": (data2 << 7) | data1,
    }


@mcp.tool()
def send_sysex(data_hex: str) -> dict[str, Any]:
    """Send a System Exclusive message.

    The bytes are sent verbatim, so include the leading F0 and trailing
    F7 yourself. At most 256 bytes.

    Args:
        data_hex: Message as hex, spaces allowed (e.g. "F0 7E 7F 06 01 F7").
    """
    try:
        data = bytes.fromhex(data_hex)
    except ValueError:
        return {"error": f"Invalid hex string: {data_hex!r}"}
    if not data:
        return {"error": "SysEx message is empty"}

    device = _get_device()
    error = _send(device.send_sysex, data)
    return error or {"sent": "sysex", "length": len(data)}


# ─── INCOMING TOOLS ───────────────────────────────────────────────────

@mcp.tool()
def get_received_events(limit: int = 50, clear: bool = False) -> dict[str, Any]:
    """List the most recent messages other applications sent to "<name> In".

    Args:
        limit: Maximum number of events, newest last.
        clear: Forget all recorded events after reading.
    """
    _get_device()
    events = [e.to_dict() for e in _recorder.events(limit)]
    if clear:
        _recorder.clear()
    return {"events": events, "count": len(events)}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("midi://device/status")
def resource_device_status() -> str:
    """Connection state and endpoint names."""
    return json.dumps(_status())


@mcp.resource("midi://events/recent")
def resource_recent_events() -> str:
    """Recently received events."""
    if _recorder is None:
        return json.dumps({"events": []})
    return json.dumps({"events": [e.to_dict() for e in _recorder.events()]})


# ─── MCP PROMPTS ─────────────────────────────────────────────────────

@mcp.prompt()
def play_phrase(description: str) -> str:
    """Guide playing a short musical phrase on the virtual device."""
    return f"""Play this phrase on the virtual MIDI device: "{description}"

Steps:
1. Call open_device if device_status reports it is not connected.
2. Choose a channel (1-16) and, if needed, send_program_change first.
3. For each note, send_note_on with a velocity that fits the dynamics,
   then send_note_off for the same note.
4. Use send_control_change 64 (sustain) or send_pitchbend for expression.

Note numbers: 60 is middle C, 12 per octave."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
