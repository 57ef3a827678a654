"""Tests for the MCP server tools."""

from __future__ import annotations

import json
import sys
from unittest.mock import MagicMock, patch

import pytest

from virtual_midi_mcp.device import VirtualMidiDevice
from virtual_midi_mcp.models.config import DeviceConfig
from virtual_midi_mcp.models.values import ValidationPolicy
from virtual_midi_mcp.protocol.observer import EventRecorder
from virtual_midi_mcp.protocol.packets import PacketList
from virtual_midi_mcp.transport.rtmidi_port import PortInfo


def _get_server_module():
    """Import server module with FastMCP mocked to avoid init issues."""
    mock_fastmcp_cls = MagicMock()
    mock_fastmcp_instance = MagicMock()
    # Make the @mcp.tool() decorator a no-op that returns the function unchanged
    mock_fastmcp_instance.tool.return_value = lambda fn: fn
    mock_fastmcp_instance.resource.return_value = lambda fn: fn
    mock_fastmcp_instance.prompt.return_value = lambda fn: fn
    mock_fastmcp_cls.return_value = mock_fastmcp_instance

    with patch.dict(sys.modules, {}):
        with patch("mcp.server.fastmcp.FastMCP", mock_fastmcp_cls):
            # Remove cached server module so it re-imports with our mock
            sys.modules.pop("virtual_midi_mcp.server", None)
            import virtual_midi_mcp.server as server_mod

    return server_mod


def _open_server_device(server):
    """Install a strict device with a mock port as the server's device."""
    port = MagicMock()
    port.connected = True
    port.info = PortInfo(name="SBMidi", output_name="SBMidi Out", input_name="SBMidi In")
    recorder = EventRecorder()
    device = VirtualMidiDevice(
        DeviceConfig(policy=ValidationPolicy.STRICT), port=port, observer=recorder
    )
    server._device = device
    server._recorder = recorder
    return device, port


def test_tools_require_open_device():
    server = _get_server_module()
    with pytest.raises(RuntimeError, match="open_device"):
        server.send_note_on(1, 60, 100)


def test_send_note_on_tool():
    server = _get_server_module()
    _, port = _open_server_device(server)

    result = server.send_note_on(1, 60, 100)

    assert result == {"sent": "note_on", "channel": 1, "note": 60, "velocity": 100}
    assert port.send_packet.call_args.args[0].payload == bytes([0x90, 60, 100])


def test_invalid_value_reported_as_error():
    """Tools report bad values instead of dropping them silently."""
    server = _get_server_module()
    _, port = _open_server_device(server)

    result = server.send_control_change(17, 7, 100)

    assert "error" in result
    assert "channel" in result["error"]
    port.send_packet.assert_not_called()


def test_send_pitchbend_reports_value():
    server = _get_server_module()
    _open_server_device(server)
    assert server.send_pitchbend(1, 0, 64)["value"] == 8192


def test_send_sysex_tool():
    server = _get_server_module()
    _, port = _open_server_device(server)

    result = server.send_sysex("F0 7E 7F 06 01 F7")

    assert result == {"sent": "sysex", "length": 6}
    assert port.send_packet.call_args.args[0].payload == bytes.fromhex("F07E7F0601F7")


def test_send_sysex_too_long():
    server = _get_server_module()
    _, port = _open_server_device(server)

    result = server.send_sysex("00" * 257)

    assert "256" in result["error"]
    port.send_packet.assert_not_called()


def test_send_sysex_bad_hex():
    server = _get_server_module()
    _open_server_device(server)
    assert "error" in server.send_sysex("F0 ZZ")
    assert "error" in server.send_sysex("")


def test_received_events_tool():
    server = _get_server_module()
    device, _ = _open_server_device(server)
    device.receive(PacketList.of(b"\x90\x3c\x64", b"\xC1\x05"))

    result = server.get_received_events(limit=10, clear=True)

    assert result["count"] == 2
    assert result["events"][0] == {
        "type": "note_on",
        "channel": 1,
        "note": 60,
        "velocity": 100,
    }
    assert result["events"][1]["type"] == "program_change"
    assert server.get_received_events()["count"] == 0


def test_open_device_uses_strict_policy():
    server = _get_server_module()
    server._device = None

    with patch.object(server.VirtualMidiDevice, "open") as mock_open:
        with patch.object(
            server.VirtualMidiDevice, "connected", new=True
        ):
            result = server.open_device("Studio")

    mock_open.assert_called_once()
    assert result["connected"] is True
    assert server._device.name == "Studio"
    assert server._device.config.policy is ValidationPolicy.STRICT


def test_open_device_failure():
    server = _get_server_module()
    server._device = None

    with patch.object(
        server.VirtualMidiDevice, "open", side_effect=ConnectionError("no backend")
    ):
        result = server.open_device()

    assert result == {"error": "no backend"}
    assert server._device is None


def test_close_device():
    server = _get_server_module()
    _, port = _open_server_device(server)

    assert server.close_device() == {"closed": True}
    port.close.assert_called_once()
    assert server._device is None


def test_status_resource():
    server = _get_server_module()
    server._device = None
    assert json.loads(server.resource_device_status()) == {"connected": False}

    _open_server_device(server)
    status = json.loads(server.resource_device_status())
    assert status["connected"] is True
    assert status["output"] == "SBMidi Out"
    assert status["received_events"] == 0


def test_close_device_forgets_events():
    """Recent events from a closed device are not served."""
    server = _get_server_module()
    device, _ = _open_server_device(server)
    device.receive(PacketList.of(b"\x90\x3c\x64"))

    server.close_device()

    assert json.loads(server.resource_recent_events()) == {"events": []}


def test_open_device_with_bad_history(monkeypatch):
    server = _get_server_module()
    server._device = None
    monkeypatch.setenv("VIRTUAL_MIDI_HISTORY", "lots")

    with patch.object(server.VirtualMidiDevice, "open"):
        with patch.object(server.VirtualMidiDevice, "connected", new=True):
            result = server.open_device()

    assert result["connected"] is True
    assert server._device.config.history_size == 256
