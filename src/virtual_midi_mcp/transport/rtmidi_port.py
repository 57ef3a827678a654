"""Virtual MIDI endpoints on the host MIDI subsystem via python-rtmidi.

Creates a virtual output ("<name> Out") that other applications can
read from, and a virtual input ("<name> In") they can write to. Virtual
ports are supported by the ALSA, JACK and CoreMIDI backends; Windows
MultiMedia has none.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from ..protocol.packets import MAX_PACKET_SIZE, PacketList, RawPacket

logger = logging.getLogger(__name__)

ReceiveHandler = Callable[[PacketList], None]


@dataclass
class PortInfo:
    """Names and backend of the open virtual endpoints."""

    name: str = ""
    output_name: str = ""
    input_name: str = ""
    api: str = ""


class RtMidiVirtualPort:
    """Owns the rtmidi input/output pair behind a virtual device.

    Usage::

        port = RtMidiVirtualPort("SBMidi")
        port.on_receive = decoder.dispatch
        port.open()
        port.send_packet(RawPacket(b"\\x90\\x3c\\x64"))
        port.close()
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._midi_in = None
        self._midi_out = None
        self._connected = False
        self._info = PortInfo(name=name)
        self.on_receive: ReceiveHandler | None = None

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def info(self) -> PortInfo:
        return self._info

    def open(self) -> PortInfo:
        """Register the virtual endpoints with the host.

        Raises:
            ConnectionError: If rtmidi is missing or the backend refuses
                to create virtual ports.
        """
        if self._connected:
            return self._info

        try:
            import rtmidi
        except ImportError as e:
            raise ConnectionError(
                "python-rtmidi is required for virtual MIDI ports"
            ) from e

        output_name = f"{self._name} Out"
        input_name = f"{self._name} In"
        midi_out = midi_in = None
        try:
            midi_out = rtmidi.MidiOut()
            midi_out.open_virtual_port(output_name)

            midi_in = rtmidi.MidiIn()
            midi_in.ignore_types(sysex=False, timing=True, active_sense=True)
            midi_in.set_callback(self._handle_message)
            midi_in.open_virtual_port(input_name)
        except Exception as e:
            # Unregister whichever endpoint already made it to the host
            for midi_port in (midi_in, midi_out):
                if midi_port is None:
                    continue
                try:
                    midi_port.close_port()
                except Exception as close_error:
                    logger.debug("Error closing partial port: %s", close_error)
            raise ConnectionError(
                f"Could not create virtual MIDI ports for {self._name!r}. "
                f"Last error: {e}"
            ) from e

        self._midi_out = midi_out
        self._midi_in = midi_in
        self._connected = True
        self._info = PortInfo(
            name=self._name,
            output_name=output_name,
            input_name=input_name,
            api=rtmidi.get_api_display_name(midi_out.get_current_api()),
        )
        logger.info(
            "Opened virtual MIDI ports %r / %r (%s)",
            output_name,
            input_name,
            self._info.api,
        )
        return self._info

    def close(self) -> None:
        """Unregister the virtual endpoints."""
        if not self._connected:
            return

        try:
            self._midi_in.cancel_callback()
            self._midi_in.close_port()
            self._midi_out.close_port()
        except Exception as e:
            logger.warning("Error closing virtual ports: %s", e)
        finally:
            self._midi_in = None
            self._midi_out = None
            self._connected = False
            logger.info("Closed virtual MIDI ports for %r", self._name)

    def send_packet(self, packet: RawPacket) -> None:
        """Submit one packet to the virtual output.

        Raises:
            ConnectionError: If the ports are not open.
        """
        if not self._connected:
            raise ConnectionError("Virtual MIDI ports are not open")
        self._midi_out.send_message(list(packet.payload))

    def _handle_message(self, event: tuple[list[int], float], data: object = None) -> None:
        # rtmidi delivers one message per callback with its delta time in seconds
        message, delta = event
        if len(message) > MAX_PACKET_SIZE:
            logger.warning(
                "Dropped incoming message of %d bytes (limit %d)",
                len(message),
                MAX_PACKET_SIZE,
            )
            return
        packet = RawPacket(bytes(message), timestamp=round(delta * 1_000_000))
        handler = self.on_receive
        if handler is not None:
            handler(PacketList([packet]))
