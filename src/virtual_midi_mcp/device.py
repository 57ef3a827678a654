"""A virtual MIDI device: encoder, decoder and observer over one transport."""

from __future__ import annotations

import logging

from .models.config import DeviceConfig
from .protocol.decoder import Decoder
from .protocol.encoder import Encoder
from .protocol.observer import MidiObserver
from .protocol.packets import PacketList
from .transport.rtmidi_port import RtMidiVirtualPort

logger = logging.getLogger(__name__)


class VirtualMidiDevice:
    """Sends and receives MIDI through a pair of virtual endpoints.

    Usage::

        with VirtualMidiDevice(DeviceConfig(name="Synth")) as device:
            device.observer = my_observer
            device.send_note_on(1, 60, 100)

    Out-of-range channels or data bytes are dropped silently unless the
    config selects ``ValidationPolicy.STRICT``.
    """

    def __init__(
        self,
        config: DeviceConfig | None = None,
        port: RtMidiVirtualPort | None = None,
        observer: MidiObserver | None = None,
    ) -> None:
        self.config = config or DeviceConfig()
        self._port = port if port is not None else RtMidiVirtualPort(self.config.name)
        self._decoder = Decoder(observer)
        self._encoder = Encoder(self._port.send_packet, self.config.policy)
        self._port.on_receive = self.receive

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def connected(self) -> bool:
        return self._port.connected

    @property
    def port(self) -> RtMidiVirtualPort:
        return self._port

    @property
    def encoder(self) -> Encoder:
        return self._encoder

    @property
    def observer(self) -> MidiObserver | None:
        return self._decoder.observer

    @observer.setter
    def observer(self, observer: MidiObserver | None) -> None:
        self._decoder.observer = observer

    def open(self) -> VirtualMidiDevice:
        logger.debug("Opening device %r (policy=%s)", self.name, self.config.policy.value)
        self._port.open()
        return self

    def close(self) -> None:
        self._port.close()

    def __enter__(self) -> VirtualMidiDevice:
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def receive(self, packet_list: PacketList) -> int:
        """Inbound entry point for the transport's receive callback."""
        return self._decoder.dispatch(packet_list)

    # Outgoing messages

    def send_note_off(self, channel: int, note: int, velocity: int) -> None:
        self._encoder.send_note_off(channel, note, velocity)

    def send_note_on(self, channel: int, note: int, velocity: int) -> None:
        self._encoder.send_note_on(channel, note, velocity)

    def send_poly_aftertouch(self, channel: int, note: int, pressure: int) -> None:
        self._encoder.send_poly_aftertouch(channel, note, pressure)

    def send_control_change(self, channel: int, controller: int, value: int) -> None:
        self._encoder.send_control_change(channel, controller, value)

    def send_program_change(self, channel: int, program: int) -> None:
        self._encoder.send_program_change(channel, program)

    def send_mono_aftertouch(self, channel: int, pressure: int) -> None:
        self._encoder.send_mono_aftertouch(channel, pressure)

    def send_pitchbend(self, channel: int, data1: int, data2: int) -> None:
        self._encoder.send_pitchbend(channel, data1, data2)

    def send_sysex(self, data: bytes) -> None:
        self._encoder.send_sysex(data)

    def send_raw_message(self, status: int, data1: int, data2: int | None = None) -> None:
        self._encoder.send_raw_message(status, data1, data2)
