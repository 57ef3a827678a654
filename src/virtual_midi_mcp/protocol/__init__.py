"""Protocol layer: packets, encoder, decoder, and observers."""

from .packets import MAX_PACKET_SIZE, PacketList, RawPacket
from .encoder import Encoder
from .decoder import Decoder, decode_packet
from .observer import EventRecorder, LoggingObserver, MidiObserver
