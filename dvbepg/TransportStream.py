"""
Section extraction from a Transport Stream capture

A raw .ts recording carries the EIT on PID 0x0012 split across 188-byte
packets. Sections start where a pointer_field says (in packets with
payload_unit_start set), may span several packets, several may share a
packet, and 0xFF stuffing fills the remainder.

TSSectionSource turns such a capture into the plain concatenation of
complete sections that SectionReader expects. A continuity error drops
the section being assembled; the next payload_unit_start resynchronises.

Reference: ISO/IEC 13818-1 Section 2.4.4.1
"""

import logging
from typing import BinaryIO, Optional

from .PSI import SECTION_HEADER_SIZE, read_section_length
from .Packet import PACKET_SIZE, PID_EIT, SYNC_BYTE, Packet
from .exceptions import DecodeError


logger = logging.getLogger(__name__)


class TSSectionSource:
    """
    Byte source yielding the sections carried on one PID.

    Args:
        stream: Object with read(size) -> bytes delivering TS packets
        pid: PID to extract (EIT by default)

    Attributes:
        packets: Packets read
        cc_errors: Continuity counter discontinuities on the PID
        sync_losses: Times the 0x47 sync byte had to be searched for

    Example:
        >>> source = TSSectionSource(open('capture.ts', 'rb'))
        >>> for section in SectionReader(source):
        ...     print(section)
    """

    def __init__(self, stream: BinaryIO, pid: int = PID_EIT):
        self.stream = stream
        self.pid = pid
        self.packets = 0
        self.cc_errors = 0
        self.sync_losses = 0
        self._ready = bytearray()
        self._section: Optional[bytearray] = None
        self._last_cc: Optional[int] = None

    def touch(self) -> None:
        """Forward inactivity-timer resets to the wrapped source."""
        touch = getattr(self.stream, 'touch', None)
        if touch is not None:
            touch()

    def read(self, size: int) -> bytes:
        """Return up to size bytes of complete sections; b'' at end of stream."""
        while not self._ready:
            data = self._read_packet()
            if data is None:
                return b''
            self.packets += 1
            try:
                packet = Packet.from_bytes(data)
            except DecodeError as e:
                logger.debug("Skipping packet: %s", e)
                continue
            self._feed(packet)

        out = bytes(self._ready[:size])
        del self._ready[:size]
        return out

    def _read_exact(self, size: int) -> bytes:
        data = b''
        while len(data) < size:
            chunk = self.stream.read(size - len(data))
            if not chunk:
                break
            data += chunk
        return data

    def _read_packet(self) -> Optional[bytes]:
        data = self._read_exact(PACKET_SIZE)
        while len(data) == PACKET_SIZE and data[0] != SYNC_BYTE:
            self.sync_losses += 1
            idx = data.find(bytes([SYNC_BYTE]), 1)
            if idx < 0:
                data = self._read_exact(PACKET_SIZE)
            else:
                data = data[idx:] + self._read_exact(idx)
        return data if len(data) == PACKET_SIZE else None

    def _feed(self, packet: Packet) -> None:
        if packet.pid != self.pid or packet.transport_error or not packet.has_payload:
            return

        cc = packet.continuity_counter
        if self._last_cc is not None:
            if cc == self._last_cc:
                return  # duplicate packet
            if cc != (self._last_cc + 1) % 16:
                self.cc_errors += 1
                logger.debug("Continuity error on PID 0x%04X: %d -> %d", self.pid, self._last_cc, cc)
                self._section = None
        self._last_cc = cc

        payload = packet.payload
        if packet.payload_unit_start:
            pointer = payload[0]
            if self._section is not None:
                self._append(payload[1:1 + pointer])
            self._section = bytearray()
            self._append(payload[1 + pointer:])
        elif self._section is not None:
            self._append(payload)

    def _append(self, data: bytes) -> None:
        """Add payload bytes to the section in progress, moving out finished sections."""
        section = self._section
        section.extend(data)

        while section:
            if section[0] == 0xFF:
                # stuffing: nothing more until the next payload_unit_start
                self._section = None
                return
            if len(section) < SECTION_HEADER_SIZE:
                return
            total = SECTION_HEADER_SIZE + read_section_length(section)
            if len(section) < total:
                return
            self._ready.extend(section[:total])
            del section[:total]
