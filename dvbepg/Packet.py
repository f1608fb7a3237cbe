"""
MPEG-2 Transport Stream packet header parsing

A Transport Stream packet is exactly 188 bytes:
- 4-byte header (sync byte + flags + PID + continuity counter)
- 0-183 bytes adaptation field (optional)
- 0-184 bytes payload

Header structure:
    Byte 0:     Sync byte (0x47)
    Byte 1-2:   Transport Error | Payload Unit Start | Priority | PID (13 bits)
    Byte 3:     Scrambling | Adaptation Field | Continuity Counter

Only what section extraction needs is decoded; the adaptation field is
skipped by its length byte.

Reference: ISO/IEC 13818-1 Section 2.4.3
"""

from dataclasses import dataclass, field
from typing import Union

from .exceptions import DecodeError


SYNC_BYTE = 0x47

PACKET_SIZE = 188
HEADER_SIZE = 4

PID_SDT = 0x0011
PID_EIT = 0x0012
PID_TDT = 0x0014
PID_NULL = 0x1FFF


@dataclass
class Packet:
    """
    Parsed TS packet.

    Attributes:
        pid: Packet Identifier (13 bits)
        payload: Bytes after header and adaptation field
        transport_error: Transport error indicator
        payload_unit_start: A section starts in this packet (pointer_field present)
        scrambling_control: 2-bit scrambling control
        continuity_counter: 4-bit counter, incremented per payload-carrying packet
        has_adaptation_field: Adaptation field present
    """

    pid: int
    payload: bytes = field(default_factory=bytes)
    transport_error: bool = False
    payload_unit_start: bool = False
    scrambling_control: int = 0
    continuity_counter: int = 0
    has_adaptation_field: bool = False

    @property
    def has_payload(self) -> bool:
        return len(self.payload) > 0

    @classmethod
    def from_bytes(cls, data: Union[bytes, bytearray]) -> 'Packet':
        """
        Parse one 188-byte packet.

        Raises:
            DecodeError: On short data, a bad sync byte or an adaptation
                field longer than the packet
        """
        if len(data) < PACKET_SIZE:
            raise DecodeError(f"Packet must be {PACKET_SIZE} bytes, got {len(data)}")
        if data[0] != SYNC_BYTE:
            raise DecodeError(f"Invalid sync byte: 0x{data[0]:02X}, expected 0x47")

        adaptation_field_control = (data[3] >> 4) & 0x03
        has_adaptation = adaptation_field_control in (0b10, 0b11)
        has_payload = adaptation_field_control in (0b01, 0b11)

        pos = HEADER_SIZE
        if has_adaptation:
            pos += 1 + data[pos]
            if pos > PACKET_SIZE:
                raise DecodeError(f"Adaptation field overruns packet ({pos} bytes)")

        return cls(
            pid=((data[1] & 0x1F) << 8) | data[2],
            payload=bytes(data[pos:PACKET_SIZE]) if has_payload else b'',
            transport_error=bool(data[1] & 0x80),
            payload_unit_start=bool(data[1] & 0x40),
            scrambling_control=(data[3] >> 6) & 0x03,
            continuity_counter=data[3] & 0x0F,
            has_adaptation_field=has_adaptation,
        )

    def __repr__(self) -> str:
        return (f"Packet(pid=0x{self.pid:04X}, "
                f"cc={self.continuity_counter}, "
                f"payload={len(self.payload)}B"
                f"{', PUSI' if self.payload_unit_start else ''}"
                f"{', AF' if self.has_adaptation_field else ''})")


def build_packet(pid: int, payload: bytes, payload_unit_start: bool = False,
                 continuity_counter: int = 0) -> bytes:
    """Build a payload-only packet, padding with 0xFF stuffing."""
    if len(payload) > PACKET_SIZE - HEADER_SIZE:
        raise ValueError(f"Payload too large: {len(payload)}")
    header = bytes([
        SYNC_BYTE,
        (payload_unit_start << 6) | ((pid >> 8) & 0x1F),
        pid & 0xFF,
        0x10 | (continuity_counter & 0x0F),
    ])
    return (header + payload).ljust(PACKET_SIZE, b'\xFF')
