"""
Service Information section framing

All DVB SI tables share the PSI section layout:

    table_id                    (8 bits)
    section_syntax_indicator    (1 bit)
    reserved_future_use         (1 bit)
    reserved                   (2 bits)
    section_length             (12 bits)
    [section_length bytes: table data ... CRC_32]

Multi-byte integers are big-endian; sub-byte fields are read with explicit
masks on fixed byte offsets.

Reference: ISO/IEC 13818-1 Section 2.4.4, ETSI EN 300 468 Section 5.1
"""

from dataclasses import dataclass
from typing import Union
import struct

from .CRC import CRC32
from .exceptions import DecodeError


SECTION_HEADER_SIZE = 3
CRC_SIZE = 4


class TableID:
    """DVB SI table IDs relevant to event information."""
    NIT_ACTUAL = 0x40
    NIT_OTHER = 0x41
    SDT_ACTUAL = 0x42
    SDT_OTHER = 0x46
    BAT = 0x4A
    EIT_PF_ACTUAL = 0x4E    # present/following, actual TS
    EIT_PF_OTHER = 0x4F     # present/following, other TS
    EIT_SCHEDULE_ACTUAL_FIRST = 0x50
    EIT_SCHEDULE_ACTUAL_LAST = 0x5F
    EIT_SCHEDULE_OTHER_FIRST = 0x60
    EIT_SCHEDULE_OTHER_LAST = 0x6F
    TDT = 0x70
    TOT = 0x73
    STUFFING = 0xFF

    @classmethod
    def is_eit(cls, table_id: int) -> bool:
        """True for any EIT table id (actual or other, p/f or schedule)."""
        return cls.EIT_PF_ACTUAL <= table_id <= cls.EIT_SCHEDULE_OTHER_LAST

    @classmethod
    def describe(cls, table_id: int) -> str:
        """Short human-readable label for a table id."""
        if table_id == cls.EIT_PF_ACTUAL:
            return "EIT p/f actual"
        if table_id == cls.EIT_PF_OTHER:
            return "EIT p/f other"
        if cls.EIT_SCHEDULE_ACTUAL_FIRST <= table_id <= cls.EIT_SCHEDULE_ACTUAL_LAST:
            return f"EIT schedule actual #{table_id - cls.EIT_SCHEDULE_ACTUAL_FIRST}"
        if cls.EIT_SCHEDULE_OTHER_FIRST <= table_id <= cls.EIT_SCHEDULE_OTHER_LAST:
            return f"EIT schedule other #{table_id - cls.EIT_SCHEDULE_OTHER_FIRST}"
        return f"table 0x{table_id:02X}"


def read_section_length(data: Union[bytes, bytearray, memoryview], offset: int = 0) -> int:
    """Extract the 12-bit section_length from bytes 1-2 of a section header."""
    return ((data[offset + 1] & 0x0F) << 8) | data[offset + 2]


@dataclass(frozen=True)
class RawSection:
    """
    One complete, length-delimited SI section.

    Attributes:
        table_id: First byte of the section
        section_length: Declared length of everything after the 3-byte header
        data: Whole section bytes (header + payload + CRC_32)

    Example:
        >>> raw = RawSection.from_bytes(section_bytes)
        >>> raw.crc_ok()
    """

    table_id: int
    section_length: int
    data: bytes

    _crc = CRC32()

    @property
    def total_length(self) -> int:
        return SECTION_HEADER_SIZE + self.section_length

    @property
    def payload(self) -> bytes:
        """Bytes following the 3-byte header, CRC_32 included."""
        return self.data[SECTION_HEADER_SIZE:]

    @property
    def crc(self) -> int:
        """Trailing CRC_32 field as transmitted."""
        return struct.unpack('>I', self.data[-CRC_SIZE:])[0]

    @property
    def syntax_indicator(self) -> bool:
        return bool(self.data[1] & 0x80)

    def crc_ok(self) -> bool:
        """Verify the CRC_32 over header, payload and checksum."""
        return self._crc.check(self.data)

    @classmethod
    def from_bytes(cls, data: Union[bytes, bytearray, memoryview]) -> 'RawSection':
        """
        Frame one section from the start of data.

        Args:
            data: Buffer beginning with a table_id byte; may be longer
                than the section

        Returns:
            RawSection holding exactly 3 + section_length bytes

        Raises:
            DecodeError: If the buffer is shorter than the declared section
        """
        if len(data) < SECTION_HEADER_SIZE:
            raise DecodeError("Section header too short")

        section_length = read_section_length(data)
        total = SECTION_HEADER_SIZE + section_length
        if len(data) < total:
            raise DecodeError(f"Section truncated: need {total} bytes, have {len(data)}")
        if section_length < CRC_SIZE:
            raise DecodeError(f"Section length {section_length} cannot hold CRC_32")

        return cls(table_id=data[0], section_length=section_length, data=bytes(data[:total]))

    def __repr__(self) -> str:
        return (f"RawSection({TableID.describe(self.table_id)}, "
                f"length={self.section_length})")


def encode_section(table_id: int, table_id_extension: int, body: bytes,
                   version: int = 0, current_next: bool = True,
                   section_number: int = 0, last_section_number: int = 0) -> bytes:
    """
    Build a long-form section with a valid CRC_32.

    Args:
        table_id: Table identifier
        table_id_extension: 16-bit extension (service_id for EIT)
        body: Table data following last_section_number
        version: Version number (0-31)
        current_next: current_next_indicator
        section_number: Section number
        last_section_number: Last section number

    Returns:
        Complete section bytes including CRC_32
    """
    if not 0 <= version <= 31:
        raise ValueError(f"Version must be 0-31, got {version}")

    section_length = 5 + len(body) + CRC_SIZE
    if section_length > 0xFFF:
        raise ValueError(f"Section body too long: {section_length}")

    section = bytearray()
    section.append(table_id)
    section.append(0x80 | 0x40 | 0x30 | ((section_length >> 8) & 0x0F))
    section.append(section_length & 0xFF)
    section.extend(struct.pack('>H', table_id_extension))
    section.append(0xC0 | ((version & 0x1F) << 1) | (current_next & 0x01))
    section.append(section_number)
    section.append(last_section_number)
    section.extend(body)

    return RawSection._crc.append(bytes(section))
