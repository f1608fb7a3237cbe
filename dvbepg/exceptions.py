"""
Exception hierarchy for EIT decoding.

Three severities are distinguished:
    - SectionTooLargeError stops the run (the reassembly buffer cannot
      hold the section, so the stream cannot be followed).
    - CRCError drops one section.
    - DecodeError drops one field or one event record.
"""


class DVBEPGError(Exception):
    """Base class for all decoder errors."""


class DecodeError(DVBEPGError, ValueError):
    """
    A field or record could not be decoded.

    Raised for malformed BCD digits, reserved text selectors and any
    length field that would read past the end of its enclosing block.
    """


class CRCError(DVBEPGError):
    """Section checksum did not verify."""

    def __init__(self, table_id: int, length: int):
        super().__init__(f"CRC mismatch in section table_id=0x{table_id:02X} ({length} bytes)")
        self.table_id = table_id
        self.length = length


class SectionTooLargeError(DVBEPGError):
    """Declared section length exceeds the reassembly buffer capacity."""

    def __init__(self, total_length: int, capacity: int):
        super().__init__(
            f"Section of {total_length} bytes does not fit reassembly buffer of {capacity} bytes"
        )
        self.total_length = total_length
        self.capacity = capacity
