"""
CRC-32/MPEG-2 for DVB Service Information sections

Every SI section (EIT included) ends with a CRC_32 field chosen so that
running the MPEG-2 CRC over the whole section, checksum included, yields
zero. Validation therefore never needs to split off the trailing 4 bytes.

Polynomial: x^32 + x^26 + x^23 + x^22 + x^16 + x^12 + x^11 + x^10 + x^8 + x^7 + x^5 + x^4 + x^2 + x + 1
In hex: 0x04C11DB7, MSB-first, initial value 0xFFFFFFFF, no final XOR.

Reference: ISO/IEC 13818-1 Annex A, ETSI EN 300 468 Annex B
"""

import numpy as np
from typing import Union


class CRC32:
    """
    Table-driven CRC-32/MPEG-2 calculator.

    Example:
        >>> crc = CRC32()
        >>> section = crc.append(b'\\x4e\\xf0\\x0f')
        >>> crc.check(section)
        True
    """

    POLYNOMIAL = 0x04C11DB7
    INITIAL = 0xFFFFFFFF

    def __init__(self):
        self._table = self._generate_table()

    def _generate_table(self) -> np.ndarray:
        """Build the 256-entry lookup table, one entry per leading byte."""
        table = np.zeros(256, dtype=np.uint32)

        for i in range(256):
            crc = i << 24
            for _ in range(8):
                if crc & 0x80000000:
                    crc = ((crc << 1) ^ self.POLYNOMIAL) & 0xFFFFFFFF
                else:
                    crc = (crc << 1) & 0xFFFFFFFF
            table[i] = crc

        return table

    def calculate(self, data: Union[bytes, bytearray, memoryview]) -> int:
        """
        Run the CRC over a block of bytes.

        Args:
            data: Bytes to checksum

        Returns:
            32-bit CRC register after the last byte
        """
        crc = self.INITIAL
        table = self._table

        for byte in bytes(data):
            crc = ((crc << 8) ^ int(table[((crc >> 24) ^ byte) & 0xFF])) & 0xFFFFFFFF

        return crc

    def check(self, section: Union[bytes, bytearray, memoryview]) -> bool:
        """
        Validate a complete section (header + payload + CRC_32).

        Returns:
            True if the residue over the whole block is zero
        """
        if len(section) < 4:
            return False
        return self.calculate(section) == 0

    def append(self, data: Union[bytes, bytearray]) -> bytes:
        """Return data with its big-endian CRC_32 appended."""
        return bytes(data) + self.calculate(data).to_bytes(4, byteorder='big')


_default_crc = CRC32()


def crc32(data: Union[bytes, bytearray, memoryview]) -> int:
    """Calculate CRC-32/MPEG-2 of data using the shared calculator."""
    return _default_crc.calculate(data)


def section_crc_ok(section: Union[bytes, bytearray, memoryview]) -> bool:
    """Check a complete section including its trailing CRC_32."""
    return _default_crc.check(section)
