"""
Section reassembly from a byte stream

A demultiplexer device delivers whole sections per read, but a capture
file read in fixed chunks splits sections at arbitrary points. The
reader keeps a bounded buffer, frames sections by their declared length
and only asks the source for more bytes when the pending section is
incomplete.
"""

import logging
from typing import BinaryIO, Iterator

from .PSI import CRC_SIZE, SECTION_HEADER_SIZE, RawSection, read_section_length
from .config import DEFAULT_BUFFER_CAPACITY
from .exceptions import SectionTooLargeError


logger = logging.getLogger(__name__)

# Bytes that cannot start a section on the EIT PID: stuffing and idle fill
FILLER_BYTES = (0x00, 0xFF)


class SectionReader:
    """
    Iterates complete sections read from a byte source.

    Args:
        source: Object with a read(size) -> bytes method; an empty
            result means end of stream
        capacity: Buffer size; a section longer than this is fatal

    Example:
        >>> with open('eit.bin', 'rb') as f:
        ...     for section in SectionReader(f):
        ...         print(section)
    """

    def __init__(self, source: BinaryIO, capacity: int = DEFAULT_BUFFER_CAPACITY):
        self.source = source
        self.capacity = capacity
        self.bytes_read = 0
        self.bytes_skipped = 0

    def __iter__(self) -> Iterator[RawSection]:
        buf = bytearray()

        while True:
            section = self._take_section(buf)
            if section is not None:
                yield section
                continue

            chunk = self.source.read(self.capacity - len(buf))
            if not chunk:
                if buf:
                    logger.debug("Discarding %d bytes of incomplete section at end of stream", len(buf))
                return

            self.bytes_read += len(chunk)
            buf.extend(chunk)

    def _take_section(self, buf: bytearray):
        """Remove and return the section at the head of buf, or None if incomplete."""
        while True:
            skip = 0
            while skip < len(buf) and buf[skip] in FILLER_BYTES:
                skip += 1
            if skip:
                del buf[:skip]
                self.bytes_skipped += skip

            if len(buf) < SECTION_HEADER_SIZE:
                return None

            section_length = read_section_length(buf)
            if section_length >= CRC_SIZE:
                break

            # too short to be a section at all: resynchronise bytewise
            del buf[:1]
            self.bytes_skipped += 1

        total = SECTION_HEADER_SIZE + section_length
        if total > self.capacity:
            raise SectionTooLargeError(total, self.capacity)
        if len(buf) < total:
            return None

        section = RawSection.from_bytes(buf[:total])
        del buf[:total]
        return section


def iter_sections(source: BinaryIO, capacity: int = DEFAULT_BUFFER_CAPACITY) -> Iterator[RawSection]:
    """Convenience wrapper around SectionReader."""
    return iter(SectionReader(source, capacity))
