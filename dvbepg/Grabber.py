"""
EIT grabbing pipeline

    byte source -> SectionReader -> table filter -> CRC check
                -> EITDecoder -> ProgrammeEvent

Pull-based and single-threaded: the reader only asks the source for more
bytes when the pending section is incomplete. Every valid section
restarts the source's inactivity timer.
"""

import logging
from typing import BinaryIO, Callable, Iterator, Optional

from .EIT import EITDecoder
from .PSI import TableID
from .Programme import ProgrammeEvent
from .Section import SectionReader
from .context import DecodeContext
from .exceptions import DecodeError
from .stats import DecodeStats


logger = logging.getLogger(__name__)


class EPGGrabber:
    """
    Decodes programme events from a section byte stream.

    Args:
        source: Object with read(size) -> bytes; an optional touch()
            method is called on every valid section
        context: Decoding context (a fresh default one if None)
        on_progress: Called with the stats after each section

    Example:
        >>> grabber = EPGGrabber(StreamSource(f))
        >>> events = list(grabber.run())
        >>> grabber.stats.programmes
    """

    def __init__(self, source: BinaryIO, context: Optional[DecodeContext] = None,
                 on_progress: Optional[Callable[[DecodeStats], None]] = None):
        self.source = source
        self.context = context or DecodeContext()
        self.decoder = EITDecoder(self.context)
        self.reader = SectionReader(source, self.context.config.buffer_capacity)
        self.on_progress = on_progress

    @property
    def stats(self) -> DecodeStats:
        return self.context.stats

    def _touch(self) -> None:
        touch = getattr(self.source, 'touch', None)
        if touch is not None:
            touch()

    def run(self) -> Iterator[ProgrammeEvent]:
        """
        Yield programme events until the source is exhausted.

        Raises:
            SectionTooLargeError: If a section cannot fit the buffer
            OSError: If the byte source fails
        """
        stats = self.stats
        config = self.context.config

        for raw in self.reader:
            stats.packets += 1

            if not config.accepts_table(raw.table_id):
                stats.filtered += 1
            elif not raw.crc_ok():
                stats.crc_errors += 1
                logger.debug("CRC error in %r", raw)
            else:
                self._touch()
                if not TableID.is_eit(raw.table_id):
                    stats.filtered += 1
                    logger.debug("Skipping %s section %r", TableID.describe(raw.table_id), raw)
                else:
                    try:
                        yield from self.decoder.decode_section(raw)
                    except DecodeError as e:
                        stats.decode_errors += 1
                        logger.warning("Skipping section %r: %s", raw, e)

            if self.on_progress is not None:
                self.on_progress(stats)
