"""
Byte sources for the section reader

A source is anything with read(size) -> bytes. StreamSource adds the
soft inactivity timeout used for live captures: once no valid section
has been seen for `timeout` seconds, read() reports end of stream and
the run finishes normally. Regular files never time out.
"""

import io
import logging
import os
import select
import stat
import sys
import time
from typing import BinaryIO, Optional


logger = logging.getLogger(__name__)


def _fileno(stream) -> Optional[int]:
    try:
        return stream.fileno()
    except (AttributeError, io.UnsupportedOperation):
        return None


class StreamSource:
    """
    Reads from a binary stream, optionally with an inactivity timeout.

    Args:
        stream: Binary file object (device, pipe, file or BytesIO)
        timeout: Seconds without a valid section before stopping;
            None or 0 disables the timeout
        owns_stream: close() also closes the stream

    Attributes:
        timed_out: True once the timeout ended the stream
    """

    def __init__(self, stream: BinaryIO, timeout: Optional[float] = None,
                 owns_stream: bool = False):
        self.stream = stream
        self.owns_stream = owns_stream
        self.fd = _fileno(stream)
        self.timeout = timeout or None
        self.timed_out = False

        if self.timeout is not None and (self.fd is None or self._is_regular_file()):
            logger.debug("Disabling inactivity timeout for non-live input")
            self.timeout = None

        self._deadline = None
        self.touch()

    def _is_regular_file(self) -> bool:
        return stat.S_ISREG(os.fstat(self.fd).st_mode)

    def touch(self) -> None:
        """Restart the inactivity window (call on every valid section)."""
        if self.timeout is not None:
            self._deadline = time.monotonic() + self.timeout

    def read(self, size: int) -> bytes:
        """Read up to size bytes; b'' at end of stream or after timeout."""
        if self.timeout is None:
            if self.fd is not None:
                return os.read(self.fd, size)
            return self.stream.read(size)

        while True:
            remaining = self._deadline - time.monotonic()
            if remaining <= 0:
                self.timed_out = True
                logger.info("No new data for %s seconds, stopping", self.timeout)
                return b''
            ready, _, _ = select.select([self.fd], [], [], remaining)
            if ready:
                return os.read(self.fd, size)

    def close(self) -> None:
        """Release the stream if this source opened it."""
        if self.owns_stream and not self.stream.closed:
            self.stream.close()


def open_input(path: Optional[str], timeout: Optional[float] = None) -> StreamSource:
    """
    Open a capture file or device, or stdin when path is None or '-'.

    Raises:
        OSError: If the path cannot be opened
    """
    if path is None or path == '-':
        return StreamSource(sys.stdin.buffer, timeout)
    return StreamSource(open(path, 'rb', buffering=0), timeout, owns_stream=True)
