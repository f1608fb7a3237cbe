"""
Decoding run statistics

Counters are plain integers on a dataclass owned by the decoding context;
the decoder runs on a single thread so no locking is needed.
"""

from dataclasses import dataclass, asdict
from typing import Dict


@dataclass
class DecodeStats:
    """Diagnostic counters for one decoding run."""
    packets: int = 0                # complete sections seen
    programmes: int = 0             # events emitted
    updates: int = 0                # newer versions of known events
    repeats: int = 0                # already-seen events discarded
    invalid_dates: int = 0
    crc_errors: int = 0
    missing_titles: int = 0
    unknown_descriptors: int = 0
    decode_errors: int = 0
    text_warnings: int = 0
    filtered: int = 0               # table filter rejections and non-EIT sections

    def status_line(self) -> str:
        """One-line progress summary for the terminal."""
        return (f"Status: {self.packets} pkts, {self.programmes} prgms, "
                f"{self.updates} updates, {self.invalid_dates} invalid, "
                f"{self.crc_errors} CRC err")

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)
