"""
Decoder configuration

One dataclass holds every run option. Values are validated on
construction so a bad option fails before any input is read.
"""

import codecs
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional


# (filter, mask) presets for the table_id filter
TABLE_FILTERS = {
    'all': (0x00, 0x00),
    'now-next': (0x4E, 0xFE),           # p/f, actual and other
    'now-next-actual': (0x4E, 0xFF),
    'now-next-other': (0x4F, 0xFF),
}

VERSION_POLICIES = ('direct', 'serial')

DEFAULT_BUFFER_CAPACITY = 1 << 12


@dataclass
class DecoderConfig:
    """
    Options for an EIT decoding run.

    Attributes:
        time_offset: Whole hours added to every decoded start hour (-12..12)
        emit_updates: Emit events again when a newer version arrives
        include_invalid_dates: Emit events outside the date window
        default_encoding: Python codec for text without a selector byte;
            None selects the DVB Latin (ISO 6937) table
        version_policy: 'direct' integer comparison, or 'serial' for
            5-bit wraparound-aware comparison
        past_window: Events ending before now - past_window are invalid
        future_window: Events ending after now + future_window are invalid
        table_filter: Required table_id bits (after masking)
        table_mask: Bits of table_id compared against table_filter
        buffer_capacity: Section reassembly buffer size in bytes
    """

    time_offset: int = 0
    emit_updates: bool = False
    include_invalid_dates: bool = False
    default_encoding: Optional[str] = None
    version_policy: str = 'direct'
    past_window: timedelta = timedelta(days=1)
    future_window: timedelta = timedelta(days=14)
    table_filter: int = 0x00
    table_mask: int = 0x00
    buffer_capacity: int = DEFAULT_BUFFER_CAPACITY

    def __post_init__(self):
        """Validate option ranges."""
        if not -12 <= self.time_offset <= 12:
            raise ValueError(f"Time offset must be -12..12 hours, got {self.time_offset}")
        if self.version_policy not in VERSION_POLICIES:
            raise ValueError(f"Unknown version policy: {self.version_policy!r}")
        if not 0 <= self.table_filter <= 0xFF or not 0 <= self.table_mask <= 0xFF:
            raise ValueError("Table filter and mask must be single bytes")
        if self.buffer_capacity < 16:
            raise ValueError(f"Buffer capacity too small: {self.buffer_capacity}")
        if self.default_encoding is not None:
            try:
                codecs.lookup(self.default_encoding)
            except LookupError as e:
                raise ValueError(f"Unknown encoding: {self.default_encoding}") from e

    @classmethod
    def with_table_filter(cls, preset: str, **kwargs) -> 'DecoderConfig':
        """Build a config using one of the TABLE_FILTERS presets."""
        if preset not in TABLE_FILTERS:
            raise ValueError(f"Unknown table filter: {preset!r}")
        table_filter, table_mask = TABLE_FILTERS[preset]
        return cls(table_filter=table_filter, table_mask=table_mask, **kwargs)

    def accepts_table(self, table_id: int) -> bool:
        """Apply the table_id filter."""
        return (table_id & self.table_mask) == (self.table_filter & self.table_mask)
