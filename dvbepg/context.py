"""
Decoding context

Everything that outlives a single section lives here and is created once
per run: options, counters, the version tracker, the text normaliser and
the channel alias table.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from .Descriptors import DescriptorProjector
from .Text import TextNormalizer
from .Tracker import EventTracker
from .config import DecoderConfig
from .stats import DecodeStats


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DecodeContext:
    """
    State shared by every component of one decoding run.

    Args:
        config: Run options (defaults if None)
        clock: Returns the current UTC time; injectable for tests
        channel_ids: Optional alias table service_id -> channel identifier

    Example:
        >>> ctx = DecodeContext(DecoderConfig(emit_updates=True))
        >>> decoder = EITDecoder(ctx)
    """

    def __init__(self, config: Optional[DecoderConfig] = None,
                 clock: Callable[[], datetime] = utc_now,
                 channel_ids: Optional[Dict[int, str]] = None):
        self.config = config or DecoderConfig()
        self.clock = clock
        self.channel_ids = channel_ids or {}
        self.stats = DecodeStats()
        self.tracker = EventTracker(self.config.version_policy)
        self.normalizer = TextNormalizer(self.config.default_encoding, self.stats)
        self.projector = DescriptorProjector(self.normalizer, self._count_unknown)

    def _count_unknown(self, tag: int, length: int) -> None:
        self.stats.unknown_descriptors += 1

    def now(self) -> datetime:
        return self.clock()

    def channel_ident(self, service_id: int) -> str:
        """Channel identifier for a service, from the alias table or '<sid>.dvb.guide'."""
        alias = self.channel_ids.get(service_id)
        if alias:
            return alias
        return f"{service_id}.dvb.guide"
