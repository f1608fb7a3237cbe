"""
Event version tracking

A multiplex repeats every EIT section continuously. The tracker remembers
the last version_number seen for each (service_id, event_id) so that
repeats are discarded and genuine content updates are recognised.
Entries are never evicted: a repeat arriving hours later must still be
recognised.
"""

from enum import Enum
from typing import Dict, Optional, Tuple


class Admission(Enum):
    """Outcome of offering an event to the tracker."""
    NEW = 'new'
    REPEAT = 'repeat'
    UPDATE = 'update'


def is_newer(incoming: int, stored: int, policy: str = 'direct') -> bool:
    """
    Compare two 5-bit version numbers.

    Args:
        incoming: Version carried by the current section
        stored: Version last recorded for the event
        policy: 'direct' compares as plain integers; 'serial' treats the
            numbers as modulo 32 so that 31 -> 0 counts as newer

    Returns:
        True if incoming supersedes stored
    """
    if policy == 'serial':
        return 1 <= (incoming - stored) % 32 <= 15
    return incoming > stored


class EventTracker:
    """
    Hashed store of last-seen versions keyed by (service_id, event_id).

    Example:
        >>> tracker = EventTracker()
        >>> tracker.admit(1, 10, 3)
        <Admission.NEW: 'new'>
        >>> tracker.admit(1, 10, 3)
        <Admission.REPEAT: 'repeat'>
    """

    def __init__(self, policy: str = 'direct'):
        self.policy = policy
        self._versions: Dict[Tuple[int, int], int] = {}

    def __len__(self) -> int:
        return len(self._versions)

    def __contains__(self, key: Tuple[int, int]) -> bool:
        return key in self._versions

    def version(self, service_id: int, event_id: int) -> Optional[int]:
        """Last recorded version for an event, or None if never seen."""
        return self._versions.get((service_id, event_id))

    def admit(self, service_id: int, event_id: int, version: int) -> Admission:
        """
        Record a sighting and classify it.

        The stored version is updated for both NEW and UPDATE outcomes,
        whether or not the caller goes on to emit the event.
        """
        key = (service_id, event_id)
        stored = self._versions.get(key)

        if stored is None:
            self._versions[key] = version
            return Admission.NEW

        if not is_newer(version, stored, self.policy):
            return Admission.REPEAT

        self._versions[key] = version
        return Admission.UPDATE
