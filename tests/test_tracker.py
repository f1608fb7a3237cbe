"""
Tests for event version tracking.
"""

import pytest
from dvbepg.Tracker import Admission, EventTracker, is_newer


class TestIsNewer:
    """Test version comparison policies."""

    def test_direct(self):
        """Direct comparison needs a strictly larger version."""
        assert is_newer(4, 3)
        assert not is_newer(3, 3)
        assert not is_newer(0, 31)

    def test_serial_wraparound(self):
        """Serial comparison treats 31 to 0 as newer."""
        assert is_newer(0, 31, 'serial')
        assert is_newer(2, 30, 'serial')
        assert not is_newer(31, 0, 'serial')
        assert not is_newer(5, 5, 'serial')


class TestEventTracker:
    """Test admission of event sightings."""

    def test_first_sighting_is_new(self):
        """An unseen event is new and its version is stored."""
        tracker = EventTracker()
        assert tracker.admit(1, 100, 3) is Admission.NEW
        assert (1, 100) in tracker
        assert tracker.version(1, 100) == 3

    def test_same_version_repeats(self):
        """The same version again is a repeat."""
        tracker = EventTracker()
        tracker.admit(1, 100, 3)
        assert tracker.admit(1, 100, 3) is Admission.REPEAT
        assert tracker.admit(1, 100, 3) is Admission.REPEAT

    def test_older_version_repeats(self):
        """An older version is a repeat and does not roll back."""
        tracker = EventTracker()
        tracker.admit(1, 100, 5)
        assert tracker.admit(1, 100, 4) is Admission.REPEAT
        assert tracker.version(1, 100) == 5

    def test_newer_version_updates(self):
        """A newer version is an update and becomes current."""
        tracker = EventTracker()
        tracker.admit(1, 100, 3)
        assert tracker.admit(1, 100, 4) is Admission.UPDATE
        assert tracker.version(1, 100) == 4
        assert tracker.admit(1, 100, 4) is Admission.REPEAT

    def test_keys_are_independent(self):
        """Service and event ids together form the key."""
        tracker = EventTracker()
        tracker.admit(1, 100, 3)
        assert tracker.admit(2, 100, 3) is Admission.NEW
        assert tracker.admit(1, 101, 3) is Admission.NEW
        assert len(tracker) == 3

    def test_serial_policy(self):
        """The serial policy reaches the tracker."""
        tracker = EventTracker('serial')
        tracker.admit(1, 100, 31)
        assert tracker.admit(1, 100, 0) is Admission.UPDATE

    def test_unknown_event(self):
        """Unseen events have no version."""
        assert EventTracker().version(9, 9) is None
