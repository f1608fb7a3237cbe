"""
Tests for EIT section parsing and event decoding.
"""

import pytest
from datetime import timedelta

from dvbepg.EIT import EITDecoder, EITSection
from dvbepg.exceptions import CRCError, DecodeError

from helpers import (
    NOW, component, content, eit_section, event, extended_event, make_context,
    short_event, titled_event,
)


class TestEITSection:
    """Test EIT header and event loop parsing."""

    def test_header(self):
        """Header fields are decoded from a valid section."""
        data = eit_section(0x1234, [titled_event(7)], version=5, table_id=0x50,
                           tsid=0x0101, onid=0x233A, section_number=8, last_section_number=9)
        eit = EITSection.from_bytes(data, verify=True)
        assert eit.table_id == 0x50
        assert eit.service_id == 0x1234
        assert eit.version_number == 5
        assert eit.current_next
        assert (eit.section_number, eit.last_section_number) == (8, 9)
        assert eit.transport_stream_id == 0x0101
        assert eit.original_network_id == 0x233A

    def test_crc_checked_when_asked(self):
        """The CRC is only checked when verification is requested."""
        data = bytearray(eit_section(1, [titled_event(1)]))
        data[20] ^= 0x01
        EITSection.from_bytes(bytes(data))
        with pytest.raises(CRCError):
            EITSection.from_bytes(bytes(data), verify=True)

    def test_not_an_eit(self):
        """Non-EIT table ids are rejected."""
        data = eit_section(1, [titled_event(1)], table_id=0x42)
        with pytest.raises(DecodeError):
            EITSection.from_bytes(data)

    def test_event_records(self):
        """Event records decode id, times, status and CA mode."""
        eit = EITSection.from_bytes(eit_section(1, [titled_event(10), titled_event(11)]))
        records = list(eit.events())
        assert [r.event_id for r in records] == [10, 11]
        assert records[0].start_time() == NOW
        assert records[0].duration_seconds == 1800
        assert records[0].running_status == 4
        assert not records[0].free_ca_mode

    def test_empty_loop_ends_section(self):
        """A zero-length descriptor loop ends the section."""
        eit = EITSection.from_bytes(eit_section(1, [titled_event(1), event(2, []), titled_event(3)]))
        assert [r.event_id for r in eit.events()] == [1]

    def test_record_overrun(self):
        """A truncated record raises after the complete ones."""
        eit = EITSection.from_bytes(eit_section(1, [titled_event(1), titled_event(2)[:-3]]))
        records = eit.events()
        assert next(records).event_id == 1
        with pytest.raises(DecodeError):
            next(records)


class TestEITDecoder:
    """Test event admission, timing and projection."""

    def decode(self, ctx, *sections):
        decoder = EITDecoder(ctx)
        events = []
        for section in sections:
            events.extend(decoder.decode_section(section))
        return events

    def test_single_event(self):
        """A titled event becomes one programme."""
        ctx = make_context()
        section = eit_section(100, [titled_event(5, b'News', extra=[content(0x20)])], version=2)
        event, = self.decode(ctx, section)
        assert (event.service_id, event.event_id, event.version) == (100, 5, 2)
        assert event.title == 'News'
        assert event.start == NOW
        assert event.stop == NOW + timedelta(minutes=30)
        assert event.categories == ['News / Current Affairs']
        assert ctx.stats.programmes == 1

    def test_repeat_discarded(self):
        """Repeated versions are counted and dropped."""
        ctx = make_context()
        section = eit_section(100, [titled_event(5)])
        assert len(self.decode(ctx, section, section, section)) == 1
        assert ctx.stats.repeats == 2

    def test_update_suppressed_by_default(self):
        """Newer versions are counted but not emitted by default."""
        ctx = make_context()
        events = self.decode(ctx, eit_section(100, [titled_event(5)], version=1),
                             eit_section(100, [titled_event(5, b'Changed')], version=2))
        assert [e.title for e in events] == ['News']
        assert ctx.stats.updates == 1

    def test_update_emitted_when_enabled(self):
        """Newer versions are emitted once when updates are enabled."""
        ctx = make_context(emit_updates=True)
        events = self.decode(ctx, eit_section(100, [titled_event(5)], version=1),
                             eit_section(100, [titled_event(5, b'Changed')], version=2),
                             eit_section(100, [titled_event(5, b'Changed')], version=2))
        assert [e.title for e in events] == ['News', 'Changed']
        assert events[1].is_update
        assert ctx.stats.updates == 1
        assert ctx.stats.repeats == 1

    def test_missing_title(self):
        """Events without a non-empty title are dropped."""
        ctx = make_context()
        events = self.decode(ctx, eit_section(100, [event(5, [short_event(b'')]),
                                                   event(6, [component(0x02, 0x03)])]))
        assert events == []
        assert ctx.stats.missing_titles == 2

    def test_stop_too_old(self):
        """Events that ended over a day ago are dropped."""
        ctx = make_context()
        start = NOW - timedelta(days=2)
        assert self.decode(ctx, eit_section(1, [titled_event(1, start=start)])) == []
        assert ctx.stats.invalid_dates == 1

    def test_stop_too_far_ahead(self):
        """Events ending over two weeks ahead are dropped."""
        ctx = make_context()
        start = NOW + timedelta(days=15)
        assert self.decode(ctx, eit_section(1, [titled_event(1, start=start)])) == []
        assert ctx.stats.invalid_dates == 1

    def test_window_edges_inclusive(self):
        """Stop times on the window edges are kept."""
        ctx = make_context()
        past = NOW - timedelta(days=1, minutes=30)
        future = NOW + timedelta(days=14, minutes=-30)
        events = self.decode(ctx, eit_section(1, [titled_event(1, start=past),
                                                 titled_event(2, start=future)]))
        assert [e.event_id for e in events] == [1, 2]

    def test_invalid_dates_included_when_asked(self):
        """Out-of-window events are kept when asked."""
        ctx = make_context(include_invalid_dates=True)
        start = NOW - timedelta(days=30)
        event, = self.decode(ctx, eit_section(1, [titled_event(1, start=start)]))
        assert event.start == start
        assert ctx.stats.invalid_dates == 1

    def test_time_offset(self):
        """The hour offset shifts start times."""
        ctx = make_context(time_offset=2)
        event, = self.decode(ctx, eit_section(1, [titled_event(1)]))
        assert event.start == NOW + timedelta(hours=2)

    def test_bad_bcd_drops_event(self):
        """An invalid BCD time drops only that event."""
        ctx = make_context()
        broken = bytearray(titled_event(1))
        broken[7] = 0x0A
        events = self.decode(ctx, eit_section(1, [bytes(broken), titled_event(2)]))
        assert [e.event_id for e in events] == [2]
        assert ctx.stats.invalid_dates == 1

    def test_broken_descriptor_loop_drops_event(self):
        """A malformed descriptor loop drops only that event."""
        ctx = make_context()
        events = self.decode(ctx, eit_section(1, [event(1, [b'\x4d\x10abc']), titled_event(2)]))
        assert [e.event_id for e in events] == [2]
        assert ctx.stats.decode_errors == 1

    def test_overrun_keeps_earlier_events(self):
        """Events before a record overrun are still emitted."""
        ctx = make_context()
        events = self.decode(ctx, eit_section(1, [titled_event(1), titled_event(2)[:-3]]))
        assert [e.event_id for e in events] == [1]
        assert ctx.stats.decode_errors == 1

    def test_description_assembled(self):
        """Extended event fragments form the description."""
        ctx = make_context()
        section = eit_section(1, [event(1, [short_event(b'Film'),
                                           extended_event(0, 1, b'Part A'),
                                           extended_event(1, 1, b'Part B')])])
        event_, = self.decode(ctx, section)
        assert event_.description == 'Part APart B'

    def test_date_window_uses_clock(self):
        """The window is measured from the injected clock."""
        ctx = make_context(clock_time=NOW + timedelta(days=20))
        assert self.decode(ctx, eit_section(1, [titled_event(1)])) == []
