"""
Tests for section framing and reassembly from byte streams.
"""

import io
import pytest

from dvbepg.PSI import RawSection, TableID, encode_section, read_section_length
from dvbepg.Section import SectionReader
from dvbepg.exceptions import DecodeError, SectionTooLargeError

from helpers import eit_section, titled_event


class ChunkedSource:
    """Byte source that never returns more than chunk bytes per read."""

    def __init__(self, data, chunk):
        self.stream = io.BytesIO(data)
        self.chunk = chunk

    def read(self, size):
        return self.stream.read(min(size, self.chunk))


class TestRawSection:
    """Test framing of a single section."""

    def test_fields(self):
        """Header fields and framing come from the first section_length bytes."""
        data = encode_section(0x4E, 0x1234, b'\x00' * 6)
        raw = RawSection.from_bytes(data + b'trailing')
        assert raw.table_id == 0x4E
        assert raw.total_length == len(data)
        assert raw.section_length == read_section_length(data)
        assert raw.data == data
        assert raw.syntax_indicator

    def test_truncated(self):
        """A section shorter than its declared length is rejected."""
        data = encode_section(0x4E, 1, b'')
        with pytest.raises(DecodeError):
            RawSection.from_bytes(data[:-1])

    def test_length_below_crc(self):
        """A declared length too short for the CRC is rejected."""
        with pytest.raises(DecodeError):
            RawSection.from_bytes(b'\x4e\xf0\x02\x00\x00')

    def test_table_ids(self):
        """EIT table ids and their descriptions."""
        assert TableID.is_eit(0x4E)
        assert TableID.is_eit(0x6F)
        assert not TableID.is_eit(0x42)
        assert TableID.describe(0x51) == "EIT schedule actual #1"


class TestSectionReader:
    """Test section reassembly."""

    def sections(self):
        return [
            eit_section(1, [titled_event(1)]),
            eit_section(2, [titled_event(2, b'Weather')]),
            eit_section(3, [titled_event(3, b'Film' * 20)]),
        ]

    def test_whole_stream(self):
        """Back-to-back sections come out unchanged."""
        sections = self.sections()
        reader = SectionReader(io.BytesIO(b''.join(sections)))
        assert [raw.data for raw in reader] == sections
        assert reader.bytes_read == sum(len(s) for s in sections)

    @pytest.mark.parametrize("chunk", [1, 7, 64])
    def test_split_reads(self, chunk):
        """Sections split across small reads are reassembled."""
        sections = self.sections()
        reader = SectionReader(ChunkedSource(b''.join(sections), chunk))
        assert [raw.data for raw in reader] == sections

    def test_filler_skipped(self):
        """Stuffing and zero bytes between sections are skipped."""
        sections = self.sections()
        data = b'\xff\xff' + sections[0] + b'\x00\x00\x00' + sections[1]
        reader = SectionReader(io.BytesIO(data))
        assert [raw.data for raw in reader] == sections[:2]
        assert reader.bytes_skipped == 5

    def test_resync_after_impossible_length(self):
        """An impossible length resyncs on the next section."""
        section = self.sections()[0]
        reader = SectionReader(io.BytesIO(b'\x4e\x00\x02\x00\x00' + section))
        assert [raw.data for raw in reader] == [section]

    def test_incomplete_tail_discarded(self):
        """A partial section at end of stream is dropped."""
        sections = self.sections()
        reader = SectionReader(io.BytesIO(sections[0] + sections[1][:10]))
        assert [raw.data for raw in reader] == [sections[0]]

    def test_section_larger_than_buffer(self):
        """A section that cannot fit the buffer is fatal."""
        big = self.sections()[2]
        with pytest.raises(SectionTooLargeError) as info:
            list(SectionReader(io.BytesIO(big), capacity=32))
        assert info.value.total_length == len(big)
        assert info.value.capacity == 32

    def test_empty_stream(self):
        """An empty stream yields no sections."""
        assert list(SectionReader(io.BytesIO(b''))) == []
