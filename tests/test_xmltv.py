"""
Tests for XMLTV rendering.
"""

import io
import pytest
import xml.etree.ElementTree as ET
from datetime import timedelta, timezone

from dvbepg.Programme import Crid, LangText, ProgrammeEvent
from dvbepg.XMLTV import XMLTVWriter, format_programme, format_time

from helpers import NOW


def full_event():
    return ProgrammeEvent(
        service_id=100, event_id=1, start=NOW, stop=NOW + timedelta(minutes=90),
        titles=[LangText('en', 'Film &amp; More')],
        subtitles=[LangText('en', 'Part one')],
        descriptions=[LangText('en', 'A long story')],
        categories=['Movie', 'Movie - comedy'],
        language='en',
        video_aspect='16:9',
        audio_mode='stereo',
        subtitle_languages=['en'],
        ratings=[12],
        crids=[Crid('series', '/s1')],
        unknown_descriptors=[(0x99, 3)],
    )


class TestFormat:
    """Test programme element rendering."""

    def test_time(self):
        """Times render as YYYYMMDDhhmmss with a numeric offset."""
        assert format_time(NOW, timezone.utc) == '20240301120000 +0000'
        assert format_time(NOW, timezone(timedelta(hours=1))) == '20240301130000 +0100'

    def test_element_order(self):
        """Elements appear in the fixed output order."""
        text = format_programme(full_event(), '100.dvb.guide', timezone.utc)
        order = ['<title lang="en">', 'Unknown_Please_Report ID="99" Len="3"', '<sub-title',
                 '<desc', '<category>Movie</category>', '<language>en</language>',
                 '<aspect>16:9</aspect>', '<stereo>stereo</stereo>',
                 '<subtitles type="teletext">', '<value>12</value>', '<crid type="series">']
        positions = [text.index(marker) for marker in order]
        assert positions == sorted(positions)

    def test_attributes(self):
        """The programme element carries channel, start and stop."""
        text = format_programme(full_event(), '100.dvb.guide', timezone.utc)
        assert text.startswith('<programme channel="100.dvb.guide" '
                               'start="20240301120000 +0000" stop="20240301133000 +0000">')
        assert text.endswith('</programme>\n')

    def test_minimal_event(self):
        """Absent fields produce no elements."""
        event = ProgrammeEvent(service_id=1, event_id=1, start=NOW, stop=NOW,
                               titles=[LangText('de', 'Tagesschau')])
        text = format_programme(event, 'ch', timezone.utc)
        assert '<title lang="de">Tagesschau</title>' in text
        assert '<video>' not in text
        assert '<desc' not in text

    def test_well_formed(self):
        """The output parses as XML with entities resolved."""
        root = ET.fromstring(format_programme(full_event(), 'c', timezone.utc))
        assert root.find('title').text == 'Film & More'
        assert root.find('rating').get('system') == 'dvb'


class TestXMLTVWriter:
    """Test the document container."""

    def test_document(self):
        """The document has a head, channels, programmes and a closing tag."""
        out = io.StringIO()
        with XMLTVWriter(out, tz=timezone.utc) as xmltv:
            xmltv.write_channel(100, 'BBC ONE')
            xmltv.write_programme(full_event())
        text = out.getvalue()
        assert text.startswith('<?xml version="1.0" encoding="UTF-8"?>\n')
        assert '<tv generator-info-name="dvb-epg-gen">' in text
        assert '<channel id="100.dvb.guide">' in text
        assert text.endswith('</tv>\n')
        assert xmltv.programmes == 1

    def test_channel_alias(self):
        """The channel labeller names the programme channel."""
        out = io.StringIO()
        aliases = {100: 'bbc1.example.com'}
        with XMLTVWriter(out, lambda sid: aliases.get(sid, f'{sid}.dvb.guide'), timezone.utc) as xmltv:
            xmltv.write_programme(full_event())
        assert 'channel="bbc1.example.com"' in out.getvalue()

    def test_closed_on_error(self):
        """The closing tag is written when the block raises."""
        out = io.StringIO()
        with pytest.raises(RuntimeError):
            with XMLTVWriter(out) as xmltv:
                raise RuntimeError("stream lost")
        assert out.getvalue().endswith('</tv>\n')

    def test_close_idempotent(self):
        """Closing twice writes one closing tag."""
        out = io.StringIO()
        xmltv = XMLTVWriter(out)
        xmltv.open()
        xmltv.close()
        xmltv.close()
        assert out.getvalue().count('</tv>') == 1
