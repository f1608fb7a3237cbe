"""
Tests for the command line interface.
"""

import sys
import pytest
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, timezone

from dvbepg.__main__ import main

from helpers import eit_section, titled_event


def run(monkeypatch, *args):
    monkeypatch.setattr(sys, 'argv', ['dvbepg', *args])
    return main()


@pytest.fixture
def capture(tmp_path):
    now = datetime.now(timezone.utc).replace(microsecond=0)
    path = tmp_path / 'eit.bin'
    path.write_bytes(
        eit_section(100, [titled_event(1, b'News', start=now),
                          titled_event(2, b'Film', start=now + timedelta(hours=1))])
        + eit_section(100, [titled_event(1, b'News', start=now)])
    )
    return path


class TestMain:
    """Test end-to-end runs."""

    def test_capture_to_file(self, monkeypatch, tmp_path, capture):
        """A capture file becomes an XMLTV document with channels and programmes."""
        out = tmp_path / 'guide.xml'
        conf = tmp_path / 'channels.conf'
        conf.write_text('News Channel:a:b:c:d:e:f:g:100:z\n')
        assert run(monkeypatch, '-s', '-i', str(capture), '-f', str(out),
                   '--channels-conf', str(conf)) == 0

        root = ET.parse(str(out)).getroot()
        assert root.tag == 'tv'
        assert root.find('channel').get('id') == '100.dvb.guide'
        titles = [p.find('title').text for p in root.findall('programme')]
        assert titles == ['News', 'Film']

    def test_chanidents(self, monkeypatch, tmp_path, capture):
        """Aliases replace the generated channel ids."""
        out = tmp_path / 'guide.xml'
        idents = tmp_path / 'chanidents'
        idents.write_text('100 news.example.com\n')
        assert run(monkeypatch, '-s', '-i', str(capture), '-f', str(out),
                   '-c', str(idents), '--channels-conf', str(tmp_path / 'none')) == 0
        root = ET.parse(str(out)).getroot()
        assert root.find('programme').get('channel') == 'news.example.com'

    def test_status_on_stderr(self, monkeypatch, tmp_path, capture, capsys):
        """The status line goes to stderr unless silenced."""
        out = tmp_path / 'guide.xml'
        assert run(monkeypatch, '-i', str(capture), '-f', str(out),
                   '--channels-conf', str(tmp_path / 'none')) == 0
        assert 'Status: 2 pkts, 2 prgms' in capsys.readouterr().err

    def test_bad_offset(self, monkeypatch, tmp_path, capture):
        """An hour offset outside -12..12 is rejected."""
        assert run(monkeypatch, '-s', '-o', '13', '-i', str(capture)) == 1

    def test_missing_input(self, monkeypatch, tmp_path):
        """An unopenable input exits with an error."""
        assert run(monkeypatch, '-s', '-i', str(tmp_path / 'missing.bin')) == 1

    def test_oversized_section_still_closes_document(self, monkeypatch, tmp_path):
        """A fatal section still leaves a closed document."""
        capture = tmp_path / 'bad.bin'
        capture.write_bytes(b'\x4e\xff\xff' + b'\x00' * 100)
        out = tmp_path / 'guide.xml'
        assert run(monkeypatch, '-s', '-i', str(capture), '-f', str(out),
                   '--channels-conf', str(tmp_path / 'none')) == 1
        assert out.read_text().endswith('</tv>\n')
