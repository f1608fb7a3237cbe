"""
Tests for chanidents and channels.conf readers.
"""

import pytest
from dvbepg.Channels import load_chanidents, parse_chanidents, parse_zap_channels, read_zap_channels


class TestChanidents:
    """Test the service id alias table."""

    def test_parse(self):
        """Comments, blanks and bad lines are skipped; the last alias wins."""
        lines = [
            '# service aliases',
            '4164 bbc1.bbc.co.uk',
            '',
            '0x1044 bbc1-hex.bbc.co.uk',
            'nonsense line',
            '4228',
        ]
        assert parse_chanidents(lines) == {4164: 'bbc1-hex.bbc.co.uk'}

    def test_load(self, tmp_path):
        """Aliases load from a file."""
        path = tmp_path / 'chanidents'
        path.write_text('10 one.example\n20 two.example\n')
        assert load_chanidents(path) == {10: 'one.example', 20: 'two.example'}

    def test_missing_file(self, tmp_path):
        """A missing alias file gives an empty table."""
        assert load_chanidents(tmp_path / 'none') == {}


class TestZapChannels:
    """Test channels.conf parsing."""

    def test_parse(self):
        """Only lines with a non-zero numeric service id are kept."""
        lines = [
            'BBC ONE:a:b:c:d:e:f:g:4164:rest\n',
            'Radio:a:b:c:d:e:f:g:x\n',
            'short:line\n',
            ':a:b:c:d:e:f:g:1\n',
            'Test Card:a:b:c:d:e:f:g:0\n',
        ]
        assert parse_zap_channels(lines) == [(4164, 'BBC ONE')]

    def test_read(self, tmp_path):
        """Channels load from a file."""
        path = tmp_path / 'channels.conf'
        path.write_text('ITV:a:b:c:d:e:f:g:8261:z\n')
        assert read_zap_channels(path) == [(8261, 'ITV')]

    def test_missing_file(self, tmp_path):
        """A missing channels.conf gives no channels."""
        assert read_zap_channels(tmp_path / 'channels.conf') == []
