"""
Tests for the live grabbing dashboard.
"""

import io
import logging
import pytest
from datetime import timedelta

from rich.console import Console

from dvbepg.Programme import LangText, ProgrammeEvent
from dvbepg.dashboard import DashboardLogHandler, EPGDashboard
from dvbepg.stats import DecodeStats

from helpers import NOW


def render(dashboard):
    console = Console(file=io.StringIO(), width=140, height=40, color_system=None)
    console.print(dashboard.get_renderable())
    return console.file.getvalue()


@pytest.fixture
def dashboard():
    console = Console(file=io.StringIO(), width=140, height=40, color_system=None)
    return EPGDashboard(DecodeStats(), console=console,
                        channel_ident=lambda sid: f"{sid}.dvb.guide")


class TestEPGDashboard:
    """Test dashboard rendering."""

    def test_counters_shown(self, dashboard):
        """Counters appear in the decoder panel."""
        dashboard.update(DecodeStats(packets=12, programmes=5, crc_errors=2))
        text = render(dashboard)
        assert 'DECODER' in text
        assert 'Programmes:' in text
        assert 'CRC errors:' in text

    def test_recent_programmes(self, dashboard):
        """Recent programmes show the channel label and unescaped title."""
        event = ProgrammeEvent(service_id=100, event_id=1, start=NOW,
                               stop=NOW + timedelta(minutes=30),
                               titles=[LangText('en', 'Tom &amp; Jerry')])
        dashboard.add_programme(event)
        text = render(dashboard)
        assert '100.dvb.guide' in text
        assert 'Tom & Jerry' in text

    def test_empty_state(self, dashboard):
        """Before any programme arrives a placeholder is shown."""
        assert 'Waiting for programmes' in render(dashboard)

    def test_log_handler(self, dashboard):
        """Log records are forwarded to the log panel."""
        logger = logging.getLogger('dvbepg.test_dashboard')
        handler = DashboardLogHandler(dashboard)
        logger.addHandler(handler)
        try:
            logger.warning("Unknown descriptor 0x99")
        finally:
            logger.removeHandler(handler)
        assert 'Unknown descriptor 0x99' in render(dashboard)

    def test_start_stop(self, dashboard):
        """The dashboard starts and stops cleanly, including a second stop."""
        with dashboard:
            dashboard.update()
        dashboard.stop()
