"""
EIT Grabber Dashboard

Live Rich console view of a grabbing run: decode counters, section
throughput, the most recent programmes and a rolling log.

Usage:
    python -m dvbepg --dashboard -i /dev/dvb/adapter0/demux0 -f guide.xml
"""

import html
import logging
import time
from collections import deque
from datetime import datetime
from typing import Callable, Deque, List, Optional, Tuple

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text
from rich import box

from .Programme import ProgrammeEvent
from .stats import DecodeStats


# Unicode block characters for the rate sparkline
BLOCKS = " ▁▂▃▄▅▆▇█"
FULL_BLOCK = "█"
LIGHT_SHADE = "░"


class DashboardLogHandler(logging.Handler):
    """Sends log records to the dashboard's log panel instead of stderr."""

    def __init__(self, dashboard: 'EPGDashboard', level: int = logging.INFO):
        super().__init__(level)
        self.dashboard = dashboard

    def emit(self, record: logging.LogRecord) -> None:
        self.dashboard.log(record.levelname, record.getMessage())


class EPGDashboard:
    """
    Real-time Rich console dashboard for an EIT grabbing run.

    Displays:
    - Decode counters (sections, programmes, updates, repeats, errors)
    - Section throughput with a per-second rate sparkline
    - The most recently emitted programmes
    - Rolling log messages

    Single-threaded: the grabber's progress callback drives updates and
    redraws are throttled to refresh_rate.

    Example:
        >>> dash = EPGDashboard(context.stats)
        >>> grabber = EPGGrabber(source, context, on_progress=dash.update)
        >>> with dash:
        ...     for event in grabber.run():
        ...         dash.add_programme(event)
    """

    def __init__(self, stats: DecodeStats, refresh_rate: float = 4.0,
                 console: Optional[Console] = None,
                 channel_ident: Optional[Callable[[int], str]] = None):
        """
        Initialize dashboard.

        Args:
            stats: Counters of the run being watched
            refresh_rate: Maximum redraws per second
            console: Rich console to draw on (stderr by default)
            channel_ident: Maps service_id to the label shown for a programme
        """
        self.stats = stats
        self.refresh_rate = refresh_rate
        self.console = console or Console(stderr=True)
        self.channel_ident = channel_ident or str

        self._live: Optional[Live] = None
        self._layout: Optional[Layout] = None
        self._started = time.monotonic()
        self._last_refresh = 0.0

        self._recent: Deque[Tuple[str, str, str]] = deque(maxlen=10)
        self._messages: Deque[Tuple[float, str, str]] = deque(maxlen=6)
        self._rates: Deque[int] = deque(maxlen=40)
        self._rate_mark = (self._started, 0)

        self.theme = {
            'label': Style(color="bright_white"),
            'value': Style(color="green"),
            'value_warn': Style(color="yellow"),
            'value_error': Style(color="red"),
            'bar_good': Style(color="green"),
            'bar_warn': Style(color="yellow"),
            'bar_error': Style(color="red"),
            'dim': Style(color="bright_black"),
            'accent': Style(color="cyan"),
        }

    def _make_bar(self, value: float, max_value: float, width: int = 20,
                  thresholds: tuple = (0.5, 0.9)) -> Text:
        """Create a colored ratio bar."""
        ratio = min(1.0, max(0.0, value / max_value)) if max_value > 0 else 0
        filled = int(ratio * width)

        if ratio < thresholds[0]:
            style = self.theme['bar_error']
        elif ratio < thresholds[1]:
            style = self.theme['bar_warn']
        else:
            style = self.theme['bar_good']

        bar = Text()
        bar.append(FULL_BLOCK * filled, style=style)
        bar.append(LIGHT_SHADE * (width - filled), style=self.theme['dim'])
        return bar

    def _make_sparkline(self, values: List[int], width: int = 40) -> Text:
        """Create a sparkline from values."""
        if not values:
            return Text("-" * width, style=self.theme['dim'])

        sampled = values[-width:]
        top = max(sampled) or 1

        text = Text()
        for v in sampled:
            idx = max(0, min(8, int(v / top * 8)))
            text.append(BLOCKS[idx], style=self.theme['accent'])
        if len(sampled) < width:
            text.append("-" * (width - len(sampled)), style=self.theme['dim'])
        return text

    def _counter(self, value: int, bad_style: str = 'value_warn') -> Text:
        style = self.theme['value'] if value == 0 else self.theme[bad_style]
        return Text(f"{value:,}", style=style)

    def _counters_panel(self) -> Panel:
        """Create decode counters panel."""
        s = self.stats

        table = Table(box=None, show_header=False, padding=(0, 1))
        table.add_column("Label", style=self.theme['label'])
        table.add_column("Value", style=self.theme['value'])

        table.add_row("Sections:", f"{s.packets:,}")
        table.add_row("Programmes:", f"{s.programmes:,}")
        table.add_row("Updates:", f"{s.updates:,}")
        table.add_row("Repeats:", f"{s.repeats:,}")
        table.add_row("Filtered:", f"{s.filtered:,}")
        table.add_row("Invalid dates:", self._counter(s.invalid_dates))
        table.add_row("No title:", self._counter(s.missing_titles))
        table.add_row("CRC errors:", self._counter(s.crc_errors, 'value_error'))
        table.add_row("Decode errors:", self._counter(s.decode_errors, 'value_error'))
        table.add_row("Unknown desc:", self._counter(s.unknown_descriptors))
        table.add_row("Text warnings:", self._counter(s.text_warnings))

        return Panel(
            table,
            title="[bold cyan]DECODER[/]",
            border_style="cyan",
            box=box.ROUNDED,
        )

    def _throughput_panel(self) -> Panel:
        """Create section throughput panel."""
        s = self.stats
        elapsed = time.monotonic() - self._started

        table = Table(box=None, show_header=False, padding=(0, 1))
        table.add_column("Label", style=self.theme['label'])
        table.add_column("Value", style=self.theme['value'])

        mins = int(elapsed // 60)
        secs = elapsed % 60
        table.add_row("Duration:", f"{mins}m {secs:.1f}s" if mins > 0 else f"{secs:.1f}s")

        rate = s.packets / elapsed if elapsed > 0 else 0.0
        table.add_row("Sections/s:", f"{rate:.1f}")

        new = s.programmes + s.repeats
        table.add_row("New events:", f"{s.programmes / new:.0%}" if new else "-")

        valid = s.packets - s.crc_errors
        table.add_row("CRC ok:", self._make_bar(valid, s.packets))
        table.add_row("Rate:", self._make_sparkline(list(self._rates), width=20))

        return Panel(
            table,
            title="[bold cyan]THROUGHPUT[/]",
            border_style="cyan",
            box=box.ROUNDED,
        )

    def _programmes_panel(self) -> Panel:
        """Create recent programmes panel."""
        table = Table(box=None, show_header=True, padding=(0, 1), header_style=self.theme['dim'])
        table.add_column("Channel", style=self.theme['accent'], no_wrap=True)
        table.add_column("Start", style=self.theme['value'], no_wrap=True)
        table.add_column("Title", style=self.theme['label'])

        for channel, start, title in reversed(self._recent):
            table.add_row(Text(channel), start, Text(title))

        if not self._recent:
            table.add_row("", "", Text("Waiting for programmes...", style=self.theme['dim']))

        return Panel(
            table,
            title="[bold cyan]PROGRAMMES[/]",
            border_style="cyan",
            box=box.ROUNDED,
        )

    def _log_panel(self) -> Panel:
        """Create scrolling log panel."""
        log_text = Text()
        for timestamp, level, message in self._messages:
            dt = datetime.fromtimestamp(timestamp)
            time_str = dt.strftime("%H:%M:%S.") + f"{int(dt.microsecond / 1000):03d}"

            if level in ("ERROR", "CRITICAL"):
                level_style = Style(color="red", bold=True)
            elif level == "WARNING":
                level_style = Style(color="yellow")
            else:
                level_style = Style(color="green")

            log_text.append(f"{time_str}  ", style=self.theme['dim'])
            log_text.append(f"{level[:5]:5}  ", style=level_style)
            log_text.append(f"{message}\n", style=self.theme['label'])

        if not self._messages:
            log_text.append("No messages", style=self.theme['dim'])

        return Panel(
            log_text,
            title="[bold cyan]LOG[/]",
            border_style="cyan",
            box=box.ROUNDED,
        )

    def _make_layout(self) -> Layout:
        """Create the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="top_row", size=13),
            Layout(name="bottom_row"),
        )
        layout["top_row"].split_row(
            Layout(name="counters"),
            Layout(name="throughput"),
        )
        layout["bottom_row"].split_row(
            Layout(name="programmes", ratio=3),
            Layout(name="log", ratio=2),
        )
        return layout

    def _update_layout(self, layout: Layout) -> None:
        """Update all panels in the layout."""
        header_text = Text()
        header_text.append("  dvbepg ", style=Style(color="bright_cyan", bold=True))
        header_text.append("- EIT programme guide grabber", style=self.theme['dim'])
        header_text.append(f"  {self.stats.programmes:,} programmes",
                           style=Style(color="green", bold=True))

        layout["header"].update(Panel(header_text, box=box.ROUNDED, border_style="bright_cyan"))
        layout["counters"].update(self._counters_panel())
        layout["throughput"].update(self._throughput_panel())
        layout["programmes"].update(self._programmes_panel())
        layout["log"].update(self._log_panel())

    def _sample_rate(self) -> None:
        now = time.monotonic()
        mark_time, mark_count = self._rate_mark
        if now - mark_time >= 1.0:
            self._rates.append(self.stats.packets - mark_count)
            self._rate_mark = (now, self.stats.packets)

    def start(self) -> None:
        """Start drawing."""
        if self._live is not None:
            return
        self._started = time.monotonic()
        self._rate_mark = (self._started, self.stats.packets)
        self._live = Live(self.get_renderable(), console=self.console,
                          auto_refresh=False, transient=False)
        self._live.start()

    def stop(self) -> None:
        """Draw the final state and stop."""
        if self._live is None:
            return
        self._live.update(self.get_renderable(), refresh=True)
        self._live.stop()
        self._live = None

    def refresh(self) -> None:
        """Redraw now."""
        if self._live is not None:
            self._live.update(self.get_renderable(), refresh=True)
            self._last_refresh = time.monotonic()

    def update(self, stats: Optional[DecodeStats] = None) -> None:
        """Progress callback; redraws at most refresh_rate times a second."""
        if stats is not None:
            self.stats = stats
        self._sample_rate()
        if time.monotonic() - self._last_refresh >= 1.0 / self.refresh_rate:
            self.refresh()

    def add_programme(self, event: ProgrammeEvent) -> None:
        """Show an emitted programme in the recent list."""
        start = event.start.astimezone().strftime("%a %H:%M")
        title = html.unescape(event.title or "")
        if event.is_update:
            title += " (updated)"
        self._recent.append((self.channel_ident(event.service_id), start, title))

    def log(self, level: str, message: str) -> None:
        """Add a log message."""
        self._messages.append((time.time(), level, message))

    def get_renderable(self) -> Layout:
        """Get the current layout for Live context."""
        if self._layout is None:
            self._layout = self._make_layout()
        self._update_layout(self._layout)
        return self._layout

    def __enter__(self) -> 'EPGDashboard':
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.stop()
        return False
