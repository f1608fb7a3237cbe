"""
XMLTV output

Renders programme events as an XMLTV document. Broadcast text fields are
already escaped by the text normaliser and are written verbatim; table
labels and channels.conf names are escaped here.

The document is a context manager: the closing </tv> is written however
the block is left, so a run cut short by a timeout, end of input or an
error still produces a well-formed container.

Reference: http://xmltv.cvs.sourceforge.net/viewvc/xmltv/xmltv/xmltv.dtd
"""

from datetime import datetime, tzinfo
from typing import Callable, List, Optional, TextIO

from .Programme import ProgrammeEvent
from .Text import escape


GENERATOR = 'dvb-epg-gen'
TIME_FORMAT = '%Y%m%d%H%M%S %z'


def default_channel_ident(service_id: int) -> str:
    return f"{service_id}.dvb.guide"


def _attr(value: str) -> str:
    return escape(value).replace('"', '&quot;')


def format_time(when: datetime, tz: Optional[tzinfo] = None) -> str:
    """XMLTV timestamp 'YYYYMMDDHHMMSS +HHMM' in local time (or tz)."""
    return when.astimezone(tz).strftime(TIME_FORMAT)


def format_programme(event: ProgrammeEvent, channel: str, tz: Optional[tzinfo] = None) -> str:
    """
    Render one <programme> element.

    Child elements follow the order xmltv.dtd requires.
    """
    lines: List[str] = [
        f'<programme channel="{_attr(channel)}" '
        f'start="{format_time(event.start, tz)}" stop="{format_time(event.stop, tz)}">'
    ]

    for title in event.titles:
        lines.append(f'\t<title lang="{title.language}">{title.text}</title>')
    for tag, length in event.unknown_descriptors:
        lines.append(f'\t<!--Unknown_Please_Report ID="{tag:x}" Len="{length}" -->')
    for sub in event.subtitles:
        lines.append(f'\t<sub-title lang="{sub.language}">{sub.text}</sub-title>')
    for desc in event.descriptions:
        lines.append(f'\t<desc lang="{desc.language}">{desc.text}</desc>')
    for category in event.categories:
        lines.append(f'\t<category>{escape(category)}</category>')
    if event.language:
        lines.append(f'\t<language>{event.language}</language>')
    if event.video_aspect:
        lines.extend(['\t<video>', f'\t\t<aspect>{escape(event.video_aspect)}</aspect>', '\t</video>'])
    if event.audio_mode:
        lines.extend(['\t<audio>', f'\t\t<stereo>{escape(event.audio_mode)}</stereo>', '\t</audio>'])
    for language in event.subtitle_languages:
        lines.extend(['\t<subtitles type="teletext">',
                      f'\t\t<language>{language}</language>',
                      '\t</subtitles>'])
    for rating in event.ratings:
        lines.extend(['\t<rating system="dvb">', f'\t\t<value>{rating}</value>', '\t</rating>'])
    for crid in event.crids:
        lines.append(f'\t<crid type="{_attr(crid.type)}">{crid.value}</crid>')

    lines.append('</programme>')
    return '\n'.join(lines) + '\n'


class XMLTVWriter:
    """
    Streams an XMLTV document to a text stream.

    Args:
        stream: Text stream to write to
        channel_ident: Maps service_id to the channel attribute
        tz: Output time zone (local time if None)

    Example:
        >>> with XMLTVWriter(sys.stdout, ctx.channel_ident) as xmltv:
        ...     for event in grabber.run():
        ...         xmltv.write_programme(event)
    """

    def __init__(self, stream: TextIO,
                 channel_ident: Callable[[int], str] = default_channel_ident,
                 tz: Optional[tzinfo] = None):
        self.stream = stream
        self.channel_ident = channel_ident
        self.tz = tz
        self.programmes = 0
        self._opened = False
        self._closed = False

    def __enter__(self) -> 'XMLTVWriter':
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    def open(self) -> None:
        """Write the XML declaration and open <tv>."""
        if self._opened:
            return
        self._opened = True
        self.stream.write('<?xml version="1.0" encoding="UTF-8"?>\n')
        self.stream.write('<!DOCTYPE tv SYSTEM "xmltv.dtd">\n')
        self.stream.write(f'<tv generator-info-name="{GENERATOR}">\n')

    def close(self) -> None:
        """Close <tv>; safe to call more than once."""
        if self._closed or not self._opened:
            return
        self._closed = True
        self.stream.write('</tv>\n')
        self.stream.flush()

    def write_channel(self, service_id: int, name: str) -> None:
        self.stream.write(f'<channel id="{_attr(self.channel_ident(service_id))}">\n')
        self.stream.write(f'\t<display-name>{escape(name)}</display-name>\n')
        self.stream.write('</channel>\n')

    def write_programme(self, event: ProgrammeEvent) -> None:
        self.stream.write(format_programme(event, self.channel_ident(event.service_id), self.tz))
        self.programmes += 1
