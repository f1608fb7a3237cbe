"""
Decoded programme event

The unit handed to output formatters. Broadcast text (titles, subtitles,
descriptions, CRID values) holds escaped UTF-8, ready to be embedded in
XML character data. Table labels (categories, video_aspect, audio_mode)
are plain text and are escaped by the formatter.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, NamedTuple, Optional, Tuple


class LangText(NamedTuple):
    """A text value with the language it is written in."""
    language: str
    text: str


class Crid(NamedTuple):
    """Content reference identifier carried in the event."""
    type: str
    value: str


@dataclass
class ProgrammeEvent:
    """
    One programme guide entry.

    List-valued fields keep every occurrence in descriptor order; the
    singular properties give the first one, which is what XMLTV can hold
    for most elements.

    Attributes:
        service_id: Channel key within the transport stream
        event_id: Event identifier within the service
        version: version_number of the section that carried the event
        start: Start instant (UTC)
        stop: Stop instant (UTC)
        running_status: 0 undefined, 1 not running, 2 starts soon,
            3 pausing, 4 running
        free_ca_mode: True if components are scrambled
        titles: Non-empty titles, one per short event descriptor
        subtitles: Non-empty short event texts
        descriptions: Completed extended event descriptions
        categories: Category labels, duplicates removed
        language: Primary audio language
        video_aspect: Aspect ratio of the first video component
        audio_mode: Stereo mode of the first audio component
        subtitle_languages: Languages of teletext subtitle components
        ratings: XMLTV dvb rating values (DVB age + 3)
        crids: Explicitly carried content identifiers
        unknown_descriptors: (tag, length) of unrecognised descriptors
        is_update: True if this event replaces an earlier version
    """

    service_id: int
    event_id: int
    start: datetime
    stop: datetime
    version: int = 0
    running_status: int = 0
    free_ca_mode: bool = False
    titles: List[LangText] = field(default_factory=list)
    subtitles: List[LangText] = field(default_factory=list)
    descriptions: List[LangText] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    language: Optional[str] = None
    video_aspect: Optional[str] = None
    audio_mode: Optional[str] = None
    subtitle_languages: List[str] = field(default_factory=list)
    ratings: List[int] = field(default_factory=list)
    crids: List[Crid] = field(default_factory=list)
    unknown_descriptors: List[Tuple[int, int]] = field(default_factory=list)
    is_update: bool = False

    @property
    def channel_key(self) -> int:
        return self.service_id

    @property
    def title(self) -> Optional[str]:
        return self.titles[0].text if self.titles else None

    @property
    def title_lang(self) -> Optional[str]:
        return self.titles[0].language if self.titles else None

    @property
    def subtitle(self) -> Optional[str]:
        return self.subtitles[0].text if self.subtitles else None

    @property
    def description(self) -> Optional[str]:
        return self.descriptions[0].text if self.descriptions else None

    @property
    def description_lang(self) -> Optional[str]:
        return self.descriptions[0].language if self.descriptions else None

    @property
    def teletext_subtitle_language(self) -> Optional[str]:
        return self.subtitle_languages[0] if self.subtitle_languages else None

    @property
    def parental_rating(self) -> Optional[int]:
        return self.ratings[0] if self.ratings else None

    @property
    def duration(self) -> int:
        """Duration in seconds."""
        return int((self.stop - self.start).total_seconds())

    def __repr__(self) -> str:
        return (f"ProgrammeEvent(sid={self.service_id}, eid={self.event_id}, "
                f"start={self.start.isoformat()}, title={self.title!r})")
