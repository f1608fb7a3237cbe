"""
EIT descriptors

An event's descriptor loop is a run of (tag, length, payload) records.
The loop is parsed once into typed descriptors; the output fields are
then projected in eight ordered passes because XMLTV fixes the element
order (title, sub-title, desc, category, language, video, audio,
subtitles, rating) independently of the order descriptors arrive in.

    Pass 0  short event title (and unknown-tag diagnostics)
    Pass 1  short event text (sub-title)
    Pass 2  extended event fragments (desc)
    Pass 3  content (category)
    Pass 4  audio component language (first wins)
    Pass 5  video component aspect (first wins), content identifiers
    Pass 6  audio component stereo mode (first wins)
    Pass 7  teletext subtitles, parental rating

Reference: ETSI EN 300 468 Section 6.2, ETSI TS 102 323 Section 12
"""

import logging
import struct
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Type, Union

import numpy as np

from .ExtendedEvent import DescriptionAssembler
from .Programme import Crid, LangText, ProgrammeEvent
from .Tables import (
    ASPECT_RATIOS, AUDIO_MODES, CONTENT_CATEGORIES, CRID_TYPES, PRIVATE_DATA_SPECIFIERS,
    PRIVATE_TAGS, language_code, lookup, lookup_or_number,
)
from .Text import TextNormalizer, escape
from .exceptions import DecodeError


logger = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]

DESCRIPTOR_HEADER_SIZE = 2


class DescriptorTag:
    """Descriptor tags found in EIT event loops."""
    SHORT_EVENT = 0x4D
    EXTENDED_EVENT = 0x4E
    TIME_SHIFTED_EVENT = 0x4F
    COMPONENT = 0x50
    STREAM_IDENTIFIER = 0x52
    CA_IDENTIFIER = 0x53
    CONTENT = 0x54
    PARENTAL_RATING = 0x55
    MULTILINGUAL_COMPONENT = 0x5E
    PRIVATE_DATA_SPECIFIER = 0x5F
    DATA_BROADCAST = 0x64
    PDC = 0x69
    CONTENT_IDENTIFIER = 0x76


# Recognised but carrying nothing XMLTV can use
IGNORED_TAGS = frozenset({
    0x00,
    DescriptorTag.TIME_SHIFTED_EVENT,
    DescriptorTag.STREAM_IDENTIFIER,
    DescriptorTag.CA_IDENTIFIER,
    DescriptorTag.MULTILINGUAL_COMPONENT,
    DescriptorTag.DATA_BROADCAST,
    DescriptorTag.PDC,
    0x83,   # logical channel
    0x84,   # preferred name list
    0x85,   # preferred name identifier
    0x86,   # EACEM stream identifier
})


class StreamContent:
    """stream_content values of the component descriptor."""
    VIDEO = 0x01
    AUDIO = 0x02
    TELETEXT = 0x03


def _language(raw: BytesLike) -> str:
    """ISO 639 code from 3 raw bytes, mapped to two letters where known."""
    code = bytes(raw).decode('latin-1')
    code = ''.join(c for c in code if c.isprintable())
    return escape(language_code(code)).replace('"', '&quot;')


def _take(payload: BytesLike, pos: int, length: int, what: str) -> bytes:
    """Slice length bytes at pos, refusing to run past the payload."""
    if pos + length > len(payload):
        raise DecodeError(f"{what} overruns descriptor ({pos + length} > {len(payload)})")
    return bytes(payload[pos:pos + length])


@dataclass
class Descriptor:
    """Base for typed descriptors."""
    tag: int


@dataclass
class ShortEvent(Descriptor):
    """0x4D: event name and short text in one language."""
    language: str = ''
    name: bytes = b''
    text: bytes = b''

    @classmethod
    def from_payload(cls, tag: int, payload: BytesLike) -> 'ShortEvent':
        language = _language(_take(payload, 0, 3, "short event language"))
        name_len = _take(payload, 3, 1, "event_name_length")[0]
        name = _take(payload, 4, name_len, "event name")
        text_len = _take(payload, 4 + name_len, 1, "text_length")[0]
        text = _take(payload, 5 + name_len, text_len, "short event text")
        return cls(tag=tag, language=language, name=name, text=text)


@dataclass
class ExtendedEvent(Descriptor):
    """0x4E: one fragment of a long description."""
    number: int = 0
    last: int = 0
    language: str = ''
    items: List[Tuple[bytes, bytes]] = field(default_factory=list)
    text: bytes = b''
    non_empty: bool = False

    @classmethod
    def from_payload(cls, tag: int, payload: BytesLike) -> 'ExtendedEvent':
        head = _take(payload, 0, 5, "extended event header")
        number = (head[0] >> 4) & 0x0F
        last = head[0] & 0x0F
        language = _language(head[1:4])
        items_length = head[4]
        first_byte = payload[5] if len(payload) > 5 else 0

        items_block = _take(payload, 5, items_length, "extended event items")
        items = []
        pos = 0
        while pos < items_length:
            label_len = _take(items_block, pos, 1, "item_description_length")[0]
            label = _take(items_block, pos + 1, label_len, "item description")
            pos += 1 + label_len
            value_len = _take(items_block, pos, 1, "item_length")[0]
            value = _take(items_block, pos + 1, value_len, "item")
            pos += 1 + value_len
            items.append((label, value))

        text_pos = 5 + items_length
        text_len = _take(payload, text_pos, 1, "extended event text_length")[0]
        text = _take(payload, text_pos + 1, text_len, "extended event text")

        return cls(
            tag=tag, number=number, last=last, language=language,
            items=items, text=text,
            non_empty=bool(number or last or items_length or first_byte),
        )


@dataclass
class Component(Descriptor):
    """0x50: one elementary stream component of the event."""
    stream_content: int = 0
    component_type: int = 0
    component_tag: int = 0
    language: str = ''
    text: bytes = b''

    @classmethod
    def from_payload(cls, tag: int, payload: BytesLike) -> 'Component':
        head = _take(payload, 0, 6, "component header")
        return cls(
            tag=tag,
            stream_content=head[0] & 0x0F,
            component_type=head[1],
            component_tag=head[2],
            language=_language(head[3:6]),
            text=bytes(payload[6:]),
        )

    @property
    def aspect_code(self) -> int:
        return (self.component_type - 1) & 0x03


@dataclass
class Content(Descriptor):
    """0x54: genre classification as (content code, user code) pairs."""
    entries: List[Tuple[int, int]] = field(default_factory=list)

    @classmethod
    def from_payload(cls, tag: int, payload: BytesLike) -> 'Content':
        if len(payload) % 2:
            raise DecodeError(f"Content descriptor length {len(payload)} is odd")
        entries = [(payload[i], payload[i + 1]) for i in range(0, len(payload), 2)]
        return cls(tag=tag, entries=entries)


@dataclass
class ParentalRating(Descriptor):
    """0x55: (country, rating) pairs."""
    entries: List[Tuple[str, int]] = field(default_factory=list)

    @classmethod
    def from_payload(cls, tag: int, payload: BytesLike) -> 'ParentalRating':
        if len(payload) % 4:
            raise DecodeError(f"Parental rating length {len(payload)} not a multiple of 4")
        entries = [
            (_language(payload[i:i + 3]), payload[i + 3])
            for i in range(0, len(payload), 4)
        ]
        return cls(tag=tag, entries=entries)


@dataclass
class PrivateDataSpecifier(Descriptor):
    """0x5F: scopes the private descriptors that follow it."""
    value: int = 0

    @classmethod
    def from_payload(cls, tag: int, payload: BytesLike) -> 'PrivateDataSpecifier':
        return cls(tag=tag, value=struct.unpack('>I', _take(payload, 0, 4, "private_data_specifier"))[0])


@dataclass
class CridEntry:
    crid_type: int
    location: int
    value: Optional[bytes] = None
    reference: Optional[int] = None


@dataclass
class ContentIdentifier(Descriptor):
    """0x76: CRIDs, carried explicitly or by reference to a CIT."""
    entries: List[CridEntry] = field(default_factory=list)

    @classmethod
    def from_payload(cls, tag: int, payload: BytesLike) -> 'ContentIdentifier':
        entries = []
        pos = 0
        while pos < len(payload):
            crid_type = payload[pos] >> 2
            location = payload[pos] & 0x03
            if location == 0:
                crid_len = _take(payload, pos + 1, 1, "crid_length")[0]
                value = _take(payload, pos + 2, crid_len, "crid")
                entries.append(CridEntry(crid_type, location, value=value))
                pos += 2 + crid_len
            else:
                ref = _take(payload, pos + 1, 2, "crid_ref")
                entries.append(CridEntry(crid_type, location, reference=(ref[0] << 8) | ref[1]))
                pos += 3
        return cls(tag=tag, entries=entries)


@dataclass
class OtherDescriptor(Descriptor):
    """Any tag without a typed decoder; payload is kept verbatim."""
    payload: bytes = b''

    @property
    def length(self) -> int:
        return len(self.payload)


DECODERS: Dict[int, Type[Descriptor]] = {
    DescriptorTag.SHORT_EVENT: ShortEvent,
    DescriptorTag.EXTENDED_EVENT: ExtendedEvent,
    DescriptorTag.COMPONENT: Component,
    DescriptorTag.CONTENT: Content,
    DescriptorTag.PARENTAL_RATING: ParentalRating,
    DescriptorTag.PRIVATE_DATA_SPECIFIER: PrivateDataSpecifier,
    DescriptorTag.CONTENT_IDENTIFIER: ContentIdentifier,
}


def iter_descriptor_blocks(data: BytesLike):
    """
    Split a descriptor loop into (tag, payload) pairs.

    Raises:
        DecodeError: If a descriptor's declared length runs past the loop
    """
    pos = 0
    end = len(data)
    while pos < end:
        if pos + DESCRIPTOR_HEADER_SIZE > end:
            raise DecodeError(f"Descriptor header at offset {pos} overruns loop of {end} bytes")
        tag = data[pos]
        length = data[pos + 1]
        stop = pos + DESCRIPTOR_HEADER_SIZE + length
        if stop > end:
            raise DecodeError(
                f"Descriptor 0x{tag:02X} length {length} at offset {pos} overruns loop of {end} bytes"
            )
        yield tag, bytes(data[pos + DESCRIPTOR_HEADER_SIZE:stop])
        pos = stop


def parse_descriptors(data: BytesLike,
                      errors: Optional[List[DecodeError]] = None) -> List[Descriptor]:
    """
    Parse a descriptor loop into typed descriptors.

    A descriptor whose payload is malformed is dropped (and its error
    appended to errors if given); the rest of the loop is still parsed.
    A loop whose framing is broken raises.

    Args:
        data: Descriptor loop bytes
        errors: Optional list collecting per-descriptor decode errors

    Returns:
        Descriptors in transmission order
    """
    descriptors: List[Descriptor] = []

    for tag, payload in iter_descriptor_blocks(data):
        decoder = DECODERS.get(tag)
        if decoder is None:
            descriptors.append(OtherDescriptor(tag=tag, payload=payload))
            continue
        try:
            descriptors.append(decoder.from_payload(tag, payload))
        except DecodeError as e:
            logger.warning("Dropping descriptor 0x%02X: %s", tag, e)
            if errors is not None:
                errors.append(e)

    return descriptors


def is_known_private(tag: int, specifier: int) -> bool:
    """True if tag is a private descriptor defined by the given specifier."""
    return tag in PRIVATE_TAGS.get(specifier, ())


class DescriptorProjector:
    """
    Projects typed descriptors onto a ProgrammeEvent in XMLTV order.

    Args:
        normalizer: Text normaliser shared by the decoding run
        on_unknown: Called with (tag, length) for each unknown descriptor
    """

    def __init__(self, normalizer: TextNormalizer,
                 on_unknown: Optional[Callable[[int, int], None]] = None):
        self.normalizer = normalizer
        self.on_unknown = on_unknown
        self.passes = [
            self._titles,
            self._subtitles,
            self._descriptions,
            self._categories,
            self._language,
            self._video_and_crids,
            self._audio,
            self._subtitles_and_ratings,
        ]

    def project(self, descriptors: List[Descriptor], event: ProgrammeEvent) -> ProgrammeEvent:
        """Fill the content fields of event from its descriptors."""
        for run in self.passes:
            run(descriptors, event)
        return event

    def _titles(self, descriptors, event):
        specifier = 0
        for d in descriptors:
            if isinstance(d, PrivateDataSpecifier):
                specifier = d.value
            elif isinstance(d, ShortEvent):
                if not d.name:
                    continue
                title = self.normalizer.normalize(d.name)
                if title:
                    event.titles.append(LangText(d.language, title))
            elif isinstance(d, OtherDescriptor):
                if d.tag in IGNORED_TAGS or is_known_private(d.tag, specifier):
                    continue
                if specifier:
                    owner = lookup(PRIVATE_DATA_SPECIFIERS, specifier, f"0x{specifier:08X}")
                    logger.warning("Unknown descriptor 0x%02X (%d bytes) in event %d/%d, private to %s",
                                   d.tag, d.length, event.service_id, event.event_id, owner)
                else:
                    logger.warning("Unknown descriptor 0x%02X (%d bytes) in event %d/%d",
                                   d.tag, d.length, event.service_id, event.event_id)
                event.unknown_descriptors.append((d.tag, d.length))
                if self.on_unknown is not None:
                    self.on_unknown(d.tag, d.length)

    def _subtitles(self, descriptors, event):
        for d in descriptors:
            if isinstance(d, ShortEvent) and d.text:
                text = self.normalizer.normalize(d.text)
                if text:
                    event.subtitles.append(LangText(d.language, text))

    def _descriptions(self, descriptors, event):
        assembler = DescriptionAssembler(self.normalizer.normalize)
        for d in descriptors:
            if isinstance(d, ExtendedEvent):
                assembler.add(d)
        event.descriptions.extend(assembler.completed)

    def _categories(self, descriptors, event):
        emitted = np.zeros(256, dtype=bool)
        for d in descriptors:
            if not isinstance(d, Content):
                continue
            for code, _user in d.entries:
                if code == 0 or emitted[code]:
                    continue
                emitted[code] = True
                label = lookup(CONTENT_CATEGORIES, code)
                if label:
                    event.categories.append(label)

    def _language(self, descriptors, event):
        for d in descriptors:
            if isinstance(d, Component) and d.stream_content == StreamContent.AUDIO:
                if event.language is None:
                    event.language = d.language
                else:
                    logger.debug("Ignoring further audio language %s", d.language)

    def _video_and_crids(self, descriptors, event):
        for d in descriptors:
            if isinstance(d, Component) and d.stream_content == StreamContent.VIDEO:
                if event.video_aspect is None:
                    event.video_aspect = lookup_or_number(ASPECT_RATIOS, d.aspect_code)
            elif isinstance(d, ContentIdentifier):
                for entry in d.entries:
                    if entry.location != 0:
                        continue
                    crid_type = lookup(CRID_TYPES, entry.crid_type, f"0x{entry.crid_type:02x}")
                    event.crids.append(Crid(crid_type, self.normalizer.normalize(entry.value)))

    def _audio(self, descriptors, event):
        for d in descriptors:
            if isinstance(d, Component) and d.stream_content == StreamContent.AUDIO:
                if event.audio_mode is None:
                    event.audio_mode = lookup_or_number(AUDIO_MODES, d.component_type)

    def _subtitles_and_ratings(self, descriptors, event):
        for d in descriptors:
            if isinstance(d, Component) and d.stream_content == StreamContent.TELETEXT:
                event.subtitle_languages.append(d.language)
            elif isinstance(d, ParentalRating):
                for _country, rating in d.entries:
                    # 0 undefined, 0x10 and above broadcaster defined
                    if 0x01 <= rating <= 0x0F:
                        event.ratings.append(rating + 3)
