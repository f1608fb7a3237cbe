"""
DVB text fields -> XML-safe UTF-8 text

Every text field in SI carries its own character table selection in its
leading byte(s) (ETSI EN 300 468 Annex A.2):

    0x01-0x0B   ISO/IEC 8859-5 ... 8859-15 (0x08 is unassigned)
    0x10 0x00 N ISO/IEC 8859-N
    0x11        ISO/IEC 10646 BMP, big-endian 16-bit
    0x12        KS X 1001 (Korean)
    0x13        GB-2312 (Simplified Chinese)
    0x14        Big5 (Traditional Chinese)
    0x15        UTF-8
    0x16-0x1F   reserved
    >= 0x20     first character in the default table (Latin, ISO 6937)

Within 8-bit tables the C1 range carries DVB control codes: 0x86/0x87
switch emphasis on/off and 0x8A is a line break. In the 16-bit and UTF-8
forms the same codes appear as U+E086, U+E087 and U+E08A.

Reference: ETSI EN 300 468 Annex A
"""

import codecs
import logging
import unicodedata
from typing import Dict, Optional, Tuple, Union

from .exceptions import DecodeError


logger = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]


SINGLE_BYTE_SELECTORS: Dict[int, str] = {
    0x01: 'iso8859_5',
    0x02: 'iso8859_6',
    0x03: 'iso8859_7',
    0x04: 'iso8859_8',
    0x05: 'iso8859_9',
    0x06: 'iso8859_10',
    0x07: 'iso8859_11',
    0x09: 'iso8859_13',
    0x0A: 'iso8859_14',
    0x0B: 'iso8859_15',
    0x11: 'utf_16_be',
    0x12: 'euc_kr',
    0x13: 'gb2312',
    0x14: 'big5',
    0x15: 'utf_8',
}

# Third byte of the 0x10 0x00 N form
ISO8859_PARTS = {n: f'iso8859_{n}' for n in range(1, 16) if n != 12}

DEFAULT_TABLE = 'dvb-latin'


# Figure A.1, code table 00, upper half
DVB_LATIN_UPPER: Dict[int, str] = {
    0xA0: '\u00a0', 0xA1: '¡', 0xA2: '¢', 0xA3: '£', 0xA4: '€', 0xA5: '¥',
    0xA6: '#', 0xA7: '§', 0xA8: '¤', 0xA9: '‘', 0xAA: '“', 0xAB: '«',
    0xAC: '←', 0xAD: '↑', 0xAE: '→', 0xAF: '↓',
    0xB0: '°', 0xB1: '±', 0xB2: '²', 0xB3: '³', 0xB4: '×', 0xB5: 'µ',
    0xB6: '¶', 0xB7: '·', 0xB8: '÷', 0xB9: '’', 0xBA: '”', 0xBB: '»',
    0xBC: '¼', 0xBD: '½', 0xBE: '¾', 0xBF: '¿',
    0xD0: '―', 0xD1: '¹', 0xD2: '®', 0xD3: '©', 0xD4: '™', 0xD5: '♪',
    0xD6: '¬', 0xD7: '¦', 0xDC: '⅛', 0xDD: '⅜', 0xDE: '⅝', 0xDF: '⅞',
    0xE0: 'Ω', 0xE1: 'Æ', 0xE2: 'Đ', 0xE3: 'ª', 0xE4: 'Ħ', 0xE6: 'Ĳ',
    0xE7: 'Ŀ', 0xE8: 'Ł', 0xE9: 'Ø', 0xEA: 'Œ', 0xEB: 'º', 0xEC: 'Þ',
    0xED: 'Ŧ', 0xEE: 'Ŋ', 0xEF: 'ŉ',
    0xF0: 'ĸ', 0xF1: 'æ', 0xF2: 'đ', 0xF3: 'ð', 0xF4: 'ħ', 0xF5: 'ı',
    0xF6: 'ĳ', 0xF7: 'ŀ', 0xF8: 'ł', 0xF9: 'ø', 0xFA: 'œ', 0xFB: 'ß',
    0xFC: 'þ', 0xFD: 'ŧ', 0xFE: 'ŋ', 0xFF: '\u00ad',
}

# Non-spacing diacritics: prefix the base letter they modify
DVB_LATIN_DIACRITICS: Dict[int, str] = {
    0xC1: '\u0300',     # grave
    0xC2: '\u0301',     # acute
    0xC3: '\u0302',     # circumflex
    0xC4: '\u0303',     # tilde
    0xC5: '\u0304',     # macron
    0xC6: '\u0306',     # breve
    0xC7: '\u0307',     # dot above
    0xC8: '\u0308',     # diaeresis
    0xCA: '\u030a',     # ring
    0xCB: '\u0327',     # cedilla
    0xCD: '\u030b',     # double acute
    0xCE: '\u0328',     # ogonek
    0xCF: '\u030c',     # caron
}

EMPHASIS_ON = 0x86
EMPHASIS_OFF = 0x87
CR_LF = 0x8A

XML_ESCAPES = {'&': '&amp;', '<': '&lt;', '>': '&gt;'}


def decode_dvb_latin(data: BytesLike) -> str:
    """
    Decode bytes in the default DVB Latin table (ISO 6937 + euro sign).

    Diacritic bytes 0xC1-0xCF combine with the following character and
    are composed to a single code point where Unicode has one.
    """
    out = []
    mark = None

    for byte in bytes(data):
        if 0xC0 <= byte <= 0xCF:
            mark = DVB_LATIN_DIACRITICS.get(byte)
            continue

        if byte < 0xA0:
            char = chr(byte)
        else:
            char = DVB_LATIN_UPPER.get(byte, '')

        if mark is not None:
            if char:
                char = unicodedata.normalize('NFC', char + mark)
            mark = None

        if char:
            out.append(char)

    return ''.join(out)


def select_encoding(data: BytesLike, default: str = DEFAULT_TABLE) -> Tuple[str, int]:
    """
    Work out the character table for a text field.

    Args:
        data: Raw text field, selector included
        default: Table used when the first byte is a printable character

    Returns:
        (encoding name, number of selector bytes to skip)

    Raises:
        DecodeError: For reserved or unassigned selector values
    """
    first = data[0]

    if first >= 0x20:
        return default, 0

    if first == 0x10:
        if len(data) < 3:
            raise DecodeError("Truncated 0x10 character table selector")
        part = (data[1] << 8) | data[2]
        if part not in ISO8859_PARTS:
            raise DecodeError(f"Unassigned ISO 8859 part {part} in selector")
        return ISO8859_PARTS[part], 3

    encoding = SINGLE_BYTE_SELECTORS.get(first)
    if encoding is None:
        raise DecodeError(f"Reserved character table selector 0x{first:02X}")
    return encoding, 1


def escape(text: str) -> str:
    """Escape the characters reserved in XML character data."""
    return ''.join(XML_ESCAPES.get(c, c) for c in text)


class TextNormalizer:
    """
    Decodes DVB text fields to escaped UTF-8 text.

    Each field chooses its own character table; the normaliser only
    remembers the most recently used codec to avoid repeated codec
    lookups.

    Attributes:
        default_encoding: Python codec for selector-less text, or None
            for the DVB Latin table
        warnings: Fields that contained forbidden control characters
        errors: Fields that could not be decoded at all

    Example:
        >>> TextNormalizer().normalize(b'\\x15A&B')
        'A&amp;B'
    """

    def __init__(self, default_encoding: Optional[str] = None, stats=None):
        if default_encoding is not None:
            codecs.lookup(default_encoding)
        self.default_encoding = default_encoding or DEFAULT_TABLE
        self.stats = stats
        self.warnings = 0
        self.errors = 0
        self._cached_name: Optional[str] = None
        self._cached_codec: Optional[codecs.CodecInfo] = None

    def _codec(self, name: str) -> codecs.CodecInfo:
        if name != self._cached_name:
            self._cached_codec = codecs.lookup(name)
            self._cached_name = name
        return self._cached_codec

    def decode(self, data: BytesLike) -> str:
        """
        Decode a raw text field to plain (unescaped) text.

        Raises:
            DecodeError: If the selector is reserved
        """
        if not data:
            return ''

        encoding, skip = select_encoding(data, self.default_encoding)
        body = bytes(data[skip:])

        if encoding == DEFAULT_TABLE:
            return decode_dvb_latin(body)

        text, _ = self._codec(encoding).decode(body, 'replace')
        return text

    def clean(self, text: str) -> str:
        """
        Apply DVB control codes and remove characters XML cannot carry.

        Line breaks become newlines, emphasis marks and other C1 codes
        vanish. Forbidden C0 controls and DEL are dropped with a warning.
        """
        out = []
        flagged = False

        for char in text:
            code = ord(char)
            if 0xE080 <= code <= 0xE09F:
                code -= 0xE000
            if code == CR_LF:
                out.append('\n')
            elif 0x80 <= code <= 0x9F:
                continue
            elif code <= 0x08 or 0x0B <= code <= 0x1F or code == 0x7F:
                flagged = True
            else:
                out.append(char)

        if flagged:
            self.warnings += 1
            if self.stats is not None:
                self.stats.text_warnings += 1
            logger.warning("Removed control characters from text %r", text)

        return ''.join(out)

    def normalize(self, data: BytesLike) -> str:
        """
        Decode, clean and escape one text field.

        A field with a reserved selector is reported and rendered empty;
        it never fails the enclosing event.
        """
        try:
            text = self.decode(data)
        except DecodeError as e:
            self.errors += 1
            if self.stats is not None:
                self.stats.decode_errors += 1
            logger.warning("Undecodable text field: %s", e)
            return ''

        return escape(self.clean(text))
