"""
Static lookup tables for EIT presentation

Plain (key -> label) dictionaries plus one lookup operation. Keys are
integers except for the language table, which maps ISO 639-2 codes to
the two-letter ISO 639-1 codes XMLTV prefers.

Reference: ETSI EN 300 468 Tables 26 (component), 28 (content),
           ETSI TS 102 323 Table 13 (crid_type)
"""

from typing import Dict, Optional, Union


Key = Union[int, str]


# ISO 639-2 (B and T forms) -> ISO 639-1
LANGUAGES: Dict[str, str] = {
    'aar': 'aa', 'abk': 'ab', 'afr': 'af', 'alb': 'sq', 'sqi': 'sq',
    'amh': 'am', 'ara': 'ar', 'arm': 'hy', 'hye': 'hy', 'asm': 'as',
    'aze': 'az', 'bak': 'ba', 'baq': 'eu', 'eus': 'eu', 'bel': 'be',
    'ben': 'bn', 'bos': 'bs', 'bre': 'br', 'bul': 'bg', 'bur': 'my',
    'mya': 'my', 'cat': 'ca', 'chi': 'zh', 'zho': 'zh', 'cor': 'kw',
    'cos': 'co', 'cym': 'cy', 'wel': 'cy', 'cze': 'cs', 'ces': 'cs',
    'dan': 'da', 'dut': 'nl', 'nld': 'nl', 'dzo': 'dz', 'eng': 'en',
    'epo': 'eo', 'est': 'et', 'fao': 'fo', 'fin': 'fi', 'fre': 'fr',
    'fra': 'fr', 'fry': 'fy', 'geo': 'ka', 'kat': 'ka', 'ger': 'de',
    'deu': 'de', 'gla': 'gd', 'gle': 'ga', 'glg': 'gl', 'glv': 'gv',
    'gre': 'el', 'ell': 'el', 'grn': 'gn', 'guj': 'gu', 'hau': 'ha',
    'heb': 'he', 'hin': 'hi', 'hrv': 'hr', 'scr': 'hr', 'hun': 'hu',
    'ice': 'is', 'isl': 'is', 'ind': 'id', 'ita': 'it', 'jpn': 'ja',
    'kal': 'kl', 'kan': 'kn', 'kas': 'ks', 'kaz': 'kk', 'khm': 'km',
    'kir': 'ky', 'kor': 'ko', 'kur': 'ku', 'lao': 'lo', 'lat': 'la',
    'lav': 'lv', 'lit': 'lt', 'ltz': 'lb', 'mac': 'mk', 'mkd': 'mk',
    'mal': 'ml', 'mao': 'mi', 'mri': 'mi', 'mar': 'mr', 'may': 'ms',
    'msa': 'ms', 'mlt': 'mt', 'mol': 'mo', 'mon': 'mn', 'nep': 'ne',
    'nno': 'nn', 'nob': 'nb', 'nor': 'no', 'oci': 'oc', 'ori': 'or',
    'per': 'fa', 'fas': 'fa', 'pol': 'pl', 'por': 'pt', 'pus': 'ps',
    'que': 'qu', 'roh': 'rm', 'rum': 'ro', 'ron': 'ro', 'rus': 'ru',
    'san': 'sa', 'scc': 'sr', 'srp': 'sr', 'sin': 'si', 'slo': 'sk',
    'slk': 'sk', 'slv': 'sl', 'sme': 'se', 'som': 'so', 'spa': 'es',
    'esl': 'es', 'swa': 'sw', 'swe': 'sv', 'sve': 'sv', 'tam': 'ta',
    'tat': 'tt', 'tel': 'te', 'tgk': 'tg', 'tgl': 'tl', 'tha': 'th',
    'tib': 'bo', 'bod': 'bo', 'tur': 'tr', 'tuk': 'tk', 'uig': 'ug',
    'ukr': 'uk', 'urd': 'ur', 'uzb': 'uz', 'vie': 'vi', 'wln': 'wa',
    'yid': 'yi', 'yor': 'yo', 'zul': 'zu',
}


# Video aspect ratio from (component_type - 1) & 0x03
ASPECT_RATIOS: Dict[int, str] = {
    0: '4:3',
    1: '16:9',      # with pan vectors
    2: '16:9',      # without pan vectors
    3: '2.21:1',    # > 16:9
}


# Audio mode from component_type when stream_content == 2
AUDIO_MODES: Dict[int, str] = {
    0x01: 'mono',
    0x02: 'bilingual',      # dual mono
    0x03: 'stereo',
    0x04: 'surround',       # multilingual, multichannel
    0x05: 'surround',
    0x40: 'mono',           # visually impaired commentary
    0x41: 'mono',           # hard of hearing
    0x42: 'mono',           # receiver-mixed supplementary
    0x47: 'mono',
    0x48: 'mono',
}


# Content nibbles (level1 << 4 | level2). An empty label marks a code that
# is recognised but has no XMLTV category.
CONTENT_CATEGORIES: Dict[int, str] = {
    0x10: 'Movie',
    0x11: 'Movie - detective/thriller',
    0x12: 'Movie - adventure/western/war',
    0x13: 'Movie - science fiction/fantasy/horror',
    0x14: 'Movie - comedy',
    0x15: 'Movie - soap/melodrama/folkloric',
    0x16: 'Movie - romance',
    0x17: 'Movie - serious/classical/religious/historical movie/drama',
    0x18: 'Movie - adult movie/drama',

    0x20: 'News / Current Affairs',
    0x21: 'news/weather report',
    0x22: 'news magazine',
    0x23: 'documentary',
    0x24: 'discussion/interview/debate',

    0x30: 'Show / Game Show',
    0x31: 'game show/quiz/contest',
    0x32: 'variety show',
    0x33: 'talk show',

    0x40: 'Sports',
    0x41: 'special events (Olympic Games, World Cup etc.)',
    0x42: 'sports magazines',
    0x43: 'football/soccer',
    0x44: 'tennis/squash',
    0x45: 'team sports (excluding football)',
    0x46: 'athletics',
    0x47: 'motor sport',
    0x48: 'water sport',
    0x49: 'winter sports',
    0x4A: 'equestrian',
    0x4B: 'martial sports',

    0x50: "Children's / Youth",
    0x51: "pre-school children's programmes",
    0x52: 'entertainment programmes for 6 to 14',
    0x53: 'entertainment programmes for 10 to 16',
    0x54: 'informational/educational/school programmes',
    0x55: 'cartoons/puppets',

    0x60: 'Music / Ballet / Dance',
    0x61: 'rock/pop',
    0x62: 'serious music/classical music',
    0x63: 'folk/traditional music',
    0x64: 'jazz',
    0x65: 'musical/opera',
    0x66: 'ballet',

    0x70: 'Arts / Culture',
    0x71: 'performing arts',
    0x72: 'fine arts',
    0x73: 'religion',
    0x74: 'popular culture/traditional arts',
    0x75: 'literature',
    0x76: 'film/cinema',
    0x77: 'experimental film/video',
    0x78: 'broadcasting/press',
    0x79: 'new media',
    0x7A: 'arts/culture magazines',
    0x7B: 'fashion',

    0x80: 'Social / Political / Economics',
    0x81: 'magazines/reports/documentary',
    0x82: 'economics/social advisory',
    0x83: 'remarkable people',

    0x90: 'Education / Science / Factual',
    0x91: 'nature/animals/environment',
    0x92: 'technology/natural sciences',
    0x93: 'medicine/physiology/psychology',
    0x94: 'foreign countries/expeditions',
    0x95: 'social/spiritual sciences',
    0x96: 'further education',
    0x97: 'languages',

    0xA0: 'Leisure / Hobbies',
    0xA1: 'tourism/travel',
    0xA2: 'handicraft',
    0xA3: 'motoring',
    0xA4: 'fitness & health',
    0xA5: 'cooking',
    0xA6: 'advertisement/shopping',
    0xA7: 'gardening',

    # Special characteristics
    0xB0: '',   # original language
    0xB1: '',   # black & white
    0xB2: '',   # unpublished
    0xB3: '',   # live broadcast
}


CRID_TYPES: Dict[int, str] = {
    0x00: 'none',
    0x01: 'programme',
    0x02: 'series',
    0x03: 'recommendation',
    0x31: 'programme',      # UK DTG
    0x32: 'series',         # UK DTG
}


# private_data_specifier values and the vendor-private descriptor tags
# they make harmless to ignore
PRIVATE_DATA_SPECIFIERS: Dict[int, str] = {
    0x00000005: 'ARD, ZDF, ORF',
    0x00000028: 'EACEM',
    0x00000029: 'NorDig',
    0x0000233A: 'DTG',
}

PRIVATE_TAGS: Dict[int, frozenset] = {
    0x00000005: frozenset({0x81, 0x82}),
}


def lookup(table: Dict, key: Key, default: Optional[str] = None) -> Optional[str]:
    """
    Look up a label.

    Args:
        table: One of the tables above, or any (key -> label) mapping
        key: Integer id (or language code)
        default: Returned when the key is absent

    Returns:
        Label, or default
    """
    return table.get(key, default)


def lookup_or_number(table: Dict, key: int) -> str:
    """Label for key, falling back to the exact integer as text."""
    label = table.get(key)
    return label if label is not None else str(key)


def language_code(code: str) -> str:
    """Map a three-letter code to ISO 639-1, keeping it unchanged if unknown."""
    return LANGUAGES.get(code.lower(), code)
