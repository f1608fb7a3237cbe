"""
dvbepg - DVB EIT to XMLTV programme guide decoder

Decodes the Event Information Table carried in DVB Service Information
into programme guide events and writes them as XMLTV.

Modules:
    Section layer:
        - CRC: CRC-32/MPEG-2 section checksum
        - PSI: Section framing and table ids
        - Section: Section reassembly from a byte stream
        - Packet / TransportStream: Section extraction from .ts captures
        - Source: Byte sources with inactivity timeout

    Event decoding:
        - EIT: EIT section parsing and event decoding
        - Descriptors: Typed descriptors and XMLTV-ordered projection
        - ExtendedEvent: Multi-fragment description assembly
        - Text: DVB character tables to escaped UTF-8
        - MJD: Modified Julian Date / BCD time fields
        - Tables: Category, aspect, audio, CRID and language tables
        - Tracker: Event version tracking

    Output:
        - Programme: Decoded programme event
        - XMLTV: XMLTV document writer
        - Channels: chanidents and channels.conf readers
        - Grabber: End-to-end pipeline
        - dashboard: Live Rich console view of a run
"""

__version__ = "0.1.0"
__author__ = "dvbepg Contributors"

from .CRC import CRC32
from .PSI import RawSection, TableID
from .Section import SectionReader
from .Packet import Packet
from .TransportStream import TSSectionSource
from .Source import StreamSource
from .EIT import EITSection, EventRecord, EITDecoder
from .Descriptors import DescriptorProjector, parse_descriptors
from .ExtendedEvent import DescriptionAssembler
from .Text import TextNormalizer
from .Tracker import Admission, EventTracker
from .Programme import ProgrammeEvent
from .XMLTV import XMLTVWriter
from .Grabber import EPGGrabber
from .config import DecoderConfig
from .context import DecodeContext
from .stats import DecodeStats
from .exceptions import DVBEPGError, DecodeError, CRCError, SectionTooLargeError

__all__ = [
    # Section layer
    'CRC32', 'RawSection', 'TableID', 'SectionReader', 'Packet',
    'TSSectionSource', 'StreamSource',

    # Event decoding
    'EITSection', 'EventRecord', 'EITDecoder', 'DescriptorProjector',
    'parse_descriptors', 'DescriptionAssembler', 'TextNormalizer',
    'Admission', 'EventTracker',

    # Output
    'ProgrammeEvent', 'XMLTVWriter', 'EPGGrabber',

    # Run state
    'DecoderConfig', 'DecodeContext', 'DecodeStats',

    # Errors
    'DVBEPGError', 'DecodeError', 'CRCError', 'SectionTooLargeError',
]
