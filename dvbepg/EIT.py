"""
Event Information Table (EIT)

Structure:
    PSI header (table_id 0x4E-0x6F)
    service_id                      (16 bits) = table_id_extension
    reserved / version / current_next (8 bits)
    section_number                  (8 bits)
    last_section_number             (8 bits)
    transport_stream_id             (16 bits)
    original_network_id             (16 bits)
    segment_last_section_number     (8 bits)
    last_table_id                   (8 bits)
    [for each event:]
        event_id                    (16 bits)
        start_time                  (40 bits, MJD + BCD)
        duration                    (24 bits, BCD)
        running_status              (3 bits)
        free_CA_mode                (1 bit)
        descriptors_loop_length     (12 bits)
        [descriptors]
    CRC_32                          (32 bits)

Reference: ETSI EN 300 468 Section 5.2.4
"""

import logging
import struct
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterator, List, Optional, Union

from .Descriptors import parse_descriptors
from .MJD import decode_duration, decode_start_time
from .PSI import CRC_SIZE, SECTION_HEADER_SIZE, RawSection, TableID
from .Programme import ProgrammeEvent
from .Tracker import Admission
from .exceptions import CRCError, DecodeError


logger = logging.getLogger(__name__)

EIT_HEADER_SIZE = 14
EVENT_HEADER_SIZE = 12


@dataclass
class EventRecord:
    """
    One entry of an EIT event loop, times still in broadcast form.

    Attributes:
        event_id: Event identifier within the service
        start_raw: 5-byte MJD + BCD start_time
        duration_raw: 3-byte BCD duration
        running_status: 3-bit running status
        free_ca_mode: True if scrambled
        descriptors: Raw descriptor loop
    """
    event_id: int
    start_raw: bytes
    duration_raw: bytes
    running_status: int
    free_ca_mode: bool
    descriptors: bytes

    def start_time(self, hour_offset: int = 0) -> datetime:
        """Decoded UTC start, shifted by hour_offset hours."""
        return decode_start_time(self.start_raw, hour_offset)

    @property
    def duration(self) -> timedelta:
        return decode_duration(self.duration_raw)

    @property
    def duration_seconds(self) -> int:
        return int(self.duration.total_seconds())


@dataclass
class EITSection:
    """
    Parsed EIT section header plus its event loop bytes.

    Example:
        >>> eit = EITSection.from_bytes(section_bytes)
        >>> for record in eit.events():
        ...     print(record.event_id)
    """
    table_id: int
    service_id: int
    version_number: int
    current_next: bool
    section_number: int
    last_section_number: int
    transport_stream_id: int
    original_network_id: int
    segment_last_section_number: int
    segment_last_table_id: int
    event_data: bytes

    @classmethod
    def from_bytes(cls, data: Union[bytes, bytearray, RawSection],
                   verify: bool = False) -> 'EITSection':
        """
        Parse an EIT section.

        Args:
            data: Complete section (or a RawSection)
            verify: Check the CRC_32 first

        Raises:
            CRCError: If verify is set and the checksum fails
            DecodeError: If the section is not an EIT or is too short
        """
        raw = data if isinstance(data, RawSection) else RawSection.from_bytes(data)

        if verify and not raw.crc_ok():
            raise CRCError(raw.table_id, raw.total_length)
        if not TableID.is_eit(raw.table_id):
            raise DecodeError(f"Not an EIT: table_id=0x{raw.table_id:02X}")
        if raw.total_length < EIT_HEADER_SIZE + CRC_SIZE:
            raise DecodeError(f"EIT section too short: {raw.total_length} bytes")

        b = raw.data
        service_id, = struct.unpack('>H', b[3:5])
        tsid, onid = struct.unpack('>HH', b[8:12])

        return cls(
            table_id=raw.table_id,
            service_id=service_id,
            version_number=(b[5] >> 1) & 0x1F,
            current_next=bool(b[5] & 0x01),
            section_number=b[6],
            last_section_number=b[7],
            transport_stream_id=tsid,
            original_network_id=onid,
            segment_last_section_number=b[12],
            segment_last_table_id=b[13],
            event_data=b[EIT_HEADER_SIZE:SECTION_HEADER_SIZE + raw.section_length - CRC_SIZE],
        )

    def events(self) -> Iterator[EventRecord]:
        """
        Walk the event loop.

        A record with an empty descriptor loop marks the end of event
        data in this section; nothing after it is read.

        Raises:
            DecodeError: If a record runs past the end of the section
        """
        data = self.event_data
        pos = 0

        while pos < len(data):
            if pos + EVENT_HEADER_SIZE > len(data):
                raise DecodeError(f"Event header at offset {pos} overruns section")

            loop_length = ((data[pos + 10] & 0x0F) << 8) | data[pos + 11]
            if loop_length == 0:
                return

            end = pos + EVENT_HEADER_SIZE + loop_length
            if end > len(data):
                raise DecodeError(
                    f"Event descriptor loop of {loop_length} bytes at offset {pos} overruns section"
                )

            yield EventRecord(
                event_id=(data[pos] << 8) | data[pos + 1],
                start_raw=data[pos + 2:pos + 7],
                duration_raw=data[pos + 7:pos + 10],
                running_status=(data[pos + 10] >> 5) & 0x07,
                free_ca_mode=bool(data[pos + 10] & 0x10),
                descriptors=data[pos + EVENT_HEADER_SIZE:end],
            )
            pos = end

    def __repr__(self) -> str:
        return (f"EITSection({TableID.describe(self.table_id)}, sid={self.service_id}, "
                f"version={self.version_number}, "
                f"section={self.section_number}/{self.last_section_number})")


class EITDecoder:
    """
    Turns validated EIT sections into programme events.

    Per event record: admission by the version tracker, time decoding
    and the date window check, descriptor projection, then the title
    requirement. All state lives on the decoding context.

    Args:
        context: DecodeContext for the run
    """

    def __init__(self, context):
        self.context = context

    def decode_section(self, section: Union[bytes, bytearray, RawSection, EITSection]) -> List[ProgrammeEvent]:
        """
        Decode every event of one section.

        Returns:
            Events that passed all checks, in section order
        """
        stats = self.context.stats
        eit = section if isinstance(section, EITSection) else EITSection.from_bytes(section)

        emitted = []
        try:
            for record in eit.events():
                event = self.decode_event(eit, record)
                if event is not None:
                    emitted.append(event)
        except DecodeError as e:
            stats.decode_errors += 1
            logger.warning("Abandoning rest of %r: %s", eit, e)

        return emitted

    def decode_event(self, eit: EITSection, record: EventRecord) -> Optional[ProgrammeEvent]:
        """Run one event record through admission, timing and projection."""
        ctx = self.context
        stats = ctx.stats
        config = ctx.config

        admission = ctx.tracker.admit(eit.service_id, record.event_id, eit.version_number)
        if admission is Admission.REPEAT:
            stats.repeats += 1
            return None
        if admission is Admission.UPDATE:
            stats.updates += 1
            if not config.emit_updates:
                return None

        try:
            start = record.start_time(config.time_offset)
            stop = start + record.duration
        except DecodeError as e:
            stats.invalid_dates += 1
            logger.warning("Event %d/%d has undecodable time: %s",
                           eit.service_id, record.event_id, e)
            return None

        if not self.in_date_window(stop):
            stats.invalid_dates += 1
            if not config.include_invalid_dates:
                return None

        event = ProgrammeEvent(
            service_id=eit.service_id,
            event_id=record.event_id,
            start=start,
            stop=stop,
            version=eit.version_number,
            running_status=record.running_status,
            free_ca_mode=record.free_ca_mode,
            is_update=admission is Admission.UPDATE,
        )

        errors: List[DecodeError] = []
        try:
            descriptors = parse_descriptors(record.descriptors, errors)
        except DecodeError as e:
            stats.decode_errors += 1
            logger.warning("Event %d/%d has a broken descriptor loop: %s",
                           eit.service_id, record.event_id, e)
            return None
        stats.decode_errors += len(errors)

        ctx.projector.project(descriptors, event)

        if not event.titles:
            stats.missing_titles += 1
            return None

        stats.programmes += 1
        return event

    def in_date_window(self, stop: datetime) -> bool:
        """True unless stop lies before now - past_window or after now + future_window."""
        now = self.context.now()
        config = self.context.config
        return now - config.past_window <= stop <= now + config.future_window
