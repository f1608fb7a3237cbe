"""
Builders for EIT sections and descriptors used across the tests.
"""

import struct
from datetime import datetime, timedelta, timezone

from dvbepg.MJD import encode_duration, encode_start_time
from dvbepg.PSI import encode_section
from dvbepg.config import DecoderConfig
from dvbepg.context import DecodeContext


NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def descriptor(tag, payload):
    return bytes([tag, len(payload)]) + payload


def short_event(name, text=b'', lang=b'eng'):
    return descriptor(0x4D, lang + bytes([len(name)]) + name + bytes([len(text)]) + text)


def extended_event(number, last, text, lang=b'eng', items=()):
    items_block = b''.join(
        bytes([len(label)]) + label + bytes([len(value)]) + value
        for label, value in items
    )
    payload = (bytes([(number << 4) | last]) + lang + bytes([len(items_block)])
               + items_block + bytes([len(text)]) + text)
    return descriptor(0x4E, payload)


def component(stream_content, component_type, lang=b'eng', tag=0, text=b''):
    return descriptor(0x50, bytes([0xF0 | stream_content, component_type, tag]) + lang + text)


def content(*codes):
    return descriptor(0x54, b''.join(bytes([code, 0x00]) for code in codes))


def parental_rating(rating, country=b'GBR'):
    return descriptor(0x55, country + bytes([rating]))


def private_data_specifier(value):
    return descriptor(0x5F, struct.pack('>I', value))


def content_identifier(crid_type, value):
    return descriptor(0x76, bytes([crid_type << 2, len(value)]) + value)


def event(event_id, descriptors, start=NOW, duration=timedelta(minutes=30),
          running_status=4, free_ca=False):
    loop = b''.join(descriptors)
    return (struct.pack('>H', event_id) + encode_start_time(start) + encode_duration(duration)
            + bytes([(running_status << 5) | (free_ca << 4) | ((len(loop) >> 8) & 0x0F),
                     len(loop) & 0xFF])
            + loop)


def titled_event(event_id, title=b'News', start=NOW, duration=timedelta(minutes=30), extra=()):
    return event(event_id, [short_event(title)] + list(extra), start, duration)


def eit_section(service_id, events, version=0, table_id=0x4E, tsid=0x0001, onid=0x233A,
                section_number=0, last_section_number=0):
    body = (struct.pack('>HH', tsid, onid) + bytes([last_section_number, table_id])
            + b''.join(events))
    return encode_section(table_id, service_id, body, version, True,
                          section_number, last_section_number)


def make_context(clock_time=NOW, channel_ids=None, **options):
    return DecodeContext(DecoderConfig(**options), clock=lambda: clock_time,
                         channel_ids=channel_ids)
