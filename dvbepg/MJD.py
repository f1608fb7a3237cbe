"""
DVB time fields: Modified Julian Date + BCD

EIT start_time is 40 bits: a 16-bit MJD followed by six BCD digits
(hh mm ss) in UTC. duration is 24 bits of BCD (hh mm ss).

The MJD -> Y/M/D conversion follows ETSI EN 300 468 Annex C verbatim,
including truncation toward zero of each intermediate quotient.

Reference: ETSI EN 300 468 Annex C
"""

from datetime import datetime, timedelta, timezone
from typing import Tuple, Union

from .exceptions import DecodeError


def bcd_to_int(value: int) -> int:
    """
    Decode one BCD byte (two decimal digits).

    Raises:
        DecodeError: If either nibble is greater than 9
    """
    high = (value >> 4) & 0x0F
    low = value & 0x0F
    if high > 9 or low > 9:
        raise DecodeError(f"Invalid BCD byte 0x{value:02X}")
    return 10 * high + low


def bcd_triplet(data: Union[bytes, bytearray, memoryview]) -> Tuple[int, int, int]:
    """Decode three BCD bytes as (hours, minutes, seconds)."""
    if len(data) < 3:
        raise DecodeError("BCD time field needs 3 bytes")
    return bcd_to_int(data[0]), bcd_to_int(data[1]), bcd_to_int(data[2])


def mjd_to_ymd(mjd: int) -> Tuple[int, int, int]:
    """
    Convert a Modified Julian Date to a Gregorian date.

    Args:
        mjd: 16-bit day count

    Returns:
        (year, month, day) with month 1-12

    Example:
        >>> mjd_to_ymd(58849)
        (2020, 1, 1)
    """
    year = int((mjd - 15078.2) / 365.25)
    month = int((mjd - 14956.1 - int(year * 365.25)) / 30.6001)
    day = mjd - 14956 - int(year * 365.25) - int(month * 30.6001)

    k = 1 if month in (14, 15) else 0
    year += k
    month = month - 2 - k * 12

    # year is an offset from 1900, month is 0-based
    return 1900 + year, month + 1, day


def decode_start_time(data: Union[bytes, bytearray, memoryview],
                      hour_offset: int = 0) -> datetime:
    """
    Decode a 40-bit start_time field.

    Args:
        data: 5 bytes: MJD (big-endian) + BCD hh mm ss
        hour_offset: Whole hours added to the decoded hour before
            normalisation (broadcaster clock correction)

    Returns:
        Timezone-aware UTC datetime

    Raises:
        DecodeError: On malformed BCD or an MJD outside the calendar
    """
    if len(data) < 5:
        raise DecodeError("start_time needs 5 bytes")

    mjd = (data[0] << 8) | data[1]
    hours, minutes, seconds = bcd_triplet(data[2:5])
    year, month, day = mjd_to_ymd(mjd)

    try:
        midnight = datetime(year, month, day, tzinfo=timezone.utc)
    except ValueError as e:
        raise DecodeError(f"MJD {mjd} is not a valid date: {e}") from e

    return midnight + timedelta(hours=hours + hour_offset, minutes=minutes, seconds=seconds)


def decode_duration(data: Union[bytes, bytearray, memoryview]) -> timedelta:
    """Decode a 24-bit BCD duration field."""
    hours, minutes, seconds = bcd_triplet(data)
    return timedelta(hours=hours, minutes=minutes, seconds=seconds)


def encode_start_time(when: datetime) -> bytes:
    """
    Encode a UTC datetime as a 40-bit start_time field.

    Inverse of decode_start_time; used to build sections.
    """
    when = when.astimezone(timezone.utc)
    mjd = (when.date() - datetime(1858, 11, 17).date()).days
    return bytes([
        (mjd >> 8) & 0xFF, mjd & 0xFF,
        int_to_bcd(when.hour), int_to_bcd(when.minute), int_to_bcd(when.second),
    ])


def encode_duration(duration: timedelta) -> bytes:
    """Encode a duration (under 100 hours) as 3 BCD bytes."""
    total = int(duration.total_seconds())
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return bytes([int_to_bcd(hours), int_to_bcd(minutes), int_to_bcd(seconds)])


def int_to_bcd(value: int) -> int:
    """Encode 0-99 as one BCD byte."""
    if not 0 <= value <= 99:
        raise ValueError(f"BCD value must be 0-99, got {value}")
    return ((value // 10) << 4) | (value % 10)
