"""
Tests for MJD and BCD time field decoding.
"""

import pytest
from datetime import datetime, timedelta, timezone

from dvbepg.MJD import (
    bcd_to_int, decode_duration, decode_start_time, encode_start_time,
    int_to_bcd, mjd_to_ymd,
)
from dvbepg.exceptions import DecodeError


class TestBCD:
    """Test binary coded decimal bytes."""

    def test_valid(self):
        """Two valid BCD nibbles give a decimal value."""
        assert bcd_to_int(0x23) == 23
        assert bcd_to_int(0x00) == 0
        assert bcd_to_int(0x59) == 59

    @pytest.mark.parametrize("value", [0x0A, 0xA0, 0x1F, 0xFF])
    def test_invalid_nibble(self, value):
        """A nibble above 9 is a decode error."""
        with pytest.raises(DecodeError):
            bcd_to_int(value)

    def test_encode(self):
        """Encoding writes two BCD digits and rejects values over 99."""
        assert int_to_bcd(45) == 0x45
        with pytest.raises(ValueError):
            int_to_bcd(100)


class TestMJD:
    """Test Modified Julian Date conversion."""

    def test_2020(self):
        """MJD 58849 is 2020-01-01."""
        assert mjd_to_ymd(58849) == (2020, 1, 1)

    def test_unix_epoch(self):
        """MJD 40587 is the Unix epoch."""
        assert mjd_to_ymd(40587) == (1970, 1, 1)

    def test_end_of_february_leap_year(self):
        """Leap day 2024 converts correctly."""
        assert mjd_to_ymd(60369) == (2024, 2, 29)

    def test_start_time_annex_c_value(self):
        """0xC079124500 is 1993-10-13 12:45:00 UTC."""
        when = decode_start_time(bytes.fromhex('C079124500'))
        assert when == datetime(1993, 10, 13, 12, 45, 0, tzinfo=timezone.utc)
        assert when.tzinfo is not None

    def test_hour_offset(self):
        """A positive hour offset moves the start later."""
        when = decode_start_time(bytes.fromhex('C079124500'), hour_offset=2)
        assert when == datetime(1993, 10, 13, 14, 45, 0, tzinfo=timezone.utc)

    def test_negative_offset_rolls_back_a_day(self):
        """A negative offset can cross midnight backwards."""
        when = decode_start_time(bytes.fromhex('C079003000'), hour_offset=-1)
        assert when == datetime(1993, 10, 12, 23, 30, 0, tzinfo=timezone.utc)

    def test_bad_bcd_in_start(self):
        """Bad BCD in the time of day is a decode error."""
        with pytest.raises(DecodeError):
            decode_start_time(bytes.fromhex('C0791A0000'))

    def test_short_field(self):
        """A start time field under five bytes is a decode error."""
        with pytest.raises(DecodeError):
            decode_start_time(b'\xC0\x79\x12')

    def test_encode_matches_decode(self):
        """Encoded start times decode back to the same instant."""
        when = datetime(2024, 3, 1, 20, 15, 0, tzinfo=timezone.utc)
        assert decode_start_time(encode_start_time(when)) == when


class TestDuration:
    """Test BCD durations."""

    def test_decode(self):
        """Durations decode from three BCD bytes."""
        assert decode_duration(bytes([0x01, 0x45, 0x30])) == timedelta(hours=1, minutes=45, seconds=30)

    def test_zero(self):
        """A zero duration is allowed."""
        assert decode_duration(b'\x00\x00\x00') == timedelta(0)

    def test_invalid(self):
        """Bad BCD in a duration is a decode error."""
        with pytest.raises(DecodeError):
            decode_duration(bytes([0x00, 0x6A, 0x00]))
