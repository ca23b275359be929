"""Tests for NTP timestamp conversion and the SNTP formulas"""

import pytest

from simple_sntp.sntp.timemath import (
    NANOS_PER_SECOND,
    NTP_DELTA,
    Exchange,
    clock_offset_nanos,
    duration_to_ntp_timestamp,
    ntp_timestamp_to_duration,
    round_trip_delay_nanos,
    unix_time_nanos,
)


def _ns(seconds: int, nanos: int = 0) -> int:
    return seconds * NANOS_PER_SECOND + nanos


# t1=1000.0, t2=1000.5, t3=1000.6, t4=1000.2
SAMPLE = Exchange(_ns(1000), _ns(1000, 500_000_000), _ns(1000, 600_000_000), _ns(1000, 200_000_000))


class TestConversion:
    """Test Unix nanoseconds <-> NTP timestamp"""

    def test_unix_epoch(self):
        """Test the 1900/1970 epoch offset."""
        assert duration_to_ntp_timestamp(0) == NTP_DELTA << 32
        assert ntp_timestamp_to_duration(NTP_DELTA << 32) == 0

    def test_half_second(self):
        """Test an exactly representable fraction."""
        ts = duration_to_ntp_timestamp(_ns(1000, 500_000_000))
        assert ts == (NTP_DELTA + 1000) << 32 | 0x80000000
        assert ntp_timestamp_to_duration(ts) == _ns(1000, 500_000_000)

    @pytest.mark.parametrize(
        "nanos",
        [
            _ns(1000),
            _ns(1000, 500_000_000),
            _ns(1_700_000_000, 123_456_789),
            _ns(1_700_000_000, 999_999_999),
            _ns(1_700_000_000, 1),
            _ns(2_085_978_495, 999_999_999),  # last second of era 0
        ],
    )
    def test_round_trip(self, nanos):
        """Test conversion there and back is lossless."""
        assert ntp_timestamp_to_duration(duration_to_ntp_timestamp(nanos)) == nanos

    def test_round_trip_every_microsecond_step(self):
        """Test round trips across one second."""
        base = _ns(1_234_567_890)
        for micros in range(0, 1_000_000, 997):
            nanos = base + micros * 1000 + 7
            assert ntp_timestamp_to_duration(duration_to_ntp_timestamp(nanos)) == nanos

    def test_era_one(self):
        """Test timestamps after the 2036 rollover."""
        # 2036-02-07T06:28:16Z is the first instant of NTP era 1
        rollover = _ns(2**32 - NTP_DELTA)
        assert duration_to_ntp_timestamp(rollover) == 0
        assert ntp_timestamp_to_duration(0) == rollover
        later = rollover + _ns(86400, 250_000_000)
        assert ntp_timestamp_to_duration(duration_to_ntp_timestamp(later)) == later


class TestFormulas:
    """Test the derived values over (t1, t2, t3, t4)"""

    def test_clock_offset_sample(self):
        """Test the clock offset formula."""
        assert clock_offset_nanos(*SAMPLE) == 450_000_000

    def test_unix_time_sample(self):
        """Test the absolute time formula."""
        assert unix_time_nanos(*SAMPLE) == _ns(1000, 450_000_000)

    def test_round_trip_delay_sample(self):
        """Test the round-trip delay formula."""
        assert round_trip_delay_nanos(*SAMPLE) == 100_000_000

    def test_negative_offset(self):
        """Test a server behind the local clock."""
        t = Exchange(_ns(1000, 500_000_000), _ns(1000), _ns(1000, 100_000_000), _ns(1000, 700_000_000))
        assert clock_offset_nanos(*t) == -550_000_000

    def test_offset_across_seconds(self):
        """Test an offset spanning whole seconds."""
        t = Exchange(_ns(1000, 900_000_000), _ns(1002, 100_000_000), _ns(1002, 200_000_000), _ns(1001))
        assert clock_offset_nanos(*t) == 1_200_000_000

    def test_synchronized_clocks(self):
        """Test identical clocks give zero offset."""
        t = Exchange(_ns(50), _ns(50, 10), _ns(50, 20), _ns(50, 30))
        assert clock_offset_nanos(*t) == 0
        assert unix_time_nanos(*t) == _ns(50)
        assert round_trip_delay_nanos(*t) == 20

    def test_exchange_fields(self):
        """Test the exchange record fields."""
        assert SAMPLE.t1 == SAMPLE[0]
        assert SAMPLE._asdict()["t4"] == _ns(1000, 200_000_000)
