"""Timestamp conversion and SNTP time math.

Durations are integer nanoseconds since the Unix epoch, the unit returned by
``time.time_ns()``. The derived-value functions are pure so they can be
exercised with literal instants and no socket.
"""

from __future__ import annotations

from typing import NamedTuple

NTP_DELTA = 2208988800  # seconds from 1900-01-01 to 1970-01-01
NANOS_PER_SECOND = 1_000_000_000

_FRACTION_SCALE = 1 << 32
_FRACTION_MASK = _FRACTION_SCALE - 1
_ERA_PIVOT = 1 << 31


class Exchange(NamedTuple):
    """The four instants of one SNTP round-trip, in Unix-epoch nanoseconds.

    t1: client transmit time
    t2: server receive time
    t3: server transmit time
    t4: client receive time
    """

    t1: int
    t2: int
    t3: int
    t4: int


def duration_to_ntp_timestamp(nanos: int) -> int:
    """Convert Unix-epoch nanoseconds to a 64-bit NTP timestamp."""
    seconds, subsec = divmod(nanos, NANOS_PER_SECOND)
    fraction = (subsec << 32) // NANOS_PER_SECOND
    return ((seconds + NTP_DELTA) & 0xFFFFFFFF) << 32 | fraction


def ntp_timestamp_to_duration(timestamp: int) -> int:
    """Convert a 64-bit NTP timestamp to Unix-epoch nanoseconds.

    The fraction is rounded to the nearest nanosecond, which makes the
    conversion the exact inverse of ``duration_to_ntp_timestamp``. A clear
    most significant seconds bit places the value in era 1 (2036-2104),
    per RFC 4330 section 3.
    """
    seconds = timestamp >> 32
    if not seconds & _ERA_PIVOT:
        seconds += _FRACTION_SCALE
    seconds -= NTP_DELTA
    fraction = timestamp & _FRACTION_MASK
    subsec = (fraction * NANOS_PER_SECOND + (1 << 31)) >> 32
    return seconds * NANOS_PER_SECOND + subsec


def _half(value: int) -> int:
    # halve, truncating toward zero
    return -((-value) // 2) if value < 0 else value // 2


def unix_time_nanos(t1: int, t2: int, t3: int, t4: int) -> int:
    """Estimate the true current time at the midpoint of the round trip.

    Algebraically ``(t1 + t2 + t3 - t4) / 2``; the terms are ordered so that
    every intermediate stays non-negative when t1 <= t2, t3 <= t4.
    """
    return (t1 * 2 + t2 + t3 - t1 - t4) // 2


def clock_offset_nanos(t1: int, t2: int, t3: int, t4: int) -> int:
    """Offset of the server clock relative to the local clock.

    ``((t2 - t1) + (t3 - t4)) / 2``. Whole seconds and the sub-second
    remainders are halved separately and then summed.
    """
    s1, n1 = divmod(t1, NANOS_PER_SECOND)
    s2, n2 = divmod(t2, NANOS_PER_SECOND)
    s3, n3 = divmod(t3, NANOS_PER_SECOND)
    s4, n4 = divmod(t4, NANOS_PER_SECOND)
    offset = _half((s2 - s1 + s3 - s4) * NANOS_PER_SECOND)
    offset += _half(n2 - n1 + n3 - n4)
    return offset


def round_trip_delay_nanos(t1: int, t2: int, t3: int, t4: int) -> int:
    """Network round-trip time, excluding the server's processing time."""
    return (t4 - t1) - (t3 - t2)
