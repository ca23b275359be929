"""One SNTP round-trip and the public time queries built on it."""

from __future__ import annotations

import time
from typing import Tuple

from simple_sntp.utils.logging_config import get_logger
from simple_sntp.sntp.errors import UntrustedMessage
from simple_sntp.sntp.packet import MODE_SERVER, NtpPacket
from simple_sntp.sntp.timemath import (
    Exchange,
    clock_offset_nanos,
    duration_to_ntp_timestamp,
    ntp_timestamp_to_duration,
    round_trip_delay_nanos,
    unix_time_nanos,
)
from simple_sntp.sntp.transport import DEFAULT_TIMEOUT, UdpTransport

logger = get_logger(__name__)


def _check_strict(response: NtpPacket) -> None:
    if response.mode != MODE_SERVER:
        raise UntrustedMessage(f"unexpected response mode {response.mode} ({response.mode_description})")
    if not 1 <= response.version <= 4:
        raise UntrustedMessage(f"unsupported response version {response.version}")


def exchange_with_packet(
    server: str, timeout: float = DEFAULT_TIMEOUT, strict: bool = False
) -> Tuple[Exchange, NtpPacket]:
    """Run one exchange and return ``(Exchange, response packet)``.

    t1 is captured immediately before the send and t4 immediately after the
    receive returns. The response is accepted only if its originate timestamp
    echoes the transmit timestamp of our request bit for bit.
    """
    log = logger.bind(server=server)
    with UdpTransport.open(server, timeout=timeout) as transport:
        timestamp = duration_to_ntp_timestamp(time.time_ns())
        request = NtpPacket.client_request(timestamp)

        buf = bytearray(request.encode())
        t1 = time.time_ns()
        transport.send(buf)
        n = transport.receive(buf)
        t4 = time.time_ns()

    response = NtpPacket.decode(bytes(buf[:n]))

    if response.orig_timestamp != timestamp:
        log.warning("untrusted_response", expected=timestamp, received=response.orig_timestamp)
        raise UntrustedMessage(
            "originate timestamp does not match request",
            expected=timestamp,
            received=response.orig_timestamp,
        )
    if strict:
        _check_strict(response)

    result = Exchange(
        t1,
        ntp_timestamp_to_duration(response.recv_timestamp),
        ntp_timestamp_to_duration(response.tx_timestamp),
        t4,
    )
    log.debug(
        "exchange_complete",
        stratum=response.stratum,
        delay_ns=round_trip_delay_nanos(*result),
    )
    return result, response


def perform_raw_exchange(server: str, timeout: float = DEFAULT_TIMEOUT, strict: bool = False) -> Exchange:
    """Retrieve the four instants t1..t4 from an SNTP server.

    So, system clock offset = ((t2 - t1) + (t3 - t4)) / 2,
    and round-trip delay = (t4 - t1) - (t3 - t2).
    """
    result, _ = exchange_with_packet(server, timeout=timeout, strict=strict)
    return result


def query_unix_time(server: str, timeout: float = DEFAULT_TIMEOUT, strict: bool = False) -> int:
    """Current Unix time according to ``server``, in nanoseconds."""
    return unix_time_nanos(*perform_raw_exchange(server, timeout=timeout, strict=strict))


def query_clock_offset_nanos(server: str, timeout: float = DEFAULT_TIMEOUT, strict: bool = False) -> int:
    """Signed offset of the server clock from the local clock, in nanoseconds."""
    return clock_offset_nanos(*perform_raw_exchange(server, timeout=timeout, strict=strict))
