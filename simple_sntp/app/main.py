#!/usr/bin/env python3
"""Query an SNTP server once and print what it says.

Usage examples:
  - simple-sntp pool.ntp.org
  - simple-sntp time.google.com:123 --offset
  - simple-sntp 127.0.0.1:1123 --raw --json
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime, timezone
from typing import List, Optional

from simple_sntp.config.settings import settings
from simple_sntp.sntp.errors import SntpError
from simple_sntp.sntp.exchange import exchange_with_packet
from simple_sntp.sntp.timemath import (
    NANOS_PER_SECOND,
    clock_offset_nanos,
    round_trip_delay_nanos,
    unix_time_nanos,
)
from simple_sntp.utils.logging_config import setup_logging


def format_unix_nanos(nanos: int) -> str:
    """Render Unix-epoch nanoseconds as ISO-8601 UTC with nanosecond digits."""
    seconds, subsec = divmod(nanos, NANOS_PER_SECOND)
    stamp = datetime.fromtimestamp(seconds, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")
    return f"{stamp}.{subsec:09d}Z"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Query an SNTP server once")
    parser.add_argument(
        "server",
        nargs="?",
        default=settings.SERVER,
        help=f"host[:port] of the time server (default: {settings.SERVER})",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--offset", action="store_true", help="print the local clock offset in seconds")
    mode.add_argument("--raw", action="store_true", help="print t1..t4 and the packet details")
    parser.add_argument(
        "--timeout",
        type=float,
        default=settings.TIMEOUT,
        help=f"send/receive timeout in seconds (default: {settings.TIMEOUT})",
    )
    parser.add_argument(
        "--strict",
        action=argparse.BooleanOptionalAction,
        default=settings.STRICT,
        help="also reject responses that are not server-mode NTP v1-v4",
    )
    parser.add_argument("--json", action="store_true", help="emit JSON instead of text")
    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logger = setup_logging(level=args.log_level, component="cli")

    try:
        exchange, packet = exchange_with_packet(args.server, timeout=args.timeout, strict=args.strict)
    except SntpError as e:
        logger.error("query_failed", server=args.server, error=type(e).__name__, detail=str(e))
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        return 1

    now = unix_time_nanos(*exchange)
    offset = clock_offset_nanos(*exchange)

    if args.offset:
        result = {"server": args.server, "offset_ns": offset}
        text = f"{offset / NANOS_PER_SECOND:+.9f}"
    elif args.raw:
        result = {
            "server": args.server,
            **exchange._asdict(),
            "delay_ns": round_trip_delay_nanos(*exchange),
            "offset_ns": offset,
            "stratum": packet.stratum,
            "version": packet.version,
            "mode": packet.mode,
            "leap": packet.leap_description,
            "ref_id": packet.ref_id_text,
            "root_delay": packet.root_delay_seconds,
            "root_dispersion": packet.root_dispersion_seconds,
        }
        text = "\n".join(f"{key}: {value}" for key, value in result.items())
    else:
        result = {"server": args.server, "unix_ns": now, "utc": format_unix_nanos(now)}
        text = result["utc"]

    print(json.dumps(result) if args.json else text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
