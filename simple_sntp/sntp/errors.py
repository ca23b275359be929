"""Error taxonomy for a single SNTP exchange.

Every failure aborts the exchange and reaches the caller as one of the
subclasses below. Underlying OS errors are chained as ``__cause__``.
"""

from __future__ import annotations

from typing import Optional


class SntpError(Exception):
    """Base class for all SNTP client failures."""


class ServiceUnavailable(SntpError):
    """Local bind failed, or a send/receive failed or timed out."""


class BadServerAddress(SntpError):
    """The server address could not be resolved."""


class UnexpectedError(SntpError):
    """Any other OS/network failure (association, timeout configuration)."""


class TruncatedMessage(SntpError):
    """A packet was not exactly 48 bytes long."""

    def __init__(self, length: int):
        super().__init__(f"truncated NTP message: got {length} bytes, expected 48")
        self.length = length


class UntrustedMessage(SntpError):
    """The response does not belong to this exchange's request."""

    def __init__(self, reason: str, expected: Optional[int] = None, received: Optional[int] = None):
        super().__init__(reason)
        self.expected = expected
        self.received = received
