"""NTP packet codec.

Layout (48 octets, network byte order):

    0       flags: leap (2 bits) | version (3 bits) | mode (3 bits)
    1       stratum
    2       poll (signed log2 seconds)
    3       precision (signed log2 seconds)
    4..7    root delay (16.16 fixed point)
    8..11   root dispersion (16.16 fixed point)
    12..15  reference identifier
    16..23  reference timestamp
    24..31  originate timestamp
    32..39  receive timestamp
    40..47  transmit timestamp
"""

from __future__ import annotations

import socket
import struct
from dataclasses import dataclass

from simple_sntp.sntp.errors import TruncatedMessage

PACKET_FORMAT = "!B B b b I I I Q Q Q Q"
PACKET_SIZE = struct.calcsize(PACKET_FORMAT)  # 48

NTP_VERSION_3 = 3
NTP_VERSION_4 = 4

MODE_CLIENT = 3
MODE_SERVER = 4

MODE_TABLE = {
    0: "unspecified",
    1: "symmetric active",
    2: "symmetric passive",
    3: "client",
    4: "server",
    5: "broadcast",
    6: "reserved for NTP control messages",
    7: "reserved for private use",
}

LEAP_TABLE = {
    0: "no warning",
    1: "last minute has 61 seconds",
    2: "last minute has 59 seconds",
    3: "alarm condition (clock not synchronized)",
}


@dataclass
class NtpPacket:
    """One SNTP message as it travels on the wire."""

    leap: int = 0
    version: int = 0
    mode: int = 0
    stratum: int = 0
    poll: int = 0
    precision: int = 0
    root_delay: int = 0
    root_dispersion: int = 0
    ref_id: int = 0
    ref_timestamp: int = 0
    orig_timestamp: int = 0
    recv_timestamp: int = 0
    tx_timestamp: int = 0

    @classmethod
    def client_request(cls, tx_timestamp: int, version: int = NTP_VERSION_4) -> "NtpPacket":
        """Build a client-mode request carrying only a transmit timestamp."""
        return cls(leap=0, version=version, mode=MODE_CLIENT, tx_timestamp=tx_timestamp)

    def encode(self) -> bytes:
        """Convert this packet into its 48-byte wire form."""
        return struct.pack(
            PACKET_FORMAT,
            (self.leap & 0x3) << 6 | (self.version & 0x7) << 3 | (self.mode & 0x7),
            self.stratum,
            self.poll,
            self.precision,
            self.root_delay,
            self.root_dispersion,
            self.ref_id,
            self.ref_timestamp,
            self.orig_timestamp,
            self.recv_timestamp,
            self.tx_timestamp,
        )

    @classmethod
    def decode(cls, data: bytes) -> "NtpPacket":
        """Populate a packet from a received buffer.

        Raises TruncatedMessage unless the buffer is exactly 48 bytes.
        Version and mode are returned as-is; checking them is up to the caller.
        """
        if len(data) != PACKET_SIZE:
            raise TruncatedMessage(len(data))
        (
            flags,
            stratum,
            poll,
            precision,
            root_delay,
            root_dispersion,
            ref_id,
            ref_timestamp,
            orig_timestamp,
            recv_timestamp,
            tx_timestamp,
        ) = struct.unpack(PACKET_FORMAT, data)
        return cls(
            leap=(flags >> 6) & 0x3,
            version=(flags >> 3) & 0x7,
            mode=flags & 0x7,
            stratum=stratum,
            poll=poll,
            precision=precision,
            root_delay=root_delay,
            root_dispersion=root_dispersion,
            ref_id=ref_id,
            ref_timestamp=ref_timestamp,
            orig_timestamp=orig_timestamp,
            recv_timestamp=recv_timestamp,
            tx_timestamp=tx_timestamp,
        )

    @property
    def root_delay_seconds(self) -> float:
        return self.root_delay / 2 ** 16

    @property
    def root_dispersion_seconds(self) -> float:
        return self.root_dispersion / 2 ** 16

    @property
    def leap_description(self) -> str:
        return LEAP_TABLE[self.leap]

    @property
    def mode_description(self) -> str:
        return MODE_TABLE[self.mode]

    @property
    def ref_id_text(self) -> str:
        """Reference identifier as text.

        Stratum 0 and 1 servers send a four character ASCII code (e.g. GPS,
        or a kiss code); higher strata send the upstream server's IPv4 address.
        """
        raw = self.ref_id.to_bytes(4, "big")
        if self.stratum <= 1:
            return raw.rstrip(b"\x00").decode("ascii", errors="replace")
        return socket.inet_ntoa(raw)
