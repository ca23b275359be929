"""UDP transport for one SNTP request/response pair."""

from __future__ import annotations

import socket
from typing import Optional, Tuple

from simple_sntp.utils.logging_config import get_logger
from simple_sntp.sntp.errors import BadServerAddress, ServiceUnavailable, UnexpectedError

logger = get_logger(__name__)

NTP_DEFAULT_PORT = 123
DEFAULT_TIMEOUT = 5.0


def split_server_address(server: str) -> Tuple[str, int]:
    """Split ``host[:port]`` into host and port, defaulting to port 123.

    IPv6 literals may be bracketed (``[::1]:123``); a bare IPv6 literal is
    taken as a host without a port.
    """
    server = server.strip()
    if not server:
        raise BadServerAddress("empty server address")
    if server.startswith("["):
        host, sep, rest = server[1:].partition("]")
        if not sep:
            raise BadServerAddress(f"unterminated IPv6 literal in {server!r}")
        if not rest:
            return host, NTP_DEFAULT_PORT
        if not rest.startswith(":"):
            raise BadServerAddress(f"unexpected text after IPv6 literal in {server!r}")
        port_text = rest[1:]
    elif server.count(":") == 1:
        host, port_text = server.split(":", 1)
    else:
        return server, NTP_DEFAULT_PORT

    try:
        port = int(port_text)
    except ValueError:
        raise BadServerAddress(f"invalid port in {server!r}") from None
    if not host or not 0 < port <= 65535:
        raise BadServerAddress(f"invalid server address {server!r}")
    return host, port


class UdpTransport:
    """A connected UDP socket with one fixed timeout for sends and receives.

    Use as a context manager so the socket is released on every exit path.
    """

    def __init__(self, sock: socket.socket, remote: Tuple):
        self._sock: Optional[socket.socket] = sock
        self.remote = remote

    @classmethod
    def open(cls, server: str, timeout: float = DEFAULT_TIMEOUT) -> "UdpTransport":
        host, port = split_server_address(server)
        try:
            infos = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
        except socket.gaierror as e:
            raise BadServerAddress(f"cannot resolve {host!r}: {e}") from e
        except (OSError, UnicodeError) as e:
            raise UnexpectedError(f"address lookup for {host!r} failed: {e}") from e
        family, _, proto, _, remote = infos[0]

        try:
            sock = socket.socket(family, socket.SOCK_DGRAM, proto)
        except OSError as e:
            raise ServiceUnavailable(f"cannot create UDP socket: {e}") from e
        try:
            try:
                sock.bind(("::" if family == socket.AF_INET6 else "0.0.0.0", 0))
            except OSError as e:
                raise ServiceUnavailable(f"cannot bind local UDP port: {e}") from e
            try:
                sock.connect(remote)
                sock.settimeout(timeout)
            except (OSError, ValueError) as e:
                raise UnexpectedError(f"cannot associate with {remote}: {e}") from e
        except Exception:
            sock.close()
            raise

        logger.debug("transport_opened", server=server, remote=str(remote), local=str(sock.getsockname()))
        return cls(sock, remote)

    @property
    def closed(self) -> bool:
        return self._sock is None

    def _socket(self) -> socket.socket:
        if self._sock is None:
            raise ServiceUnavailable("transport is closed")
        return self._sock

    def send(self, data: bytes) -> None:
        """Send exactly one datagram."""
        try:
            self._socket().send(data)
        except OSError as e:
            raise ServiceUnavailable(f"send to {self.remote} failed: {e}") from e

    def receive(self, buffer: bytearray) -> int:
        """Block for one datagram and return the number of bytes received."""
        try:
            return self._socket().recv_into(buffer)
        except socket.timeout as e:
            raise ServiceUnavailable(f"no response from {self.remote} within timeout") from e
        except OSError as e:
            raise ServiceUnavailable(f"receive from {self.remote} failed: {e}") from e

    def close(self) -> None:
        if self._sock is not None:
            sock, self._sock = self._sock, None
            sock.close()

    def __enter__(self) -> "UdpTransport":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
