"""
Byte-stream transport for bootfetch.

The fetcher is written against a single capability: open a blocking byte
stream to host:port, send bytes, read bytes. This module defines that
protocol and the socket adapter that provides it. Python's socket module
already hides the POSIX / Winsock split, so one adapter covers both.
"""
from __future__ import annotations

import logging
import socket
from typing import Callable, List, Optional, Protocol, Tuple, runtime_checkable

from .errors import ConnectFailed, ResolutionFailed, SendFailed

logger = logging.getLogger(__name__)

__all__ = ["Connection", "ConnectionFactory", "SocketConnection", "open_connection", "resolve_host"]


@runtime_checkable
class Connection(Protocol):
    """Protocol for a blocking, connected byte stream."""

    def send(self, data: bytes) -> None:
        """
        Send all of data.

        Raises:
            SendFailed: If the bytes could not be sent
        """
        ...

    def recv(self, max_bytes: int) -> bytes:
        """
        Read up to max_bytes.

        Returns:
            Between 1 and max_bytes bytes, or b"" once the peer has closed

        Raises:
            OSError: On socket errors (including read timeouts)
        """
        ...

    def close(self) -> None:
        """Release the connection. Safe to call more than once."""
        ...


# (host, port, timeout_s) -> Connection
ConnectionFactory = Callable[[str, int, Optional[float]], Connection]

SockAddr = Tuple[int, int, int, tuple]


def resolve_host(host: str, port: int) -> List[SockAddr]:
    """
    Resolve host to connectable addresses.

    Returns:
        List of (family, type, proto, sockaddr) in resolver order

    Raises:
        ResolutionFailed: If the name cannot be resolved
    """
    try:
        infos = socket.getaddrinfo(host, port, socket.AF_UNSPEC, socket.SOCK_STREAM, socket.IPPROTO_TCP)
    except (socket.gaierror, UnicodeError) as e:
        raise ResolutionFailed(f"Cannot resolve {host}: {e}") from e
    if not infos:
        raise ResolutionFailed(f"No addresses for {host}")
    return [(family, socktype, proto, sockaddr) for family, socktype, proto, _, sockaddr in infos]


class SocketConnection:
    """Connection backed by a connected TCP socket."""

    def __init__(self, sock: socket.socket):
        self._sock = sock

    def send(self, data: bytes) -> None:
        try:
            self._sock.sendall(data)
        except OSError as e:
            raise SendFailed(f"Request send failed: {e}") from e

    def recv(self, max_bytes: int) -> bytes:
        return self._sock.recv(max_bytes)

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self) -> SocketConnection:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def open_connection(host: str, port: int, timeout_s: Optional[float] = None) -> SocketConnection:
    """
    Resolve host and connect to the first address that accepts.

    Args:
        host: Host name or address literal
        port: TCP port
        timeout_s: Connect and per-read timeout; None blocks forever

    Raises:
        ResolutionFailed: If host cannot be resolved
        ConnectFailed: If no resolved address accepts the connection
    """
    addresses = resolve_host(host, port)
    last_error: Optional[OSError] = None

    for family, socktype, proto, sockaddr in addresses:
        sock = None
        try:
            sock = socket.socket(family, socktype, proto)
            sock.settimeout(timeout_s)
            sock.connect(sockaddr)
        except OSError as e:
            logger.debug(f"Connect to {sockaddr} failed: {e}")
            if sock is not None:
                sock.close()
            last_error = e
            continue
        logger.debug(f"Connected to {host}:{port} via {sockaddr}")
        return SocketConnection(sock)

    raise ConnectFailed(f"Unable to connect to {host}:{port}: {last_error}") from last_error
