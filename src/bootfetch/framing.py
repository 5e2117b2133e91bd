"""
HTTP/1.1 response framing over a raw byte stream.

Only what the bootstrap protocol needs: build the single GET request, find the
CRLFCRLF header boundary, pull Content-Length out of the header block, and
account for how many body bytes are still owed. Header parsing follows
the simple rules of the bootstrap chain: the first case-insensitive
occurrence of "Content-Length" wins and its value runs to the next CR.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import MalformedResponse

__all__ = [
    "HEADER_BOUNDARY",
    "DEFAULT_MAX_HEADER_BYTES",
    "ResponseHead",
    "TransferState",
    "HeaderAccumulator",
    "build_request",
    "parse_head",
    "parse_content_length",
    "parse_status_code",
]

HEADER_BOUNDARY = b"\r\n\r\n"
DEFAULT_MAX_HEADER_BYTES = 64 * 1024
_CONTENT_LENGTH = b"content-length"


def build_request(host: str, path: str) -> bytes:
    """
    Build the one request the fetcher ever sends.

    No body, no Connection header, nothing but the Host line.

    Raises:
        ValueError: If host or path would break the request line
    """
    for name, value in (("host", host), ("path", path)):
        if not value or any(c in value for c in "\r\n "):
            raise ValueError(f"Invalid {name} for request line: {value!r}")
    return f"GET {path} HTTP/1.1\r\nHost: {host}\r\n\r\n".encode("ascii")


def parse_content_length(head: bytes) -> int:
    """
    Extract the Content-Length value from a header block.

    The value is the text between the header name and the next CR, with the
    colon separator and surrounding blanks removed. It must be base-10 digits.

    Raises:
        MalformedResponse: If the header is missing or its value is not an integer
    """
    start = head.lower().find(_CONTENT_LENGTH)
    if start < 0:
        raise MalformedResponse("Content-Length header not found")
    start += len(_CONTENT_LENGTH)

    end = head.find(b"\r", start)
    if end < 0:
        end = len(head)

    value = head[start:end].strip(b" \t")
    if value.startswith(b":"):
        value = value[1:].strip(b" \t")
    if not value or not value.isdigit():
        raise MalformedResponse(f"Invalid Content-Length value: {value[:32]!r}")
    return int(value)


def parse_status_code(status_line: str) -> Optional[int]:
    """Return the numeric status from 'HTTP/1.1 200 OK', or None if unparseable."""
    parts = status_line.split(" ", 2)
    if len(parts) < 2 or not parts[0].startswith("HTTP/") or not parts[1].isdigit():
        return None
    return int(parts[1])


@dataclass(frozen=True)
class ResponseHead:
    """Parsed header block of a response."""
    status_line: str
    status_code: Optional[int]
    content_length: int
    header_bytes: int  # header block length including the CRLFCRLF boundary


def parse_head(head: bytes) -> ResponseHead:
    """
    Parse a header block (without its trailing boundary).

    Raises:
        MalformedResponse: If Content-Length is missing or malformed
    """
    first_line = head.split(b"\r\n", 1)[0]
    status_line = first_line.decode("latin-1")
    return ResponseHead(
        status_line=status_line,
        status_code=parse_status_code(status_line),
        content_length=parse_content_length(head),
        header_bytes=len(head) + len(HEADER_BOUNDARY),
    )


class HeaderAccumulator:
    """
    Buffers raw reads until the header boundary has arrived.

    Reads may split the header anywhere (even inside the CRLFCRLF), so bytes
    are buffered up to max_header_bytes before the boundary is required.
    """

    def __init__(self, max_header_bytes: int = DEFAULT_MAX_HEADER_BYTES):
        if max_header_bytes <= len(HEADER_BOUNDARY):
            raise ValueError(f"max_header_bytes too small: {max_header_bytes}")
        self.max_header_bytes = max_header_bytes
        self._buffer = bytearray()

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def feed(self, data: bytes) -> Optional[Tuple[ResponseHead, bytes]]:
        """
        Add a read to the buffer.

        Returns:
            None while the boundary is still missing, otherwise the parsed
            head and whatever body bytes followed the boundary

        Raises:
            MalformedResponse: If the header block outgrows max_header_bytes
                or fails to parse
        """
        # Only rescan the tail that could contain a boundary split across reads
        search_from = max(0, len(self._buffer) - len(HEADER_BOUNDARY) + 1)
        self._buffer.extend(data)

        end = self._buffer.find(HEADER_BOUNDARY, search_from)
        if end < 0:
            if len(self._buffer) > self.max_header_bytes:
                raise MalformedResponse(
                    f"Header boundary not found within {self.max_header_bytes} bytes"
                )
            return None

        if end + len(HEADER_BOUNDARY) > self.max_header_bytes:
            raise MalformedResponse(f"Header block exceeds {self.max_header_bytes} bytes")

        head = parse_head(bytes(self._buffer[:end]))
        body = bytes(self._buffer[end + len(HEADER_BOUNDARY):])
        self._buffer.clear()
        return head, body


@dataclass
class TransferState:
    """
    Byte accounting for one response.

    Invariants:
    - all counters are non-negative
    - bytes_of_body_remaining only decreases and stops at exactly 0
    """
    declared_body_length: int
    bytes_of_body_remaining: int
    bytes_received_total: int = 0

    @classmethod
    def for_length(cls, declared_body_length: int, header_bytes: int = 0) -> TransferState:
        if declared_body_length < 0:
            raise ValueError(f"declared_body_length must be non-negative, got {declared_body_length}")
        return cls(
            declared_body_length=declared_body_length,
            bytes_of_body_remaining=declared_body_length,
            bytes_received_total=header_bytes,
        )

    @property
    def bytes_of_body_received(self) -> int:
        return self.declared_body_length - self.bytes_of_body_remaining

    @property
    def complete(self) -> bool:
        return self.bytes_of_body_remaining == 0

    def accept(self, chunk: bytes) -> bytes:
        """
        Account for body bytes and return the part that belongs to the body.

        Bytes past the declared length are counted as received but dropped.
        """
        self.bytes_received_total += len(chunk)
        take = min(len(chunk), self.bytes_of_body_remaining)
        self.bytes_of_body_remaining -= take
        return chunk[:take]
