"""
Fetch-verify error classes.

Provides a clear taxonomy of the fatal conditions that can end a
fetch-verify cycle. Socket and filesystem exceptions are mapped onto these
classes so callers see one consistent interface regardless of where in the
cycle the failure happened.
"""
from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Tag identifying which step of the cycle failed."""
    RESOLUTION_FAILED = "ResolutionFailed"
    CONNECT_FAILED = "ConnectFailed"
    SEND_FAILED = "SendFailed"
    MALFORMED_RESPONSE = "MalformedResponse"
    TRUNCATED_BODY = "TruncatedBody"
    HASH_MISMATCH = "HashMismatch"
    PROMOTION_FAILED = "PromotionFailed"
    FILE_IO_FAILED = "FileIOFailed"


class FetchError(Exception):
    """
    Base class for all fetch-verify errors.

    Every subclass carries its ErrorKind so the CLI layer can map it to an
    exit code without inspecting messages.
    """
    kind: ErrorKind

    def __str__(self) -> str:
        message = super().__str__()
        kind = getattr(self, "kind", None)
        if kind is None:
            return message
        return f"{kind.value}: {message}" if message else kind.value


class ResolutionFailed(FetchError):
    """
    Host name could not be resolved.

    Raised when getaddrinfo fails or returns no usable address.
    """
    kind = ErrorKind.RESOLUTION_FAILED


class ConnectFailed(FetchError):
    """
    No TCP connection could be established.

    Raised when every resolved address refused or timed out.
    """
    kind = ErrorKind.CONNECT_FAILED


class SendFailed(FetchError):
    """The request bytes could not be sent."""
    kind = ErrorKind.SEND_FAILED


class MalformedResponse(FetchError):
    """
    Response framing could not be understood.

    Raised when:
    - the connection ends before the CRLFCRLF header boundary
    - the header block exceeds the configured limit
    - Content-Length is missing or not a base-10 integer
    - strict status checking is on and the status is not 200
    """
    kind = ErrorKind.MALFORMED_RESPONSE


class TruncatedBody(FetchError):
    """
    Connection closed before Content-Length body bytes arrived.
    """
    kind = ErrorKind.TRUNCATED_BODY

    def __init__(self, message: str, expected: int | None = None, received: int | None = None):
        super().__init__(message)
        self.expected = expected
        self.received = received


class HashMismatch(FetchError):
    """
    Downloaded content digest does not match the expected digest.
    """
    kind = ErrorKind.HASH_MISMATCH

    def __init__(self, message: str, expected: str | None = None, actual: str | None = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class PromotionFailed(FetchError):
    """The verified temp file could not be renamed to its final name."""
    kind = ErrorKind.PROMOTION_FAILED


class FileIOFailed(FetchError):
    """Open, read or write on a local path failed."""
    kind = ErrorKind.FILE_IO_FAILED


__all__ = [
    "ErrorKind",
    "FetchError",
    "ResolutionFailed",
    "ConnectFailed",
    "SendFailed",
    "MalformedResponse",
    "TruncatedBody",
    "HashMismatch",
    "PromotionFailed",
    "FileIOFailed",
]
