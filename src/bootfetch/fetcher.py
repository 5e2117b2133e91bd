"""
HTTP fetcher: one GET over one connection, body streamed to a temp file.

The fetcher owns the connection for the duration of a single request. It
sends the request verbatim, buffers until the header boundary, then writes
exactly Content-Length body bytes to the target's temp path. Every failure
removes the temp file and is raised as a tagged FetchError; nothing is
retried here.
"""
from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .digest import DEFAULT_ALGORITHM
from .errors import (
    ConnectFailed,
    FetchError,
    FileIOFailed,
    MalformedResponse,
    TruncatedBody,
)
from .framing import DEFAULT_MAX_HEADER_BYTES, HeaderAccumulator, TransferState, build_request
from .gate import discard
from .models import FetchResult, FetchTarget
from .progress import ProgressCallback, ProgressReporter
from .transport import Connection, ConnectionFactory, open_connection

logger = logging.getLogger(__name__)

__all__ = ["FetchState", "HttpFetcher", "fetch", "DEFAULT_READ_SIZE", "DEFAULT_TIMEOUT_S"]

DEFAULT_READ_SIZE = 64 * 1024  # 64 KiB
DEFAULT_TIMEOUT_S = 30.0


class FetchState(str, Enum):
    """States of one fetch-verify cycle. Transitions only move forward."""
    INIT = "init"
    RESOLVING = "resolving"
    CONNECTING = "connecting"
    SENDING_REQUEST = "sending_request"
    RECEIVING_HEADERS = "receiving_headers"
    RECEIVING_BODY = "receiving_body"
    VERIFYING = "verifying"
    PROMOTED = "promoted"
    REJECTED = "rejected"


_ORDER = list(FetchState)


class HttpFetcher:
    """
    Fetch one payload into its temp file.

    Instances are single-use per cycle: the state history starts at INIT and
    ends at REJECTED or, once the integrity gate has run, PROMOTED.
    """

    def __init__(
        self,
        *,
        connect: ConnectionFactory = open_connection,
        read_size: int = DEFAULT_READ_SIZE,
        timeout_s: Optional[float] = DEFAULT_TIMEOUT_S,
        max_header_bytes: int = DEFAULT_MAX_HEADER_BYTES,
        strict_status: bool = False,
        progress: Optional[ProgressCallback] = None,
    ):
        if read_size <= 0:
            raise ValueError(f"read_size must be positive, got {read_size}")
        self._connect = connect
        self.read_size = read_size
        self.timeout_s = timeout_s
        self.max_header_bytes = max_header_bytes
        self.strict_status = strict_status
        self.progress = progress
        self.state = FetchState.INIT
        self.history: List[FetchState] = [FetchState.INIT]
        self.transfer: Optional[TransferState] = None
        self.reporter: Optional[ProgressReporter] = None

    def advance(self, state: FetchState) -> None:
        """Move to a later state; moving backwards is a programming error."""
        if self.state in (FetchState.PROMOTED, FetchState.REJECTED):
            raise RuntimeError(f"Cycle already finished in state {self.state.value}")
        if state != FetchState.REJECTED and _ORDER.index(state) <= _ORDER.index(self.state):
            raise RuntimeError(f"Illegal transition {self.state.value} -> {state.value}")
        logger.debug(f"{self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def reject(self, error: FetchError) -> None:
        logger.debug(f"Rejected in state {self.state.value}: {error.kind.value}")
        self.advance(FetchState.REJECTED)

    def fetch(self, target: FetchTarget) -> FetchResult:
        """
        Download target into target.temp_path.

        Returns:
            FetchResult describing the fully written temp file

        Raises:
            ResolutionFailed, ConnectFailed, SendFailed, MalformedResponse,
            TruncatedBody, FileIOFailed
        """
        temp_path = Path(target.temp_path)
        connection: Optional[Connection] = None
        try:
            self.advance(FetchState.RESOLVING)
            try:
                connection = self._connect(target.host, target.port, self.timeout_s)
            except ConnectFailed:
                self.advance(FetchState.CONNECTING)
                raise
            self.advance(FetchState.CONNECTING)

            try:
                temp_path.parent.mkdir(parents=True, exist_ok=True)
                out = open(temp_path, "wb")
            except OSError as e:
                raise FileIOFailed(f"Cannot create {temp_path}: {e}") from e

            with out:
                self.advance(FetchState.SENDING_REQUEST)
                connection.send(build_request(target.host, target.path))
                result = self._receive(connection, out, target)
            logger.info(
                f"Fetched {result.declared_length} bytes from {target.host}:{target.port}{target.path}"
            )
            return result
        except FetchError as e:
            discard(temp_path)
            self.reject(e)
            raise
        except BaseException:
            discard(temp_path)
            raise
        finally:
            if connection is not None:
                connection.close()

    def _read(self, connection: Connection, during_body: bool) -> bytes:
        try:
            return connection.recv(self.read_size)
        except OSError as e:
            if during_body:
                raise TruncatedBody(f"Read failed mid-body: {e}") from e
            raise MalformedResponse(f"Read failed before header boundary: {e}") from e

    def _write(self, out, data: bytes) -> None:
        if not data:
            return
        try:
            out.write(data)
        except OSError as e:
            raise FileIOFailed(f"Write to {out.name} failed: {e}") from e

    def _receive(self, connection: Connection, out, target: FetchTarget) -> FetchResult:
        self.advance(FetchState.RECEIVING_HEADERS)
        accumulator = HeaderAccumulator(self.max_header_bytes)
        parsed = None
        while parsed is None:
            data = self._read(connection, during_body=False)
            if not data:
                raise MalformedResponse(
                    f"Connection closed after {accumulator.buffered} bytes, before header boundary"
                )
            parsed = accumulator.feed(data)
        head, first_body = parsed

        if self.strict_status and head.status_code != 200:
            raise MalformedResponse(f"Unexpected status: {head.status_line}")
        if head.status_code is None or not 200 <= head.status_code < 300:
            logger.warning(f"Accepting response with status line {head.status_line!r}")

        self.advance(FetchState.RECEIVING_BODY)
        transfer = TransferState.for_length(head.content_length, head.header_bytes)
        self.transfer = transfer
        logger.debug(f"Content-Length {head.content_length}, header {head.header_bytes} bytes")

        reporter = ProgressReporter(self.progress)
        self.reporter = reporter
        reporter.start(transfer)

        self._write(out, transfer.accept(first_body))
        reporter.observe(transfer)

        while not transfer.complete:
            data = self._read(connection, during_body=True)
            if not data:
                raise TruncatedBody(
                    f"Connection closed with {transfer.bytes_of_body_remaining} of "
                    f"{transfer.declared_body_length} body bytes missing",
                    expected=transfer.declared_body_length,
                    received=transfer.bytes_of_body_received,
                )
            self._write(out, transfer.accept(data))
            reporter.observe(transfer)

        # Body must be on disk before the gate can rename it into place
        try:
            out.flush()
            os.fsync(out.fileno())
        except OSError as e:
            raise FileIOFailed(f"Flush of {out.name} failed: {e}") from e

        return FetchResult(
            temp_path=Path(target.temp_path),
            status_line=head.status_line,
            status_code=head.status_code,
            declared_length=transfer.declared_body_length,
            bytes_received_total=transfer.bytes_received_total,
        )


def fetch(
    host: str,
    port: int,
    path: Optional[str],
    expected_digest_hex: str,
    *,
    final_path: str,
    algorithm: str = DEFAULT_ALGORITHM,
    **fetcher_options,
) -> FetchResult:
    """
    Fetch host:port/path into "<final_path>.tmp".

    Convenience wrapper that validates the target and runs a fresh HttpFetcher.
    Verification and promotion are left to the integrity gate.
    """
    target = FetchTarget(
        host=host,
        port=port,
        path=path,
        expected_digest=expected_digest_hex,
        algorithm=algorithm,
        final_path=final_path,
    )
    return HttpFetcher(**fetcher_options).fetch(target)
