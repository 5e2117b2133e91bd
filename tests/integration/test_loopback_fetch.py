"""
Full fetch-verify cycles over real loopback sockets.

A small socketserver thread plays the stage server: it reads one request,
records it and replies with a scripted response.
"""
from __future__ import annotations

import hashlib
import socket
import socketserver
import threading
from pathlib import Path

import pytest

from bootfetch.cycle import run_cycle
from bootfetch.errors import ConnectFailed, HashMismatch, TruncatedBody
from bootfetch.fetcher import FetchState, HttpFetcher
from bootfetch.models import FetchTarget
from tests.helpers.responses import http_response

pytestmark = pytest.mark.integration


class _StageHandler(socketserver.BaseRequestHandler):

    def handle(self):
        request = b""
        while b"\r\n\r\n" not in request:
            data = self.request.recv(1024)
            if not data:
                break
            request += data
        self.server.requests.append(request)
        # Dribble the response so the client sees many small reads
        response = self.server.response
        for i in range(0, len(response), self.server.chunk_size):
            self.request.sendall(response[i:i + self.server.chunk_size])


class _StageServer(socketserver.ThreadingTCPServer):
    daemon_threads = True
    allow_reuse_address = True

    def __init__(self, response: bytes, chunk_size: int):
        super().__init__(("127.0.0.1", 0), _StageHandler)
        self.response = response
        self.chunk_size = chunk_size
        self.requests = []


@pytest.fixture
def stage_server():
    servers = []

    def start(response: bytes, chunk_size: int = 8192) -> _StageServer:
        server = _StageServer(response, chunk_size)
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.shutdown()
        server.server_close()


def _target(server, digest: str, final_path: Path) -> FetchTarget:
    host, port = server.server_address
    return FetchTarget(host=host, port=port, expected_digest=digest, final_path=str(final_path))


def test_full_cycle(stage_server, tmp_path, payload, payload_digest):
    server = stage_server(http_response(payload), chunk_size=1500)
    target = _target(server, payload_digest, tmp_path / "stage")
    fetcher = HttpFetcher(timeout_s=5.0)

    result = run_cycle(target, fetcher)

    assert Path(target.final_path).read_bytes() == payload
    assert result.promoted.digest == payload_digest
    assert fetcher.state == FetchState.PROMOTED
    assert server.requests == [
        f"GET /{payload_digest} HTTP/1.1\r\nHost: 127.0.0.1\r\n\r\n".encode()
    ]


def test_tampered_payload_not_promoted(stage_server, tmp_path, payload, payload_digest):
    server = stage_server(http_response(payload[::-1]))
    target = _target(server, payload_digest, tmp_path / "stage")

    with pytest.raises(HashMismatch):
        run_cycle(target, HttpFetcher(timeout_s=5.0))

    assert list(tmp_path.iterdir()) == []


def test_server_closes_early(stage_server, tmp_path, payload, payload_digest):
    server = stage_server(http_response(payload[:5000], content_length=len(payload)))
    target = _target(server, payload_digest, tmp_path / "stage")

    with pytest.raises(TruncatedBody):
        run_cycle(target, HttpFetcher(timeout_s=5.0))

    assert list(tmp_path.iterdir()) == []


def test_connection_refused(tmp_path):
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()

    target = FetchTarget(
        host="127.0.0.1",
        port=port,
        expected_digest=hashlib.sha512(b"").hexdigest(),
        final_path=str(tmp_path / "stage"),
    )
    with pytest.raises(ConnectFailed):
        run_cycle(target, HttpFetcher(timeout_s=2.0))
