"""
End-to-end fetch-verify cycles against the fake network.
"""
from __future__ import annotations

from pathlib import Path

import pytest

from bootfetch.cycle import run_cycle
from bootfetch.errors import HashMismatch, TruncatedBody
from bootfetch.fetcher import FetchState, HttpFetcher

from tests.helpers.responses import HOST, http_response


def test_cycle_promotes_payload(served, target, payload, payload_digest):
    fetcher = HttpFetcher(connect=served)

    result = run_cycle(target, fetcher)

    final = Path(target.final_path)
    assert final.read_bytes() == payload
    assert not Path(target.temp_path).exists()
    assert result.promoted.digest == payload_digest
    assert result.fetched.declared_length == len(payload)
    assert fetcher.history == [
        FetchState.INIT,
        FetchState.RESOLVING,
        FetchState.CONNECTING,
        FetchState.SENDING_REQUEST,
        FetchState.RECEIVING_HEADERS,
        FetchState.RECEIVING_BODY,
        FetchState.VERIFYING,
        FetchState.PROMOTED,
    ]


def test_tampered_payload_rejected(network, target, payload):
    tampered = bytearray(payload)
    tampered[-1] ^= 0xFF
    network.serve(HOST, http_response(bytes(tampered)))
    fetcher = HttpFetcher(connect=network)

    with pytest.raises(HashMismatch):
        run_cycle(target, fetcher)

    assert not Path(target.temp_path).exists()
    assert not Path(target.final_path).exists()
    assert fetcher.history[-2:] == [FetchState.VERIFYING, FetchState.REJECTED]


def test_failed_cycle_keeps_previous_artifact(network, target, payload):
    Path(target.final_path).write_bytes(b"previous stage")
    network.serve(HOST, http_response(payload[:10], content_length=len(payload)))

    with pytest.raises(TruncatedBody):
        run_cycle(target, HttpFetcher(connect=network))

    assert Path(target.final_path).read_bytes() == b"previous stage"
    assert not Path(target.temp_path).exists()


def test_repeat_cycle_is_idempotent(served, target, payload):
    run_cycle(target, HttpFetcher(connect=served))
    run_cycle(target, HttpFetcher(connect=served))

    assert Path(target.final_path).read_bytes() == payload
    assert not Path(target.temp_path).exists()
    assert len(served.connections) == 2


def test_fetcher_is_single_use(served, target):
    fetcher = HttpFetcher(connect=served)
    run_cycle(target, fetcher)
    with pytest.raises(RuntimeError):
        run_cycle(target, fetcher)
