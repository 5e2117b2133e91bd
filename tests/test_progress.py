"""
Tests for progress reporting.
"""
from __future__ import annotations

import pytest

from bootfetch.framing import TransferState
from bootfetch.operations.printers import ConsoleProgress
from bootfetch.progress import ProgressReporter, percent_complete


def _state(declared: int, remaining: int) -> TransferState:
    return TransferState(declared_body_length=declared, bytes_of_body_remaining=remaining)


@pytest.mark.parametrize("declared,remaining,expected", [
    (100, 100, 0),
    (100, 99, 1),
    (100, 0, 100),
    (3, 2, 34),      # 100 - floor(66.67)
    (3, 1, 67),      # 100 - floor(33.33)
    (1000, 1, 100),  # floor(0.1) == 0
    (0, 0, 100),
])
def test_percent_complete(declared, remaining, expected):
    assert percent_complete(_state(declared, remaining)) == expected


def test_reporter_skips_repeats():
    seen = []
    reporter = ProgressReporter(seen.append)
    state = TransferState.for_length(1000)
    reporter.start(state)
    for _ in range(1000):
        state.accept(b"x")
        reporter.observe(state)
    assert seen == list(range(0, 101))
    assert reporter.emitted == seen


@pytest.mark.parametrize("chunk", [1, 17, 333, 4096])
def test_emissions_monotonic_without_repeats(chunk):
    reporter = ProgressReporter()
    state = TransferState.for_length(10_000)
    reporter.start(state)
    while not state.complete:
        state.accept(b"x" * chunk)
        reporter.observe(state)
    values = reporter.emitted
    assert values[0] == 0
    assert values[-1] == 100
    assert all(a < b for a, b in zip(values, values[1:]))


def test_zero_length_body_reports_done():
    reporter = ProgressReporter()
    reporter.start(TransferState.for_length(0))
    assert reporter.emitted == [0, 100]


def test_observe_returns_none_for_repeat():
    reporter = ProgressReporter()
    state = TransferState.for_length(1000)
    reporter.start(state)
    assert reporter.observe(state) is None


def test_console_progress_format(capsys):
    progress = ConsoleProgress()
    for value in (0, 5, 10, 11, 20, 100):
        progress(value)
    progress.finish()
    assert capsys.readouterr().out == "0%.10%.20%100%\n"


def test_console_progress_quiet(capsys):
    progress = ConsoleProgress(quiet=True)
    progress(0)
    progress(100)
    progress.finish()
    assert capsys.readouterr().out == ""
