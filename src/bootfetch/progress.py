"""
Progress reporting for body transfers.

Percentages are a pure function of the transfer state; the reporter only
decides whether a value is new enough to emit. Reporting never influences the
transfer: the fetcher writes bytes first and reports afterwards.
"""
from __future__ import annotations

from typing import Callable, List, Optional

from .framing import TransferState

__all__ = ["percent_complete", "ProgressReporter", "ProgressCallback"]

ProgressCallback = Callable[[int], None]


def percent_complete(state: TransferState) -> int:
    """
    Percentage of the declared body received, 0-100.

    100 - floor(remaining / declared * 100); a zero-length body is 100.
    """
    declared = state.declared_body_length
    if declared <= 0:
        return 100
    return 100 - (state.bytes_of_body_remaining * 100) // declared


class ProgressReporter:
    """
    Emits coarse percentage signals without repeats.

    Emitted values are non-decreasing because remaining bytes only decrease.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self.callback = callback
        self.last_emitted: Optional[int] = None
        self.emitted: List[int] = []

    def _emit(self, percent: int) -> None:
        self.last_emitted = percent
        self.emitted.append(percent)
        if self.callback:
            self.callback(percent)

    def start(self, state: TransferState) -> None:
        """Signal the start of the body (always emits 0 first)."""
        if self.last_emitted is None:
            self._emit(0)
        self.observe(state)

    def observe(self, state: TransferState) -> Optional[int]:
        """
        Emit the current percentage if it differs from the last one.

        Returns:
            The emitted value, or None if nothing was emitted
        """
        percent = percent_complete(state)
        if percent == self.last_emitted:
            return None
        self._emit(percent)
        return percent
