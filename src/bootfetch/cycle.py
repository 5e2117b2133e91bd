"""
Fetch-verify cycle.

Runs the fetcher and the integrity gate back to back for one target. Digesting
starts only after the whole body is on disk and the temp file is closed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .errors import FetchError
from .fetcher import FetchState, HttpFetcher
from .gate import verify_and_promote
from .models import FetchResult, FetchTarget, PromoteResult

logger = logging.getLogger(__name__)

__all__ = ["CycleResult", "run_cycle"]


@dataclass(frozen=True)
class CycleResult:
    """Outcome of a promoted fetch-verify cycle."""
    target: FetchTarget
    fetched: FetchResult
    promoted: PromoteResult


def run_cycle(target: FetchTarget, fetcher: Optional[HttpFetcher] = None) -> CycleResult:
    """
    Fetch target, verify it and promote it to its final name.

    Args:
        target: Validated fetch target
        fetcher: Configured single-use fetcher (default settings if None)

    Returns:
        CycleResult for the promoted artifact

    Raises:
        FetchError: Any fatal condition; the final artifact is left as it was
    """
    fetcher = fetcher or HttpFetcher()
    fetched = fetcher.fetch(target)

    fetcher.advance(FetchState.VERIFYING)
    try:
        promoted = verify_and_promote(
            fetched.temp_path,
            target.final_path,
            target.expected_digest,
            target.algorithm,
        )
    except FetchError as e:
        fetcher.reject(e)
        raise

    fetcher.advance(FetchState.PROMOTED)
    logger.debug(f"Cycle states: {' -> '.join(s.value for s in fetcher.history)}")
    return CycleResult(target=target, fetched=fetched, promoted=promoted)
