"""
Operations Facade - Application service layer.

Provides a clean interface between CLI and the fetch-verify runtime,
centralizing command orchestration and configuration while keeping CLI
commands thin and testable.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..cycle import CycleResult, run_cycle
from ..digest import DEFAULT_ALGORITHM, digest_file, hex_encode
from ..fetcher import HttpFetcher
from ..gate import verify_file
from ..progress import ProgressCallback
from ..settings import Settings
from ..transport import ConnectionFactory, open_connection


@dataclass(frozen=True)
class OpsConfig:
    """
    Configuration for Operations facade.

    Centralizes output policy so commands don't each decide it.
    """
    ci: bool = False              # Running in CI environment (no progress output)
    verbose: bool = False         # Show detailed output


class Operations:
    """
    Application service facade for CLI operations.

    One method per CLI verb. The connection factory is injected so tests can
    replay scripted responses without a network. Exceptions bubble up for
    central exit-code mapping.
    """

    def __init__(self, config: OpsConfig, settings: Optional[Settings] = None,
                 connect: ConnectionFactory = open_connection,
                 progress: Optional[ProgressCallback] = None):
        """
        Initialize Operations facade.

        Args:
            config: Output configuration
            settings: Cycle settings (required for fetch only)
            connect: Connection factory used by the fetcher
            progress: Percentage callback for the transfer
        """
        self.cfg = config
        self.settings = settings
        self.connect = connect
        self.progress = progress

    def fetch(self) -> CycleResult:
        """
        Run one fetch-verify-promote cycle with the configured settings.

        Raises:
            ValueError: If no settings were configured
            FetchError: On any fatal condition of the cycle
        """
        if self.settings is None:
            raise ValueError("Settings required for fetch operations")

        s = self.settings
        fetcher = HttpFetcher(
            connect=self.connect,
            read_size=s.read_size,
            timeout_s=s.timeout_s,
            max_header_bytes=s.max_header_bytes,
            strict_status=s.strict_status,
            progress=None if self.cfg.ci else self.progress,
        )
        return run_cycle(s.to_target(), fetcher)

    def hash(self, path: Union[str, Path], algorithm: str = DEFAULT_ALGORITHM) -> str:
        """Return the hex digest of a local file."""
        return hex_encode(digest_file(path, algorithm))

    def verify(self, path: Union[str, Path], expected_digest: str,
               algorithm: str = DEFAULT_ALGORITHM) -> str:
        """
        Verify a local artifact in place.

        Returns:
            The matching hex digest

        Raises:
            HashMismatch: If the file does not match
            FileIOFailed: If the file cannot be read
        """
        return verify_file(path, expected_digest, algorithm)
