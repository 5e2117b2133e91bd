"""
Settings and configuration for bootfetch.

Centralizes configuration values and provides validation with fail-fast behavior.
Replaces process-wide constants (expected hash, hash size) with explicit values
that are passed into each fetch-verify cycle.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .digest import DEFAULT_ALGORITHM, digest_size, is_canonical_hex
from .fetcher import DEFAULT_READ_SIZE, DEFAULT_TIMEOUT_S
from .framing import DEFAULT_MAX_HEADER_BYTES
from .models import FetchTarget

__all__ = ["Settings", "create_settings_from_env", "DEFAULT_OUTPUT"]

DEFAULT_OUTPUT = "stage"


@dataclass(frozen=True)
class Settings:
    """
    Configuration for one fetch-verify cycle.

    Target:
        host: Host to fetch from (also sent as the Host header)
        expected_digest: Lowercase hex digest of the only acceptable payload
        port: TCP port (plain HTTP)
        path: Request path; None means "/<expected_digest>"
        output: Final stable name of the promoted payload
        algorithm: hashlib algorithm of expected_digest

    Transfer:
        timeout_s: Connect and per-read timeout in seconds
        read_size: Maximum bytes per read
        max_header_bytes: Upper bound on the response header block
        strict_status: Reject responses whose status is not 200
    """
    host: str
    expected_digest: str
    port: int = 80
    path: Optional[str] = None
    output: str = DEFAULT_OUTPUT
    algorithm: str = DEFAULT_ALGORITHM

    timeout_s: float = DEFAULT_TIMEOUT_S
    read_size: int = DEFAULT_READ_SIZE
    max_header_bytes: int = DEFAULT_MAX_HEADER_BYTES
    strict_status: bool = False

    def __post_init__(self):
        """Validate settings on construction."""
        if not self.host:
            raise ValueError("host is required")

        if not self.expected_digest:
            raise ValueError("expected_digest is required")

        # Raises ValueError for unknown algorithms
        size = digest_size(self.algorithm)
        if not is_canonical_hex(self.expected_digest, self.algorithm):
            raise ValueError(
                f"expected_digest must be {2 * size} lowercase hex characters for {self.algorithm}"
            )

        if not 1 <= self.port <= 65535:
            raise ValueError(f"port must be in 1..65535, got {self.port}")

        if not self.output:
            raise ValueError("output is required")

        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {self.timeout_s}")

        if self.read_size <= 0:
            raise ValueError(f"read_size must be positive, got {self.read_size}")

        if self.max_header_bytes <= 4:
            raise ValueError(f"max_header_bytes must be greater than 4, got {self.max_header_bytes}")

    def to_target(self) -> FetchTarget:
        """Build the validated fetch target for this configuration."""
        return FetchTarget(
            host=self.host,
            port=self.port,
            path=self.path,
            expected_digest=self.expected_digest,
            algorithm=self.algorithm,
            final_path=self.output,
        )


def create_settings_from_env(**overrides) -> Settings:
    """
    Load settings from environment variables.

    Keyword overrides (Settings field names) take precedence over the
    environment; None values are ignored so unset CLI options fall through.

    Environment Variables:
        - BOOTFETCH_HOST (required)
        - BOOTFETCH_EXPECTED_DIGEST (required)
        - BOOTFETCH_PORT (default: 80)
        - BOOTFETCH_PATH (default: /<expected digest>)
        - BOOTFETCH_OUTPUT (default: stage)
        - BOOTFETCH_ALGORITHM (default: sha512)
        - BOOTFETCH_TIMEOUT (default: 30.0)
        - BOOTFETCH_READ_SIZE (default: 65536)
        - BOOTFETCH_MAX_HEADER_BYTES (default: 65536)
        - BOOTFETCH_STRICT_STATUS (default: false)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid or required values missing

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    return _load_settings_impl({k: v for k, v in overrides.items() if v is not None})


def _load_settings_impl(overrides: Dict[str, Any]) -> Settings:
    """Internal implementation of settings loading."""
    def str_to_bool(value: str) -> bool:
        return value.lower() in ('true', '1', 'yes', 'on')

    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        return float(value) if value else default

    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        return int(value) if value else default

    values: Dict[str, Any] = dict(
        host=os.getenv("BOOTFETCH_HOST"),
        expected_digest=os.getenv("BOOTFETCH_EXPECTED_DIGEST"),
        port=get_int("BOOTFETCH_PORT", 80),
        path=os.getenv("BOOTFETCH_PATH") or None,
        output=os.getenv("BOOTFETCH_OUTPUT") or DEFAULT_OUTPUT,
        algorithm=os.getenv("BOOTFETCH_ALGORITHM") or DEFAULT_ALGORITHM,
        timeout_s=get_float("BOOTFETCH_TIMEOUT", DEFAULT_TIMEOUT_S),
        read_size=get_int("BOOTFETCH_READ_SIZE", DEFAULT_READ_SIZE),
        max_header_bytes=get_int("BOOTFETCH_MAX_HEADER_BYTES", DEFAULT_MAX_HEADER_BYTES),
        strict_status=str_to_bool(os.getenv("BOOTFETCH_STRICT_STATUS", "false")),
    )
    values.update(overrides)

    if not values["host"]:
        raise ValueError("BOOTFETCH_HOST environment variable is required")
    if not values["expected_digest"]:
        raise ValueError("BOOTFETCH_EXPECTED_DIGEST environment variable is required")

    return Settings(**values)
