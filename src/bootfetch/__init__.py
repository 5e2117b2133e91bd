"""
bootfetch - self-verifying bootstrap loader.

Fetches a payload over plain HTTP, verifies it against an expected digest and
promotes it to a stable name only when the digest matches.
"""
from __future__ import annotations

__version__ = "0.1.0"

from .cycle import CycleResult, run_cycle
from .digest import Digest, digest_file, hex_encode
from .errors import ErrorKind, FetchError
from .fetcher import FetchState, HttpFetcher, fetch
from .gate import verify_and_promote
from .models import FetchTarget
from .settings import Settings, create_settings_from_env

__all__ = [
    "CycleResult",
    "Digest",
    "ErrorKind",
    "FetchError",
    "FetchState",
    "FetchTarget",
    "HttpFetcher",
    "Settings",
    "create_settings_from_env",
    "digest_file",
    "fetch",
    "hex_encode",
    "run_cycle",
    "verify_and_promote",
    "__version__",
]
