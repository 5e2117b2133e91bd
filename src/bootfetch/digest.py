"""
Digest engine for bootfetch.

Streams arbitrary bytes through a hashlib algorithm and produces a fixed-size
digest with a canonical lowercase hex form. hashlib is treated as the trusted
primitive; this module only adds the streaming contract (finalize once,
chunking invariance) and file hashing in bounded chunks.
"""
from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .errors import FileIOFailed

__all__ = [
    "DEFAULT_ALGORITHM",
    "FILE_CHUNK_SIZE",
    "Digest",
    "DigestContext",
    "init_digest",
    "update_digest",
    "finalize_digest",
    "hex_encode",
    "digest_bytes",
    "digest_file",
    "digest_size",
    "is_canonical_hex",
]

DEFAULT_ALGORITHM = "sha512"
FILE_CHUNK_SIZE = 32 * 1024  # 32 KiB

_HEX_RE = re.compile(r"[0-9a-f]+")

PathLike = Union[str, Path]


def digest_size(algorithm: str = DEFAULT_ALGORITHM) -> int:
    """
    Return the digest size in bytes for a hashlib algorithm.

    Raises:
        ValueError: If the algorithm is unknown or has a variable size
    """
    try:
        size = hashlib.new(algorithm).digest_size
    except (ValueError, TypeError) as e:
        raise ValueError(f"Unsupported digest algorithm: {algorithm}") from e
    if size <= 0:
        # shake_* report 0 and need an explicit length
        raise ValueError(f"Digest algorithm has no fixed size: {algorithm}")
    return size


def is_canonical_hex(value: str, algorithm: str = DEFAULT_ALGORITHM) -> bool:
    """Check that value is lowercase hex of exactly 2 x digest_size characters."""
    return len(value) == 2 * digest_size(algorithm) and _HEX_RE.fullmatch(value) is not None


@dataclass(frozen=True)
class Digest:
    """
    A finalized digest.

    Invariants:
    - len(value) == digest_size(algorithm)
    - hex is lowercase and exactly 2 x len(value) characters
    """
    algorithm: str
    value: bytes

    def __post_init__(self) -> None:
        expected = digest_size(self.algorithm)
        if len(self.value) != expected:
            raise ValueError(
                f"{self.algorithm} digest must be {expected} bytes, got {len(self.value)}"
            )

    @property
    def size(self) -> int:
        return len(self.value)

    @property
    def hex(self) -> str:
        return hex_encode(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Digest):
            return NotImplemented
        return self.hex == other.hex

    def __hash__(self) -> int:
        return hash(self.hex)


class DigestContext:
    """
    Streaming digest state.

    Wraps a hashlib object and enforces that finalize is called exactly once;
    after finalization the context rejects further use.
    """

    def __init__(self, algorithm: str = DEFAULT_ALGORITHM):
        digest_size(algorithm)
        self.algorithm = algorithm
        self._hash = hashlib.new(algorithm)
        self._finalized = False
        self.bytes_hashed = 0

    @property
    def finalized(self) -> bool:
        return self._finalized

    def update(self, data: bytes) -> None:
        if self._finalized:
            raise ValueError("Digest context already finalized")
        self._hash.update(data)
        self.bytes_hashed += len(data)

    def finalize(self) -> Digest:
        if self._finalized:
            raise ValueError("Digest context already finalized")
        self._finalized = True
        value = self._hash.digest()
        self._hash = None
        return Digest(algorithm=self.algorithm, value=value)


def init_digest(algorithm: str = DEFAULT_ALGORITHM) -> DigestContext:
    """Create a fresh streaming digest context."""
    return DigestContext(algorithm)


def update_digest(context: DigestContext, data: bytes) -> None:
    """
    Feed a chunk into the digest.

    May be called any number of times with chunks of any size; the result is
    identical to a single call over the concatenation.
    """
    context.update(data)


def finalize_digest(context: DigestContext) -> Digest:
    """Finalize the context and return its digest. Invalidates the context."""
    return context.finalize()


def hex_encode(digest: Digest) -> str:
    """Encode a digest as its canonical lowercase hex string."""
    return digest.value.hex()


def digest_bytes(data: bytes, algorithm: str = DEFAULT_ALGORITHM) -> Digest:
    """Digest an in-memory byte string."""
    ctx = init_digest(algorithm)
    update_digest(ctx, data)
    return finalize_digest(ctx)


def digest_file(
    path: PathLike,
    algorithm: str = DEFAULT_ALGORITHM,
    chunk_size: int = FILE_CHUNK_SIZE,
) -> Digest:
    """
    Digest a file by streaming it in bounded chunks.

    Args:
        path: File to hash
        algorithm: hashlib algorithm name
        chunk_size: Read size; does not affect the result

    Returns:
        Digest of the full file content

    Raises:
        FileIOFailed: If the file cannot be opened or read
        ValueError: If chunk_size is not positive or algorithm is unknown
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    ctx = init_digest(algorithm)
    try:
        with open(path, "rb") as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    break
                update_digest(ctx, chunk)
    except OSError as e:
        raise FileIOFailed(f"Cannot read {path}: {e}") from e
    return finalize_digest(ctx)
