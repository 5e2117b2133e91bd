"""
Integrity gate: verify a downloaded artifact and promote it atomically.

The temp file is re-hashed from disk after the transfer has finished, compared
with the expected digest, and only then renamed over the final name. The
rename is the single commit point; a failed cycle never touches a previously
promoted artifact.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Union

from .digest import DEFAULT_ALGORITHM, digest_file, hex_encode
from .errors import FileIOFailed, HashMismatch, PromotionFailed
from .models import PromoteResult

logger = logging.getLogger(__name__)

__all__ = ["verify_and_promote", "verify_file", "discard"]

PathLike = Union[str, Path]


def discard(path: PathLike) -> None:
    """
    Remove a temp artifact if it exists.

    Cleanup problems are logged, never raised, so the error that triggered
    the cleanup is the one the caller sees.
    """
    try:
        Path(path).unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Failed to remove temp artifact {path}: {e}")


def verify_file(path: PathLike, expected_digest_hex: str, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """
    Check an artifact against its expected digest without moving it.

    Returns:
        The actual hex digest (equal to expected_digest_hex)

    Raises:
        FileIOFailed: If the file cannot be read
        HashMismatch: If the digest differs
    """
    actual = hex_encode(digest_file(path, algorithm))
    # Case-sensitive against the canonical lowercase form
    if actual != expected_digest_hex:
        raise HashMismatch(
            f"Hash did not match for {path}: expected {expected_digest_hex}, got {actual}",
            expected=expected_digest_hex,
            actual=actual,
        )
    return actual


def verify_and_promote(
    temp_path: PathLike,
    final_path: PathLike,
    expected_digest_hex: str,
    algorithm: str = DEFAULT_ALGORITHM,
) -> PromoteResult:
    """
    Verify temp_path and rename it to final_path.

    Args:
        temp_path: Fully written, closed download
        final_path: Stable name for the verified payload
        expected_digest_hex: Canonical lowercase hex digest
        algorithm: hashlib algorithm name

    Returns:
        PromoteResult for the promoted artifact

    Raises:
        HashMismatch: Digest differs; temp file removed, final untouched
        PromotionFailed: Rename failed; temp file removed
        FileIOFailed: Temp file could not be read; temp file removed
    """
    temp_path = Path(temp_path)
    final_path = Path(final_path)

    try:
        actual = verify_file(temp_path, expected_digest_hex, algorithm)
    except (HashMismatch, FileIOFailed) as e:
        logger.error(f"Rejecting {temp_path}: {e}")
        discard(temp_path)
        raise

    try:
        size = temp_path.stat().st_size
        if final_path.exists() and final_path.is_dir():
            raise IsADirectoryError(f"final path is a directory: {final_path}")
        os.replace(temp_path, final_path)
    except OSError as e:
        discard(temp_path)
        raise PromotionFailed(f"Cannot promote {temp_path} to {final_path}: {e}") from e

    logger.info(f"Promoted {final_path} ({size} bytes, {algorithm} {actual[:16]}...)")
    return PromoteResult(final_path=final_path, digest=actual, size=size)
