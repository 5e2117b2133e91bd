"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and CLI command wrappers
to ensure consistent error handling across all Typer commands.
"""
from __future__ import annotations

import typer
from typing import Callable, TypeVar

from ..errors import FetchError

T = TypeVar('T')

# One code per fatal condition of a fetch-verify cycle
EXIT_CODES = {
    "ValidationError": 2,
    "ValueError": 2,
    "ResolutionFailed": 10,
    "ConnectFailed": 11,
    "SendFailed": 12,
    "MalformedResponse": 13,
    "TruncatedBody": 14,
    "HashMismatch": 15,
    "PromotionFailed": 16,
    "FileIOFailed": 17,
}

FALLBACK_EXIT_CODE = 1


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    Fetch errors are mapped by their ErrorKind, so subclasses inherit the
    code of their kind; other exceptions by class name.

    Returns:
    - 2: Configuration/validation error (ValueError, pydantic ValidationError)
    - 10-17: Fetch-verify failures, one per ErrorKind
    - 1: Anything else

    Args:
        exc: Exception to map

    Returns:
        Non-zero exit code
    """
    kind = getattr(exc, "kind", None)
    if isinstance(exc, FetchError) and kind is not None:
        return EXIT_CODES.get(kind.value, FALLBACK_EXIT_CODE)
    return EXIT_CODES.get(type(exc).__name__, FALLBACK_EXIT_CODE)


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function and maps any exceptions to appropriate
    exit codes using typer.Exit, after printing a one-line message.

    Args:
        func: Function to execute

    Returns:
        Function result if successful

    Raises:
        typer.Exit: With appropriate exit code if function raises exception
    """
    try:
        return func()
    except Exception as e:
        from .printers import print_error
        print_error(e)
        raise typer.Exit(code=exit_code_for(e)) from e
