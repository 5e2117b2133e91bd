"""
Human-readable output formatting.

Centralizes all CLI output: the transfer progress indicator, outcome summaries
and error lines. Standard output is informational only; the exit code is the
functional result.
"""
from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape

from ..errors import FetchError, HashMismatch
from ..models import FetchResult, PromoteResult

_console = Console()
_err_console = Console(stderr=True)


class ConsoleProgress:
    """
    Classic bootstrap progress indicator.

    Prints "N%" when the percentage hits a multiple of ten and "." for any
    other new value, then a newline when the transfer finishes.
    """

    def __init__(self, quiet: bool = False):
        self.quiet = quiet
        self.started = False

    def __call__(self, percent: int) -> None:
        if self.quiet:
            return
        self.started = True
        if percent % 10 == 0:
            typer.echo(f"{percent}%", nl=False)
        else:
            typer.echo(".", nl=False)

    def finish(self) -> None:
        if self.started and not self.quiet:
            typer.echo("")
        self.started = False


def print_fetch_start(host: str, port: int, path: str, ci_mode: bool = False) -> None:
    """
    Print the download banner.

    Args:
        host: Remote host
        port: Remote port
        path: Request path
        ci_mode: Whether running in CI (suppresses output)
    """
    if ci_mode:
        return
    location = host if port == 80 else f"{host}:{port}"
    typer.echo(f"Downloading http://{location}{path}...")


def print_promoted(fetched: FetchResult, promoted: PromoteResult, verbose: bool = False) -> None:
    """
    Print the outcome of a successful cycle.

    Args:
        fetched: Transfer result
        promoted: Promotion result
        verbose: Show digest and status line
    """
    _console.print(
        f"[bold green]Verified[/] {escape(str(promoted.final_path))} ({_format_bytes(promoted.size)})",
        highlight=False,
        soft_wrap=True,
    )
    if verbose:
        _console.print(f"[bold]Status:[/] {escape(fetched.status_line)}", highlight=False, soft_wrap=True)
        _console.print(f"[bold]Digest:[/] [dim]{promoted.digest}[/]", soft_wrap=True)


def print_digest(digest_hex: str, path: str | None = None) -> None:
    """Print a hex digest, optionally followed by the file it belongs to."""
    typer.echo(f"{digest_hex}  {path}" if path else digest_hex)


def print_error(exc: BaseException) -> None:
    """
    Print a short failure message for an exception.

    HashMismatch gets the classic bootstrap wording; other fetch errors show
    their kind and message.
    """
    if isinstance(exc, HashMismatch):
        message = "Hash did not match :("
    elif isinstance(exc, FetchError):
        message = str(exc)
    else:
        message = f"{type(exc).__name__}: {exc}"

    _err_console.print(f"[bold red]{escape(message)}[/]", highlight=False, soft_wrap=True)


def _format_bytes(size_bytes: int) -> str:
    """
    Format byte count as human-readable string.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB", "42 KB")
    """
    if size_bytes == 0:
        return "0 B"
    elif size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"
