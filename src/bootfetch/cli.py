"""
bootfetch CLI

Implements 3 CLI verbs with Operations facade integration:
- fetch: Download, verify and promote the configured payload
- hash: Print the hex digest of a local file
- verify: Check a local file against an expected digest
"""
from __future__ import annotations

import logging
from typing import Optional

import typer

from .digest import DEFAULT_ALGORITHM
from .operations import Operations, OpsConfig, run_and_exit
from .operations.printers import ConsoleProgress, print_digest, print_fetch_start, print_promoted
from .settings import create_settings_from_env
from .transport import open_connection

app = typer.Typer(name="bootfetch", help="Self-verifying bootstrap loader")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def fetch(
    host: Optional[str] = typer.Option(None, "--host", help="Host to fetch from [env: BOOTFETCH_HOST]"),
    port: Optional[int] = typer.Option(None, "--port", help="TCP port [env: BOOTFETCH_PORT]"),
    path: Optional[str] = typer.Option(None, "--path", help="Request path (default: /<digest>)"),
    digest: Optional[str] = typer.Option(None, "--digest", help="Expected hex digest [env: BOOTFETCH_EXPECTED_DIGEST]"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Final artifact path [env: BOOTFETCH_OUTPUT]"),
    ci: bool = typer.Option(False, "--ci", help="CI mode (suppress progress)"),
    verbose: bool = typer.Option(False, "--verbose", help="Show detailed output")
) -> None:
    """Download, verify and promote the configured payload."""
    _configure_logging(verbose)

    def _fetch() -> None:
        settings = create_settings_from_env(
            host=host, port=port, path=path, expected_digest=digest, output=output
        )
        target = settings.to_target()
        progress = ConsoleProgress(quiet=ci)
        ops = Operations(
            config=OpsConfig(ci=ci, verbose=verbose),
            settings=settings,
            connect=open_connection,
            progress=progress,
        )

        print_fetch_start(target.host, target.port, target.path, ci_mode=ci)
        try:
            result = ops.fetch()
        finally:
            progress.finish()
        print_promoted(result.fetched, result.promoted, verbose=verbose)

    run_and_exit(_fetch)


@app.command("hash")
def hash_command(
    file: str = typer.Argument(..., help="File to hash"),
    algorithm: str = typer.Option(DEFAULT_ALGORITHM, "--algorithm", help="hashlib algorithm"),
) -> None:
    """Print the hex digest of a local file."""

    def _hash() -> None:
        ops = Operations(config=OpsConfig())
        print_digest(ops.hash(file, algorithm))

    run_and_exit(_hash)


@app.command()
def verify(
    file: str = typer.Argument(..., help="File to verify"),
    digest: str = typer.Option(..., "--digest", help="Expected hex digest"),
    algorithm: str = typer.Option(DEFAULT_ALGORITHM, "--algorithm", help="hashlib algorithm"),
    verbose: bool = typer.Option(False, "--verbose", help="Show detailed output")
) -> None:
    """Check a local file against an expected digest."""
    _configure_logging(verbose)

    def _verify() -> None:
        ops = Operations(config=OpsConfig(verbose=verbose))
        actual = ops.verify(file, digest, algorithm)
        print_digest(actual, file)

    run_and_exit(_verify)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
