"""CLI interface for medium-migrator."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from medium_migrator.config import load_config, merge_cli_overrides
from medium_migrator.errors import ConfigError, PublishError
from medium_migrator.pipeline import resolve_publication_id, run_migration

app = typer.Typer(
    name="medium-migrator",
    help="Migrate static blog posts to Medium, moving their images to S3.",
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from medium_migrator import __version__

        console.print(f"medium-migrator {__version__}")
        raise typer.Exit()


def _echo(text: str) -> None:
    console.print(text, markup=False, highlight=False)


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
) -> None:
    """Medium Migrator - move a static blog to Medium, resumably."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, show_time=False)],
        force=True,
    )
    load_dotenv()


@app.command()
def migrate(
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Transform posts without uploading or publishing; ledgers are disposable.",
        ),
    ] = False,
    pattern: Annotated[
        Optional[str],
        typer.Option(
            "--glob",
            "-g",
            help="Glob of post files. In a dry run, selects files even if already migrated.",
        ),
    ] = None,
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-n", min=1, help="Migrate at most this many pending posts."),
    ] = None,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a TOML config file."),
    ] = None,
    fail_fast: Annotated[
        Optional[bool],
        typer.Option(
            "--fail-fast/--keep-going",
            help="Abort the run when a single post fails to parse or upload.",
        ),
    ] = None,
    keep_code_language: Annotated[
        Optional[bool],
        typer.Option(
            "--keep-code-language/--drop-code-language",
            help="Keep the language hint of converted code blocks.",
        ),
    ] = None,
) -> None:
    """Migrate pending posts to Medium.

    Posts already listed in the completed ledger are skipped, so an
    interrupted run can simply be started again.
    """
    config = merge_cli_overrides(
        load_config(config_path),
        limit=limit,
        fail_fast=fail_fast,
        keep_code_language=keep_code_language,
    )

    try:
        report = run_migration(config, dry_run=dry_run, pattern=pattern, echo=_echo)
    except ConfigError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc

    console.print(report.summary(), markup=False)
    for failure in report.failures:
        console.print(
            f"[red]Failed:[/red] {escape(failure.path)}: {escape(failure.error)}",
            highlight=False,
        )
    if report.has_failures:
        raise typer.Exit(1)


@app.command("publication-id")
def publication_id(
    name: Annotated[str, typer.Argument(help="Publication name, exactly as shown on Medium.")],
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a TOML config file."),
    ] = None,
) -> None:
    """Print the id of a Medium publication the token's user belongs to."""
    config = load_config(config_path)
    try:
        pub_id = resolve_publication_id(config, name)
    except (ConfigError, PublishError) as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc
    console.print(f"Publication id: {pub_id}", markup=False)


if __name__ == "__main__":
    app()
