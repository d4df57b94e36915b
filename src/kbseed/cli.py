"""Command line interface for kbseed."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from kbseed.config import SeedConfig
from kbseed.exceptions import ConfigError
from kbseed.index.seeder import SeedOrchestrator
from kbseed.models import SeedResult


console = Console(soft_wrap=True)
app = typer.Typer(help="kbseed - seed knowledge documents into the embeddings store")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _print_summary(result: SeedResult) -> None:
    console.print()
    console.print("[bold]=== Summary ===[/bold]")
    console.print(f"Documents found: {result.documents_found}")
    console.print(f"Chunks generated: {result.chunks_generated}")
    console.print(f"Embeddings created: {result.embeddings_created}")

    if result.errors:
        console.print(f"[red]Errors: {len(result.errors)}[/red]")
        for error in result.errors:
            console.print(f"  - {escape(str(error))}")


@app.command()
def seed(
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Parse documents and count chunks without calling the API."
    ),
    knowledge_dir: Optional[Path] = typer.Option(
        None, "--knowledge-dir", help="Directory of knowledge documents (default: docs/knowledge)."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Embed every knowledge document, replacing previously stored chunks."""
    _setup_logging(verbose)
    try:
        config = SeedConfig.from_env(knowledge_dir, dry_run=dry_run)
    except ConfigError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)

    if not config.knowledge_dir.is_dir():
        console.print(
            f"[red]Knowledge directory not found: {escape(str(config.knowledge_dir))}[/red]"
        )
        raise typer.Exit(code=1)

    header = "=== DRY RUN ===" if dry_run else "=== Seeding Knowledge Base ==="
    console.print(f"[bold]{header}[/bold]")
    console.print(f"Supabase URL: {escape(config.supabase_url)}")
    console.print(f"Knowledge dir: {escape(str(config.knowledge_dir))}")

    orchestrator = SeedOrchestrator(config)
    try:
        result = orchestrator.run()
    finally:
        if orchestrator.store is not None:
            orchestrator.store.close()

    _print_summary(result)
    if not result.ok:
        raise typer.Exit(code=1)


def main() -> None:
    app()
