"""
CLI Main - Typer-based command-line interface.

Usage:
    localextract probe
    localextract schema --schema custom --schema-text "z.object({ name: z.string() })"
    localextract extract path/to/statement.pdf
    localextract extract path/to/invoice.pdf --schema custom --schema-file invoice.zod -o out.json
"""

from __future__ import annotations

import asyncio
import json
import logging
from enum import Enum
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from localextract.config import InvalidSchemaError, get_settings
from localextract.domains.capability import probe as probe_host
from localextract.domains.engine import EngineState, ProgressEvent
from localextract.domains.extraction import ExtractionResult, ExtractionSession
from localextract.domains.schema import (
    DEFAULT_CUSTOM_SCHEMA,
    CustomSchema,
    PredefinedSchema,
    SchemaChoice,
    SchemaResolver,
)

app = typer.Typer(
    name="localextract",
    help="LocalExtract - On-device document to JSON extraction",
    add_completion=False,
)
console = Console()

STATE_LABELS = {
    EngineState.CONSTRUCTING: "Loading model...",
    EngineState.WARMING_UP: "Warming up model...",
    EngineState.READY: "Model ready",
    EngineState.FAILED: "Model failed to load",
}


class SchemaKind(str, Enum):
    PREDEFINED = "predefined"
    CUSTOM = "custom"


def make_session() -> ExtractionSession:
    """Build the session used by ``extract``."""
    return ExtractionSession()


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Configure logging for all commands."""
    level = "DEBUG" if verbose else get_settings().log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@app.command()
def probe() -> None:
    """Check whether this host has GPU acceleration."""
    status = probe_host()
    settings = get_settings()

    table = Table(title="Host Capability")
    table.add_column("Check", style="cyan")
    table.add_column("Result", style="green")
    table.add_row("Acceleration", "yes" if status else "no")
    table.add_row("Backend", status.backend or "-")
    table.add_row("Required", "yes" if settings.require_acceleration else "no")
    console.print(table)

    if not status and settings.require_acceleration:
        console.print(
            "[yellow]Extraction is disabled on this host. "
            "Set LOCALEXTRACT_REQUIRE_ACCELERATION=false to run on CPU.[/yellow]"
        )


@app.command()
def schema(
    kind: SchemaKind = typer.Option(SchemaKind.PREDEFINED, "--schema", "-s", help="Schema kind"),
    schema_text: str | None = typer.Option(None, "--schema-text", help="Custom schema expression"),
    schema_file: Path | None = typer.Option(None, "--schema-file", help="File with a custom schema"),
) -> None:
    """Print the JSON Schema sent to the model."""
    choice = _schema_choice(kind, schema_text, schema_file)
    try:
        resolved = SchemaResolver().resolve(choice)
    except InvalidSchemaError as e:
        console.print(f"[red]Invalid schema:[/red] {e.message}")
        raise typer.Exit(1)

    console.print_json(json.dumps(resolved.json_schema))


@app.command()
def extract(
    pdf_path: Path = typer.Argument(..., help="Path to PDF file"),
    kind: SchemaKind = typer.Option(SchemaKind.PREDEFINED, "--schema", "-s", help="Schema kind"),
    schema_text: str | None = typer.Option(None, "--schema-text", help="Custom schema expression"),
    schema_file: Path | None = typer.Option(None, "--schema-file", help="File with a custom schema"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output JSON path"),
) -> None:
    """Extract structured JSON from a PDF document."""
    if not pdf_path.exists():
        console.print(f"[red]Error:[/red] File not found: {pdf_path}")
        raise typer.Exit(1)

    choice = _schema_choice(kind, schema_text, schema_file)
    result = asyncio.run(_extract_async(pdf_path, choice))
    _show_result(result, output)


async def _extract_async(pdf_path: Path, choice: SchemaChoice) -> ExtractionResult:
    """Async extraction implementation."""
    session = make_session()
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Checking hardware...", total=None)

            def show_progress(event: ProgressEvent) -> None:
                progress.update(task, description=event.text)

            def show_state(state: EngineState) -> None:
                progress.update(task, description=STATE_LABELS.get(state, state.value))

            session.lifecycle.on_progress(show_progress)
            session.lifecycle.on_state_change(show_state)

            if not await session.start():
                console.print(f"[red]Error:[/red] {session.last_error.message}")
                raise typer.Exit(1)

            progress.update(task, description="Extracting structured data...")
            return await session.extract_file(pdf_path, choice)
    finally:
        await session.close()


def _show_result(result: ExtractionResult, output: Path | None) -> None:
    """Print the result and save it if requested."""
    if not result.ok:
        console.print(
            Panel(
                f"[bold]{result.message}[/bold]\n[dim]{result.detail or ''}[/dim]",
                title=f"Extraction Failed ({result.reason.value})",
                style="red",
            )
        )
        raise typer.Exit(1)

    console.print("\n[green]Extraction Complete[/green]\n")
    console.print_json(result.json_text)

    table = Table(title="Extraction Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Model", result.model_used)
    table.add_row("Prompt Tokens", str(result.prompt_tokens))
    table.add_row("Output Tokens", str(result.completion_tokens))
    table.add_row("Elapsed", f"{result.elapsed_seconds:.1f}s")
    console.print(table)

    if output:
        output.write_text(result.json_text)
        console.print(f"\n[green]Saved to:[/green] {output}")


def _schema_choice(
    kind: SchemaKind,
    schema_text: str | None,
    schema_file: Path | None,
) -> SchemaChoice:
    """Build the schema choice from command options."""
    if kind is SchemaKind.PREDEFINED:
        if schema_text or schema_file:
            console.print("[yellow]Ignoring custom schema: --schema is predefined[/yellow]")
        return PredefinedSchema()

    if schema_file is not None:
        if not schema_file.exists():
            console.print(f"[red]Error:[/red] File not found: {schema_file}")
            raise typer.Exit(1)
        return CustomSchema(source_text=schema_file.read_text(encoding="utf-8"))

    return CustomSchema(source_text=schema_text or DEFAULT_CUSTOM_SCHEMA)


@app.command()
def version() -> None:
    """Show version information."""
    from localextract import __version__

    console.print(f"LocalExtract v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
