"""CLI interface for the Knowledge Assistant."""

import json
import os
from enum import Enum

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from ....composition import container
from ....config import settings, setup_logging
from ....core.domain import AnswerMode, BuildResult, BuildStatus, SearchOptions
from ...common.exception_handler import format_exception_json

app = typer.Typer(
    name="kb-assistant",
    help="Knowledge Assistant - knowledge-base answers for the VTuber school",
    add_completion=False,
)

console = Console(force_terminal=True, legacy_windows=False)

# Determine if we're in debug mode (shows full stack traces)
DEBUG_MODE = os.getenv("DEBUG", "false").lower() == "true"


class AskMode(str, Enum):
    """Answer modes a caller can request."""

    LENIENT = "lenient"
    STRICT = "strict"
    MISSION = "mission"
    NO_RAG = "no_rag"


def handle_cli_error(exc: Exception) -> None:
    """Handle and display errors in CLI with structured format.

    In debug mode, shows full JSON error details.
    In normal mode, shows a user-friendly message with error code.

    Args:
        exc: The exception to handle.
    """
    error_data = format_exception_json(exc, include_trace=DEBUG_MODE)

    if DEBUG_MODE:
        console.print(
            Panel(
                json.dumps(error_data, indent=2, ensure_ascii=False),
                title="[bold red]Error Details[/]",
                border_style="red",
            )
        )
        return

    error = error_data["error"]
    console.print(f"\n[red]Error [{error.get('code', 'UNKNOWN')}]:[/] {error['message']}")
    console.print(f"[dim]Type: {error['type']}[/]")

    location = error_data.get("location", {})
    if location:
        loc_str = f"{location.get('file', '?')}:{location.get('line', '?')} in {location.get('method', '?')}"
        console.print(f"[dim]Location: {loc_str}[/]")

    console.print("[dim]Set DEBUG=true for full details[/]")


def _print_build_result(result: BuildResult) -> None:
    if result.status == BuildStatus.NO_SOURCES:
        console.print("[yellow]No content sources found; knowledge base is empty.[/]")
        return
    console.print(
        f"[green]Built {result.document_count} documents[/] "
        f"({result.failed_count} failed, {result.image_count} images) "
        f"in {result.duration_seconds:.1f}s"
    )


def _build_knowledge_base() -> None:
    """Run one rebuild for commands that need a populated store."""
    with console.status("[bold green]Loading knowledge base...[/]"):
        result = container.get_document_store().rebuild()
    _print_build_result(result)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    setup_logging("DEBUG" if verbose else settings.log_level, json_format=settings.log_json)


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to ask"),
    mode: AskMode = typer.Option(AskMode.LENIENT, help="lenient, strict, mission or no_rag"),
    image: list[str] = typer.Option([], "--image", "-i", help="Attached image URL (repeatable)"),
    button: str | None = typer.Option(None, help="Entry point, e.g. lesson_question"),
) -> None:
    """Ask a single question and get an answer."""
    try:
        if mode != AskMode.NO_RAG:
            _build_knowledge_base()
        rag = container.get_rag_service()
        with console.status("[bold green]Thinking...[/]"):
            result = rag.answer(question, mode=AnswerMode(mode.value), images=image, button_type=button)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    console.print(Panel(Markdown(result.text), title="[bold magenta]Assistant[/]", border_style="magenta"))

    if result.metadata.sources:
        console.print("\n[dim]Sources:[/]")
        for source in result.metadata.sources:
            console.print(f"  [dim]{source}[/]")


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    max_results: int = typer.Option(10, "--max-results", "-n", help="Maximum results"),
    min_score: float = typer.Option(0.1, help="Minimum relevance score"),
    details: bool = typer.Option(False, help="Show the score breakdown"),
) -> None:
    """Search the knowledge base and show ranked documents."""
    try:
        _build_knowledge_base()
        results = container.get_search_service().search(
            query, SearchOptions(max_results=max_results, min_score=min_score)
        )
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    if not results:
        console.print(f"[yellow]No documents matched '{query}'.[/]")
        return

    table = Table(title=f"Results for '{query}'")
    table.add_column("#", justify="right")
    table.add_column("Source")
    table.add_column("Score", justify="right")
    table.add_column("Category")
    for index, result in enumerate(results, start=1):
        table.add_row(
            str(index),
            result.source,
            f"{result.score:.3f}",
            result.metadata.get("category") or "",
        )
    console.print(table)

    if details:
        for result in results:
            console.print(f"\n[bold]{result.source}[/]")
            for detail in result.match_details:
                console.print(f"  [dim]{detail.render()}[/]")


@app.command()
def status() -> None:
    """Show configuration and knowledge base status."""
    console.print("[bold]Knowledge Assistant Status[/]\n")

    if settings.google_api_key:
        console.print("✅ Google API key configured")
    else:
        console.print("❌ Google API key not set (set GOOGLE_API_KEY in .env)")

    location = settings.knowledge_sources_location
    if location:
        console.print(f"✅ Content-source list: {location}")
    else:
        console.print("❌ Content-source list not set (set KNOWLEDGE_SOURCES or KNOWLEDGE_SHEET_ID in .env)")
        return

    try:
        sources = container.get_source_lister().list_sources()
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    console.print(f"\n[bold]Content sources ({len(sources)}):[/]")
    table = Table()
    table.add_column("File")
    table.add_column("Category")
    table.add_column("Classification")
    table.add_column("URL", overflow="fold")
    for source in sources:
        table.add_row(source.file_name, source.category, source.classification or "", source.url)
    console.print(table)

    scheduler = "enabled" if settings.scheduler_enabled else "disabled"
    console.print(
        f"\n[dim]Weekly rebuild {scheduler} (weekday {settings.scheduler_weekday}, "
        f"{settings.scheduler_hour:02d}:00 {settings.scheduler_timezone})[/]"
    )


@app.command()
def rebuild() -> None:
    """Load every content source once and report the result."""
    try:
        _build_knowledge_base()
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(1)

    store_status = container.get_document_store().status()
    for source, count in sorted(store_status.images_by_source.items()):
        console.print(f"  [dim]{source}: {count} images[/]")
    console.print(f"[dim]Total characters: {store_status.total_characters}[/]")


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("knowledge_assistant.adapters.inbound.api.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
