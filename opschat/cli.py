"""
OpsChat CLI

Command-line interface for the OpsChat assistant and its business database.

Usage:
    opschat chat                               # Interactive REPL mode
    opschat ask "How many jobs are pending?"   # Single query mode
    opschat seed                               # Insert demo customers, jobs and bookings
    opschat serve                              # Run the HTTP API
    opschat status                             # Show configuration and connection status
"""

import asyncio
import logging
import re
import sys
import uuid
from typing import Any

import click
import uvicorn
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from opschat.config import get_settings
from opschat.connectors.postgres import PostgresConnector
from opschat.llm.factory import LLMProviderFactory
from opschat.models.chat import ChatOutcome
from opschat.pipeline.orchestrator import ChatOrchestrator
from opschat.pipeline.readiness import StoreReadiness
from opschat.records.seed import seed_records
from opschat.records.service import RecordsService

console = Console()

MAX_TABLE_ROWS = 20


def configure_cli_logging() -> None:
    logging.disable(logging.CRITICAL)
    for logger_name in ("opschat", "httpx", "openai", "asyncio"):
        logging.getLogger(logger_name).setLevel(logging.CRITICAL)


# ============================================================================
# Helper Functions
# ============================================================================


def create_connector_from_config() -> PostgresConnector:
    """Create a connector for DATABASE_URL."""
    settings = get_settings()
    if not settings.database.url:
        raise click.ClickException("DATABASE_URL is not set.")
    return PostgresConnector.from_url(
        str(settings.database.url),
        pool_size=settings.database.pool_size,
        timeout=settings.database.timeout,
        schema_name=settings.database.schema_name,
    )


def create_orchestrator_from_config() -> ChatOrchestrator:
    """Create an orchestrator whose readiness also creates the business tables."""
    settings = get_settings()
    connector = create_connector_from_config()
    records = RecordsService(connector)

    async def initialize() -> None:
        await connector.connect()
        await records.ensure_schema()

    return ChatOrchestrator(
        connector=connector,
        llm_provider=LLMProviderFactory.create_default_provider(settings.llm),
        readiness=StoreReadiness(initialize),
        settings=settings.assistant,
    )


def format_outcome(outcome: ChatOutcome) -> None:
    """Display an answer and, for database answers, the returned rows."""
    border = "red" if outcome.type == "error" else "green"
    console.print(Panel(Markdown(outcome.answer), title="[bold]Answer[/bold]", border_style=border))

    if not outcome.data:
        return

    columns = list(outcome.data[0].keys())
    table = Table(show_header=True, header_style="bold cyan")
    for column in columns:
        table.add_column(column)
    for row in outcome.data[:MAX_TABLE_ROWS]:
        table.add_row(*[_cell(row.get(column)) for column in columns])

    console.print(table)
    if outcome.row_count and outcome.row_count > MAX_TABLE_ROWS:
        console.print(f"[dim]Showing {MAX_TABLE_ROWS} of {outcome.row_count} rows[/dim]")


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def _should_exit_chat(query: str) -> bool:
    text = query.strip().lower()
    if text in {"exit", "quit", "q", ":q"}:
        return True
    return bool(re.search(r"\b(end|stop|quit|exit)\b.*\b(chat|conversation)\b", text))


async def _shutdown(orchestrator: ChatOrchestrator) -> None:
    await orchestrator.readiness.cancel()
    try:
        await orchestrator.connector.close()
        await orchestrator.llm.close()
    except Exception as e:
        console.print(f"[yellow]Cleanup failed: {e}[/yellow]")


# ============================================================================
# Commands
# ============================================================================


@click.group()
@click.version_option(version="0.1.0", prog_name="OpsChat")
@click.option("--verbose", is_flag=True, help="Show application logs.")
def cli(verbose: bool):
    """OpsChat - ask questions about customers, jobs and bookings."""
    if not verbose:
        configure_cli_logging()


@cli.command()
@click.argument("query")
@click.option("--session", "session_id", default=None, help="Session id (default: new session).")
@click.option("--followup", is_flag=True, help="Resolve follow-up phrasing against the session.")
def ask(query: str, session_id: str | None, followup: bool):
    """Ask a single question and exit."""

    async def run_query() -> ChatOutcome:
        orchestrator = create_orchestrator_from_config()
        orchestrator.readiness.start()
        try:
            session = session_id or str(uuid.uuid4())
            with console.status("[cyan]Processing query...[/cyan]", spinner="dots"):
                if followup:
                    return await orchestrator.chat_with_follow_up(query, session)
                return await orchestrator.chat(query, session)
        finally:
            await _shutdown(orchestrator)

    outcome = asyncio.run(run_query())
    format_outcome(outcome)
    if outcome.type == "error":
        sys.exit(1)


@cli.command()
def chat():
    """Interactive REPL mode for conversations."""
    console.print(
        Panel.fit(
            "[bold green]OpsChat Interactive Mode[/bold green]\n"
            "Ask about customers, jobs and bookings. Type 'exit' or 'quit' to leave.",
            border_style="green",
        )
    )

    async def run_chat() -> None:
        orchestrator = create_orchestrator_from_config()
        orchestrator.readiness.start()
        session_id = str(uuid.uuid4())
        try:
            while True:
                try:
                    query = console.input("[bold cyan]You:[/bold cyan] ")
                except (EOFError, KeyboardInterrupt):
                    console.print("\n[yellow]Goodbye![/yellow]")
                    break

                if not query.strip():
                    continue
                if _should_exit_chat(query):
                    console.print("[yellow]Goodbye![/yellow]")
                    break

                with console.status("[cyan]Processing...[/cyan]", spinner="dots"):
                    outcome = await orchestrator.chat_with_follow_up(query, session_id)
                format_outcome(outcome)
        finally:
            await _shutdown(orchestrator)

    asyncio.run(run_chat())


@cli.command()
def status():
    """Show configuration and database status."""

    async def check_status() -> None:
        settings = get_settings()
        table = Table(title="OpsChat Status", show_header=True, header_style="bold cyan")
        table.add_column("Component", style="cyan")
        table.add_column("Status", style="green")
        table.add_column("Details")

        table.add_row("Configuration", "✓", f"Environment: {settings.environment}")
        provider = settings.llm.default_provider
        model = settings.llm.openai_model if provider == "openai" else settings.llm.local_model
        table.add_row("LLM", "✓", f"{provider} ({model})")

        if not settings.database.url:
            table.add_row("Database", "✗", "DATABASE_URL not set")
        else:
            connector = create_connector_from_config()
            try:
                await connector.connect()
                await connector.execute("SELECT 1")
                table.add_row("Database", "✓", f"Connected to {connector.host}:{connector.port}")
            except Exception as e:
                table.add_row("Database", "✗", f"Error: {str(e)[:50]}")
            finally:
                await connector.close()

        console.print(table)

    asyncio.run(check_status())


@cli.command()
def seed():
    """Create the business tables and insert demo data."""

    async def run_seed() -> dict[str, int]:
        connector = create_connector_from_config()
        try:
            await connector.connect()
            service = RecordsService(connector)
            await service.ensure_schema()
            return await seed_records(service)
        finally:
            await connector.close()

    try:
        counts = asyncio.run(run_seed())
    except click.ClickException:
        raise
    except Exception as e:
        console.print(f"[red]Seeding failed: {e}[/red]")
        sys.exit(1)

    console.print(
        f"[green]✓ Seeded {counts['customers']} customers, {counts['jobs']} jobs "
        f"and {counts['bookings']} bookings[/green]"
    )


@cli.command()
@click.option("--host", default=None, help="Bind host (default: API_HOST).")
@click.option("--port", default=None, type=int, help="Bind port (default: API_PORT).")
@click.option("--reload", is_flag=True, help="Reload on code changes.")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the HTTP API server."""
    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    console.print(f"[cyan]Starting OpsChat API on {host}:{port}[/cyan]")
    uvicorn.run("opschat.api.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    cli()
