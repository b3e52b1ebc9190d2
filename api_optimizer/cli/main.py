"""
CLI interface for the AI API Optimizer.

Provides command-line access to analytics, request analysis and the
completion pipeline.
"""

import json
import sqlite3
import sys
from datetime import date
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from api_optimizer.config.loader import (
    OptimizerConfig,
    load_config_from_env,
    load_optimizer_config,
)
from api_optimizer.core.complexity import analyze_complexity
from api_optimizer.core.compression import compress_prompt
from api_optimizer.core.errors import ConfigurationError, UpstreamError
from api_optimizer.core.orchestrator import create_orchestrator
from api_optimizer.core.recommendation import recommend_model
from api_optimizer.core.request import CompletionRequest
from api_optimizer.storage.repository import RangeStats, UsageRepository, UsageStats, initialize_schema

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1


def _load_config(config_path: Optional[str]) -> OptimizerConfig:
    if config_path:
        return load_optimizer_config(config_path)
    return load_config_from_env()


def _read_request(path: str, provider: str) -> CompletionRequest:
    """Read and validate a JSON request body from a file."""
    body = json.loads(Path(path).read_text(encoding="utf-8"))
    return CompletionRequest.from_dict(body, provider=provider)


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """AI API Optimizer CLI."""
    if ctx.invoked_subcommand is None:
        console.print("AI API Optimizer - Use --help to see available commands")


@app.command()
def init(
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="YAML config file"),
):
    """Initialize the usage analytics database."""
    try:
        config = _load_config(config_path)
        initialize_schema(config.db_path)
        console.print("[green]✓[/] Database initialized successfully")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error initializing database:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def stats(
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="YAML config file"),
    start: Optional[str] = typer.Option(None, "--start", help="First day of a daily breakdown (YYYY-MM-DD)"),
    end: Optional[str] = typer.Option(None, "--end", help="Last day of the breakdown (defaults to today)"),
):
    """Show usage totals and the most recent requests, or a per-day breakdown."""
    if end and not start:
        console.print("[red]Error:[/] --end requires --start")
        sys.exit(EXIT_CODE_FAIL)

    try:
        config = _load_config(config_path)
        initialize_schema(config.db_path)
        repository = UsageRepository(config.db_path)
        if start:
            first = date.fromisoformat(start)
            last = date.fromisoformat(end) if end else date.today()
            range_stats = repository.get_daily_stats(first, last)
        else:
            usage = repository.get_stats()
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if start:
        _display_range(range_stats)
    else:
        _display_stats(usage)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def analyze(
    request_file: str = typer.Argument(..., help="JSON file with a chat completion body"),
    provider: str = typer.Option("openai", "--provider", "-p", help="Provider the request targets"),
):
    """Show the complexity report and model recommendation for a request."""
    try:
        request = _read_request(request_file, provider)
    except (OSError, ValueError) as e:
        console.print(f"[red]Invalid request:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    report = analyze_complexity(request)
    recommendation = recommend_model(request, provider, request.model, report=report)

    console.print("\n[bold]Request Analysis[/bold]")
    console.print("-" * 40)
    console.print(f"Complexity: {report.level.label}")
    console.print(f"Estimated tokens: {report.estimated_tokens:,}")
    console.print(f"Content length: {report.total_content_length:,}")
    console.print(f"Messages: {report.message_count}")
    console.print(f"Code block: {'yes' if report.contains_code_block else 'no'}")
    console.print(f"\nRequested model: {request.model}")
    console.print(f"Recommended model: {recommendation.model}")
    console.print(f"Reason: {recommendation.reason}")
    console.print(f"Estimated savings: {_format_currency(recommendation.estimated_savings)}\n")
    sys.exit(EXIT_CODE_PASS)


@app.command()
def compress(
    request_file: str = typer.Argument(..., help="JSON file with a chat completion body"),
):
    """Print the compressed message list as JSON."""
    try:
        request = _read_request(request_file, "openai")
    except (OSError, ValueError) as e:
        console.print(f"[red]Invalid request:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    messages = [m.to_dict() for m in compress_prompt(request.messages)]
    typer.echo(json.dumps(messages, indent=2, ensure_ascii=False))
    sys.exit(EXIT_CODE_PASS)


@app.command()
def complete(
    request_file: str = typer.Argument(..., help="JSON file with a chat completion body"),
    provider: str = typer.Option("openai", "--provider", "-p", help="Provider the request targets"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="YAML config file"),
    compress_messages: bool = typer.Option(False, "--compress", help="Compress the prompt first"),
):
    """Run a request through the optimizer and print the response content."""
    try:
        config = _load_config(config_path)
        request = _read_request(request_file, provider)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    try:
        orchestrator = create_orchestrator(config)
    except sqlite3.Error as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    try:
        response = orchestrator.complete(request, compress=compress_messages)
    except (UpstreamError, ConfigurationError) as e:
        console.print(f"[red]Request failed:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(f"[dim]model: {response.model} | tokens: {response.usage.total_tokens}[/]")
    typer.echo(response.content or "")
    sys.exit(EXIT_CODE_PASS)


def _format_currency(amount: float) -> str:
    """Format currency with sub-cent precision."""
    return f"${amount:,.4f}"


def _display_stats(usage: UsageStats):
    """Display usage totals and recent requests."""
    console.print("\n[bold]AI API Optimizer Usage[/bold]")
    console.print("-" * 40)
    console.print(f"Total requests: {usage.total_requests:,}")
    console.print(f"Total cost: {_format_currency(usage.total_cost)}")
    console.print(f"Total tokens: {usage.total_tokens:,}")
    console.print(f"Cache hit rate: {usage.cache_hit_rate:.1f}%")
    console.print(f"Estimated savings: {_format_currency(usage.total_savings)}")

    if not usage.recent_requests:
        console.print("\n[dim]No requests yet.[/]")
        return

    table = Table(title="Recent Requests")
    table.add_column("Time")
    table.add_column("Provider")
    table.add_column("Model")
    table.add_column("Cost", justify="right")
    table.add_column("Tokens", justify="right")
    table.add_column("Cache")

    for event in usage.recent_requests:
        model = event.model
        if event.original_model and event.original_model != event.model:
            model = f"{event.model} ({event.original_model})"
        if event.error:
            cache = "[yellow]ERROR[/]"
        elif event.cache_hit:
            cache = "[green]HIT[/]"
        else:
            cache = "[red]MISS[/]"
        table.add_row(
            event.timestamp.strftime("%H:%M:%S"),
            event.provider,
            model,
            _format_currency(event.cost),
            str(event.tokens),
            cache,
        )

    console.print(table)


def _display_range(range_stats: RangeStats):
    """Display per-day usage with range totals."""
    if not range_stats.days:
        console.print("\n[dim]No requests in range.[/]")
        return

    table = Table(title="Daily Usage")
    table.add_column("Day")
    table.add_column("Requests", justify="right")
    table.add_column("Cost", justify="right")
    table.add_column("Tokens", justify="right")
    table.add_column("Hits", justify="right")
    table.add_column("Misses", justify="right")
    table.add_column("Savings", justify="right")

    rows = list(range_stats.days.items()) + [("Total", range_stats.totals)]
    for day, usage in rows:
        table.add_row(
            day,
            f"{usage.requests:,}",
            _format_currency(usage.cost),
            f"{usage.tokens:,}",
            str(usage.cache_hits),
            str(usage.cache_misses),
            _format_currency(usage.savings),
        )

    console.print(table)


if __name__ == "__main__":
    app()
