import asyncio
from enum import Enum
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from code_facts.config import get_settings
from code_facts.core.batch import run_extraction
from code_facts.decoders import JsonBundleDecoder
from code_facts.facts import ExtractionStats

console = Console()


class ExecutorChoice(str, Enum):
    thread = "thread"
    process = "process"


def extract(
    bundles: Annotated[list[str] | None, typer.Argument(help="JSON module bundle files.")] = None,
    workers: Annotated[int | None, typer.Option(min=1, help="Worker pool size (defaults to CPU count).")] = None,
    executor: Annotated[ExecutorChoice | None, typer.Option(help="Pool kind: thread or process.")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the full result as JSON.")] = False,
) -> None:
    """Extract call graph, function and type facts from module bundles."""
    if not bundles:
        console.print("[red]No bundles given.[/red]")
        raise typer.Exit(code=1)

    try:
        settings = get_settings()
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    overrides = {}
    if workers is not None:
        overrides["max_workers"] = workers
    if executor is not None:
        overrides["executor"] = executor.value
    settings = settings.model_copy(update=overrides)

    result = asyncio.run(run_extraction(bundles, JsonBundleDecoder(), settings))

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
    else:
        console.print(_stats_table(result.stats))


def _stats_table(stats: ExtractionStats) -> Table:
    table = Table(title="Extraction summary")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Modules processed", str(stats.modules_processed))
    table.add_row("Modules succeeded", f"[green]{stats.modules_succeeded}[/green]")
    table.add_row("Modules failed", f"[red]{stats.modules_failed}[/red]" if stats.modules_failed else "0")
    table.add_row("Calls", str(stats.total_calls))
    table.add_row("Functions", str(stats.total_functions))
    table.add_row("Specs", str(stats.total_specs))
    table.add_row("Types", str(stats.total_types))
    table.add_row("Structs", str(stats.total_structs))
    if stats.extraction_time_ms is not None:
        table.add_row("Time (ms)", str(stats.extraction_time_ms))
    return table
