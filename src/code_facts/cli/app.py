import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from code_facts.cli.extract import console, extract
from code_facts.config import LOG_LEVELS, get_settings

app = typer.Typer(
    name="code-facts",
    help="Code Facts CLI: extract call graphs, function metrics and type facts from compiled modules.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def configure(
    log_level: Annotated[str | None, typer.Option(help="Logging level (defaults to CODE_FACTS_LOG_LEVEL).")] = None,
) -> None:
    if log_level is not None:
        level = log_level.upper()
        if level not in LOG_LEVELS:
            raise typer.BadParameter(f"unknown log level {log_level!r}", param_hint="--log-level")
    else:
        try:
            level = get_settings().log_level
        except ValueError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(code=1) from exc
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
        force=True,
    )


app.command("extract")(extract)


def main() -> None:
    app()
