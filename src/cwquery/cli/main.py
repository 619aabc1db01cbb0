"""CLI for cwquery."""

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from cwquery.config import EngineConfig, load_config_from
from cwquery.engine import QueryEngine
from cwquery.errors import QueryError
from cwquery.executor.replay_client import ReplayMetricClient
from cwquery.models.response import QueryResponse
from cwquery.parser.batch import load_batch, parse_time

app = typer.Typer(
    name="cwq",
    help="cwquery - metrics query normalization and frame naming",
    no_args_is_help=True,
)
console = Console()

ConfigOption = Annotated[
    Path | None, typer.Option("--config", "-c", help="Engine config YAML file")
]


def get_engine(config_path: Path | None, client=None) -> QueryEngine:
    config = load_config_from(config_path) if config_path else EngineConfig()
    logging.basicConfig(
        level=config.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    return QueryEngine(config, client)


@app.command()
def migrate(
    batch: Annotated[Path, typer.Argument(help="Batch file (YAML or JSON)")],
    config_path: ConfigOption = None,
    dynamic_labels: Annotated[
        bool | None,
        typer.Option("--dynamic-labels/--no-dynamic-labels", help="Override config setting"),
    ] = None,
) -> None:
    """Show query documents migrated to the current schema."""
    try:
        engine = get_engine(config_path)
        if dynamic_labels is not None:
            engine.config.dynamic_labels = dynamic_labels
        migrated = engine.migrate(load_batch(batch))
    except Exception as e:
        console.print(f"[red]Error migrating queries: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    documents = [
        {"refId": q.ref_id, "queryType": q.query_type, "model": json.loads(q.document)}
        for q in migrated
    ]
    console.print(json.dumps(documents, indent=2), markup=False, highlight=False, soft_wrap=True)


@app.command()
def parse(
    batch: Annotated[Path, typer.Argument(help="Batch file (YAML or JSON)")],
    config_path: ConfigOption = None,
) -> None:
    """Show the canonical form of every query in a batch."""
    try:
        engine = get_engine(config_path)
        parsed = engine.parse(load_batch(batch))
    except Exception as e:
        console.print(f"[red]Error loading batch: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    table = Table(title="Canonical queries")
    table.add_column("RefId", style="cyan")
    table.add_column("Id", style="green")
    table.add_column("Mode", style="yellow")
    table.add_column("Region")
    table.add_column("Metric")
    table.add_column("Stat")
    table.add_column("Period")

    failed = False
    for ref_id, query in parsed.items():
        if isinstance(query, QueryError):
            failed = True
            table.add_row(ref_id, "-", f"[red]{escape(str(query))}[/red]", "", "", "", "")
            continue
        table.add_row(
            ref_id,
            query.id,
            query.api_mode.value,
            query.region or "-",
            query.metric_name or query.expression or "-",
            query.statistic,
            str(query.period),
        )

    console.print(table)
    if failed:
        raise typer.Exit(1)


@app.command()
def period(
    start: Annotated[str, typer.Option("--from", help="Window start (ISO or now-6h)")],
    end: Annotated[str, typer.Option("--to", help="Window end (ISO or now)")] = "now",
) -> None:
    """Show the automatic period for a time window."""
    try:
        resolved = QueryEngine().period(parse_time(start), parse_time(end))
    except ValueError as e:
        console.print(f"[red]Invalid time: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"{resolved}")


@app.command()
def run(
    batch: Annotated[Path, typer.Argument(help="Batch file (YAML or JSON)")],
    responses: Annotated[
        Path, typer.Option("--responses", "-r", help="Recorded metrics API responses")
    ],
    config_path: ConfigOption = None,
    output: Annotated[str, typer.Option("--output", "-o", help="Output format: table, json")] = "table",
) -> None:
    """Run a batch against recorded API responses and show the named frames."""
    try:
        engine = get_engine(config_path, ReplayMetricClient.from_file(responses))
        result = engine.execute(load_batch(batch))
    except Exception as e:
        console.print(f"[red]Query error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    _output_result(result, output)
    if any(r.error for r in result.values()):
        raise typer.Exit(1)


def _output_result(result: dict[str, QueryResponse], output_format: str) -> None:
    """Output query responses in the specified format."""
    if output_format == "json":
        data = {ref_id: r.model_dump(mode="json") for ref_id, r in result.items()}
        console.print(json.dumps(data, indent=2), markup=False, highlight=False, soft_wrap=True)
        return

    table = Table(title="Frames")
    table.add_column("RefId", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Points")
    table.add_column("Notes")

    for ref_id, response in result.items():
        if response.error:
            table.add_row(ref_id, "-", "-", f"[red]{escape(response.error)}[/red]")
            continue
        for frame in response.frames:
            notes = "partial data" if frame.meta.get("partial") else ""
            table.add_row(ref_id, escape(frame.name), str(len(frame.values)), notes)

    console.print(table)


if __name__ == "__main__":
    app()
