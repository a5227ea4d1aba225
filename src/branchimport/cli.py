"""Command-line interface for branch feed ingestion."""

import json
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.markup import escape

if TYPE_CHECKING:
    from branchimport.config.settings import AppConfig
    from branchimport.ingestion.detect import Format

app = typer.Typer(
    name="branchimport",
    help="Supplier branch feed ingestion, validation and import reporting.",
    no_args_is_help=True,
)

console = Console()

FORMAT_NAMES = ("xml", "php_serialized", "json", "csv", "excel")

FileArgument = Annotated[
    Path,
    typer.Argument(
        help="Branch feed file (XML, var_dump text, JSON, CSV or .xlsx).",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration YAML file.",
        exists=True,
        dir_okay=False,
    ),
]
FormatOption = Annotated[
    str | None,
    typer.Option(
        "--format",
        "-f",
        help=f"Skip detection and force a format: {', '.join(FORMAT_NAMES)}.",
    ),
]
CountryOption = Annotated[
    str | None,
    typer.Option(
        "--default-country",
        help="Country code backfilled for branches without one (overrides config).",
    ),
]
JsonOption = Annotated[
    bool,
    typer.Option(
        "--json",
        help="Print the report as JSON instead of tables.",
    ),
]


def _setup(config: Path | None, default_country: str | None) -> "AppConfig":
    """Load configuration, apply CLI overrides and configure logging."""
    from branchimport.config.loader import load_config
    from branchimport.config.settings import AppConfig, IngestionConfig
    from branchimport.utils.logging import configure_logging

    try:
        app_config = load_config(config)
        if default_country is not None:
            ingestion = IngestionConfig(
                **{
                    **app_config.ingestion.model_dump(),
                    "default_country_code": default_country,
                }
            )
            app_config = AppConfig(ingestion=ingestion, logging=app_config.logging)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error: Invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e

    configure_logging(
        level=app_config.logging.level,
        json_output=app_config.logging.json_output,
    )
    return app_config


def _parse_format(value: str | None) -> "Format | None":
    from branchimport.ingestion.detect import Format

    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized not in FORMAT_NAMES:
        console.print(
            f"[red]Error: Unknown format '{value}'. "
            f"Use one of: {', '.join(FORMAT_NAMES)}.[/red]"
        )
        raise typer.Exit(code=1)
    return Format(normalized)


@app.command()
def detect(
    file: FileArgument,
    as_json: JsonOption = False,
) -> None:
    """Detect the feed format of a file."""
    from branchimport.ingestion.detect import Format
    from branchimport.pipeline import resolve_format
    from branchimport.utils.logging import configure_logging

    configure_logging(level="WARNING")
    data = file.read_bytes()
    fmt = resolve_format(data, filename=file.name)

    if as_json:
        typer.echo(json.dumps({"file": str(file), "format": fmt.value}))
    elif fmt is Format.UNKNOWN:
        console.print(f"[yellow]{file.name}: format not recognised[/yellow]")
    else:
        console.print(f"[green]{file.name}:[/green] {fmt.value}")

    if fmt is Format.UNKNOWN:
        raise typer.Exit(code=1)


@app.command()
def check(
    file: FileArgument,
    config: ConfigOption = None,
    format: FormatOption = None,
    default_country: CountryOption = None,
    as_json: JsonOption = False,
) -> None:
    """Extract and validate a feed without importing it."""
    from branchimport.errors import IngestionError
    from branchimport.pipeline import run_ingestion
    from branchimport.reporting.console import ConsoleReporter
    from branchimport.reporting.core import ReportFormatter

    app_config = _setup(config, default_country)
    fmt = _parse_format(format)

    try:
        result = run_ingestion(
            file.read_bytes(),
            config=app_config,
            fmt=fmt,
            filename=file.name,
        )
    except IngestionError as e:
        console.print(f"[red]Error ({e.code}): {escape(e.message)}[/red]")
        raise typer.Exit(code=1) from e

    if as_json:
        payload = {
            "file": str(file),
            "format": result.format.value,
            "payloadDigest": result.payload_digest,
            **result.report.to_dict(),
        }
        # nothing was persisted; report the validation headline instead
        payload.pop("classification")
        payload["message"] = ReportFormatter.validation_message(result.summary)
        typer.echo(json.dumps(payload, indent=2))
    else:
        console.print(f"[blue]Checked {file.name} ({result.format.value})[/blue]")
        ConsoleReporter(console).print_report(result.report, validation_only=True)

    summary = result.summary
    if summary.total == 0 or summary.invalid > 0:
        raise typer.Exit(code=1)


@app.command(name="import")
def import_(
    file: FileArgument,
    config: ConfigOption = None,
    format: FormatOption = None,
    default_country: CountryOption = None,
    export: Annotated[
        Path | None,
        typer.Option(
            "--export",
            "-o",
            help="Write accepted branches to this CSV file.",
            dir_okay=False,
        ),
    ] = None,
    as_json: JsonOption = False,
) -> None:
    """Extract, validate and upsert a feed, then print the import report."""
    from branchimport.errors import IngestionError
    from branchimport.importing.store import InMemoryBranchStore
    from branchimport.pipeline import run_ingestion
    from branchimport.reporting.console import ConsoleReporter
    from branchimport.reporting.core import Classification

    app_config = _setup(config, default_country)
    fmt = _parse_format(format)
    store = InMemoryBranchStore()

    try:
        result = run_ingestion(
            file.read_bytes(),
            config=app_config,
            fmt=fmt,
            filename=file.name,
            store=store,
        )
    except IngestionError as e:
        console.print(f"[red]Error ({e.code}): {escape(e.message)}[/red]")
        raise typer.Exit(code=1) from e

    if export is not None:
        frame = result.aggregation.accepted_frame()
        export.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(export, index=False)

    if as_json:
        payload = {
            "file": str(file),
            "format": result.format.value,
            "payloadDigest": result.payload_digest,
            **result.report.to_dict(),
        }
        typer.echo(json.dumps(payload, indent=2))
    else:
        console.print(f"[blue]Imported {file.name} ({result.format.value})[/blue]")
        ConsoleReporter(console).print_report(result.report)
        if export is not None:
            console.print(f"\n[green]Saved accepted branches to: {export}[/green]")

    if result.report.classification is Classification.FAILURE:
        raise typer.Exit(code=1)


@app.command()
def version() -> None:
    """Print the package version."""
    from branchimport import __version__

    console.print(f"branchimport {__version__}")


if __name__ == "__main__":
    app()
