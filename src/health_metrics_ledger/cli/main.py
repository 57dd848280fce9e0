"""
Command-line interface for Health Metrics Ledger.

Provides commands for ingesting lab panels and test reports, showing the
stored series and their trends, and exporting the store.
"""

import json
from pathlib import Path

import typer

from health_metrics_ledger.domain.metrics import Category
from health_metrics_ledger.infrastructure.storage.backends import FileStateBackend
from health_metrics_ledger.services.ingestion import IngestionService
from health_metrics_ledger.services.output import OutputService
from health_metrics_ledger.services.router import DocumentRouter
from health_metrics_ledger.services.store import TimeSeriesStore
from health_metrics_ledger.services.trends import TrendService
from health_metrics_ledger.utils.exceptions import HealthMetricsError
from health_metrics_ledger.utils.logging_config import get_logger, setup_logging
from health_metrics_ledger.utils.parameters import ParameterLoader

app = typer.Typer(help="Health Metrics Ledger - Lab and fitness test history with trends")

logger = get_logger(__name__)


def init_config(config_path: str = "config/config.yaml") -> ParameterLoader:
    """
    Initialize configuration and logging.

    Args:
        config_path: Path to configuration file.

    Returns:
        Parameter loader instance.
    """
    param_loader = ParameterLoader(config_path)
    setup_logging(param_loader.get_logging_config(), "health_metrics_ledger")
    return param_loader


def open_store(param_loader: ParameterLoader) -> TimeSeriesStore:
    """
    Open and restore the configured store.

    Args:
        param_loader: Loaded configuration.

    Returns:
        Store holding the persisted series.
    """
    storage_config = param_loader.get_storage_config()
    store = TimeSeriesStore(FileStateBackend(storage_config.dir), storage_config.key)
    store.restore()
    return store


@app.command()
def ingest(
    file_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="File to ingest"),
    category: Category = typer.Option(..., "--category", "-c", help="Declared file category"),
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
) -> None:
    """
    Ingest a lab panel (.csv/.xlsx) or a DEXA / VO2 max report (.pdf).

    Extracted records are merged into the stored series. A file that cannot
    be processed leaves the store unchanged.
    """
    try:
        param_loader = init_config(config_path)
        processing_config = param_loader.get_processing_config()

        store = open_store(param_loader)
        router = DocumentRouter(param_loader.get_lab_panel_config())
        output_service = OutputService(
            param_loader.get_output_config(), processing_config.timezone
        )
        service = IngestionService(router, store, output_service, processing_config.timezone)

        result = service.ingest(file_path.name, file_path.read_bytes(), category.value)

        if not result.ok:
            typer.echo(result.message, err=True)
            raise typer.Exit(code=1)

        typer.echo(result.message)

    except HealthMetricsError as e:
        logger.error(f"Ingest failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


@app.command()
def trends(
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
    category: Category | None = typer.Option(None, help="Only show one category"),
) -> None:
    """
    Show the latest value of every metric and its change vs the previous record.
    """
    try:
        param_loader = init_config(config_path)
        store = open_store(param_loader)

        summary = TrendService().summarize(store.state)
        if category is not None:
            summary = [t for t in summary if t.category == category]

        if not summary:
            typer.echo("No records stored yet")
            return

        current = None
        for item in summary:
            if item.category != current:
                current = item.category
                typer.echo(f"\n{Category(current).value} (latest {item.latest_date}):")

            arrow = {"up": "+", "down": "-"}.get(item.direction, " ")
            note = "  (may be default)" if item.possibly_default else ""
            typer.echo(f"  {item.field:<14} {item.latest:>9.1f}  {arrow}{item.display}{note}")

    except HealthMetricsError as e:
        logger.error(f"Trends failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


@app.command()
def show(
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
) -> None:
    """
    Print the stored series as JSON.
    """
    try:
        param_loader = init_config(config_path)
        store = open_store(param_loader)
        typer.echo(json.dumps(store.state.to_dict(), indent=2))

    except HealthMetricsError as e:
        logger.error(f"Show failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


@app.command()
def export(
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
    name: str | None = typer.Option(None, help="Base file name (defaults to dated name)"),
    output_format: str | None = typer.Option(
        None, help="Output format: json, csv, parquet, or all"
    ),
) -> None:
    """
    Export the stored series for download.
    """
    try:
        param_loader = init_config(config_path)
        output_config = param_loader.get_output_config()

        if output_format:
            if output_format == "all":
                output_config.formats = ["json", "csv", "parquet"]
            else:
                output_config.formats = [output_format]

        store = open_store(param_loader)
        output_service = OutputService(
            output_config, param_loader.get_processing_config().timezone
        )
        written = output_service.export_store(store.state, name)

        typer.echo(f"Exported {len(written)} files")
        for path in written:
            typer.echo(f"  - {path}")

    except HealthMetricsError as e:
        logger.error(f"Export failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


@app.command()
def reset(
    config_path: str = typer.Option("config/config.yaml", help="Path to configuration file"),
    yes: bool = typer.Option(False, "--yes", help="Skip confirmation"),
) -> None:
    """
    Delete all stored records.
    """
    try:
        param_loader = init_config(config_path)
        if not yes:
            typer.confirm("Delete all stored records?", abort=True)

        store = open_store(param_loader)
        store.reset()
        typer.echo("Stored records cleared")

    except HealthMetricsError as e:
        logger.error(f"Reset failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


if __name__ == "__main__":
    app()
