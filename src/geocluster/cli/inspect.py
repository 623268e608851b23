"""Inspect command - Show which columns would be used as coordinates."""
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from geocluster.core.exceptions import GeoClusterError
from geocluster.data.loader import detect_coordinate_columns

console = Console()


def inspect(
    input_file: Path = typer.Argument(
        ...,
        help="Input CSV file with latitude/longitude columns",
    ),
):
    """Detect coordinate columns and count data rows without clustering."""
    try:
        columns = detect_coordinate_columns(input_file)
    except GeoClusterError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    table = Table(title=escape(str(input_file)))
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Latitude column", columns.latitude_column)
    table.add_row("Longitude column", columns.longitude_column)
    table.add_row("Data rows", str(columns.num_rows))
    table.add_row("Columns", ", ".join(columns.headers))

    console.print(table)
