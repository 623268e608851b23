"""Main CLI application."""
import typer

from geocluster.cli.cluster import cluster
from geocluster.cli.inspect import inspect

app = typer.Typer(
    name="geocluster",
    help="Density-based clustering of geographic points in CSV files.",
    add_completion=False,
)

app.command()(cluster)
app.command()(inspect)


if __name__ == "__main__":
    app()
