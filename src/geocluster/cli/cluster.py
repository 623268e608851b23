"""Cluster command - Run DBSCAN on a CSV of geographic points."""
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from geocluster.config import settings
from geocluster.clustering.dbscan import DBSCANClusterer
from geocluster.clustering.summary import ClusterStats
from geocluster.core.exceptions import EmptyInputError, GeoClusterError
from geocluster.data.loader import read_locations
from geocluster.data.writer import write_clustered_csv
from geocluster.utils.logger import logger

console = Console()


def print_summary(stats: ClusterStats) -> None:
    """Render clustering statistics as a table."""
    table = Table(title="Clustering Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Total points", str(stats.total_points))
    table.add_row("Total clusters", str(stats.num_clusters))
    table.add_row("Noise points", str(stats.num_noise_points))
    table.add_row("Noise fraction", f"{stats.noise_fraction:.1%}")
    table.add_row("Largest cluster", str(stats.largest_cluster_size))

    console.print(table)


def cluster(
    input_file: Path = typer.Argument(
        ...,
        help="Input CSV file with latitude/longitude columns",
    ),
    output: Path = typer.Option(
        ...,
        "--output", "-o",
        help="Output CSV file with a cluster column appended",
    ),
    epsilon: Optional[float] = typer.Option(
        None,
        "--epsilon",
        help="Maximum distance between neighboring points in kilometers (default: from config)",
    ),
    min_samples: Optional[int] = typer.Option(
        None,
        "--min-samples",
        help="Minimum neighborhood size, point included, for a core point (default: from config)",
    ),
    index: Optional[str] = typer.Option(
        None,
        "--index",
        help="Neighbor index: grid or brute (default: from config)",
    ),
) -> Path:
    """Cluster geographic points with DBSCAN and write labeled CSV."""
    epsilon = epsilon if epsilon is not None else settings.DEFAULT_EPSILON_KM
    min_samples = min_samples if min_samples is not None else settings.DEFAULT_MIN_SAMPLES
    index = index or settings.NEIGHBOR_INDEX

    logger.info(
        "Starting clustering",
        input=str(input_file),
        output=str(output),
        epsilon_km=epsilon,
        min_samples=min_samples,
        index=index,
    )

    try:
        clusterer = DBSCANClusterer(
            epsilon_km=epsilon,
            min_samples=min_samples,
            index_kind=index,
        )
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Invalid clustering parameters: {escape(str(e))}")
        raise typer.Exit(1)
    except GeoClusterError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    try:
        console.print(f"Reading CSV file: {escape(str(input_file))}")
        locations = read_locations(input_file)
        console.print(f"Found {len(locations)} locations")

        if not locations:
            raise EmptyInputError(f"No locations found in the input file: {input_file}")

        console.print("Running DBSCAN clustering...")
        assignments, stats = clusterer.cluster_locations(locations)

        console.print(f"Writing results to: {escape(str(output))}")
        write_clustered_csv(output, locations, [a.cluster_id for a in assignments])
    except GeoClusterError as e:
        logger.error("Clustering failed", error=str(e))
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print()
    print_summary(stats)
    console.print("[green]Clustering complete![/green]")

    logger.info(
        "Clustering complete",
        output=str(output),
        total_points=stats.total_points,
        num_clusters=stats.num_clusters,
        num_noise=stats.num_noise_points,
    )

    return output
