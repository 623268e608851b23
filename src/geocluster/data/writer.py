"""
CSV output of clustered records.
"""
import csv
from pathlib import Path
from typing import List, Sequence

from geocluster.core.exceptions import OutputError
from geocluster.core.models import Location
from geocluster.utils.logger import logger

CLUSTER_COLUMN = "cluster"


def output_headers(locations: Sequence[Location]) -> List[str]:
    """Sorted attribute names of the first record plus the cluster column."""
    if not locations:
        return []
    return sorted(locations[0].attributes.keys()) + [CLUSTER_COLUMN]


def write_clustered_csv(
    path: Path,
    locations: Sequence[Location],
    labels: Sequence[int],
) -> Path:
    """
    Write every record with its cluster label appended.

    Args:
        path: Destination CSV file (parent directories are created)
        locations: Records in input order
        labels: One cluster label per record (-1 for noise)

    Returns:
        The path written

    Raises:
        OutputError: If label and record counts differ or the file can't be written
    """
    path = Path(path)
    if len(labels) != len(locations):
        raise OutputError(
            f"Label count ({len(labels)}) does not match record count ({len(locations)})"
        )

    headers = output_headers(locations)
    attribute_headers = headers[:-1]

    logger.info("Writing results", path=str(path), rows=len(locations))

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            if headers:
                writer.writerow(headers)
            for location, label in zip(locations, labels):
                row = [location.attributes.get(h, "") for h in attribute_headers]
                row.append(str(int(label)))
                writer.writerow(row)
    except OSError as e:
        raise OutputError(f"Failed to write output file {path}: {e}") from e

    return path
