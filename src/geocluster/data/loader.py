"""
CSV loading for geographic records.

Coordinate columns are located by case-insensitive header matching; every
column, coordinates included, is kept as an opaque string attribute.
"""
import csv
import math
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from geocluster.core.exceptions import InputError
from geocluster.core.models import Location, Point
from geocluster.utils.logger import logger

LATITUDE_CANDIDATES = ("lat", "latitude", "Latitude", "LAT")
LONGITUDE_CANDIDATES = ("lon", "lng", "long", "longitude", "Longitude", "LON", "LNG")


@dataclass
class CoordinateColumns:
    """Result of coordinate column detection on a CSV file."""

    headers: List[str]
    latitude_column: str
    longitude_column: str
    num_rows: int


def find_coordinate_column(headers: Sequence[str], candidates: Sequence[str]) -> int:
    """
    Position of the first header matching any candidate, ignoring case.

    Raises:
        InputError: If no header matches
    """
    lowered = {name.lower() for name in candidates}
    for i, header in enumerate(headers):
        if header.lower() in lowered:
            return i

    raise InputError(
        "Could not find coordinate column. "
        f"Looking for one of: {list(candidates)}. Available headers: {list(headers)}"
    )


def parse_coordinate(value: str, column: str, row_number: int) -> float:
    """Parse one coordinate cell, raising InputError on anything non-finite."""
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        raise InputError(
            f"Row {row_number}: failed to parse {column} value {value!r} as a number"
        )
    if not math.isfinite(parsed):
        raise InputError(f"Row {row_number}: {column} value {value!r} is not finite")
    return parsed


def _read_rows(path: Path) -> List[List[str]]:
    try:
        with open(path, "r", newline="", encoding="utf-8-sig") as f:
            return list(csv.reader(f))
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise InputError(f"Failed to read input file {path}: {e}") from e


def read_locations(path: Path) -> List[Location]:
    """
    Load all records from a CSV file with a header row.

    Args:
        path: CSV file path

    Returns:
        One Location per data row, in file order. Empty if the file has a
        header but no data rows.

    Raises:
        InputError: If the file is unreadable, a coordinate column is
            missing, a row is longer than the header, or a coordinate cell
            is not a finite number
    """
    path = Path(path)
    logger.info("Reading CSV file", path=str(path))

    rows = _read_rows(path)
    headers = rows[0] if rows else []

    lat_idx = find_coordinate_column(headers, LATITUDE_CANDIDATES)
    lon_idx = find_coordinate_column(headers, LONGITUDE_CANDIDATES)
    lat_name, lon_name = headers[lat_idx], headers[lon_idx]

    locations = []
    for row_number, record in enumerate(rows[1:], start=1):
        if not record:
            continue
        if len(record) > len(headers):
            raise InputError(
                f"Row {row_number}: found {len(record)} fields but the header has {len(headers)}"
            )

        if lat_idx >= len(record):
            raise InputError(f"Row {row_number}: missing {lat_name} value")
        if lon_idx >= len(record):
            raise InputError(f"Row {row_number}: missing {lon_name} value")

        lat = parse_coordinate(record[lat_idx], lat_name, row_number)
        lon = parse_coordinate(record[lon_idx], lon_name, row_number)

        # Short rows keep their missing attributes as empty strings
        attributes = {
            header: (record[i] if i < len(record) else "")
            for i, header in enumerate(headers)
        }

        locations.append(
            Location(point=Point(latitude=lat, longitude=lon), attributes=attributes)
        )

    logger.info(
        "Loaded locations",
        count=len(locations),
        latitude_column=lat_name,
        longitude_column=lon_name,
    )

    return locations


def detect_coordinate_columns(path: Path) -> CoordinateColumns:
    """
    Identify the coordinate columns of a CSV file without parsing values.

    Raises:
        InputError: If the file is unreadable or a coordinate column is missing
    """
    rows = _read_rows(Path(path))
    headers = rows[0] if rows else []

    lat_idx = find_coordinate_column(headers, LATITUDE_CANDIDATES)
    lon_idx = find_coordinate_column(headers, LONGITUDE_CANDIDATES)

    return CoordinateColumns(
        headers=list(headers),
        latitude_column=headers[lat_idx],
        longitude_column=headers[lon_idx],
        num_rows=sum(1 for record in rows[1:] if record),
    )
