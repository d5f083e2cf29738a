"""Parse CSV with latitude/longitude columns to a point FeatureCollection.

Uses stdlib csv module. The latitude column is the first header containing
"lat", the longitude column the first containing "lng" or "lon"
(case-insensitive). All other columns become string properties.
Coordinates are stored as [lng, lat] (GeoJSON convention).
"""

from __future__ import annotations

import csv
import io
import math

from loguru import logger

from mapstyle.errors import MissingCoordinateColumns


def find_coordinate_columns(headers: list[str]) -> tuple[str, str]:
    """Return (latitude header, longitude header).

    Raises:
        MissingCoordinateColumns: If either column cannot be identified.
    """
    lat_col = next((h for h in headers if "lat" in h.strip().lower()), None)
    lng_col = next(
        (h for h in headers if h != lat_col and ("lng" in h.strip().lower() or "lon" in h.strip().lower())),
        None,
    )
    if lat_col is None or lng_col is None:
        raise MissingCoordinateColumns("CSV must contain latitude and longitude columns")
    return lat_col, lng_col


def _coordinate(raw: object) -> float | None:
    try:
        value = float(str(raw).strip())
    except (ValueError, TypeError):
        return None
    return value if math.isfinite(value) else None


def parse_csv(csv_string: str) -> dict:
    """Parse CSV text into a GeoJSON FeatureCollection of Points.

    Rows whose latitude or longitude is not a finite number are dropped.

    Raises:
        MissingCoordinateColumns: If there is no header row or the header
            lacks latitude/longitude columns.
    """
    reader = csv.DictReader(io.StringIO(csv_string), skipinitialspace=True)
    if not reader.fieldnames:
        raise MissingCoordinateColumns("CSV has no header row")
    headers = [h.strip() for h in reader.fieldnames]
    reader.fieldnames = headers
    lat_col, lng_col = find_coordinate_columns(headers)

    features: list[dict] = []
    dropped = 0
    for row in reader:
        lat = _coordinate(row.get(lat_col))
        lng = _coordinate(row.get(lng_col))
        if lat is None or lng is None:
            dropped += 1
            continue

        properties: dict = {}
        for key in headers:
            if key not in (lat_col, lng_col):
                value = row.get(key)
                properties[key] = value.strip() if isinstance(value, str) else value

        features.append({
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [lng, lat]},
            "properties": properties,
        })

    if dropped:
        logger.debug(f"CSV import dropped {dropped} row(s) without valid coordinates")
    return {"type": "FeatureCollection", "features": features}
