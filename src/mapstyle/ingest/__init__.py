"""Data ingestion - GeoJSON, CSV and URL payloads to styled layers."""

from mapstyle.ingest.csv_import import parse_csv
from mapstyle.ingest.geojson import parse_geojson
from mapstyle.ingest.synthesizer import DataIngestor

__all__ = ["DataIngestor", "parse_csv", "parse_geojson"]
