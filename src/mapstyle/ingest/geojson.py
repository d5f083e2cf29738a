"""Parse GeoJSON (RFC 7946) text into a FeatureCollection dict.

Accepts a FeatureCollection or a single Feature (wrapped into a
collection). Features keep their geometry and properties untouched.
"""

from __future__ import annotations

import json

from mapstyle.errors import InvalidDocument


def parse_geojson(geojson_string: str | bytes) -> dict:
    """Parse GeoJSON text.

    Raises:
        InvalidDocument: On malformed JSON or a payload that is not a
            Feature or FeatureCollection.
    """
    try:
        data = json.loads(geojson_string)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        raise InvalidDocument(f"Invalid GeoJSON: {e}") from e
    return as_feature_collection(data)


def as_feature_collection(data: object) -> dict:
    """Normalize an already-parsed payload into a FeatureCollection.

    Raises:
        InvalidDocument: If the payload has no usable feature list.
    """
    if not isinstance(data, dict):
        raise InvalidDocument("GeoJSON must be a JSON object")
    if data.get("type") == "Feature":
        return {"type": "FeatureCollection", "features": [data]}
    features = data.get("features")
    if not isinstance(features, list):
        raise InvalidDocument("GeoJSON must be a FeatureCollection with a 'features' list")
    return {**data, "type": "FeatureCollection"}


def first_geometry_type(collection: dict) -> str | None:
    """Geometry type of the first feature, or None if there is none."""
    features = collection.get("features") or []
    if not features or not isinstance(features[0], dict):
        return None
    geometry = features[0].get("geometry")
    if not isinstance(geometry, dict):
        return None
    geom_type = geometry.get("type")
    return geom_type if isinstance(geom_type, str) else None
