"""DataIngestor - turn feature data into a new source and a styled layer.

The layer type and default paint follow the geometry family of the first
feature.  A mixed collection is styled by its first feature only; features
of other families still draw, with that layer type's paint.
"""

from __future__ import annotations

import copy
import os
import time

import httpx
from loguru import logger

from mapstyle.document import USER_LAYER_MARKER
from mapstyle.errors import FetchFailure, InvalidDocument, RendererRejected, UnsupportedFileType
from mapstyle.history import VersionHistory
from mapstyle.ingest.csv_import import parse_csv
from mapstyle.ingest.geojson import as_feature_collection, first_geometry_type, parse_geojson
from mapstyle.presets import GEOMETRY_STYLES
from mapstyle.renderer import RendererError
from mapstyle.store import StyleStore

DATA_EXTENSIONS = (".geojson", ".json", ".csv")


def layer_for_collection(layer_id: str, collection: dict) -> dict:
    """Build the layer definition for a feature collection.

    Raises:
        InvalidDocument: If the collection is empty or the first feature's
            geometry type is not a Point/Line/Polygon family.
    """
    geom_type = first_geometry_type(collection)
    if geom_type is None:
        raise InvalidDocument("Feature collection has no features with geometry")
    style = GEOMETRY_STYLES.get(geom_type)
    if style is None:
        raise InvalidDocument(f"Unsupported geometry type: {geom_type}")
    layer_type, paint = style
    return {
        "id": layer_id,
        "type": layer_type,
        "source": layer_id,
        "metadata": {USER_LAYER_MARKER: True},
        "paint": copy.deepcopy(paint),
    }


class DataIngestor:
    """Adds external feature data to the live style."""

    def __init__(
        self,
        store: StyleStore,
        history: VersionHistory,
        fetch_timeout: float = 15.0,
        user_agent: str = "MapStyle-Studio/0.1.0",
    ) -> None:
        self._store = store
        self._history = history
        self._fetch_timeout = fetch_timeout
        self._user_agent = user_agent

    def _fresh_id(self, prefix: str) -> str:
        """``<prefix>-<millis>``, bumped until unused as source and layer id."""
        document = self._store.peek()
        stamp = int(time.time() * 1000)
        while True:
            candidate = f"{prefix}-{stamp}"
            if candidate not in document.sources and not document.has_layer(candidate):
                return candidate
            stamp += 1

    def add_feature_collection(self, collection: dict, prefix: str = "imported") -> str:
        """Add a feature collection as a new geojson source + layer.

        Returns:
            The id shared by the new source and layer.

        Raises:
            InvalidDocument: Empty collection or unsupported geometry.
            RendererRejected: The renderer refused the source or layer;
                nothing is left behind.
        """
        collection = as_feature_collection(collection)
        source_id = self._fresh_id(prefix)
        layer = layer_for_collection(source_id, collection)

        renderer = self._store.renderer
        try:
            renderer.add_source(source_id, {"type": "geojson", "data": collection})
        except RendererError as e:
            logger.warning(f"Renderer rejected source {source_id}: {e}")
            raise RendererRejected(str(e)) from e
        try:
            renderer.add_layer(layer)
        except RendererError as e:
            renderer.remove_source(source_id)
            logger.warning(f"Renderer rejected layer {source_id}: {e}")
            raise RendererRejected(str(e)) from e

        self._store.refresh()
        self._history.save(f"Imported data: {source_id}")
        logger.info(
            f"Imported {len(collection['features'])} feature(s) as {layer['type']} layer {source_id}"
        )
        return source_id

    def add_geojson_text(self, text: str, prefix: str = "geojson") -> str:
        """Parse pasted GeoJSON and add it."""
        return self.add_feature_collection(parse_geojson(text), prefix=prefix)

    def add_file(self, filename: str, content: str) -> str:
        """Add an uploaded .geojson/.json/.csv file.

        Raises:
            UnsupportedFileType: For any other extension.
            MissingCoordinateColumns: CSV without latitude/longitude columns.
            InvalidDocument: Malformed GeoJSON or no usable features.
        """
        ext = os.path.splitext(filename)[1].lower()
        if ext not in DATA_EXTENSIONS:
            raise UnsupportedFileType(f"Supported formats: GeoJSON (.geojson, .json), CSV (.csv); got {filename!r}")
        if ext == ".csv":
            collection = parse_csv(content)
        else:
            collection = parse_geojson(content)
        return self.add_feature_collection(collection, prefix="imported")

    async def fetch_collection(self, url: str) -> dict:
        """Fetch and parse a remote GeoJSON payload without touching the style.

        Raises:
            FetchFailure: Transport error, HTTP error status, or a body that
                is not JSON.
            InvalidDocument: JSON that is not a feature collection.
        """
        async with httpx.AsyncClient() as client:
            try:
                resp = await client.get(
                    url,
                    headers={"User-Agent": self._user_agent},
                    timeout=self._fetch_timeout,
                    follow_redirects=True,
                )
                resp.raise_for_status()
            except httpx.HTTPError as e:
                logger.warning(f"Data fetch failed: {url}: {e}")
                raise FetchFailure(f"Could not fetch {url}: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            logger.warning(f"Data fetch returned non-JSON body: {url}")
            raise FetchFailure(f"Response from {url} is not JSON") from e
        return as_feature_collection(data)

    async def add_url(self, url: str) -> str:
        """Fetch GeoJSON from a URL and add it once fully parsed."""
        collection = await self.fetch_collection(url)
        return self.add_feature_collection(collection, prefix="url")
