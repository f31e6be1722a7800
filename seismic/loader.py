"""Load the regional statistics table and the region boundaries.

Both sources are read concurrently and must both succeed; any failure is
raised as :class:`DataLoadError` and nothing downstream runs.
"""
from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import dataclass
from pathlib import Path

import geopandas as gpd
import pandas as pd
import requests

from seismic.config import Settings
from seismic.join import validate_rows

LOGGER = logging.getLogger(__name__)


class DataLoadError(RuntimeError):
    """Raised when either input source cannot be read."""


@dataclass
class LoadedSources:
    rows: pd.DataFrame
    features: gpd.GeoDataFrame


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def read_bytes(source: str, timeout: float = 30.0) -> bytes:
    """Return the raw content of a local path or an http(s) URL."""
    if _is_url(source):
        LOGGER.info("Requesting %s", source)
        response = requests.get(source, timeout=timeout)
        response.raise_for_status()
        return response.content
    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"Missing source file: {path}")
    return path.read_bytes()


def read_rows(source: str, settings: Settings) -> pd.DataFrame:
    """Read the CSV with every field kept as raw text."""
    content = read_bytes(source, timeout=settings.request_timeout_seconds)
    rows = pd.read_csv(io.BytesIO(content), dtype=str, keep_default_na=False, encoding="utf-8")
    rows = validate_rows(rows, settings.attributes, settings.key)
    LOGGER.info("Read %s tabular rows from %s", len(rows), source)
    return rows


def read_features(source: str, settings: Settings) -> gpd.GeoDataFrame:
    """Read GeoJSON or TopoJSON boundaries into a GeoDataFrame in EPSG:4326."""
    content = read_bytes(source, timeout=settings.request_timeout_seconds)
    kwargs = {}
    if settings.boundaries_layer and Path(source.split("?")[0]).suffix.lower() == ".topojson":
        kwargs["layer"] = settings.boundaries_layer
    gdf = gpd.read_file(io.BytesIO(content), **kwargs)
    if settings.key not in gdf.columns:
        raise KeyError(f"Boundary features have no {settings.key!r} property")
    if gdf.crs is None:
        gdf = gdf.set_crs(4326)
    else:
        gdf = gdf.to_crs(4326)
    LOGGER.info("Read %s boundary features from %s", len(gdf), source)
    return gdf


async def _load(label: str, reader, source: str, settings: Settings):
    try:
        return await asyncio.to_thread(reader, source, settings)
    except Exception as exc:
        raise DataLoadError(f"Failed to load {label} from {source}: {exc}") from exc


async def load_sources_async(settings: Settings) -> LoadedSources:
    """Read both sources concurrently; the first failure aborts the load."""
    gathered = asyncio.gather(
        _load("tabular data", read_rows, settings.csv_source, settings),
        _load("boundaries", read_features, settings.boundaries_source, settings),
    )
    try:
        if settings.load_timeout_seconds is not None:
            rows, features = await asyncio.wait_for(gathered, timeout=settings.load_timeout_seconds)
        else:
            rows, features = await gathered
    except asyncio.TimeoutError as exc:
        raise DataLoadError(
            f"Loading sources did not finish within {settings.load_timeout_seconds} seconds"
        ) from exc
    return LoadedSources(rows=rows, features=features)


def load_sources(settings: Settings) -> LoadedSources:
    """Synchronous entry point around :func:`load_sources_async`."""
    return asyncio.run(load_sources_async(settings))
