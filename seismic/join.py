"""Join regional statistics onto the boundary polygons."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

import geopandas as gpd
import numpy as np
import pandas as pd
from pandera.pandas import Check, Column, DataFrameSchema

from seismic.config import ATTRIBUTES, REGION_KEY

LOGGER = logging.getLogger(__name__)


def make_rows_schema(attributes: Iterable[str] = ATTRIBUTES, key: str = REGION_KEY) -> DataFrameSchema:
    """Schema for the raw tabular rows: a unique region key plus every tracked column.

    Attribute columns stay text here; numeric parsing happens during the join
    so that unparsable fields become absent rather than failing the load.
    """
    columns: Dict[str, Column] = {
        key: Column(str, nullable=False, unique=True, coerce=True, checks=[Check.str_length(min_value=1)]),
    }
    for attr in attributes:
        columns[attr] = Column(str, nullable=True, coerce=True)
    return DataFrameSchema(columns, strict=False)


def validate_rows(rows: pd.DataFrame, attributes: Iterable[str] = ATTRIBUTES, key: str = REGION_KEY) -> pd.DataFrame:
    return make_rows_schema(attributes, key).validate(rows)


def parse_float(value) -> Optional[float]:
    """Parse a single field to a finite float, or ``None`` when it is absent."""
    parsed = coerce_numeric(pd.Series([value], dtype=object)).iloc[0]
    return None if parsed is pd.NA else float(parsed)


def coerce_numeric(series: pd.Series) -> pd.Series:
    """Nullable ``Float64`` copy of ``series``; failed parses become ``<NA>``.

    Fields are trimmed before parsing. Empty, non-numeric and non-finite
    fields (``nan``, ``inf``) are all absent.
    """
    text = series.astype("string").str.strip()
    numbers = pd.to_numeric(text, errors="coerce").astype("Float64")
    finite = np.isfinite(numbers.to_numpy(dtype=float, na_value=np.nan))
    return numbers.where(finite, pd.NA)


def join_records(
    features: gpd.GeoDataFrame,
    rows: pd.DataFrame,
    attributes: Iterable[str] = ATTRIBUTES,
    key: str = REGION_KEY,
) -> gpd.GeoDataFrame:
    """Copy each tracked attribute from the row whose key equals the feature's key.

    Keys match on exact string equality. Features without a matching row keep
    every attribute absent (``<NA>``), never zero. The inputs are left
    untouched; a new GeoDataFrame is returned.
    """
    attributes = list(attributes)
    if key not in features.columns:
        raise KeyError(f"Boundary features have no {key!r} property")
    missing = [col for col in [key, *attributes] if col not in rows.columns]
    if missing:
        raise KeyError(f"Tabular rows missing columns: {missing}")

    index: Dict[str, int] = {}
    for position, name in enumerate(rows[key]):
        if name in index:
            raise ValueError(f"Duplicate region key in tabular rows: {name!r}")
        index[name] = position
    numeric = {attr: coerce_numeric(rows[attr]) for attr in attributes}

    joined = features.copy()
    names = joined[key].tolist()
    for attr in attributes:
        column = numeric[attr]
        values = [column.iloc[index[name]] if name in index else pd.NA for name in names]
        joined[attr] = pd.array(values, dtype="Float64")

    matched = {name for name in names if name in index}
    unmatched_features = sorted({str(name) for name in names if name not in index})
    unmatched_rows = sorted(set(index) - matched)
    LOGGER.info("Joined %s of %s boundary features to tabular rows", sum(n in index for n in names), len(names))
    if unmatched_features:
        LOGGER.info("Features without tabular data: %s", ", ".join(unmatched_features))
    if unmatched_rows:
        LOGGER.info("Tabular rows without a boundary feature: %s", ", ".join(unmatched_rows))
    return joined


def _one_per_region(features: pd.DataFrame, key: str) -> pd.DataFrame:
    """First feature of every region; a region drawn as several polygons counts once."""
    return features.drop_duplicates(subset=key, keep="first")


def present_values(features: pd.DataFrame, attribute: str, key: str = REGION_KEY) -> np.ndarray:
    """Finite values of ``attribute``, one per region; absent entries are dropped."""
    values = _one_per_region(features, key)[attribute].dropna().to_numpy(dtype=float)
    return values[np.isfinite(values)]


def region_values(features: pd.DataFrame, attribute: str, key: str = REGION_KEY) -> List[tuple]:
    """(region, value) pairs, one per region in feature order, ``None`` for absent values."""
    regions = _one_per_region(features, key)
    return [(name, None if pd.isna(value) else float(value)) for name, value in zip(regions[key], regions[attribute])]


__all__ = [
    "coerce_numeric",
    "join_records",
    "make_rows_schema",
    "parse_float",
    "present_values",
    "region_values",
    "validate_rows",
]
