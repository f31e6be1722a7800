import sys
from pathlib import Path

import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import box

sys.path.append(str(Path(__file__).resolve().parents[1]))

from seismic.config import ATTRIBUTES, Settings  # noqa: E402

EVENTS, MAGNITUDE, DEPTH, POPULATION, TSUNAMI = ATTRIBUTES


@pytest.fixture
def rows() -> pd.DataFrame:
    """Raw tabular rows, every field as text the way the loader reads them."""
    return pd.DataFrame(
        [
            {"Region": "Auckland", EVENTS: "3.1", MAGNITUDE: "4.2", DEPTH: "12", POPULATION: "241.6", TSUNAMI: "2.5"},
            {"Region": "Canterbury", EVENTS: "27.4", MAGNITUDE: "3.9", DEPTH: "8.5", POPULATION: "8.3", TSUNAMI: ""},
            {"Region": "Wellington", EVENTS: "41.0", MAGNITUDE: "3.1", DEPTH: "33", POPULATION: "63.5", TSUNAMI: "11.2"},
            {"Region": "Otago", EVENTS: "n/a", MAGNITUDE: "2.8", DEPTH: "7", POPULATION: "6.9", TSUNAMI: "0.4"},
            {"Region": "Chatham Islands", EVENTS: "1.0", MAGNITUDE: "2.2", DEPTH: "15", POPULATION: "0.6", TSUNAMI: "9.0"},
        ]
    )


@pytest.fixture
def features() -> gpd.GeoDataFrame:
    """Boundary features; Southland has no tabular row."""
    return gpd.GeoDataFrame(
        {
            "Region": ["Auckland", "Canterbury", "Wellington", "Otago", "Southland"],
            "geometry": [
                box(174.0, -37.5, 175.5, -36.0),
                box(170.5, -44.5, 173.5, -42.0),
                box(174.5, -41.5, 176.0, -40.5),
                box(168.5, -46.5, 171.0, -44.5),
                box(166.5, -47.0, 168.5, -45.0),
            ],
        },
        crs="EPSG:4326",
    )


@pytest.fixture
def data_dir(tmp_path, rows, features) -> Path:
    rows.to_csv(tmp_path / "regions.csv", index=False)
    features.to_file(tmp_path / "regions.geojson", driver="GeoJSON")
    return tmp_path


@pytest.fixture
def settings(data_dir) -> Settings:
    return Settings(
        csv_source=str(data_dir / "regions.csv"),
        boundaries_source=str(data_dir / "regions.geojson"),
        boundaries_layer=None,
    )
