"""Settings for the Seismic Lands map.

Settings live in ``config/settings.yml``. When the file is missing the
built-in defaults below are used, so the map can still be rendered from
``data/D3_data.csv`` and ``data/NZ_Boundaries.topojson``.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

LOGGER = logging.getLogger(__name__)


def project_root() -> Path:
    return Path(__file__).resolve().parents[1]


CONFIG_DIR = project_root() / "config"
DEFAULT_SETTINGS_PATH = CONFIG_DIR / "settings.yml"

REGION_KEY = "Region"

# Attribute name -> upper bound of the bar chart axis
ATTRIBUTE_AXIS_MAX: Dict[str, float] = {
    "Seismic Events per 10000 km²": 50,
    "Avg. Earthquake Magnitude": 5,
    "Avg. Depth of Earthquakes (km)": 105,
    "Population Density (km²)": 295,
    "Expected Tsunami Height (m/10000km²)": 15,
}
ATTRIBUTES: List[str] = list(ATTRIBUTE_AXIS_MAX)

PALETTE: Tuple[str, ...] = ("#FFFFB2", "#FECC5C", "#FD8D3C", "#F03B20", "#BD0026")
FALLBACK_COLOR = "#CCC"
CLASS_COUNT = 5


@dataclass
class Settings:
    csv_source: str = str(project_root() / "data" / "D3_data.csv")
    boundaries_source: str = str(project_root() / "data" / "NZ_Boundaries.topojson")
    boundaries_layer: Optional[str] = "NZ_Boundaries"
    key: str = REGION_KEY
    attribute_axis_max: Dict[str, float] = field(default_factory=lambda: dict(ATTRIBUTE_AXIS_MAX))
    scheme: str = "natural_breaks"
    class_count: int = CLASS_COUNT
    palette: Tuple[str, ...] = PALETTE
    fallback_color: str = FALLBACK_COLOR
    load_timeout_seconds: Optional[float] = None
    request_timeout_seconds: float = 30.0
    map_center: Tuple[float, float] = (-40.75, 173.0)
    map_zoom_start: int = 5

    @property
    def attributes(self) -> List[str]:
        return list(self.attribute_axis_max)

    def axis_max(self, attribute: str) -> float:
        return float(self.attribute_axis_max[attribute])


def read_yaml(path: Path) -> dict:
    import yaml  # deferred import
    with path.open("r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def _resolve_source(value: str, base: Path) -> str:
    """Resolve relative local paths against ``base``; leave URLs untouched."""
    if "://" in value:
        return value
    path = Path(value)
    if not path.is_absolute():
        path = base / path
    return str(path)


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load settings from YAML, falling back to defaults when absent.

    The path is taken from the argument, then ``SEISMIC_SETTINGS``, then
    ``config/settings.yml``. Relative data paths are resolved against the
    parent of the directory holding the settings file.
    """
    if path is None:
        path = Path(os.environ.get("SEISMIC_SETTINGS", DEFAULT_SETTINGS_PATH))
    path = Path(path)
    if not path.exists():
        LOGGER.warning("Settings config missing at %s; using defaults", path)
        return Settings()

    cfg = read_yaml(path)
    base = path.resolve().parent.parent
    settings = Settings()

    data_cfg = cfg.get("data", {}) or {}
    if "csv" in data_cfg:
        settings.csv_source = _resolve_source(str(data_cfg["csv"]), base)
    if "boundaries" in data_cfg:
        settings.boundaries_source = _resolve_source(str(data_cfg["boundaries"]), base)
    if "layer" in data_cfg:
        settings.boundaries_layer = data_cfg["layer"] or None
    if "key" in data_cfg:
        settings.key = str(data_cfg["key"])

    attributes = cfg.get("attributes")
    if attributes:
        settings.attribute_axis_max = {str(name): float(top) for name, top in attributes.items()}

    class_cfg = cfg.get("classification", {}) or {}
    settings.scheme = str(class_cfg.get("scheme", settings.scheme))
    settings.class_count = int(class_cfg.get("class_count", settings.class_count))
    if "palette" in class_cfg:
        settings.palette = tuple(str(c) for c in class_cfg["palette"])
    settings.fallback_color = str(class_cfg.get("fallback_color", settings.fallback_color))

    if cfg.get("load_timeout_seconds") is not None:
        settings.load_timeout_seconds = float(cfg["load_timeout_seconds"])
    if cfg.get("request_timeout_seconds") is not None:
        settings.request_timeout_seconds = float(cfg["request_timeout_seconds"])

    map_cfg = cfg.get("map", {}) or {}
    if "center" in map_cfg:
        lat, lon = map_cfg["center"]
        settings.map_center = (float(lat), float(lon))
    if "zoom_start" in map_cfg:
        settings.map_zoom_start = int(map_cfg["zoom_start"])

    validate_settings(settings)
    LOGGER.debug("Loaded settings from %s", path)
    return settings


def validate_settings(settings: Settings) -> None:
    if settings.class_count < 1:
        raise ValueError(f"class_count must be at least 1, got {settings.class_count}")
    if not settings.palette:
        raise ValueError("palette must contain at least one colour")
    if settings.class_count > len(settings.palette):
        raise ValueError(
            f"class_count {settings.class_count} exceeds the {len(settings.palette)} palette colours"
        )
    if settings.fallback_color in settings.palette:
        raise ValueError(f"fallback colour {settings.fallback_color} is also a palette colour")
    if not settings.attribute_axis_max:
        raise ValueError("at least one attribute must be configured")
    # Scheme names are checked by the classifier
    from seismic.classify import Scheme

    Scheme.parse(settings.scheme)
