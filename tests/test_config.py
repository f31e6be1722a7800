from pathlib import Path

import pytest
import yaml

from seismic.config import ATTRIBUTES, DEFAULT_SETTINGS_PATH, Settings, load_settings


def test_missing_settings_file_uses_defaults(tmp_path):
    settings = load_settings(tmp_path / "nope.yml")

    assert settings == Settings()
    assert settings.attributes == ATTRIBUTES
    assert settings.axis_max("Avg. Earthquake Magnitude") == 5


def test_shipped_settings_file_loads():
    settings = load_settings(DEFAULT_SETTINGS_PATH)

    assert settings.attributes == ATTRIBUTES
    assert settings.scheme == "natural_breaks"
    assert settings.class_count == 5
    assert Path(settings.csv_source).name == "D3_data.csv"
    assert settings.boundaries_layer == "NZ_Boundaries"


def _write(tmp_path, cfg) -> Path:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    path = config_dir / "settings.yml"
    path.write_text(yaml.safe_dump(cfg, allow_unicode=True), encoding="utf-8")
    return path


def test_relative_paths_resolve_against_project_root(tmp_path):
    path = _write(
        tmp_path,
        {
            "data": {"csv": "data/table.csv", "boundaries": "https://example.org/nz.geojson", "layer": None},
            "classification": {"scheme": "quantile"},
        },
    )
    settings = load_settings(path)

    assert Path(settings.csv_source) == tmp_path.resolve() / "data" / "table.csv"
    assert settings.boundaries_source == "https://example.org/nz.geojson"
    assert settings.boundaries_layer is None
    assert settings.scheme == "quantile"


def test_env_var_selects_settings_file(tmp_path, monkeypatch):
    path = _write(tmp_path, {"map": {"zoom_start": 7}, "load_timeout_seconds": 12})
    monkeypatch.setenv("SEISMIC_SETTINGS", str(path))

    settings = load_settings()

    assert settings.map_zoom_start == 7
    assert settings.load_timeout_seconds == 12.0


@pytest.mark.parametrize(
    "classification",
    [
        {"scheme": "equal_interval"},
        {"class_count": 0},
        {"class_count": 6},
        {"fallback_color": "#FFFFB2"},
    ],
)
def test_invalid_settings_are_rejected(tmp_path, classification):
    path = _write(tmp_path, {"classification": classification})

    with pytest.raises(ValueError):
        load_settings(path)
