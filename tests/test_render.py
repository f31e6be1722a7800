import folium
import pandas as pd
import pytest

from seismic.classify import classify
from seismic.config import ATTRIBUTES, FALLBACK_COLOR, PALETTE, Settings
from seismic.join import join_records, present_values
from seismic.render import (
    FILL_COLUMN,
    breakpoint_labels,
    build_chart,
    build_map,
    chart_frame,
    legend_colormap,
)
from seismic.session import MapSession

EVENTS, MAGNITUDE, DEPTH, POPULATION, TSUNAMI = ATTRIBUTES


@pytest.fixture
def joined(features, rows):
    return join_records(features, rows)


def _classification(joined, attribute):
    return classify(present_values(joined, attribute))


def test_chart_frame_orders_bars_and_colours(joined):
    session = MapSession(joined, Settings())
    frame = chart_frame(session.ranking(), EVENTS, session.classification, "Region")

    assert frame["Region"].tolist() == ["Wellington", "Canterbury", "Auckland", "Otago", "Southland"]
    assert frame[FILL_COLUMN].tolist()[0] == PALETTE[-1]
    assert frame[FILL_COLUMN].tolist()[-2:] == [FALLBACK_COLOR, FALLBACK_COLOR]


def test_build_chart_uses_attribute_axis(joined):
    settings = Settings()
    session = MapSession(joined, settings, attribute=DEPTH)
    fig = build_chart(session.ranking(), DEPTH, session.classification, settings)

    assert tuple(fig.layout.yaxis.range) == (0, 105)
    assert len(fig.data) == 1
    assert list(fig.data[0].marker.color)[0] == session.classification.color_of(33.0)


def test_chart_has_one_bar_per_region_when_split_into_polygons(features, rows):
    split = pd.concat([features, features.iloc[[0, 0]]], ignore_index=True)
    settings = Settings()
    session = MapSession(join_records(split, rows), settings)
    fig = build_chart(session.ranking(), EVENTS, session.classification, settings)

    regions = list(fig.layout.xaxis.categoryarray)
    assert regions.count("Auckland") == 1
    assert len(regions) == 5


def test_build_map_styles_regions_from_classification(joined):
    settings = Settings()
    classification = _classification(joined, TSUNAMI)
    fmap = build_map(joined, TSUNAMI, classification, settings)

    assert isinstance(fmap, folium.Map)
    layers = [child for child in fmap._children.values() if isinstance(child, folium.GeoJson)]
    assert len(layers) == 1
    layer = layers[0]
    fills = {
        feature["properties"]["Region"]: layer.style_function(feature)["fillColor"]
        for feature in layer.data["features"]
    }
    assert fills["Canterbury"] == FALLBACK_COLOR
    assert fills["Southland"] == FALLBACK_COLOR
    assert fills["Wellington"] == PALETTE[-1]
    assert "<html" in fmap.get_root().render().lower()


def test_legend_matches_breaks(joined):
    classification = _classification(joined, POPULATION)
    legend = legend_colormap(joined, POPULATION, classification)

    assert legend is not None
    assert list(legend.index[1:-1]) == list(classification.breaks)


def test_legend_absent_without_data(joined):
    classification = classify([])

    assert legend_colormap(joined, EVENTS, classification) is None


def test_breakpoint_labels():
    labels = breakpoint_labels(classify([1, 2, 3, 4, 100]))

    assert labels == ["< 2", "2 – 3", "3 – 4", "4 – 100", ">= 100"]
