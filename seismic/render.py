"""Map and chart views of the joined regions.

Both views take the attribute and its classification explicitly, so they can
be redrawn from a :class:`seismic.session.MapSession` notification.

Hovering a region highlights it on the map only; the bar chart keeps its own
plotly hover. Streamlit renders the two as separate components, so a map hover
does not reach the matching bar.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import folium
import geopandas as gpd
import pandas as pd
import plotly.express as px
from branca.colormap import StepColormap

from seismic.classify import Classification
from seismic.config import Settings

LOGGER = logging.getLogger(__name__)

FILL_COLUMN = "fill_color"
GRATICULE_STEP = 5


def _display_frame(
    features: gpd.GeoDataFrame,
    attribute: str,
    classification: Classification,
    key: str,
) -> gpd.GeoDataFrame:
    """Region, value and fill colour per feature, absent values as ``None``."""
    display = features[[key, attribute, "geometry"]].copy()
    values = display[attribute].astype(object)
    display[attribute] = values.where(display[attribute].notna(), None)
    display[FILL_COLUMN] = [classification.color_of(v) for v in display[attribute]]
    return display


def _graticule(bounds, step: int = GRATICULE_STEP) -> folium.FeatureGroup:
    """Lines every ``step`` degrees covering ``bounds`` (minx, miny, maxx, maxy)."""
    minx, miny, maxx, maxy = bounds
    west = int(minx // step) * step
    south = int(miny // step) * step
    east = (int(maxx // step) + 1) * step
    north = (int(maxy // step) + 1) * step
    group = folium.FeatureGroup(name="Graticule", control=False)
    style = {"color": "#999", "weight": 0.5, "opacity": 0.6}
    for lon in range(west, east + 1, step):
        folium.PolyLine([(south, lon), (north, lon)], **style).add_to(group)
    for lat in range(south, north + 1, step):
        folium.PolyLine([(lat, west), (lat, east)], **style).add_to(group)
    return group


def legend_colormap(
    features: gpd.GeoDataFrame,
    attribute: str,
    classification: Classification,
) -> Optional[StepColormap]:
    """Step legend matching the threshold scale, or ``None`` without data."""
    values = features[attribute].dropna()
    if not classification.colors or values.empty:
        return None
    low, high = float(values.min()), float(values.max())
    top = max(high, classification.breaks[-1]) if classification.breaks else high
    index = [low, *classification.breaks, top]
    if index[-1] <= index[-2]:
        index[-1] = index[-2] + 1e-9
    return StepColormap(list(classification.colors), index=index, vmin=index[0], vmax=index[-1], caption=attribute)


def build_map(
    features: gpd.GeoDataFrame,
    attribute: str,
    classification: Classification,
    settings: Settings,
) -> folium.Map:
    """Choropleth of ``attribute`` with a hover tooltip per region."""
    key = settings.key
    display = _display_frame(features, attribute, classification, key)
    fmap = folium.Map(location=list(settings.map_center), zoom_start=settings.map_zoom_start, tiles=None)
    if not display.empty:
        _graticule(display.total_bounds).add_to(fmap)
    folium.GeoJson(
        data=display,
        name=attribute,
        style_function=lambda feature: {
            "fillColor": feature["properties"][FILL_COLUMN],
            "color": "#000",
            "weight": 0.5,
            "fillOpacity": 1.0,
        },
        highlight_function=lambda feature: {"color": "black", "weight": 2},
        tooltip=folium.features.GeoJsonTooltip(
            fields=[key, attribute],
            aliases=["Region", attribute],
            localize=True,
            sticky=True,
            labels=True,
        ),
    ).add_to(fmap)
    legend = legend_colormap(features, attribute, classification)
    if legend is not None:
        legend.add_to(fmap)
    return fmap


def chart_frame(
    ranking: Sequence[Tuple[str, Optional[float]]],
    attribute: str,
    classification: Classification,
    key: str,
) -> pd.DataFrame:
    """One row per region in ranking order, with the bar colour of each."""
    frame = pd.DataFrame(list(ranking), columns=[key, attribute])
    frame[attribute] = frame[attribute].astype(float)
    frame[FILL_COLUMN] = [classification.color_of(v) for v in frame[attribute]]
    return frame


def build_chart(
    ranking: Sequence[Tuple[str, Optional[float]]],
    attribute: str,
    classification: Classification,
    settings: Settings,
):
    """Bar chart coordinated with the map: bars in ``ranking`` order, same colours.

    ``ranking`` is :meth:`seismic.session.MapSession.ranking`, one pair per
    region sorted by descending value with absent values last.
    """
    key = settings.key
    frame = chart_frame(ranking, attribute, classification, key)
    fig = px.bar(frame, x=key, y=attribute, hover_name=key)
    fig.update_traces(marker_color=frame[FILL_COLUMN].tolist(), marker_line_width=0)
    fig.update_yaxes(range=[0, settings.axis_max(attribute)], title=attribute)
    fig.update_xaxes(title=None, categoryorder="array", categoryarray=frame[key].tolist())
    fig.update_layout(showlegend=False, margin={"l": 25, "r": 2, "t": 5, "b": 5})
    return fig


def breakpoint_labels(classification: Classification) -> List[str]:
    """Human-readable class ranges, e.g. ``"< 2"``, ``"2 – 3"``, ``">= 100"``."""
    labels = []
    for _, low, high in classification.legend():
        if low is None and high is None:
            labels.append("all values")
        elif low is None:
            labels.append(f"< {high:g}")
        elif high is None:
            labels.append(f">= {low:g}")
        else:
            labels.append(f"{low:g} – {high:g}")
    return labels
