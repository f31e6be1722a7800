"""Session state for one loaded map: the joined regions and the selected attribute."""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple

import geopandas as gpd

from seismic.classify import Classification, classify
from seismic.config import Settings
from seismic.join import present_values, region_values

LOGGER = logging.getLogger(__name__)

Listener = Callable[["MapSession", Classification], None]


class MapSession:
    """Owns the selected attribute and its classification.

    The joined features are loaded once and never changed. Selecting an
    attribute recomputes the classification and notifies every subscriber,
    so a renderer only has to redraw from ``(session, classification)``.

    Values are taken once per region, so a region drawn as several polygons
    weighs as much in the classification and the ranking as any other.
    """

    def __init__(self, features: gpd.GeoDataFrame, settings: Settings, attribute: Optional[str] = None):
        self.features = features
        self.settings = settings
        self._listeners: List[Listener] = []
        self.attribute = attribute or settings.attributes[0]
        self._check_attribute(self.attribute)
        self.classification = self._classify(self.attribute)
        self._values = self._region_values(self.attribute)

    def _check_attribute(self, attribute: str) -> None:
        if attribute not in self.settings.attributes:
            raise ValueError(f"Unknown attribute {attribute!r}; expected one of {self.settings.attributes}")

    def _classify(self, attribute: str) -> Classification:
        return classify(
            present_values(self.features, attribute, self.settings.key),
            scheme=self.settings.scheme,
            class_count=self.settings.class_count,
            palette=self.settings.palette,
            fallback=self.settings.fallback_color,
        )

    def _region_values(self, attribute: str) -> Dict[str, Optional[float]]:
        return dict(region_values(self.features, attribute, self.settings.key))

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def select(self, attribute: str) -> Classification:
        self._check_attribute(attribute)
        self.attribute = attribute
        self.classification = self._classify(attribute)
        self._values = self._region_values(attribute)
        LOGGER.info("Selected %s with breaks %s", attribute, list(self.classification.breaks))
        for listener in list(self._listeners):
            listener(self, self.classification)
        return self.classification

    def value_of(self, region: str) -> Optional[float]:
        return self._values.get(region)

    def color_of(self, region: str) -> str:
        return self.classification.color_of(self.value_of(region))

    def ranking(self) -> List[Tuple[str, Optional[float]]]:
        """Regions by descending value; absent values last, in feature order.

        This is the bar order of the chart.
        """
        pairs = list(self._values.items())
        present = sorted((p for p in pairs if p[1] is not None), key=lambda p: p[1], reverse=True)
        return present + [p for p in pairs if p[1] is None]
