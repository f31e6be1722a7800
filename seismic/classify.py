"""Colour classification for the choropleth.

Values of the selected attribute are split into a small number of classes,
either by Fisher-Jenks natural breaks (the optimal one-dimensional
partition, the same one ckmeans finds) or by quantiles, both computed with
mapclassify. Each class maps to one colour of a sequential palette; missing
values map to a neutral fallback colour.

The classification is stateless: it depends only on the set of values and
the scheme, never on the order of the input or on earlier selections.
"""
from __future__ import annotations

import logging
import math
from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

import mapclassify
import numpy as np
import pandas as pd

from seismic.config import CLASS_COUNT, FALLBACK_COLOR, PALETTE

LOGGER = logging.getLogger(__name__)


class Scheme(str, Enum):
    NATURAL_BREAKS = "natural_breaks"
    QUANTILE = "quantile"

    @classmethod
    def parse(cls, name: "str | Scheme") -> "Scheme":
        if isinstance(name, Scheme):
            return name
        key = str(name).strip().lower().replace("-", "_").replace(" ", "_")
        if key in ("natural_breaks", "jenks", "ckmeans"):
            return cls.NATURAL_BREAKS
        if key in ("quantile", "quantiles"):
            return cls.QUANTILE
        raise ValueError(f"Unknown classification scheme: {name!r}")


def is_present(value) -> bool:
    """True when ``value`` is a finite number."""
    if value is None or value is pd.NA:
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def clean_values(values: Iterable) -> np.ndarray:
    """Drop absent and non-finite entries and return the rest sorted."""
    kept = [float(v) for v in values if is_present(v)]
    return np.sort(np.asarray(kept, dtype=float))


def natural_breaks(values: Sequence[float], class_count: int = CLASS_COUNT) -> List[float]:
    """Breakpoints from Fisher-Jenks natural breaks.

    ``mapclassify.FisherJenks`` finds the contiguous partition of the sorted
    values with the smallest within-class sum of squared deviations. The
    breakpoints are the minimum of every class but the first.

    Parameters
    ----------
    values : sequence of float
        Values of one attribute, in any order; absent entries are ignored.
    class_count : int
        Requested number of classes. Capped at the number of distinct values.

    Returns
    -------
    list of float
        Strictly ascending breakpoints, one fewer than the classes produced.
    """
    x = clean_values(values)
    k = min(class_count, np.unique(x).size)
    if k < 2:
        return []
    fj = mapclassify.FisherJenks(x, k=k)
    minima = [float(x[fj.yb == c].min()) for c in np.unique(fj.yb)]
    return _strictly_ascending(minima[1:], float(x[0]))


def quantile_breaks(values: Sequence[float], class_count: int = CLASS_COUNT) -> List[float]:
    """Breakpoints at the ``i / class_count`` quantiles, giving equal-count bins.

    ``mapclassify.Quantiles`` returns the upper bound of every bin, the last
    one being the maximum; the interior cut points are the breakpoints.
    """
    x = clean_values(values)
    if class_count < 2 or np.unique(x).size < 2:
        return []
    q = mapclassify.Quantiles(x, k=class_count)
    return _strictly_ascending([float(b) for b in q.bins[:-1]], float(x[0]))


def _strictly_ascending(breaks: List[float], lowest: float) -> List[float]:
    out: List[float] = []
    for b in breaks:
        if b <= lowest or (out and b <= out[-1]):
            continue
        out.append(b)
    return out


def spread_colors(palette: Sequence[str], n_classes: int) -> Tuple[str, ...]:
    """Pick ``n_classes`` colours spread over the palette, ending at the darkest."""
    if n_classes <= 0:
        return ()
    if n_classes == 1:
        return (palette[0],)
    last = len(palette) - 1
    return tuple(palette[int(round(i * last / (n_classes - 1)))] for i in range(n_classes))


@dataclass(frozen=True)
class Classification:
    breaks: Tuple[float, ...]
    colors: Tuple[str, ...]
    scheme: Scheme
    fallback: str = FALLBACK_COLOR

    @property
    def class_count(self) -> int:
        return len(self.colors)

    def class_index(self, value) -> Optional[int]:
        """Index of the bin holding ``value``; ``None`` for absent data."""
        if not self.colors or not is_present(value):
            return None
        return bisect_right(self.breaks, float(value))

    def color_of(self, value) -> str:
        index = self.class_index(value)
        if index is None:
            return self.fallback
        return self.colors[index]

    def legend(self) -> List[Tuple[str, Optional[float], Optional[float]]]:
        """(colour, lower bound, upper bound) per class; open ends are ``None``."""
        bounds = [None, *self.breaks, None]
        return [(color, bounds[i], bounds[i + 1]) for i, color in enumerate(self.colors)]


def classify(
    values: Iterable,
    scheme: "str | Scheme" = Scheme.NATURAL_BREAKS,
    class_count: int = CLASS_COUNT,
    palette: Sequence[str] = PALETTE,
    fallback: str = FALLBACK_COLOR,
) -> Classification:
    """Build the colour classification for one attribute's values.

    Absent values are excluded before the breakpoints are computed. With no
    present values every value maps to ``fallback``.
    """
    scheme = Scheme.parse(scheme)
    if class_count < 1:
        raise ValueError(f"class_count must be at least 1, got {class_count}")
    if not palette:
        raise ValueError("palette must contain at least one colour")
    if class_count > len(palette):
        raise ValueError(f"class_count {class_count} exceeds the {len(palette)} palette colours")

    x = clean_values(values)
    if x.size == 0:
        LOGGER.debug("No present values; every region gets the fallback colour")
        return Classification(breaks=(), colors=(), scheme=scheme, fallback=fallback)

    if scheme is Scheme.NATURAL_BREAKS:
        breaks = natural_breaks(x, class_count)
    else:
        breaks = quantile_breaks(x, class_count)
    colors = spread_colors(palette, len(breaks) + 1)
    LOGGER.debug("%s breaks over %s values: %s", scheme.value, x.size, breaks)
    return Classification(breaks=tuple(breaks), colors=colors, scheme=scheme, fallback=fallback)


__all__ = [
    "Classification",
    "Scheme",
    "classify",
    "natural_breaks",
    "quantile_breaks",
]
