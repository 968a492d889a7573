"""Center functions for the representative m/z of a feature."""

from dataclasses import dataclass
from enum import Enum

import numpy as np


class CenterMeasure(Enum):
    """Statistic used as center."""
    AVG = "avg"
    MEDIAN = "median"


class Weighting(Enum):
    """Weighting of the values by their intensities."""
    NONE = "none"
    LINEAR = "linear"
    LOG10 = "log10"


@dataclass(frozen=True)
class CenterFunction:
    """Weighted average or median of values, ignoring NaN and zero-weight points.

    Examples
    --------
    >>> CenterFunction(CenterMeasure.AVG, Weighting.LINEAR).calc_center(
    ...     np.array([100.0, 101.0]), np.array([1.0, 3.0]))
    100.75
    """

    measure: CenterMeasure = CenterMeasure.MEDIAN
    weighting: Weighting = Weighting.NONE

    def _weights(self, weights: np.ndarray) -> np.ndarray:
        if self.weighting == Weighting.LINEAR:
            return weights
        if self.weighting == Weighting.LOG10:
            return np.log10(np.maximum(weights, 1.0)) + 1e-12
        return np.ones_like(weights)

    def calc_center(self, values: np.ndarray, weights: np.ndarray = None) -> float:
        """Center of ``values``; NaN if no valid value remains.

        Values are skipped when they are NaN or their weight is not positive.
        """
        values = np.asarray(values, dtype=np.float64)
        if weights is None:
            weights = np.ones_like(values)
        weights = np.asarray(weights, dtype=np.float64)

        valid = ~np.isnan(values) & (weights > 0)
        values = values[valid]
        if len(values) == 0:
            return float("nan")
        w = self._weights(weights[valid])

        if self.measure == CenterMeasure.AVG:
            return float(np.average(values, weights=w))

        if self.weighting == Weighting.NONE:
            return float(np.median(values))

        # Weighted median: first value whose cumulative weight reaches half
        order = np.argsort(values, kind="stable")
        cumulative = np.cumsum(w[order])
        idx = int(np.searchsorted(cumulative, cumulative[-1] / 2.0, side="left"))
        return float(values[order[idx]])


DEFAULT_MZ_CENTER = CenterFunction()
