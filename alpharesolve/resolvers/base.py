"""Resolver interface shared by all peak-splitting strategies.

A resolver turns one continuous ion series into zero or more resolved
sub-series. Concrete resolvers only implement ``resolve_ranges``, a pure
function from (RT, intensity) arrays to half-open index ranges; the base
class handles the guarantees every resolver gives:

1. Series shorter than two points or without signal resolve to nothing
2. Ranges shorter than ``min_data_points`` are dropped
3. Ranges must be in bounds, sorted and non-overlapping; a resolver that
   breaks this raises ``AlphaResolveError``
4. Output is a list of views into the input
"""

import dataclasses
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, List, Tuple

import numpy as np

from ..exceptions import AlphaResolveError, ConfigurationError
from ..xic.series import IonSeries


class ResolverType(Enum):
    """Available resolver strategies."""
    MINIMUM_SEARCH = "minimum_search"
    WAVELET = "wavelet"
    NOISE_AMPLITUDE = "noise_amplitude"


class ChromatographyType(Enum):
    """Separation type, used for parameter presets."""
    LC = "lc"
    GC = "gc"


@dataclass
class ResolverParams:
    """Parameters common to all resolvers."""

    # Minimum number of data points of a resolved peak
    min_data_points: int = 4

    # Allowed peak duration (minutes, inclusive)
    peak_duration: Tuple[float, float] = (0.0, 10.0)

    def __post_init__(self):
        if self.min_data_points < 1:
            raise ConfigurationError(f"min_data_points must be >= 1, got {self.min_data_points}")
        low, high = self.peak_duration
        if low < 0 or high < low:
            raise ConfigurationError(f"Invalid peak duration range {self.peak_duration}")


def check_ranges(ranges: np.ndarray, n: int, name: str = "resolver") -> None:
    """Raise ``AlphaResolveError`` unless every range is a non-empty slice of
    ``n`` points and the ranges are sorted by start without overlap."""
    if len(ranges) == 0:
        return
    starts, ends = ranges[:, 0], ranges[:, 1]
    if np.any(starts < 0) or np.any(ends > n) or np.any(ends <= starts):
        raise AlphaResolveError(f"{name} returned invalid ranges for {n} points: {ranges.tolist()}")
    if np.any(starts[1:] < ends[:-1]):
        raise AlphaResolveError(f"{name} returned unsorted or overlapping ranges: {ranges.tolist()}")


class Resolver(ABC):
    """Base class of all resolvers.

    Parameters
    ----------
    params : ResolverParams
        Strategy-specific parameters
    """

    resolver_type: ClassVar[ResolverType]

    def __init__(self, params: ResolverParams):
        self.params = params

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.params})"

    @property
    def name(self) -> str:
        return self.resolver_type.value

    @property
    def min_data_points(self) -> int:
        return self.params.min_data_points

    def describe(self) -> Dict[str, Any]:
        """Resolver identity and parameters, for provenance records."""
        return {'resolver': self.name, **dataclasses.asdict(self.params)}

    @abstractmethod
    def resolve_ranges(self, rts: np.ndarray, intensities: np.ndarray) -> np.ndarray:
        """Find candidate peaks.

        Parameters
        ----------
        rts : np.ndarray (float64)
            Strictly increasing retention times (minutes)
        intensities : np.ndarray (float64)
            Non-negative intensities

        Returns
        -------
        np.ndarray (int64)
            Shape (n_peaks, 2): half-open ``[start, end)`` index ranges,
            sorted by start and non-overlapping
        """

    def resolve(self, series: IonSeries) -> List[IonSeries]:
        """Split ``series`` into resolved sub-series.

        Deterministic: identical input and parameters give identical output.
        An all-zero or single-point series gives an empty list.
        """
        if len(series) < 2 or not np.any(series.intensities > 0):
            return []

        ranges = np.asarray(
            self.resolve_ranges(series.retention_times, series.intensities), dtype=np.int64
        ).reshape(-1, 2)
        check_ranges(ranges, len(series), self.name)

        resolved = []
        for start, end in ranges:
            if end - start < self.min_data_points:
                continue
            resolved.append(series.subseries(int(start), int(end)))
        return resolved
