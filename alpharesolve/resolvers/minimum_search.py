"""Local minimum search resolver.

Splits a chromatogram at local intensity minima between maxima:

1. Intensities below the chromatographic threshold (an intensity quantile of
   the trace) are set to zero
2. Regions of consecutive non-zero points are scanned left to right; a
   point is a split point if no lower intensity occurs within
   ``search_rt_range`` minutes on either side
3. A region becomes a peak if its top reaches the minimum height and exceeds
   both edges by ``min_ratio``, and its duration is inside ``peak_duration``

The minimum between two peaks is assigned to the following peak, so
resolved ranges never share a data point.

Examples
--------
>>> params = MinimumSearchParams(search_rt_range=0.05, min_absolute_height=1e4)
>>> resolver = MinimumSearchResolver(params)
>>> peaks = resolver.resolve(series)
"""

import warnings
from dataclasses import dataclass

import numpy as np
from numba import njit

from ..exceptions import AlgorithmWarning, ConfigurationError
from ..xic.smoothing import smooth_gaussian_1d
from .base import ChromatographyType, Resolver, ResolverParams, ResolverType


@dataclass
class MinimumSearchParams(ResolverParams):
    """Parameters for local minimum search.

    Attributes
    ----------
    chromatographic_threshold : float
        Quantile (0-1) of the trace intensities below which points are
        treated as noise
    search_rt_range : float
        RT window (minutes) on each side in which a split point must be the
        lowest intensity
    min_relative_height : float
        Minimum peak top relative to the trace maximum (0-1)
    min_absolute_height : float
        Minimum peak top intensity
    min_ratio : float
        Minimum ratio of peak top to edge intensities
    smoothing_sigma : float
        Gaussian pre-smoothing in data points (0 disables)
    """

    chromatographic_threshold: float = 0.85
    search_rt_range: float = 0.05
    min_relative_height: float = 0.0
    min_absolute_height: float = 1e3
    min_ratio: float = 1.7
    smoothing_sigma: float = 0.0

    def __post_init__(self):
        super().__post_init__()
        if not 0.0 <= self.chromatographic_threshold <= 1.0:
            raise ConfigurationError(
                f"chromatographic_threshold must be in [0, 1], got {self.chromatographic_threshold}"
            )
        if not 0.0 <= self.min_relative_height <= 1.0:
            raise ConfigurationError(
                f"min_relative_height must be in [0, 1], got {self.min_relative_height}"
            )
        if self.search_rt_range < 0 or self.min_ratio < 0 or self.smoothing_sigma < 0:
            raise ConfigurationError("search_rt_range, min_ratio and smoothing_sigma must be >= 0")

    @classmethod
    def for_chromatography(cls, chromatography: ChromatographyType) -> 'MinimumSearchParams':
        """Create parameters with typical defaults for LC or GC peaks.

        Args:
            chromatography: Separation type

        Returns:
            MinimumSearchParams with separation-specific defaults
        """
        if chromatography == ChromatographyType.GC:
            return cls(
                min_data_points=5,
                peak_duration=(0.0, 0.5),   # GC peaks are a few seconds wide
                chromatographic_threshold=0.7,
                search_rt_range=0.01,
                min_absolute_height=5e2,
                min_ratio=1.5,
            )
        elif chromatography == ChromatographyType.LC:
            return cls(
                min_data_points=4,
                peak_duration=(0.0, 2.0),
                chromatographic_threshold=0.85,
                search_rt_range=0.05,
                min_absolute_height=1e3,
                min_ratio=1.7,
            )
        else:
            raise ValueError(f"Unknown chromatography type: {chromatography}")


@njit
def _is_local_minimum(y: np.ndarray, rts: np.ndarray, idx: int, search_rt_range: float) -> bool:
    """True if no point within ``search_rt_range`` of ``idx`` is lower."""
    low = rts[idx] - search_rt_range
    high = rts[idx] + search_rt_range

    i = idx - 1
    while i >= 0 and rts[i] >= low:
        if y[i] < y[idx]:
            return False
        i -= 1

    i = idx + 1
    while i < len(y) and rts[i] <= high:
        if y[i] < y[idx]:
            return False
        i += 1

    return True


@njit
def minimum_search_ranges(
    rts: np.ndarray,
    intensities: np.ndarray,
    threshold_level: float,
    min_height: float,
    min_ratio: float,
    min_duration: float,
    max_duration: float,
    search_rt_range: float,
) -> np.ndarray:
    """Find peak ranges by local minimum search.

    Parameters
    ----------
    rts : np.ndarray
        Strictly increasing retention times (minutes)
    intensities : np.ndarray
        Trace intensities
    threshold_level : float
        Points below this intensity are set to zero
    min_height : float
        Minimum peak top intensity
    min_ratio : float
        Minimum ratio of peak top to each edge intensity
    min_duration, max_duration : float
        Allowed peak duration (minutes, inclusive)
    search_rt_range : float
        Half-width (minutes) of the window a split point must be lowest in

    Returns
    -------
    np.ndarray (int64)
        Shape (n_peaks, 2), half-open index ranges sorted by start

    Performance
    -----------
    O(n * k) where k = points inside the search window
    """
    n = len(intensities)
    y = np.empty(n, dtype=np.float64)
    for i in range(n):
        y[i] = intensities[i] if intensities[i] >= threshold_level else 0.0

    ranges = np.empty((n, 2), dtype=np.int64)
    count = 0

    start = 0
    while start < n - 1:
        # Need at least two consecutive points with signal
        if y[start] == 0.0 or y[start + 1] == 0.0:
            start += 1
            continue

        height = y[start]
        end = start + 1
        region_end = end + 1
        next_start = end + 1
        edge_right = 0.0

        while True:
            if y[end] > height:
                height = y[end]

            # End of data or signal drops to zero: region ends here
            if end == n - 1 or y[end + 1] == 0.0:
                region_end = end + 1
                edge_right = y[end]
                next_start = end + 1
                break

            # Local minimum: region ends before it, next region starts at it
            if rts[end] - rts[start] >= search_rt_range and _is_local_minimum(
                y, rts, end, search_rt_range
            ):
                region_end = end
                edge_right = y[end]
                next_start = end
                break

            end += 1

        edge_left = y[start]
        duration = rts[region_end - 1] - rts[start]

        if (
            height >= min_height
            and height >= edge_left * min_ratio
            and height >= edge_right * min_ratio
            and duration >= min_duration
            and duration <= max_duration
        ):
            ranges[count, 0] = start
            ranges[count, 1] = region_end
            count += 1

        start = next_start

    return ranges[:count]


class MinimumSearchResolver(Resolver):
    """Resolver splitting traces at local minima."""

    resolver_type = ResolverType.MINIMUM_SEARCH

    def __init__(self, params: MinimumSearchParams):
        super().__init__(params)
        if params.min_ratio > 0 and params.min_ratio < 1.0:
            warnings.warn(
                f"min_ratio {params.min_ratio} < 1 accepts regions without a distinct top",
                AlgorithmWarning,
            )

    def resolve_ranges(self, rts: np.ndarray, intensities: np.ndarray) -> np.ndarray:
        params = self.params
        if len(intensities) < 2:
            return np.empty((0, 2), dtype=np.int64)

        if params.smoothing_sigma > 0:
            intensities = smooth_gaussian_1d(intensities, params.smoothing_sigma)

        threshold_level = float(np.quantile(intensities, params.chromatographic_threshold))
        min_height = max(
            params.min_absolute_height,
            float(np.max(intensities)) * params.min_relative_height,
        )
        min_duration, max_duration = params.peak_duration

        return minimum_search_ranges(
            np.ascontiguousarray(rts, dtype=np.float64),
            np.ascontiguousarray(intensities, dtype=np.float64),
            threshold_level,
            min_height,
            params.min_ratio,
            float(min_duration),
            float(max_duration),
            float(params.search_rt_range),
        )
