"""Noise amplitude resolver.

Every contiguous run of points strictly above a fixed noise amplitude is a
peak candidate. Candidates are kept if their top reaches ``min_height`` and
their duration is inside ``peak_duration``. Simple and fast; suited to clean
traces where peaks are separated by baseline.
"""

from dataclasses import dataclass

import numpy as np
from numba import njit

from ..exceptions import ConfigurationError
from .base import Resolver, ResolverParams, ResolverType


@dataclass
class NoiseAmplitudeParams(ResolverParams):
    """Parameters for the noise amplitude resolver."""

    # Points at or below this intensity are noise
    noise_amplitude: float = 1e3

    # Minimum intensity at the peak top
    min_height: float = 1e4

    def __post_init__(self):
        super().__post_init__()
        if self.noise_amplitude < 0:
            raise ConfigurationError(f"noise_amplitude must be >= 0, got {self.noise_amplitude}")
        if self.min_height < 0:
            raise ConfigurationError(f"min_height must be >= 0, got {self.min_height}")


@njit
def noise_amplitude_ranges(
    rts: np.ndarray,
    intensities: np.ndarray,
    noise_amplitude: float,
    min_height: float,
    min_duration: float,
    max_duration: float,
) -> np.ndarray:
    """Half-open ranges of runs above ``noise_amplitude``."""
    n = len(intensities)
    ranges = np.empty((n, 2), dtype=np.int64)
    count = 0

    i = 0
    while i < n:
        if intensities[i] <= noise_amplitude:
            i += 1
            continue
        start = i
        height = 0.0
        while i < n and intensities[i] > noise_amplitude:
            if intensities[i] > height:
                height = intensities[i]
            i += 1
        duration = rts[i - 1] - rts[start]
        if height >= min_height and min_duration <= duration <= max_duration:
            ranges[count, 0] = start
            ranges[count, 1] = i
            count += 1

    return ranges[:count]


class NoiseAmplitudeResolver(Resolver):
    """Resolver splitting at a fixed noise level."""

    resolver_type = ResolverType.NOISE_AMPLITUDE

    def resolve_ranges(self, rts: np.ndarray, intensities: np.ndarray) -> np.ndarray:
        min_duration, max_duration = self.params.peak_duration
        return noise_amplitude_ranges(
            np.ascontiguousarray(rts, dtype=np.float64),
            np.ascontiguousarray(intensities, dtype=np.float64),
            float(self.params.noise_amplitude),
            float(self.params.min_height),
            float(min_duration),
            float(max_duration),
        )
