"""Fixed-scale wavelet (matched filter) resolver.

The trace is convolved with a zero-mean Ricker ("Mexican hat") wavelet of a
fixed width. Positive maxima of the filter response mark peak candidates; the
strongest candidates claim data points first and grow outwards until the
response crosses zero or reaches an already claimed point.

Noise is the robust standard deviation of the response (1.4826 * MAD),
floored at ``noise_floor`` so sparse traces with mostly zeros do not give a
zero noise estimate.
"""

import logging
from dataclasses import dataclass

import numpy as np
from numba import njit

from ..exceptions import ConfigurationError
from .base import ChromatographyType, Resolver, ResolverParams, ResolverType

logger = logging.getLogger(__name__)

# MAD to standard deviation for normal noise
MAD_TO_SIGMA = 1.4826


@dataclass
class WaveletParams(ResolverParams):
    """Parameters for the wavelet resolver."""

    # Wavelet width (data points, standard deviation of the Gaussian envelope)
    scale: float = 3.0

    # Kernel half-width in multiples of scale
    truncate: float = 5.0

    # Minimum filter response over noise
    snr_threshold: float = 3.0

    # Minimum raw intensity at the peak top
    min_height: float = 1e3

    # Lower bound of the noise estimate
    noise_floor: float = 1.0

    def __post_init__(self):
        super().__post_init__()
        if self.scale <= 0:
            raise ConfigurationError(f"scale must be > 0, got {self.scale}")
        if self.truncate < 1:
            raise ConfigurationError(f"truncate must be >= 1, got {self.truncate}")
        if self.snr_threshold < 0 or self.min_height < 0:
            raise ConfigurationError("snr_threshold and min_height must be >= 0")
        if self.noise_floor <= 0:
            raise ConfigurationError(f"noise_floor must be > 0, got {self.noise_floor}")

    @classmethod
    def for_chromatography(cls, chromatography: ChromatographyType) -> 'WaveletParams':
        """Typical wavelet widths for LC and GC sampling rates."""
        if chromatography == ChromatographyType.GC:
            return cls(min_data_points=5, peak_duration=(0.0, 0.5), scale=2.0, snr_threshold=5.0)
        elif chromatography == ChromatographyType.LC:
            return cls(min_data_points=4, peak_duration=(0.0, 2.0), scale=3.0, snr_threshold=3.0)
        else:
            raise ValueError(f"Unknown chromatography type: {chromatography}")


@njit
def ricker_kernel(scale: float, truncate: float = 5.0) -> np.ndarray:
    """Zero-mean Ricker wavelet sampled at integer offsets.

    Parameters
    ----------
    scale : float
        Width of the wavelet in data points
    truncate : float
        Kernel half-width in multiples of scale

    Returns
    -------
    np.ndarray
        Odd-length kernel centred on its middle element
    """
    radius = max(1, int(truncate * scale + 0.5))
    size = 2 * radius + 1
    kernel = np.empty(size, dtype=np.float64)
    total = 0.0
    for i in range(size):
        x = (i - radius) / scale
        kernel[i] = (1.0 - x * x) * np.exp(-0.5 * x * x)
        total += kernel[i]

    # Remove the residual DC component left by truncation
    mean = total / size
    for i in range(size):
        kernel[i] -= mean
    return kernel


@njit
def wavelet_response(intensities: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """Correlate the trace with ``kernel``; zero padding outside the trace."""
    n = len(intensities)
    radius = len(kernel) // 2
    response = np.zeros(n, dtype=np.float64)
    for i in range(n):
        acc = 0.0
        for k in range(len(kernel)):
            j = i + k - radius
            if 0 <= j < n:
                acc += kernel[k] * intensities[j]
        response[i] = acc
    return response


@njit
def _median(a):
    """Median (Numba-optimized)."""
    b = a.copy()
    b.sort()
    n = b.size
    mid = n // 2
    if n % 2 == 1:
        return b[mid]
    else:
        return 0.5 * (b[mid - 1] + b[mid])


@njit
def robust_noise(values: np.ndarray, noise_floor: float) -> float:
    """1.4826 * median absolute deviation, at least ``noise_floor``."""
    if values.size == 0:
        return noise_floor
    med = _median(values)
    mad = _median(np.abs(values - med))
    return max(MAD_TO_SIGMA * mad, noise_floor)


@njit
def local_maxima(response: np.ndarray) -> np.ndarray:
    """Indices of positive local maxima; a plateau reports its first index."""
    n = len(response)
    out = np.empty(n, dtype=np.int64)
    count = 0
    for i in range(n):
        if response[i] <= 0.0:
            continue
        left_ok = i == 0 or response[i] > response[i - 1]
        j = i + 1
        while j < n and response[j] == response[i]:
            j += 1
        right_ok = j == n or response[j] < response[i]
        if left_ok and right_ok:
            out[count] = i
            count += 1
    return out[:count]


@njit
def expand_peaks(
    rts: np.ndarray,
    intensities: np.ndarray,
    response: np.ndarray,
    candidates: np.ndarray,
    min_response: float,
    min_height: float,
    min_duration: float,
    max_duration: float,
) -> np.ndarray:
    """Grow candidate maxima (strongest first) into non-overlapping ranges.

    Returns
    -------
    np.ndarray (int64)
        Shape (n_peaks, 2) half-open index ranges in acceptance order
    """
    n = len(response)
    claimed = np.zeros(n, dtype=np.bool_)
    ranges = np.empty((len(candidates), 2), dtype=np.int64)
    count = 0

    for c in range(len(candidates)):
        idx = candidates[c]
        if claimed[idx] or response[idx] < min_response:
            continue

        left = idx
        while left > 0 and response[left - 1] > 0.0 and not claimed[left - 1]:
            left -= 1
        right = idx
        while right < n - 1 and response[right + 1] > 0.0 and not claimed[right + 1]:
            right += 1

        height = 0.0
        for i in range(left, right + 1):
            if intensities[i] > height:
                height = intensities[i]
        duration = rts[right] - rts[left]
        if height < min_height or duration < min_duration or duration > max_duration:
            continue

        for i in range(left, right + 1):
            claimed[i] = True
        ranges[count, 0] = left
        ranges[count, 1] = right + 1
        count += 1

    return ranges[:count]


class WaveletResolver(Resolver):
    """Resolver based on a fixed-scale Ricker matched filter."""

    resolver_type = ResolverType.WAVELET

    def resolve_ranges(self, rts: np.ndarray, intensities: np.ndarray) -> np.ndarray:
        params = self.params
        intensities = np.ascontiguousarray(intensities, dtype=np.float64)
        rts = np.ascontiguousarray(rts, dtype=np.float64)

        kernel = ricker_kernel(float(params.scale), float(params.truncate))
        response = wavelet_response(intensities, kernel)
        noise = robust_noise(response, float(params.noise_floor))

        maxima = local_maxima(response)
        if len(maxima) == 0:
            return np.empty((0, 2), dtype=np.int64)
        # Strongest first; equal responses keep RT order
        order = np.argsort(-response[maxima], kind="stable")
        candidates = np.ascontiguousarray(maxima[order])

        min_duration, max_duration = params.peak_duration
        ranges = expand_peaks(
            rts,
            intensities,
            response,
            candidates,
            params.snr_threshold * noise,
            float(params.min_height),
            float(min_duration),
            float(max_duration),
        )
        logger.debug(
            f"Wavelet: {len(maxima)} maxima, {len(ranges)} peaks (noise {noise:.3g})"
        )
        return ranges[np.argsort(ranges[:, 0], kind="stable")]
