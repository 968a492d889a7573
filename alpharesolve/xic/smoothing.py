"""Smoothing and peak-shape metrics for ion series.

High-performance implementations of:
- Gaussian smoothing (numba-optimized), used as optional resolver pre-processing
- FWHM (Full Width at Half Maximum) with linear interpolation
- Trapezoid peak area

Retention times are in minutes throughout.
"""

from typing import Tuple

import numpy as np
from numba import njit


@njit
def _gaussian_kernel_1d(sigma: float, truncate: float = 3.0) -> np.ndarray:
    """Generate normalized 1D Gaussian kernel.

    Args:
        sigma: Standard deviation in units of array indices
        truncate: Truncate kernel at this many standard deviations

    Returns:
        Normalized Gaussian kernel
    """
    radius = int(truncate * sigma + 0.5)
    x = np.arange(-radius, radius + 1).astype(np.float64)
    kernel = np.exp(-0.5 * (x / sigma) ** 2)
    return kernel / np.sum(kernel)


@njit
def smooth_gaussian_1d(
    intensities: np.ndarray,
    sigma: float,
    truncate: float = 3.0
) -> np.ndarray:
    """Apply Gaussian smoothing to a 1D intensity array.

    Edges are handled by truncating and renormalizing the kernel, so a
    constant signal stays constant and the output has the input length.

    Args:
        intensities: Input intensity array
        sigma: Standard deviation of the kernel (in data points)
        truncate: Truncate kernel at this many standard deviations

    Returns:
        Smoothed intensity array (float64, same length as input)

    Examples:
        >>> smoothed = smooth_gaussian_1d(series.intensities, sigma=1.5)
    """
    n = len(intensities)
    smoothed = np.zeros(n, dtype=np.float64)
    if n == 0 or sigma <= 0:
        for i in range(n):
            smoothed[i] = intensities[i]
        return smoothed

    kernel = _gaussian_kernel_1d(sigma, truncate)
    radius = len(kernel) // 2

    for i in range(n):
        start_kernel = max(0, radius - i)
        end_kernel = min(len(kernel), radius + (n - i))
        start_data = max(0, i - radius)

        weight = 0.0
        total = 0.0
        for k in range(start_kernel, end_kernel):
            w = kernel[k]
            weight += w
            total += w * intensities[start_data + k - start_kernel]
        smoothed[i] = total / weight

    return smoothed


@njit
def calculate_fwhm(rt_values: np.ndarray, intensities: np.ndarray) -> float:
    """Calculate Full Width at Half Maximum with linear interpolation.

    Args:
        rt_values: Retention times (minutes)
        intensities: Peak intensities

    Returns:
        FWHM in minutes, -1.0 if it cannot be determined (fewer than three
        points, no signal, no half-maximum crossing)

    Notes:
        For asymmetric or truncated peaks the width is estimated from the
        available side, assuming symmetry.
    """
    n = len(rt_values)
    if n < 3:
        return -1.0

    max_idx = np.argmax(intensities)
    max_intensity = intensities[max_idx]
    if max_intensity <= 0:
        return -1.0
    half_max = max_intensity / 2.0
    apex_rt = rt_values[max_idx]

    # Left crossing (scanning backward from apex)
    left_rt = rt_values[0]
    left_found = False
    for i in range(max_idx - 1, -1, -1):
        if intensities[i] <= half_max:
            denom = intensities[i + 1] - intensities[i]
            if abs(denom) > 1e-12:
                frac = (half_max - intensities[i]) / denom
                left_rt = rt_values[i] + frac * (rt_values[i + 1] - rt_values[i])
            else:
                left_rt = rt_values[i]
            left_found = True
            break

    # Right crossing (scanning forward from apex)
    right_rt = rt_values[n - 1]
    right_found = False
    for i in range(max_idx + 1, n):
        if intensities[i] <= half_max:
            denom = intensities[i] - intensities[i - 1]
            if abs(denom) > 1e-12:
                frac = (half_max - intensities[i - 1]) / denom
                right_rt = rt_values[i - 1] + frac * (rt_values[i] - rt_values[i - 1])
            else:
                right_rt = rt_values[i]
            right_found = True
            break

    if left_found and right_found:
        return right_rt - left_rt
    if left_found:
        return 2.0 * (apex_rt - left_rt)
    if right_found:
        return 2.0 * (right_rt - apex_rt)
    return -1.0


@njit
def integrate_area(rt_values: np.ndarray, intensities: np.ndarray) -> float:
    """Trapezoid area under the trace (intensity x minutes)."""
    area = 0.0
    for i in range(len(rt_values) - 1):
        area += (rt_values[i + 1] - rt_values[i]) * (intensities[i] + intensities[i + 1]) * 0.5
    return area


def calculate_peak_shape(rt_values: np.ndarray, intensities: np.ndarray) -> Tuple[float, float, float, float]:
    """Apex RT, height, area and FWHM of a resolved peak.

    Args:
        rt_values: Retention times (minutes)
        intensities: Peak intensities

    Returns:
        (apex_rt, height, area, fwhm); NaN apex and zeros for empty input

    Examples:
        >>> apex_rt, height, area, fwhm = calculate_peak_shape(series.retention_times,
        ...                                                    series.intensities)
    """
    if len(rt_values) == 0:
        return float("nan"), 0.0, 0.0, -1.0

    apex_idx = int(np.argmax(intensities))
    return (
        float(rt_values[apex_idx]),
        float(intensities[apex_idx]),
        float(integrate_area(rt_values, intensities)),
        float(calculate_fwhm(rt_values, intensities)),
    )
