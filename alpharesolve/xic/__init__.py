"""Ion series storage and signal primitives.

This module provides the leaf layer of the resolution pipeline:
- Append-only memory-mapped storage for numeric arrays
- Immutable ion time series (IonSeries) referencing that storage
- Gaussian smoothing, FWHM and peak area (numba-optimized)

Examples
--------
>>> from alpharesolve.xic import MemoryMapStorage, IonSeries
>>>
>>> storage = MemoryMapStorage()
>>> series = IonSeries(mzs, intensities, rts, scan_numbers, storage=storage)
>>> peak = series.subseries(10, 25)  # view, no copy
"""

from .storage import (
    MemoryMapStorage,
    DEFAULT_CHUNK_CAPACITY,
)

from .series import (
    IonSeries,
)

from .smoothing import (
    smooth_gaussian_1d,
    calculate_fwhm,
    integrate_area,
    calculate_peak_shape,
)

__all__ = [
    # Storage
    "MemoryMapStorage",
    "DEFAULT_CHUNK_CAPACITY",
    # Series
    "IonSeries",
    # Smoothing and peak shape
    "smooth_gaussian_1d",
    "calculate_fwhm",
    "integrate_area",
    "calculate_peak_shape",
]
