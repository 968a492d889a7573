"""Ion time series: the intensity-over-RT trace of one m/z channel.

An ``IonSeries`` holds parallel arrays (m/z, intensity, retention time, scan
number and optional mobility) for one trace of one raw file. Arrays are
read-only, either views into a ``MemoryMapStorage`` or private in-memory
copies. Sub-series are views, so resolved features reference the data of the
series they were cut from.

Retention times are in minutes and strictly increasing. Zero-filled points
(see ``FeatureDataAccess``) carry NaN as m/z.
"""

from typing import Optional, Tuple

import numpy as np

from .storage import MemoryMapStorage


def _frozen_copy(values, dtype) -> np.ndarray:
    array = np.array(values, dtype=dtype, copy=True)
    array.flags.writeable = False
    return array


class IonSeries:
    """Immutable ion time series.

    Parameters
    ----------
    mzs : array-like (float64)
        m/z of every data point (NaN for zero-filled points)
    intensities : array-like (float64)
        Non-negative intensities
    retention_times : array-like (float64)
        Strictly increasing retention times (minutes)
    scan_numbers : array-like (int64), optional
        Raw-file scan numbers; defaults to ``0..n-1``
    mobilities : array-like (float64), optional
        Ion mobility of every data point
    storage : MemoryMapStorage, optional
        Arena to copy the arrays into. In-memory copies are kept if omitted.

    Raises
    ------
    ValueError
        On length mismatch, non-increasing RT or negative intensities
    StorageError
        If ``storage`` is closed
    """

    __slots__ = ("_mzs", "_intensities", "_rts", "_scan_numbers", "_mobilities", "_storage")

    def __init__(
        self,
        mzs,
        intensities,
        retention_times,
        scan_numbers=None,
        mobilities=None,
        storage: Optional[MemoryMapStorage] = None,
    ):
        mzs = np.asarray(mzs, dtype=np.float64)
        intensities = np.asarray(intensities, dtype=np.float64)
        rts = np.asarray(retention_times, dtype=np.float64)
        n = len(rts)
        if scan_numbers is None:
            scan_numbers = np.arange(n, dtype=np.int64)
        scan_numbers = np.asarray(scan_numbers, dtype=np.int64)

        if not (len(mzs) == len(intensities) == n == len(scan_numbers)):
            raise ValueError(
                f"Array lengths differ: mz={len(mzs)}, intensity={len(intensities)}, "
                f"rt={n}, scans={len(scan_numbers)}"
            )
        if mobilities is not None:
            mobilities = np.asarray(mobilities, dtype=np.float64)
            if len(mobilities) != n:
                raise ValueError(f"Mobility length {len(mobilities)} does not match {n} data points")
        if n > 1 and np.any(np.diff(rts) <= 0):
            raise ValueError("Retention times must be strictly increasing")
        if not np.all(intensities >= 0):
            raise ValueError("Intensities must be non-negative")

        if storage is not None:
            store = storage.store
        else:
            store = _frozen_copy

        self._mzs = store(mzs, np.float64)
        self._intensities = store(intensities, np.float64)
        self._rts = store(rts, np.float64)
        self._scan_numbers = store(scan_numbers, np.int64)
        self._mobilities = store(mobilities, np.float64) if mobilities is not None else None
        self._storage = storage

    @classmethod
    def _from_views(cls, mzs, intensities, rts, scan_numbers, mobilities, storage) -> "IonSeries":
        """Wrap already validated read-only arrays without copying."""
        series = cls.__new__(cls)
        series._mzs = mzs
        series._intensities = intensities
        series._rts = rts
        series._scan_numbers = scan_numbers
        series._mobilities = mobilities
        series._storage = storage
        return series

    @classmethod
    def empty(cls) -> "IonSeries":
        return cls(np.empty(0), np.empty(0), np.empty(0))

    def __len__(self) -> int:
        return len(self._rts)

    def __repr__(self) -> str:
        if self.is_empty:
            return "IonSeries(empty)"
        rt_min, rt_max = self.rt_range
        return f"IonSeries(n={len(self)}, rt={rt_min:.3f}-{rt_max:.3f}, max={self.max_intensity:.3g})"

    # ------------------------------------------------------------------
    # Array access
    # ------------------------------------------------------------------

    @property
    def mzs(self) -> np.ndarray:
        return self._mzs

    @property
    def intensities(self) -> np.ndarray:
        return self._intensities

    @property
    def retention_times(self) -> np.ndarray:
        return self._rts

    @property
    def scan_numbers(self) -> np.ndarray:
        return self._scan_numbers

    @property
    def mobilities(self) -> Optional[np.ndarray]:
        return self._mobilities

    @property
    def storage(self) -> Optional[MemoryMapStorage]:
        return self._storage

    # ------------------------------------------------------------------
    # Summary values
    # ------------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return len(self._rts) == 0

    @property
    def has_mobility(self) -> bool:
        return self._mobilities is not None

    @property
    def rt_range(self) -> Optional[Tuple[float, float]]:
        if self.is_empty:
            return None
        return float(self._rts[0]), float(self._rts[-1])

    @property
    def mz_range(self) -> Optional[Tuple[float, float]]:
        """m/z range of the data points with signal."""
        detected = self._mzs[(self._intensities > 0) & ~np.isnan(self._mzs)]
        if len(detected) == 0:
            return None
        return float(detected.min()), float(detected.max())

    @property
    def apex_index(self) -> int:
        """Index of the most intense point (first one on ties), -1 if empty."""
        if self.is_empty:
            return -1
        return int(np.argmax(self._intensities))

    @property
    def max_intensity(self) -> float:
        if self.is_empty:
            return 0.0
        return float(self._intensities.max())

    # ------------------------------------------------------------------
    # Slicing
    # ------------------------------------------------------------------

    def subseries(self, start: int, end: int) -> "IonSeries":
        """View of the half-open index range ``[start, end)``.

        Raises
        ------
        IndexError
            If the range is outside the series
        """
        n = len(self)
        if not (0 <= start <= end <= n):
            raise IndexError(f"Index range [{start}, {end}) outside series of length {n}")
        mobilities = self._mobilities[start:end] if self._mobilities is not None else None
        return IonSeries._from_views(
            self._mzs[start:end],
            self._intensities[start:end],
            self._rts[start:end],
            self._scan_numbers[start:end],
            mobilities,
            self._storage,
        )

    def subseries_by_rt(self, rt_min: float, rt_max: float) -> "IonSeries":
        """View of all points with ``rt_min <= rt <= rt_max``."""
        start = int(np.searchsorted(self._rts, rt_min, side="left"))
        end = int(np.searchsorted(self._rts, rt_max, side="right"))
        if end < start:
            end = start
        return self.subseries(start, end)

    def copy_to(self, storage: Optional[MemoryMapStorage]) -> "IonSeries":
        """Copy this series into ``storage`` (or into memory if None)."""
        return IonSeries(
            self._mzs,
            self._intensities,
            self._rts,
            self._scan_numbers,
            self._mobilities,
            storage=storage,
        )
