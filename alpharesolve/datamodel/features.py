"""Features: detected or resolved chromatographic peaks.

A ``Feature`` summarises one ``IonSeries`` (m/z, apex RT, height, area,
FWHM) and carries provenance and metadata tags. Features are immutable;
downstream edits create a new Feature (``dataclasses.replace``) instead of
mutating the existing one.
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

import numpy as np

from ..xic.series import IonSeries
from ..xic.smoothing import calculate_peak_shape
from .center import DEFAULT_MZ_CENTER, CenterFunction
from .raw import RawDataFile


class FeatureStatus(Enum):
    """How a feature came to be."""
    DETECTED = "detected"
    ESTIMATED = "estimated"
    MANUAL = "manual"
    UNKNOWN = "unknown"


class MobilityUnit(Enum):
    """Unit of the ion mobility dimension."""
    DRIFT_TUBE = "ms"
    TIMS = "1/k0"
    TRAVELLING_WAVE = "ms_tw"
    NONE = "none"


@dataclass(frozen=True, eq=False)
class Feature:
    """One chromatographic peak of one raw file.

    Compared by identity: two resolved peaks with equal values are still
    different features.
    """

    raw_file: RawDataFile
    series: IonSeries
    status: FeatureStatus
    mz: float
    rt: float
    height: float
    area: float
    fwhm: float = -1.0
    mobility_unit: Optional[MobilityUnit] = None
    is_image: bool = False
    maldi_spot: Optional[str] = None
    parent_row_id: Optional[int] = None
    ms2_scans: Tuple[int, ...] = ()

    @classmethod
    def from_series(
        cls,
        raw_file: RawDataFile,
        series: IonSeries,
        status: FeatureStatus = FeatureStatus.DETECTED,
        mz_center: CenterFunction = DEFAULT_MZ_CENTER,
        fallback_mz: float = float("nan"),
        **tags,
    ) -> "Feature":
        """Build a feature and compute its summary values from ``series``.

        Args:
            raw_file: Raw file the series was recorded in
            series: Data points of the peak
            status: Detection status
            mz_center: Center function over the non-zero data points
            fallback_mz: m/z used if the series has no data point with signal
            **tags: Metadata fields (mobility_unit, is_image, maldi_spot,
                parent_row_id, ms2_scans)

        Returns:
            New Feature
        """
        apex_rt, height, area, fwhm = calculate_peak_shape(
            series.retention_times, series.intensities
        )
        mz = mz_center.calc_center(series.mzs, series.intensities)
        if np.isnan(mz):
            mz = fallback_mz
        return cls(
            raw_file=raw_file,
            series=series,
            status=status,
            mz=float(mz),
            rt=apex_rt,
            height=height,
            area=area,
            fwhm=fwhm,
            **tags,
        )

    def __repr__(self) -> str:
        return (
            f"Feature(mz={self.mz:.4f}, rt={self.rt:.3f}, height={self.height:.3g}, "
            f"points={len(self.series)}, status={self.status.name})"
        )

    @property
    def number_of_data_points(self) -> int:
        return len(self.series)

    @property
    def rt_range(self) -> Optional[Tuple[float, float]]:
        return self.series.rt_range

    def with_ms2_scans(self, scan_numbers: Sequence[int]) -> "Feature":
        """Copy of this feature with the given fragment scans attached."""
        return dataclasses.replace(self, ms2_scans=tuple(int(n) for n in scan_numbers))
