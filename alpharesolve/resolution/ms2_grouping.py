"""Attach fragment (MS2) scans to resolved features.

An MS2 scan belongs to a feature if its precursor m/z matches the feature
m/z and it was acquired while the feature eluted. With
``limit_to_feature_edges`` the elution window is the feature's RT range;
otherwise the range is widened by ``rt_tolerance`` on both sides.

Features are immutable, so every matched feature is replaced in its row by
a copy carrying the scan numbers.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np

from ..datamodel.feature_list import FeatureList
from ..datamodel.features import Feature
from ..datamodel.raw import Scan
from ..exceptions import ConfigurationError
from ..taskcontrol.task import CancellationToken

logger = logging.getLogger(__name__)


@dataclass
class GroupMS2Params:
    """Matching windows for MS2 grouping."""

    # Precursor tolerance; the larger of absolute and ppm wins
    mz_tolerance_abs: float = 0.005
    mz_tolerance_ppm: float = 10.0

    # RT widening of the feature range (minutes)
    rt_tolerance: float = 0.05

    # Only accept MS2 scans inside the feature's own RT range
    limit_to_feature_edges: bool = True

    # Feature intensity at the MS2 RT relative to the feature height (0 disables)
    min_relative_feature_height: float = 0.0

    def __post_init__(self):
        if self.mz_tolerance_abs < 0 or self.mz_tolerance_ppm < 0:
            raise ConfigurationError("m/z tolerances must be >= 0")
        if self.rt_tolerance < 0:
            raise ConfigurationError(f"rt_tolerance must be >= 0, got {self.rt_tolerance}")
        if not 0.0 <= self.min_relative_feature_height <= 1.0:
            raise ConfigurationError(
                f"min_relative_feature_height must be in [0, 1], got {self.min_relative_feature_height}"
            )

    def mz_tolerance(self, mz: float) -> float:
        return max(self.mz_tolerance_abs, mz * self.mz_tolerance_ppm * 1e-6)


class GroupMS2Processor:
    """Match MS2 scans to the features of a feature list.

    Parameters
    ----------
    feature_list : FeatureList
        List whose rows are updated in place (features are replaced)
    params : GroupMS2Params
        Matching windows
    cancel_token : CancellationToken, optional
        Checked once per row
    progress : callable, optional
        Called as ``progress(processed, total)`` after each row
    """

    def __init__(
        self,
        feature_list: FeatureList,
        params: GroupMS2Params,
        cancel_token: Optional[CancellationToken] = None,
        progress: Optional[Callable[[int, int], None]] = None,
    ):
        self.feature_list = feature_list
        self.params = params
        self.cancel_token = cancel_token
        self.progress = progress
        self.processed_rows = 0
        self.total_rows = feature_list.number_of_rows

    @property
    def task_description(self) -> str:
        return (
            f"Grouping MS2 scans on {self.feature_list} "
            f"({self.processed_rows}/{self.total_rows} rows)"
        )

    @property
    def finished_percentage(self) -> float:
        return 0.0 if self.total_rows == 0 else self.processed_rows / self.total_rows

    def process(self) -> int:
        """Match all rows. Returns the number of features with MS2 scans."""
        self.total_rows = self.feature_list.number_of_rows
        self.processed_rows = 0

        scans_by_file = {}
        matched = 0
        for row in self.feature_list.rows:
            if self.cancel_token is not None and self.cancel_token.is_cancelled:
                return matched

            feature = row.feature
            key = id(feature.raw_file)
            if key not in scans_by_file:
                scans_by_file[key] = _precursor_index(feature.raw_file.ms2_scans())
            scans, precursors = scans_by_file[key]

            numbers = self.match(feature, scans, precursors)
            if numbers:
                row.feature = feature.with_ms2_scans(numbers)
                matched += 1

            self.processed_rows += 1
            if self.progress is not None:
                self.progress(self.processed_rows, self.total_rows)

        logger.info(f"{matched}/{self.total_rows} features in {self.feature_list} have MS2 scans")
        return matched

    def match(self, feature: Feature, scans: List[Scan], precursors: np.ndarray) -> List[int]:
        """Scan numbers of the MS2 scans matching ``feature``, in RT order."""
        rt_range = feature.rt_range
        if rt_range is None or len(scans) == 0 or np.isnan(feature.mz):
            return []

        tolerance = self.params.mz_tolerance(feature.mz)
        lo = int(np.searchsorted(precursors, feature.mz - tolerance, side="left"))
        hi = int(np.searchsorted(precursors, feature.mz + tolerance, side="right"))

        rt_min, rt_max = rt_range
        if not self.params.limit_to_feature_edges:
            rt_min -= self.params.rt_tolerance
            rt_max += self.params.rt_tolerance

        min_intensity = self.params.min_relative_feature_height * feature.height
        series = feature.series

        found = []
        for scan in scans[lo:hi]:
            if not rt_min <= scan.retention_time <= rt_max:
                continue
            if min_intensity > 0:
                at_rt = float(np.interp(
                    scan.retention_time, series.retention_times, series.intensities,
                    left=0.0, right=0.0,
                ))
                if at_rt < min_intensity:
                    continue
            found.append(scan)

        found.sort(key=lambda scan: (scan.retention_time, scan.scan_number))
        return [scan.scan_number for scan in found]


def _precursor_index(ms2_scans: List[Scan]):
    """MS2 scans with a precursor, sorted by precursor m/z."""
    scans = [s for s in ms2_scans if s.precursor_mz is not None]
    scans.sort(key=lambda s: (s.precursor_mz, s.scan_number))
    precursors = np.array([s.precursor_mz for s in scans], dtype=np.float64)
    return scans, precursors
