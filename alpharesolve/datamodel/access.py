"""Sequential access to the ion series of a feature list.

``FeatureDataAccess`` walks the rows of one raw file in a feature list and
hands out each feature's ion series exactly once, in row order. With
``FeatureDataType.INCLUDE_ZEROS`` every series is expanded onto the list's
selected scans so resolvers see a continuous trace with explicit zeros
where the feature had no data point.

Single pass: open a new accessor for a second traversal.

Examples
--------
>>> access = FeatureDataAccess(feature_list, FeatureDataType.INCLUDE_ZEROS)
>>> while access.has_next():
...     series = access.next()
...     feature = access.current_feature
"""

import logging
from enum import Enum
from typing import Dict, List, Optional

import numpy as np

from ..xic.series import IonSeries
from .feature_list import FeatureList, FeatureListRow
from .features import Feature
from .raw import RawDataFile

logger = logging.getLogger(__name__)


class FeatureDataType(Enum):
    """Which data points the accessor returns."""
    ONLY_DETECTED = "only_detected"
    INCLUDE_ZEROS = "include_zeros"


class FeatureDataAccess:
    """Single-pass iterator over the ion series of a feature list.

    Parameters
    ----------
    feature_list : FeatureList
        List to traverse
    data_type : FeatureDataType
        Detected points only, or zero-filled onto the selected scans
        (default: INCLUDE_ZEROS)
    raw_file : RawDataFile, optional
        Raw file to traverse; the list's single raw file if omitted

    Raises
    ------
    ConfigurationError
        If ``raw_file`` is omitted and the list has more than one raw file
    """

    def __init__(
        self,
        feature_list: FeatureList,
        data_type: FeatureDataType = FeatureDataType.INCLUDE_ZEROS,
        raw_file: Optional[RawDataFile] = None,
    ):
        if raw_file is None:
            raw_file = feature_list.raw_file
        self.feature_list = feature_list
        self.raw_file = raw_file
        self.data_type = data_type

        self._rows: List[FeatureListRow] = [
            row for row in feature_list.rows if row.feature.raw_file is raw_file
        ]
        self._index = -1
        self._current_series: Optional[IonSeries] = None

        self._grid_rts = np.empty(0)
        self._grid_scans = np.empty(0, dtype=np.int64)
        self._grid_index: Dict[int, int] = {}
        if data_type == FeatureDataType.INCLUDE_ZEROS:
            scans = feature_list.get_selected_scans(raw_file)
            self._grid_rts = np.array([s.retention_time for s in scans], dtype=np.float64)
            self._grid_scans = np.array([s.scan_number for s in scans], dtype=np.int64)
            self._grid_index = {int(n): i for i, n in enumerate(self._grid_scans)}
            if len(scans) == 0:
                logger.debug(f"No selected scans for {raw_file}, returning detected points only")

    def __iter__(self) -> "FeatureDataAccess":
        return self

    def __next__(self) -> IonSeries:
        if not self.has_next():
            raise StopIteration
        return self.next()

    @property
    def number_of_features(self) -> int:
        return len(self._rows)

    @property
    def current_row(self) -> Optional[FeatureListRow]:
        if 0 <= self._index < len(self._rows):
            return self._rows[self._index]
        return None

    @property
    def current_feature(self) -> Optional[Feature]:
        row = self.current_row
        return row.feature if row is not None else None

    @property
    def current_series(self) -> Optional[IonSeries]:
        return self._current_series

    def has_next(self) -> bool:
        return self._index + 1 < len(self._rows)

    def next(self) -> IonSeries:
        """Advance to the next row and return its ion series.

        Raises
        ------
        IndexError
            If all rows have been returned already
        StorageError
            If the backing storage is closed
        """
        if not self.has_next():
            raise IndexError(
                f"Feature data access on {self.feature_list} exhausted after {len(self._rows)} rows"
            )
        self._index += 1
        feature = self._rows[self._index].feature

        for storage in (self.feature_list.storage, feature.series.storage):
            if storage is not None:
                storage.check_open()

        if self.data_type == FeatureDataType.INCLUDE_ZEROS and len(self._grid_rts) > 0:
            self._current_series = self._zero_filled(feature.series)
        else:
            self._current_series = feature.series
        return self._current_series

    def _zero_filled(self, series: IonSeries) -> IonSeries:
        n = len(self._grid_rts)
        positions = np.array(
            [self._grid_index.get(int(s), -1) for s in series.scan_numbers], dtype=np.int64
        )
        on_grid = positions >= 0

        intensities = np.zeros(n, dtype=np.float64)
        mzs = np.full(n, np.nan, dtype=np.float64)
        intensities[positions[on_grid]] = series.intensities[on_grid]
        mzs[positions[on_grid]] = series.mzs[on_grid]

        mobilities = None
        if series.has_mobility:
            mobilities = np.full(n, np.nan, dtype=np.float64)
            mobilities[positions[on_grid]] = series.mobilities[on_grid]

        return IonSeries(mzs, intensities, self._grid_rts, self._grid_scans, mobilities)
