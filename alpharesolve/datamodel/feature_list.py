"""Feature lists: rows of features with stable ids and provenance."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Sequence

from ..exceptions import ConfigurationError
from ..xic.storage import MemoryMapStorage
from .features import Feature
from .raw import RawDataFile, Scan


@dataclass(frozen=True)
class AppliedMethod:
    """Provenance record of a processing step applied to a feature list."""

    name: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    call_date: datetime = field(default_factory=datetime.now)


class FeatureListRow:
    """A row holding one feature (single-file lists) plus free-form annotations."""

    __slots__ = ("row_id", "feature", "annotations")

    def __init__(self, row_id: int, feature: Feature, annotations: Optional[Dict[str, Any]] = None):
        self.row_id = int(row_id)
        self.feature = feature
        self.annotations = dict(annotations) if annotations else {}

    def __repr__(self) -> str:
        return f"FeatureListRow(id={self.row_id}, mz={self.mz:.4f}, rt={self.rt:.3f})"

    @property
    def mz(self) -> float:
        return self.feature.mz

    @property
    def rt(self) -> float:
        return self.feature.rt

    @property
    def height(self) -> float:
        return self.feature.height


class FeatureList:
    """Ordered rows keyed by unique integer ids.

    Parameters
    ----------
    name : str
        Display name
    raw_files : Sequence[RawDataFile]
        Raw files the features were detected in
    storage : MemoryMapStorage, optional
        Arena holding the ion series of this list's features
    """

    def __init__(
        self,
        name: str,
        raw_files: Sequence[RawDataFile],
        storage: Optional[MemoryMapStorage] = None,
    ):
        self.name = name
        self._raw_files = list(raw_files)
        self.storage = storage
        self._rows: List[FeatureListRow] = []
        self._rows_by_id: Dict[int, FeatureListRow] = {}
        self._selected_scans: Dict[int, List[Scan]] = {}
        self.applied_methods: List[AppliedMethod] = []
        self.processing_warnings: List[str] = []

    def __repr__(self) -> str:
        return f"FeatureList({self.name!r}, rows={len(self._rows)}, files={len(self._raw_files)})"

    def __str__(self) -> str:
        return self.name

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[FeatureListRow]:
        return iter(list(self._rows))

    # ------------------------------------------------------------------
    # Raw files and scans
    # ------------------------------------------------------------------

    @property
    def raw_files(self) -> List[RawDataFile]:
        return list(self._raw_files)

    @property
    def number_of_raw_files(self) -> int:
        return len(self._raw_files)

    @property
    def raw_file(self) -> RawDataFile:
        """The single raw file of this list.

        Raises
        ------
        ConfigurationError
            If the list does not have exactly one raw file
        """
        if len(self._raw_files) != 1:
            raise ConfigurationError(
                f"Feature list {self.name} has {len(self._raw_files)} raw data files, expected exactly one"
            )
        return self._raw_files[0]

    def get_selected_scans(self, raw_file: RawDataFile) -> List[Scan]:
        """Scans the features were built on; all MS1 scans if never set."""
        scans = self._selected_scans.get(id(raw_file))
        if scans is None:
            return raw_file.ms1_scans()
        return list(scans)

    def set_selected_scans(self, raw_file: RawDataFile, scans: Sequence[Scan]) -> None:
        self._selected_scans[id(raw_file)] = sorted(scans, key=lambda scan: scan.retention_time)

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    @property
    def rows(self) -> List[FeatureListRow]:
        return list(self._rows)

    @property
    def number_of_rows(self) -> int:
        return len(self._rows)

    def add_row(self, row: FeatureListRow) -> None:
        """Append a row.

        Raises
        ------
        ValueError
            If the id is already taken or the feature's raw file is not part
            of this list
        """
        if row.row_id in self._rows_by_id:
            raise ValueError(f"Row id {row.row_id} already exists in {self.name}")
        if not any(row.feature.raw_file is f for f in self._raw_files):
            raise ValueError(f"Feature of row {row.row_id} belongs to a raw file not in {self.name}")
        self._rows.append(row)
        self._rows_by_id[row.row_id] = row

    def get_row(self, row_id: int) -> Optional[FeatureListRow]:
        return self._rows_by_id.get(row_id)

    def row_at(self, index: int) -> FeatureListRow:
        return self._rows[index]

    def next_row_id(self) -> int:
        return max(self._rows_by_id, default=0) + 1

    def features(self, raw_file: Optional[RawDataFile] = None) -> List[Feature]:
        """Features in row order, optionally limited to one raw file."""
        return [
            row.feature for row in self._rows
            if raw_file is None or row.feature.raw_file is raw_file
        ]

    def sort_by_default_rt(self, reset_ids: bool = True) -> None:
        """Stable sort by feature RT, ties by row id; optionally renumber ids 1..n."""
        def key(row: FeatureListRow):
            rt = row.rt
            return (rt != rt, rt if rt == rt else 0.0, row.row_id)  # NaN RT last

        self._rows.sort(key=key)
        if reset_ids:
            for new_id, row in enumerate(self._rows, start=1):
                row.row_id = new_id
        self._rows_by_id = {row.row_id: row for row in self._rows}

    def add_applied_method(self, method: AppliedMethod) -> None:
        self.applied_methods.append(method)

    def to_dataframe(self):
        """Row summary as a pandas DataFrame (one line per row)."""
        import pandas as pd

        records = []
        for row in self._rows:
            f = row.feature
            records.append({
                'id': row.row_id,
                'mz': f.mz,
                'rt': f.rt,
                'height': f.height,
                'area': f.area,
                'fwhm': f.fwhm,
                'n_points': f.number_of_data_points,
                'status': f.status.name,
                'parent_row_id': f.parent_row_id,
                'n_ms2': len(f.ms2_scans),
            })
        columns = ['id', 'mz', 'rt', 'height', 'area', 'fwhm', 'n_points',
                   'status', 'parent_row_id', 'n_ms2']
        return pd.DataFrame.from_records(records, columns=columns)
