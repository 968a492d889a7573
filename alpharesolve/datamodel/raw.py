"""Raw data file handle and scan metadata.

Only the metadata the pipeline needs is modelled: scan numbers, retention
times, MS level and precursor information for MS2 grouping. Spectra
themselves are not held here.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence


@dataclass(frozen=True)
class Scan:
    """One scan (spectrum) of a raw data file."""

    scan_number: int
    retention_time: float  # minutes
    ms_level: int = 1
    precursor_mz: Optional[float] = None
    mobility: Optional[float] = None


@dataclass(eq=False)
class RawDataFile:
    """Handle to one raw data file.

    Attributes
    ----------
    name : str
        File name
    scans : List[Scan]
        All scans, sorted by retention time on construction
    is_imaging : bool
        True for imaging (e.g. MALDI) acquisitions
    """

    name: str
    scans: List[Scan] = field(default_factory=list)
    is_imaging: bool = False

    def __post_init__(self):
        self.scans = sorted(self.scans, key=lambda scan: (scan.retention_time, scan.scan_number))
        self._by_number: Dict[int, Scan] = {scan.scan_number: scan for scan in self.scans}

    def __repr__(self) -> str:
        return f"RawDataFile({self.name!r}, scans={len(self.scans)})"

    def __str__(self) -> str:
        return self.name

    def ms1_scans(self) -> List[Scan]:
        return [scan for scan in self.scans if scan.ms_level == 1]

    def ms2_scans(self) -> List[Scan]:
        return [scan for scan in self.scans if scan.ms_level >= 2]

    def scan_by_number(self, scan_number: int) -> Optional[Scan]:
        return self._by_number.get(scan_number)

    def scans_by_numbers(self, scan_numbers: Sequence[int]) -> List[Scan]:
        return [self._by_number[n] for n in scan_numbers if n in self._by_number]
