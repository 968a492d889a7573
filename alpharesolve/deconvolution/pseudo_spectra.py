"""Main features, pseudo-spectra and nearest-group lookup.

A pseudo-spectrum is the list of (m/z, height) pairs of all features in one
co-elution group, stored on a synthetic feature list row whose feature is
the group's main feature.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..datamodel.feature_list import FeatureList, FeatureListRow
from ..datamodel.features import Feature
from ..formats import DEFAULT_FORMATS, NumberFormats
from .algorithms import SpectralDeconvolutionAlgorithms, group_features
from .exclusion import MzExclusionRange, is_excluded

logger = logging.getLogger(__name__)

PSEUDO_SPECTRUM = "pseudo_spectrum"
FEATURE_GROUP = "feature_group"
SPECTRUM_NAME = "spectrum_name"


def row_ids_of(feature_list: FeatureList) -> Dict[Feature, int]:
    """Feature -> row id of a feature list (features hash by identity)."""
    return {row.feature: row.row_id for row in feature_list.rows}


def get_main_feature(
    group: Sequence[Feature],
    mz_exclusions: Optional[Sequence[MzExclusionRange]] = None,
    row_ids: Optional[Dict[Feature, int]] = None,
) -> Optional[Feature]:
    """Most intense feature of ``group`` whose m/z is not excluded.

    Parameters
    ----------
    group : Sequence[Feature]
        Group members
    mz_exclusions : Sequence[MzExclusionRange], optional
        m/z ranges to skip; if every member is excluded, all members are
        considered
    row_ids : dict, optional
        Feature -> row id, used for tie breaking

    Returns
    -------
    Feature or None
        Highest ``height``; ties go to the lowest row id, then to the
        earliest position. Features without a row id rank after all that
        have one. None for an empty group.

    Examples
    --------
    >>> get_main_feature([f_100, f_205], [MzExclusionRange(200, 210)])
    f_100
    """
    if len(group) == 0:
        return None

    candidates = [f for f in group if not is_excluded(f.mz, mz_exclusions)]
    if not candidates:
        candidates = list(group)

    def key(item):
        position, feature = item
        row_id = row_ids.get(feature, np.inf) if row_ids else np.inf
        return (-feature.height, row_id, position)

    return min(enumerate(candidates), key=key)[1]


@dataclass(frozen=True, eq=False)
class PseudoSpectrum:
    """m/z-sorted signals of one co-elution group.

    Attributes
    ----------
    rt : float
        RT of the main feature
    mzs : np.ndarray
        Member m/z values, ascending
    intensities : np.ndarray
        Member heights in the order of ``mzs``
    """

    rt: float
    mzs: np.ndarray
    intensities: np.ndarray

    @classmethod
    def from_group(cls, group: Sequence[Feature], rt: float) -> 'PseudoSpectrum':
        mzs = np.array([f.mz for f in group], dtype=np.float64)
        intensities = np.array([f.height for f in group], dtype=np.float64)
        order = np.argsort(mzs, kind="stable")
        mzs, intensities = mzs[order], intensities[order]
        mzs.flags.writeable = False
        intensities.flags.writeable = False
        return cls(rt=float(rt), mzs=mzs, intensities=intensities)

    def __len__(self) -> int:
        return len(self.mzs)

    @property
    def base_peak_mz(self) -> float:
        if len(self.mzs) == 0:
            return float("nan")
        return float(self.mzs[np.argmax(self.intensities)])

    def label(self, formats: NumberFormats = DEFAULT_FORMATS) -> str:
        return (
            f"Pseudo spectrum @ {formats.rt(self.rt)} min "
            f"({len(self)} signals, base peak m/z {formats.mz(self.base_peak_mz)})"
        )

    @property
    def normalized_intensities(self) -> np.ndarray:
        """Intensities relative to the base peak (base peak = 1.0)."""
        if len(self.intensities) == 0 or self.intensities.max() <= 0:
            return np.zeros(len(self.intensities))
        return self.intensities / self.intensities.max()

    def to_dataframe(self):
        import pandas as pd

        return pd.DataFrame({
            'mz': self.mzs,
            'intensity': self.intensities,
            'relative_intensity': self.normalized_intensities,
        })


def generate_pseudo_spectra(
    features: Sequence[Feature],
    feature_list: FeatureList,
    rt_tolerance: float,
    min_signals: int,
    algorithm=SpectralDeconvolutionAlgorithms.RT_GROUPING,
    mz_exclusions: Optional[Sequence[MzExclusionRange]] = None,
    formats: NumberFormats = DEFAULT_FORMATS,
) -> List[FeatureListRow]:
    """One row per co-elution group, sorted by RT.

    Parameters
    ----------
    features : Sequence[Feature]
        Features to group (typically all features of ``feature_list``)
    feature_list : FeatureList
        List the features belong to; its row ids break ties
    rt_tolerance : float
        RT tolerance (minutes)
    min_signals : int
        Minimum group size
    algorithm : SpectralDeconvolutionAlgorithm or SpectralDeconvolutionAlgorithms
        Grouping strategy
    mz_exclusions : Sequence[MzExclusionRange], optional
        m/z ranges never chosen as main feature if avoidable
    formats : NumberFormats
        Number formats of the spectrum names

    Returns
    -------
    List[FeatureListRow]
        New rows (ids 1..n in RT order) whose feature is the main feature,
        annotated with ``"pseudo_spectrum"``, ``"feature_group"`` and
        ``"spectrum_name"``
    """
    groups = group_features(algorithm, features, rt_tolerance, min_signals)
    return pseudo_spectrum_rows(groups, feature_list, mz_exclusions, formats)


def pseudo_spectrum_rows(
    groups: Sequence[Sequence[Feature]],
    feature_list: FeatureList,
    mz_exclusions: Optional[Sequence[MzExclusionRange]] = None,
    formats: NumberFormats = DEFAULT_FORMATS,
) -> List[FeatureListRow]:
    """Rows for already computed groups, sorted by main feature RT."""
    row_ids = row_ids_of(feature_list)
    entries = []
    for group in groups:
        main = get_main_feature(group, mz_exclusions, row_ids)
        entries.append((main, group))
    entries.sort(key=lambda e: e[0].rt)

    rows = []
    for row_id, (main, group) in enumerate(entries, start=1):
        spectrum = PseudoSpectrum.from_group(group, main.rt)
        rows.append(FeatureListRow(row_id, main, {
            PSEUDO_SPECTRUM: spectrum,
            FEATURE_GROUP: tuple(group),
            SPECTRUM_NAME: spectrum.label(formats),
        }))
    return rows


def find_closest_feature_group(
    features: Sequence[Feature],
    groups: Sequence[Sequence[Feature]],
    feature_list: FeatureList,
    rt: float,
    mz: float,
    mz_exclusions: Optional[Sequence[MzExclusionRange]] = None,
) -> Optional[Feature]:
    """Main feature of the group holding the feature closest to (rt, mz).

    Distance is Euclidean in (RT, m/z). The main feature is chosen as for
    the pseudo-spectrum rows, with ties broken by the row ids of
    ``feature_list``. Returns None if ``features`` is empty or the closest
    feature belongs to no group.
    """
    if len(features) == 0:
        return None

    rts = np.array([f.rt for f in features], dtype=np.float64)
    mzs = np.array([f.mz for f in features], dtype=np.float64)
    distances = np.hypot(rts - rt, mzs - mz)
    distances[np.isnan(distances)] = np.inf
    closest = features[int(np.argmin(distances))]

    for group in groups:
        if any(f is closest for f in group):
            return get_main_feature(group, mz_exclusions, row_ids_of(feature_list))
    return None
