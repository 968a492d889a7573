"""Grouping of co-eluting features.

All algorithms share one capability, ``group(features, rt_tolerance,
min_signals)``, returning groups of features ordered by RT. Groups with
fewer than ``min_signals`` members are dropped. Grouping is deterministic:
features are sorted by RT with a stable sort, so equal RTs keep the input
(row) order.

Algorithms
----------
RT_GROUPING
    One left-to-right pass. The first feature of a group is its anchor; the
    next feature opens a new group once ``rt >= anchor + rt_tolerance``. The
    window is half-open, so a feature exactly at ``anchor + rt_tolerance``
    starts the next group.
RT_GROUPING_AND_SHAPE_CORRELATION
    RT_GROUPING, then each group is split by elution profile: members whose
    profile has cosine similarity >= ``min_shape_similarity`` to the most
    intense member stay; the rest is split again the same way.
HIERARCHICAL_CLUSTERING
    Agglomerative complete-linkage clustering on RT: the adjacent pair of
    clusters with the closest mean RTs is merged while the merged RT span
    stays below ``rt_tolerance``.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Sequence

import numpy as np
from numba import njit

from ..datamodel.features import Feature
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def sort_by_rt(features: Sequence[Feature]) -> List[Feature]:
    """Stable RT sort; NaN RTs last."""
    rts = np.array([f.rt for f in features], dtype=np.float64)
    order = np.argsort(np.where(np.isnan(rts), np.inf, rts), kind="stable")
    return [features[i] for i in order]


def _most_intense(features: Sequence[Feature]) -> int:
    """Index of the highest feature; the first one on ties."""
    return int(np.argmax([f.height for f in features]))


class SpectralDeconvolutionAlgorithm(ABC):
    """Strategy grouping features into co-eluting clusters."""

    name = ""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def _check(self, rt_tolerance: float, min_signals: int) -> None:
        if rt_tolerance <= 0:
            raise ConfigurationError(f"rt_tolerance must be > 0, got {rt_tolerance}")
        if min_signals < 1:
            raise ConfigurationError(f"min_signals must be >= 1, got {min_signals}")

    def group(
        self,
        features: Sequence[Feature],
        rt_tolerance: float,
        min_signals: int,
    ) -> List[List[Feature]]:
        """Group ``features`` (minutes tolerance), drop groups below ``min_signals``.

        An empty input gives an empty list.
        """
        self._check(rt_tolerance, min_signals)
        if len(features) == 0:
            return []
        groups = self._group_sorted(sort_by_rt(list(features)), rt_tolerance)
        kept = [g for g in groups if len(g) >= min_signals]
        logger.debug(
            f"{self.name}: {len(features)} features, {len(groups)} groups, "
            f"{len(groups) - len(kept)} below {min_signals} signals"
        )
        return kept

    @abstractmethod
    def _group_sorted(self, features: List[Feature], rt_tolerance: float) -> List[List[Feature]]:
        """Group features already sorted by RT."""


class RtGrouping(SpectralDeconvolutionAlgorithm):
    """Anchored RT window, single pass."""

    name = "rt_grouping"

    def _group_sorted(self, features, rt_tolerance):
        groups: List[List[Feature]] = []
        current: List[Feature] = []
        anchor = 0.0
        for feature in features:
            if not current or not feature.rt < anchor + rt_tolerance:
                current = [feature]
                anchor = feature.rt
                groups.append(current)
            else:
                current.append(feature)
        return groups


@njit
def cosine_similarity(profile1: np.ndarray, profile2: np.ndarray) -> float:
    """Cosine similarity of two elution profiles, in [0, 1].

    Shape only: profiles differing by a constant factor give 1.0. A zero
    profile gives 0.0.
    """
    dot_product = 0.0
    norm1 = 0.0
    norm2 = 0.0

    for i in range(len(profile1)):
        dot_product += profile1[i] * profile2[i]
        norm1 += profile1[i] * profile1[i]
        norm2 += profile2[i] * profile2[i]

    if norm1 == 0.0 or norm2 == 0.0:
        return 0.0

    similarity = dot_product / (np.sqrt(norm1) * np.sqrt(norm2))
    return max(0.0, min(1.0, similarity))


def elution_profile(feature: Feature, grid: np.ndarray) -> np.ndarray:
    """Feature intensities linearly interpolated onto ``grid``, zero outside."""
    series = feature.series
    if series.is_empty:
        return np.zeros(len(grid), dtype=np.float64)
    return np.interp(grid, series.retention_times, series.intensities, left=0.0, right=0.0)


class RtGroupingAndShapeCorrelation(SpectralDeconvolutionAlgorithm):
    """RT grouping refined by elution profile similarity.

    Parameters
    ----------
    min_shape_similarity : float
        Minimum cosine similarity to the most intense member (0-1)
    """

    name = "rt_grouping_and_shape_correlation"

    def __init__(self, min_shape_similarity: float = 0.9):
        if not 0.0 <= min_shape_similarity <= 1.0:
            raise ConfigurationError(
                f"min_shape_similarity must be in [0, 1], got {min_shape_similarity}"
            )
        self.min_shape_similarity = min_shape_similarity

    def __repr__(self) -> str:
        return f"{type(self).__name__}(min_shape_similarity={self.min_shape_similarity})"

    def _group_sorted(self, features, rt_tolerance):
        groups = []
        for rt_group in RtGrouping()._group_sorted(features, rt_tolerance):
            groups.extend(self._split_by_shape(rt_group))
        # Subgroups of neighbouring RT groups can interleave
        groups.sort(key=lambda g: g[0].rt)
        return groups

    def _split_by_shape(self, members: List[Feature]) -> List[List[Feature]]:
        groups = []
        remaining = members
        while remaining:
            reference = remaining[_most_intense(remaining)]
            grid = np.ascontiguousarray(reference.series.retention_times, dtype=np.float64)
            ref_profile = elution_profile(reference, grid)

            kept, rejected = [], []
            for feature in remaining:
                if feature is reference:
                    kept.append(feature)
                    continue
                similarity = cosine_similarity(ref_profile, elution_profile(feature, grid))
                if similarity >= self.min_shape_similarity:
                    kept.append(feature)
                else:
                    rejected.append(feature)
            groups.append(kept)
            remaining = rejected
        return groups


class HierarchicalClustering(SpectralDeconvolutionAlgorithm):
    """Complete-linkage agglomeration on RT."""

    name = "hierarchical_clustering"

    def _group_sorted(self, features, rt_tolerance):
        # Clusters are contiguous in RT order: [start, end) index ranges
        rts = np.array([f.rt for f in features], dtype=np.float64)
        bounds = [[i, i + 1] for i in range(len(features))]
        sums = [float(rt) for rt in rts]

        while len(bounds) > 1:
            best = -1
            best_distance = np.inf
            for k in range(len(bounds) - 1):
                left, right = bounds[k], bounds[k + 1]
                span = rts[right[1] - 1] - rts[left[0]]
                if not span < rt_tolerance:
                    continue
                distance = (
                    sums[k + 1] / (right[1] - right[0]) - sums[k] / (left[1] - left[0])
                )
                if distance < best_distance:
                    best, best_distance = k, distance
            if best < 0:
                break
            bounds[best][1] = bounds[best + 1][1]
            sums[best] += sums[best + 1]
            del bounds[best + 1]
            del sums[best + 1]

        return [features[start:end] for start, end in bounds]


class SpectralDeconvolutionAlgorithms(Enum):
    """Available grouping algorithms."""
    RT_GROUPING = "rt_grouping"
    RT_GROUPING_AND_SHAPE_CORRELATION = "rt_grouping_and_shape_correlation"
    HIERARCHICAL_CLUSTERING = "hierarchical_clustering"

    def create(self, min_shape_similarity: float = 0.9) -> SpectralDeconvolutionAlgorithm:
        if self == SpectralDeconvolutionAlgorithms.RT_GROUPING:
            return RtGrouping()
        elif self == SpectralDeconvolutionAlgorithms.RT_GROUPING_AND_SHAPE_CORRELATION:
            return RtGroupingAndShapeCorrelation(min_shape_similarity)
        else:
            return HierarchicalClustering()


def group_features(
    algorithm,
    features: Sequence[Feature],
    rt_tolerance: float,
    min_signals: int,
) -> List[List[Feature]]:
    """Group ``features`` with an algorithm instance or enum member."""
    if isinstance(algorithm, SpectralDeconvolutionAlgorithms):
        algorithm = algorithm.create()
    return algorithm.group(features, rt_tolerance, min_signals)
