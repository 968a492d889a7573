"""Spectral deconvolution of a resolved feature list as a background task."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from ..datamodel.feature_list import AppliedMethod, FeatureList
from ..datamodel.project import OriginalFeatureListHandling, Project
from ..exceptions import ConfigurationError
from ..formats import DEFAULT_FORMATS, NumberFormats
from ..taskcontrol.task import AbstractTask, CancellationToken
from .algorithms import SpectralDeconvolutionAlgorithms
from .exclusion import MzExclusionRange
from .pseudo_spectra import pseudo_spectrum_rows

logger = logging.getLogger(__name__)


@dataclass
class SpectralDeconvolutionParams:
    """Grouping parameters for pseudo-spectrum generation."""

    algorithm: SpectralDeconvolutionAlgorithms = SpectralDeconvolutionAlgorithms.RT_GROUPING

    # RT tolerance (minutes)
    rt_tolerance: float = 0.1

    # Minimum number of features per group
    min_signals: int = 2

    # m/z ranges not used as main feature
    mz_exclusions: Tuple[MzExclusionRange, ...] = ()

    # Only used by RT_GROUPING_AND_SHAPE_CORRELATION
    min_shape_similarity: float = 0.9

    suffix: str = "pseudo spectra"
    handle_original: OriginalFeatureListHandling = OriginalFeatureListHandling.KEEP

    def __post_init__(self):
        if self.rt_tolerance <= 0:
            raise ConfigurationError(f"rt_tolerance must be > 0, got {self.rt_tolerance}")
        if self.min_signals < 1:
            raise ConfigurationError(f"min_signals must be >= 1, got {self.min_signals}")
        if not 0.0 <= self.min_shape_similarity <= 1.0:
            raise ConfigurationError(
                f"min_shape_similarity must be in [0, 1], got {self.min_shape_similarity}"
            )
        self.mz_exclusions = tuple(self.mz_exclusions)

    @classmethod
    def for_gc(cls, **kwargs) -> 'SpectralDeconvolutionParams':
        """Typical GC-EI settings: narrow peaks, many fragments per compound."""
        defaults = dict(rt_tolerance=0.02, min_signals=5)
        defaults.update(kwargs)
        return cls(**defaults)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'algorithm': self.algorithm.value,
            'rt_tolerance': self.rt_tolerance,
            'min_signals': self.min_signals,
            'mz_exclusions': [(r.lower, r.upper) for r in self.mz_exclusions],
            'min_shape_similarity': self.min_shape_similarity,
            'suffix': self.suffix,
            'handle_original': self.handle_original.value,
        }


class SpectralDeconvolutionTask(AbstractTask):
    """Build a feature list of pseudo-spectrum rows from a resolved list.

    Parameters
    ----------
    project : Project, optional
        Project the new list is published to
    feature_list : FeatureList
        Resolved list with exactly one raw file
    params : SpectralDeconvolutionParams
        Grouping parameters
    cancel_token : CancellationToken, optional
        Shared cancellation flag
    formats : NumberFormats
        Number formats of the spectrum names
    """

    def __init__(
        self,
        project: Optional[Project],
        feature_list: FeatureList,
        params: SpectralDeconvolutionParams,
        cancel_token: Optional[CancellationToken] = None,
        formats: NumberFormats = DEFAULT_FORMATS,
    ):
        super().__init__(cancel_token)
        self.formats = formats
        self.project = project
        self.original_list = feature_list
        self.params = params
        self.call_date = datetime.now()
        self.result_list: Optional[FeatureList] = None
        self.set_description(f"Spectral deconvolution on {feature_list}")

    def process(self) -> Optional[FeatureList]:
        params = self.params
        raw_file = self.original_list.raw_file
        features = self.original_list.features(raw_file)
        logger.info(
            f"Grouping {len(features)} features of {self.original_list} "
            f"({params.algorithm.value}, tolerance {params.rt_tolerance} min)"
        )

        algorithm = params.algorithm.create(params.min_shape_similarity)
        groups = algorithm.group(features, params.rt_tolerance, params.min_signals)
        self.set_progress(0.5)
        if self.is_canceled():
            return None

        rows = pseudo_spectrum_rows(groups, self.original_list, params.mz_exclusions, self.formats)

        new_list = FeatureList(
            f"{self.original_list.name} {params.suffix}",
            [raw_file],
            storage=self.original_list.storage,
        )
        new_list.set_selected_scans(raw_file, self.original_list.get_selected_scans(raw_file))
        for method in self.original_list.applied_methods:
            new_list.add_applied_method(method)

        for i, row in enumerate(rows, start=1):
            if self.is_canceled():
                return None
            new_list.add_row(row)
            self.set_progress(0.5 + 0.5 * i / len(rows))

        new_list.add_applied_method(AppliedMethod(
            name=f"Spectral deconvolution ({params.algorithm.value})",
            parameters=params.to_dict(),
            call_date=self.call_date,
        ))
        logger.info(f"Created {new_list.number_of_rows} pseudo spectra from {len(features)} features")
        return new_list

    def commit(self, new_list: Optional[FeatureList]) -> None:
        if new_list is None:
            return
        self.params.handle_original.reflect_new_feature_list(
            self.params.suffix, self.project, new_list, self.original_list
        )
        self.result_list = new_list
