"""Spectral deconvolution: grouping co-eluting features into pseudo-spectra.

This module provides:
- Grouping algorithms (RT window, RT window + shape correlation, hierarchical)
- Main feature selection with m/z exclusion ranges
- Pseudo-spectrum rows and nearest-group lookup
- A background task producing a pseudo-spectrum feature list
"""

from .exclusion import (
    MzExclusionRange,
    is_excluded,
)

from .algorithms import (
    SpectralDeconvolutionAlgorithm,
    SpectralDeconvolutionAlgorithms,
    RtGrouping,
    RtGroupingAndShapeCorrelation,
    HierarchicalClustering,
    cosine_similarity,
    group_features,
)

from .pseudo_spectra import (
    PSEUDO_SPECTRUM,
    FEATURE_GROUP,
    SPECTRUM_NAME,
    PseudoSpectrum,
    get_main_feature,
    generate_pseudo_spectra,
    pseudo_spectrum_rows,
    find_closest_feature_group,
    row_ids_of,
)

from .task import (
    SpectralDeconvolutionParams,
    SpectralDeconvolutionTask,
)

__all__ = [
    # Exclusions
    'MzExclusionRange',
    'is_excluded',

    # Grouping
    'SpectralDeconvolutionAlgorithm',
    'SpectralDeconvolutionAlgorithms',
    'RtGrouping',
    'RtGroupingAndShapeCorrelation',
    'HierarchicalClustering',
    'cosine_similarity',
    'group_features',

    # Pseudo spectra
    'PSEUDO_SPECTRUM',
    'FEATURE_GROUP',
    'SPECTRUM_NAME',
    'PseudoSpectrum',
    'get_main_feature',
    'generate_pseudo_spectra',
    'pseudo_spectrum_rows',
    'find_closest_feature_group',
    'row_ids_of',

    # Task
    'SpectralDeconvolutionParams',
    'SpectralDeconvolutionTask',
]
