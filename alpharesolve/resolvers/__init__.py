"""Chromatogram resolvers.

This module provides:
- The Resolver interface (series in, non-overlapping sub-series out)
- Local minimum search
- Fixed-scale wavelet matched filter
- Noise amplitude segmentation
- Selection by ResolverType
"""

from .base import (
    ResolverType,
    ChromatographyType,
    ResolverParams,
    Resolver,
    check_ranges,
)

from .minimum_search import (
    MinimumSearchParams,
    MinimumSearchResolver,
    minimum_search_ranges,
)

from .wavelet import (
    WaveletParams,
    WaveletResolver,
    ricker_kernel,
    wavelet_response,
)

from .noise_amplitude import (
    NoiseAmplitudeParams,
    NoiseAmplitudeResolver,
    noise_amplitude_ranges,
)

from .registry import (
    create_resolver,
    default_params,
)

__all__ = [
    # Interface
    'ResolverType',
    'ChromatographyType',
    'ResolverParams',
    'Resolver',
    'check_ranges',

    # Minimum search
    'MinimumSearchParams',
    'MinimumSearchResolver',
    'minimum_search_ranges',

    # Wavelet
    'WaveletParams',
    'WaveletResolver',
    'ricker_kernel',
    'wavelet_response',

    # Noise amplitude
    'NoiseAmplitudeParams',
    'NoiseAmplitudeResolver',
    'noise_amplitude_ranges',

    # Selection
    'create_resolver',
    'default_params',
]
