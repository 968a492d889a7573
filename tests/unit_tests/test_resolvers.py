"""Tests for the chromatogram resolvers.

Tests cover:
1. Minimum search: separated peaks, doublets split at the valley, thresholds
2. Wavelet matched filter
3. Noise amplitude segmentation
4. Properties shared by all resolvers (non-overlap, minimum length,
   determinism, empty results)
5. Resolver selection
"""

import numpy as np
import pytest

from alpharesolve.exceptions import AlgorithmWarning, AlphaResolveError, ConfigurationError
from alpharesolve.resolvers import (
    ChromatographyType,
    MinimumSearchParams,
    MinimumSearchResolver,
    NoiseAmplitudeParams,
    NoiseAmplitudeResolver,
    Resolver,
    ResolverParams,
    ResolverType,
    WaveletParams,
    WaveletResolver,
    create_resolver,
    ricker_kernel,
    wavelet_response,
)
from alpharesolve.xic import IonSeries

from conftest import gaussian


def trace(rts, intensities):
    return IonSeries(np.full(len(rts), 300.0), intensities, rts)


ALL_RESOLVERS = [
    MinimumSearchResolver(MinimumSearchParams()),
    WaveletResolver(WaveletParams()),
    NoiseAmplitudeResolver(NoiseAmplitudeParams()),
]


class TestMinimumSearch:
    """Test local minimum search."""

    def test_two_separated_peaks(self, rts, two_peak_trace):
        resolver = MinimumSearchResolver(MinimumSearchParams())
        peaks = resolver.resolve(trace(rts, two_peak_trace))

        assert len(peaks) == 2
        apex_rts = [p.retention_times[p.apex_index] for p in peaks]
        assert apex_rts == pytest.approx([10.5, 11.3], abs=0.011)

    def test_doublet_split_at_valley(self, rts):
        intensities = gaussian(rts, 10.5, 0.03, 1e5) + gaussian(rts, 10.62, 0.03, 8e4)
        resolver = MinimumSearchResolver(MinimumSearchParams())
        peaks = resolver.resolve(trace(rts, intensities))

        assert len(peaks) == 2
        first, second = peaks
        # Adjacent, the valley point starts the second peak
        assert first.retention_times[-1] < second.retention_times[0]
        valley_rt = second.retention_times[0]
        assert 10.54 <= valley_rt <= 10.58
        assert first.max_intensity == pytest.approx(1e5, rel=0.05)

    def test_below_min_height(self, rts, two_peak_trace):
        params = MinimumSearchParams(min_absolute_height=1e6)
        assert MinimumSearchResolver(params).resolve(trace(rts, two_peak_trace)) == []

    def test_relative_height(self, rts, two_peak_trace):
        # Second peak is half as high as the first
        params = MinimumSearchParams(min_absolute_height=0.0, min_relative_height=0.6)
        peaks = MinimumSearchResolver(params).resolve(trace(rts, two_peak_trace))
        assert len(peaks) == 1
        assert peaks[0].max_intensity == pytest.approx(1e5)

    def test_peak_duration(self, rts, two_peak_trace):
        params = MinimumSearchParams(peak_duration=(0.0, 0.05))
        assert MinimumSearchResolver(params).resolve(trace(rts, two_peak_trace)) == []

    def test_flat_trace(self, rts):
        resolver = MinimumSearchResolver(MinimumSearchParams())
        assert resolver.resolve(trace(rts, np.full(len(rts), 5e4))) == []

    def test_smoothing(self, rts, two_peak_trace):
        noisy = two_peak_trace + np.random.rand(len(rts)) * 500.0
        params = MinimumSearchParams(smoothing_sigma=1.0)
        assert len(MinimumSearchResolver(params).resolve(trace(rts, noisy))) == 2

    def test_invalid_params(self):
        with pytest.raises(ConfigurationError):
            MinimumSearchParams(chromatographic_threshold=1.5)
        with pytest.raises(ConfigurationError):
            MinimumSearchParams(min_data_points=0)
        with pytest.raises(ConfigurationError):
            MinimumSearchParams(peak_duration=(1.0, 0.5))

    def test_low_ratio_warns(self):
        with pytest.warns(AlgorithmWarning):
            MinimumSearchResolver(MinimumSearchParams(min_ratio=0.5))

    def test_presets(self):
        gc = MinimumSearchParams.for_chromatography(ChromatographyType.GC)
        lc = MinimumSearchParams.for_chromatography(ChromatographyType.LC)
        assert gc.peak_duration[1] < lc.peak_duration[1]
        assert gc.search_rt_range < lc.search_rt_range


class TestWavelet:
    """Test the Ricker matched filter."""

    def test_kernel_zero_mean(self):
        kernel = ricker_kernel(3.0, 5.0)
        assert len(kernel) % 2 == 1
        assert kernel.sum() == pytest.approx(0.0, abs=1e-12)
        assert np.argmax(kernel) == len(kernel) // 2

    def test_response_peaks_at_apex(self, rts):
        intensities = gaussian(rts, 10.5, 0.03, 1e5)
        response = wavelet_response(intensities, ricker_kernel(3.0, 5.0))
        assert abs(int(np.argmax(response)) - int(np.argmax(intensities))) <= 1

    def test_two_peaks(self, rts, two_peak_trace):
        peaks = WaveletResolver(WaveletParams()).resolve(trace(rts, two_peak_trace))
        assert len(peaks) == 2
        for peak, apex in zip(peaks, (10.5, 11.3)):
            rt_min, rt_max = peak.rt_range
            assert rt_min <= apex <= rt_max

    def test_below_min_height(self, rts, two_peak_trace):
        params = WaveletParams(min_height=1e6)
        assert WaveletResolver(params).resolve(trace(rts, two_peak_trace)) == []

    def test_snr_threshold(self, rts):
        intensities = gaussian(rts, 10.5, 0.03, 2e3)
        params = WaveletParams(min_height=0.0, noise_floor=1e5)
        assert WaveletResolver(params).resolve(trace(rts, intensities)) == []

    def test_invalid_scale(self):
        with pytest.raises(ConfigurationError):
            WaveletParams(scale=0.0)


class TestNoiseAmplitude:
    """Test noise amplitude segmentation."""

    def test_runs_above_noise(self):
        rts = np.arange(12) * 0.01
        intensities = np.array([0, 0, 5e3, 2e4, 3e4, 2e4, 5e3, 0, 0, 2e3, 3e3, 0], dtype=float)
        peaks = NoiseAmplitudeResolver(NoiseAmplitudeParams()).resolve(trace(rts, intensities))

        assert len(peaks) == 1
        np.testing.assert_array_equal(peaks[0].intensities, [5e3, 2e4, 3e4, 2e4, 5e3])

    def test_short_run_dropped(self):
        rts = np.arange(8) * 0.01
        intensities = np.array([0, 0, 2e4, 3e4, 2e4, 0, 0, 0], dtype=float)
        peaks = NoiseAmplitudeResolver(NoiseAmplitudeParams()).resolve(trace(rts, intensities))
        assert peaks == []

    def test_all_below_noise(self, rts):
        resolver = NoiseAmplitudeResolver(NoiseAmplitudeParams(noise_amplitude=1e6))
        assert resolver.resolve(trace(rts, np.full(len(rts), 5e5))) == []


class FixedRangesResolver(Resolver):
    """Returns the given ranges regardless of the input."""

    resolver_type = ResolverType.MINIMUM_SEARCH

    def __init__(self, ranges):
        super().__init__(ResolverParams(min_data_points=2))
        self.ranges = ranges

    def resolve_ranges(self, rts, intensities):
        return np.array(self.ranges, dtype=np.int64)


class TestResolverProperties:
    """Properties every resolver has to honour."""

    @pytest.mark.parametrize("resolver", ALL_RESOLVERS, ids=lambda r: r.name)
    def test_empty_and_single_point(self, resolver):
        assert resolver.resolve(IonSeries.empty()) == []
        assert resolver.resolve(trace(np.array([1.0]), np.array([1e6]))) == []

    @pytest.mark.parametrize("resolver", ALL_RESOLVERS, ids=lambda r: r.name)
    def test_all_zero(self, resolver, rts):
        assert resolver.resolve(trace(rts, np.zeros(len(rts)))) == []

    @pytest.mark.parametrize("resolver", ALL_RESOLVERS, ids=lambda r: r.name)
    def test_below_threshold_everywhere(self, resolver, rts):
        # Below every default height threshold
        intensities = np.random.rand(len(rts)) * 500.0
        assert resolver.resolve(trace(rts, intensities)) == []

    @pytest.mark.parametrize("resolver", ALL_RESOLVERS, ids=lambda r: r.name)
    def test_non_overlapping_and_long_enough(self, resolver, rts):
        for _ in range(10):
            intensities = np.random.rand(len(rts)) * 2e3
            for center in np.random.uniform(10.1, 11.9, size=4):
                intensities += gaussian(rts, center, np.random.uniform(0.01, 0.05), np.random.uniform(1e4, 1e6))
            series = trace(rts, intensities)
            peaks = resolver.resolve(series)

            previous_end = -np.inf
            for peak in peaks:
                assert len(peak) >= resolver.min_data_points
                start = int(np.searchsorted(rts, peak.retention_times[0]))
                end = start + len(peak)
                np.testing.assert_array_equal(peak.intensities, series.intensities[start:end])
                assert start >= previous_end
                previous_end = end

    @pytest.mark.parametrize("resolver", ALL_RESOLVERS, ids=lambda r: r.name)
    def test_deterministic(self, resolver, rts, two_peak_trace):
        first = resolver.resolve(trace(rts, two_peak_trace))
        second = resolver.resolve(trace(rts, two_peak_trace))
        assert [p.rt_range for p in first] == [p.rt_range for p in second]

    def test_sub_series_are_views(self, rts, two_peak_trace):
        series = trace(rts, two_peak_trace)
        peaks = MinimumSearchResolver(MinimumSearchParams()).resolve(series)
        assert all(np.shares_memory(p.intensities, series.intensities) for p in peaks)


class TestRangeChecks:
    """Ranges returned by a resolver are validated before slicing."""

    @pytest.fixture
    def series(self):
        return trace(np.arange(10, dtype=np.float64), np.full(10, 1e4))

    def test_adjacent_ranges(self, series):
        peaks = FixedRangesResolver([[0, 5], [5, 10]]).resolve(series)
        assert [len(p) for p in peaks] == [5, 5]

    @pytest.mark.parametrize("ranges", [
        [[0, 5], [3, 8]],
        [[5, 8], [0, 3]],
        [[0, 11]],
        [[-1, 3]],
        [[4, 4]],
    ], ids=["overlapping", "unsorted", "past_end", "negative", "empty"])
    def test_invalid_ranges_raise(self, series, ranges):
        with pytest.raises(AlphaResolveError):
            FixedRangesResolver(ranges).resolve(series)


class TestCreateResolver:
    """Test resolver selection."""

    def test_by_type(self):
        resolver = create_resolver(ResolverType.WAVELET)
        assert isinstance(resolver, WaveletResolver)
        assert resolver.name == "wavelet"

    def test_by_value(self):
        assert isinstance(create_resolver("noise_amplitude"), NoiseAmplitudeResolver)

    def test_params_passed(self):
        params = MinimumSearchParams(min_data_points=7)
        resolver = create_resolver(ResolverType.MINIMUM_SEARCH, params)
        assert resolver.min_data_points == 7
        assert resolver.describe()['min_data_points'] == 7
        assert resolver.describe()['resolver'] == "minimum_search"

    def test_missing_resolver(self):
        with pytest.raises(ConfigurationError):
            create_resolver(None)

    def test_unknown_resolver(self):
        with pytest.raises(ConfigurationError):
            create_resolver("savitzky_golay")

    def test_mismatched_params(self):
        with pytest.raises(ConfigurationError):
            create_resolver(ResolverType.WAVELET, MinimumSearchParams())
        with pytest.raises(ConfigurationError):
            create_resolver(ResolverType.NOISE_AMPLITUDE, ResolverParams())
