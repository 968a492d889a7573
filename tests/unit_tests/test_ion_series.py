"""Tests for IonSeries construction, validation and slicing."""

import numpy as np
import pytest

from alpharesolve.xic import IonSeries


@pytest.fixture
def series():
    return IonSeries(
        mzs=[100.0, 100.1, np.nan, 100.2, 100.3],
        intensities=[0.0, 10.0, 0.0, 30.0, 20.0],
        retention_times=[1.0, 1.1, 1.2, 1.3, 1.4],
        scan_numbers=[10, 11, 12, 13, 14],
    )


class TestValidation:
    """Test constructor checks."""

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            IonSeries([1.0, 2.0], [1.0], [0.1, 0.2])

    def test_rt_not_increasing(self):
        with pytest.raises(ValueError):
            IonSeries([1.0, 1.0], [1.0, 1.0], [0.2, 0.2])

    def test_negative_intensity(self):
        with pytest.raises(ValueError):
            IonSeries([1.0, 1.0], [1.0, -1.0], [0.1, 0.2])

    def test_mobility_length(self):
        with pytest.raises(ValueError):
            IonSeries([1.0, 1.0], [1.0, 1.0], [0.1, 0.2], mobilities=[0.9])

    def test_default_scan_numbers(self):
        s = IonSeries([1.0, 1.0, 1.0], [1.0, 2.0, 3.0], [0.1, 0.2, 0.3])
        np.testing.assert_array_equal(s.scan_numbers, [0, 1, 2])

    def test_arrays_read_only(self, series):
        assert not series.intensities.flags.writeable
        assert not series.retention_times.flags.writeable


class TestSummary:
    """Test summary properties."""

    def test_rt_range(self, series):
        assert series.rt_range == (1.0, 1.4)

    def test_mz_range_ignores_zero_points(self, series):
        assert series.mz_range == (100.1, 100.3)

    def test_apex(self, series):
        assert series.apex_index == 3
        assert series.max_intensity == 30.0

    def test_empty(self):
        s = IonSeries.empty()
        assert s.is_empty
        assert len(s) == 0
        assert s.rt_range is None
        assert s.mz_range is None
        assert s.apex_index == -1


class TestSlicing:
    """Test sub-series views."""

    def test_subseries_is_view(self, series):
        sub = series.subseries(1, 4)
        assert len(sub) == 3
        np.testing.assert_array_equal(sub.scan_numbers, [11, 12, 13])
        assert np.shares_memory(sub.intensities, series.intensities)

    def test_subseries_out_of_bounds(self, series):
        with pytest.raises(IndexError):
            series.subseries(2, 6)
        with pytest.raises(IndexError):
            series.subseries(3, 2)

    def test_subseries_by_rt_closed(self, series):
        sub = series.subseries_by_rt(1.1, 1.3)
        np.testing.assert_array_equal(sub.scan_numbers, [11, 12, 13])

    def test_subseries_by_rt_outside(self, series):
        assert len(series.subseries_by_rt(5.0, 6.0)) == 0

    def test_mobility_sliced(self):
        s = IonSeries([1.0] * 3, [1.0] * 3, [0.1, 0.2, 0.3], mobilities=[0.8, 0.9, 1.0])
        np.testing.assert_array_equal(s.subseries(1, 3).mobilities, [0.9, 1.0])


class TestStorage:
    """Test series backed by the arena."""

    def test_stored_in_arena(self, storage):
        s = IonSeries([1.0, 1.0], [5.0, 6.0], [0.1, 0.2], storage=storage)
        assert s.storage is storage
        assert storage.number_of_values == 8

    def test_copy_to(self, series, storage):
        copy = series.subseries(1, 4).copy_to(storage)
        assert copy.storage is storage
        np.testing.assert_array_equal(copy.intensities, [10.0, 0.0, 30.0])
        assert not np.shares_memory(copy.intensities, series.intensities)
