"""Pytest configuration for AlphaResolve tests.

This module provides common fixtures and configuration for all tests:
synthetic raw files, Gaussian ion traces and single-file feature lists.
"""

import numpy as np
import pytest

from alpharesolve.datamodel import (
    Feature,
    FeatureList,
    FeatureListRow,
    RawDataFile,
    Scan,
)
from alpharesolve.xic import IonSeries, MemoryMapStorage


def gaussian(rts, center, sigma, height):
    """Gaussian peak sampled at ``rts``."""
    return height * np.exp(-0.5 * ((np.asarray(rts) - center) / sigma) ** 2)


def make_raw_file(name="sample_1", n_scans=200, rt_start=10.0, rt_step=0.01, ms2_scans=()):
    """Raw file with ``n_scans`` MS1 scans and optional MS2 scans.

    ``ms2_scans`` is a sequence of (retention_time, precursor_mz) pairs;
    MS2 scans are numbered after the MS1 scans.
    """
    scans = [Scan(i, rt_start + i * rt_step, ms_level=1) for i in range(n_scans)]
    for k, (rt, precursor) in enumerate(ms2_scans):
        scans.append(Scan(n_scans + k, rt, ms_level=2, precursor_mz=precursor))
    return RawDataFile(name, scans)


def make_chromatogram(raw_file, mz, intensities, storage=None, status=None, **tags):
    """Feature over all MS1 scans of ``raw_file`` with the given trace."""
    ms1 = raw_file.ms1_scans()
    intensities = np.asarray(intensities, dtype=np.float64)
    series = IonSeries(
        np.full(len(ms1), mz),
        intensities,
        [s.retention_time for s in ms1],
        [s.scan_number for s in ms1],
        storage=storage,
    )
    kwargs = {} if status is None else {'status': status}
    return Feature.from_series(raw_file, series, **kwargs, **tags)


def make_feature_list(raw_file, features, name="chromatograms", storage=None):
    feature_list = FeatureList(name, [raw_file], storage=storage)
    for row_id, feature in enumerate(features, start=1):
        feature_list.add_row(FeatureListRow(row_id, feature))
    return feature_list


@pytest.fixture
def raw_file():
    """200 MS1 scans, 10.00-11.99 min."""
    return make_raw_file()


@pytest.fixture
def storage(tmp_path):
    """Memory-mapped arena in a per-test directory."""
    arena = MemoryMapStorage(tmp_path / "arena", chunk_capacity=4096)
    yield arena
    arena.close()


@pytest.fixture
def rts(raw_file):
    return np.array([s.retention_time for s in raw_file.ms1_scans()])


@pytest.fixture
def two_peak_trace(rts):
    """Two baseline-separated Gaussian peaks at 10.5 and 11.3 min."""
    return gaussian(rts, 10.5, 0.03, 1e5) + gaussian(rts, 11.3, 0.03, 5e4)


@pytest.fixture
def chromatogram_list(raw_file, two_peak_trace, rts):
    """Three chromatograms: two peaks, one peak, flat noise below threshold."""
    features = [
        make_chromatogram(raw_file, 300.1234, two_peak_trace),
        make_chromatogram(raw_file, 450.5678, gaussian(rts, 10.8, 0.04, 2e5)),
        make_chromatogram(raw_file, 512.0, np.full(len(rts), 10.0)),
    ]
    return make_feature_list(raw_file, features)


# Random seed for reproducibility
@pytest.fixture(scope="session", autouse=True)
def set_random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)
