import math

import numpy as np
import pytest

from sunheading.analyze.stats import (
    interquartile_range,
    normalized_counts,
    peak_factor,
    quartiles,
    summarize,
)
from sunheading.errors import DegenerateDistribution


def test_quartiles_even_population():
    q = quartiles([1, 2, 3, 4, 5, 6, 7, 8])
    assert (q.q1, q.q2, q.q3) == (2.5, 4.5, 6.5)


def test_quartiles_odd_population_excludes_median():
    q = quartiles([7, 1, 3, 5, 9])
    assert (q.q1, q.q2, q.q3) == (2.0, 5.0, 8.0)


def test_quartiles_unordered_input():
    assert quartiles([8, 3, 6, 1, 7, 2, 5, 4]) == quartiles([1, 2, 3, 4, 5, 6, 7, 8])


def test_quartiles_empty_is_degenerate():
    with pytest.raises(DegenerateDistribution):
        quartiles([])


def test_interquartile_range():
    assert interquartile_range([1, 2, 3, 4, 5, 6, 7, 8]) == 4.0


def test_peak_factor():
    assert peak_factor(60.0, 4.0) == 15.0
    with pytest.raises(DegenerateDistribution):
        peak_factor(60.0, 0.0)


def test_normalized_counts():
    counts = np.zeros(360)
    counts[10] = 4
    counts[20] = 1
    norm = normalized_counts(counts)
    assert norm[10] == 100.0
    assert norm[20] == 25.0
    assert norm[0] == 0.0
    with pytest.raises(DegenerateDistribution):
        normalized_counts(np.zeros(360))


def test_summarize_populated_histogram():
    time_sum = np.zeros(360)
    # more than half the buckets populated so the IQR is non-zero
    time_sum[:270] = np.arange(1, 271)
    blinding = np.zeros(360)
    blinding[5] = 120.0
    blinding[355] = 60.0

    s = summarize(time_sum, blinding)
    assert s.q1 > 0
    assert s.iqr == pytest.approx(s.q3 - s.q1)
    assert s.iqr > 0
    assert s.max_bucket_time == 270.0
    assert s.peak_factor == pytest.approx(270.0 / s.iqr)
    assert s.sum_blinding_time == 180.0
    assert s.blinding_minutes == 3.0
    assert not s.is_degenerate


def test_summarize_single_bucket_is_degenerate():
    time_sum = np.zeros(360)
    time_sum[90] = 60.0
    s = summarize(time_sum, np.zeros(360))
    assert s.iqr == 0.0
    assert s.max_bucket_time == 60.0
    assert s.peak_factor is None
    assert s.is_degenerate


def test_summarize_never_publishes_non_finite():
    time_sum = np.zeros(360)
    time_sum[1] = math.inf
    s = summarize(time_sum, np.zeros(360))
    assert s.is_degenerate
    assert s.peak_factor is None
    assert all(math.isfinite(v) for v in (s.q1, s.q2, s.q3, s.iqr, s.max_bucket_time, s.sum_blinding_time))


def test_summarize_empty_population_is_flagged():
    s = summarize([], [])
    assert s.is_degenerate
    assert s.peak_factor is None
