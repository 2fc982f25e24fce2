# sunheading/analyze/stats.py
"""
Distribution statistics over a finished impact histogram.

The 360 time-sum buckets are treated as an unordered population (zero buckets
included). Quartiles use Tukey's hinges: Q2 is the median, Q1 and Q3 are the
medians of the lower and upper halves, leaving out the middle value when the
population size is odd.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from sunheading.errors import DegenerateDistribution


@dataclass(frozen=True)
class Quartiles:
    q1: float
    q2: float
    q3: float


@dataclass(frozen=True)
class SegmentSummary:
    q1: float
    q2: float
    q3: float
    iqr: float
    max_bucket_time: float
    sum_blinding_time: float
    peak_factor: Optional[float]            # None when undefined
    degenerate: tuple[str, ...] = ()

    @property
    def is_degenerate(self) -> bool:
        return bool(self.degenerate)

    @property
    def blinding_minutes(self) -> float:
        return self.sum_blinding_time / 60.0


def _finite(name: str, value: float) -> float:
    if not math.isfinite(value):
        raise DegenerateDistribution(f"{name} is not finite ({value})")
    return value


def quartiles(values: Sequence[float]) -> Quartiles:
    data = np.sort(np.asarray(values, dtype=float))
    n = data.size
    if n == 0:
        raise DegenerateDistribution("quartiles of an empty population")
    if n == 1:
        v = float(data[0])
        return Quartiles(v, v, v)

    if n % 2 == 0:
        lower, upper = data[: n // 2], data[n // 2:]
    else:
        mid = (n - 1) // 2
        lower, upper = data[:mid], data[mid + 1:]

    return Quartiles(
        q1=_finite("Q1", float(np.median(lower))),
        q2=_finite("Q2", float(np.median(data))),
        q3=_finite("Q3", float(np.median(upper))),
    )


def interquartile_range(values: Sequence[float]) -> float:
    q = quartiles(values)
    return q.q3 - q.q1


def peak_factor(max_value: float, iqr: float) -> float:
    """max / IQR; undefined (DegenerateDistribution) for a zero IQR."""
    if iqr == 0:
        raise DegenerateDistribution("interquartile range is zero")
    return _finite("peak factor", max_value / iqr)


def normalized_counts(count: Sequence[float]) -> np.ndarray:
    """Scale bucket counts to 0..100 against the largest bucket."""
    arr = np.asarray(count, dtype=float)
    top = float(arr.max()) if arr.size else 0.0
    if top == 0:
        raise DegenerateDistribution("no samples in histogram (max count is zero)")
    return arr * 100.0 / top


def summarize(time_sum: Sequence[float], blinding_time_sum: Sequence[float]) -> SegmentSummary:
    """
    Summarize one segment's histogram.

    Degenerate conditions do not raise here; they are listed in
    `SegmentSummary.degenerate` and `peak_factor` is left as None. When the
    base statistics themselves are not finite every number is zeroed and
    only the flag carries meaning.
    """
    try:
        q = quartiles(time_sum)
        iqr = _finite("IQR", q.q3 - q.q1)
        max_time = _finite("max", float(np.max(time_sum)))
        sum_blinding = _finite("blinding sum", float(np.sum(blinding_time_sum)))
    except DegenerateDistribution as e:
        return SegmentSummary(
            q1=0.0, q2=0.0, q3=0.0, iqr=0.0,
            max_bucket_time=0.0, sum_blinding_time=0.0,
            peak_factor=None, degenerate=(str(e),),
        )

    degenerate: list[str] = []
    pf: Optional[float]
    try:
        pf = peak_factor(max_time, iqr)
    except DegenerateDistribution as e:
        pf = None
        degenerate.append(str(e))

    return SegmentSummary(
        q1=q.q1,
        q2=q.q2,
        q3=q.q3,
        iqr=iqr,
        max_bucket_time=max_time,
        sum_blinding_time=sum_blinding,
        peak_factor=pf,
        degenerate=tuple(degenerate),
    )
