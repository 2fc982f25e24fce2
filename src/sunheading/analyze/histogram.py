# sunheading/analyze/histogram.py
"""
Per-degree sun impact histogram for one track segment.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from sunheading.analyze.impact import SunState
from sunheading.geo.bearing import normalize360

BUCKETS = 360


def bucket_of(angle: float) -> int:
    """Integer bucket for an impact angle: floor after wrapping, always 0..359."""
    return int(math.floor(normalize360(angle))) % BUCKETS


def _zeros() -> np.ndarray:
    return np.zeros(BUCKETS, dtype=float)


@dataclass
class AngleHistogram:
    # number of samples per bucket (useful on even sampling intervals only)
    count: np.ndarray = field(default_factory=_zeros)
    # seconds of sun exposure per bucket
    time_sum: np.ndarray = field(default_factory=_zeros)
    # seconds of low ("deep") sun per bucket
    deep_time_sum: np.ndarray = field(default_factory=_zeros)
    # seconds of blinding sun per bucket
    blinding_time_sum: np.ndarray = field(default_factory=_zeros)

    def accumulate(self, angle: float, elapsed_s: float, state: SunState) -> None:
        """
        Add one sample. Sun-down samples are ignored; they still appear in the
        per-sample output but never in the statistics.
        """
        if elapsed_s < 0:
            raise ValueError(f"negative elapsed time: {elapsed_s}")
        if state is SunState.DOWN:
            return

        b = bucket_of(angle)
        self.count[b] += 1
        self.time_sum[b] += elapsed_s
        if state in (SunState.LOW, SunState.BLINDING):
            self.deep_time_sum[b] += elapsed_s
        if state is SunState.BLINDING:
            self.blinding_time_sum[b] += elapsed_s

    @property
    def samples(self) -> int:
        return int(self.count.sum())

    @property
    def total_time(self) -> float:
        return float(self.time_sum.sum())

    def copy(self) -> "AngleHistogram":
        return AngleHistogram(
            count=self.count.copy(),
            time_sum=self.time_sum.copy(),
            deep_time_sum=self.deep_time_sum.copy(),
            blinding_time_sum=self.blinding_time_sum.copy(),
        )
