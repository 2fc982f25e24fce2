# sunheading/formats/csv_out.py
"""
CSV artifacts per analyzed segment:

  <stem>_<track>_<segment>.csv            one row per impact sample
  <stem>_<track>_<segment>.sunimpact.csv  one row per impact-angle degree
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable, Optional

import numpy as np

from sunheading.analyze.histogram import AngleHistogram
from sunheading.analyze.pipeline import ImpactSample
from sunheading.analyze.stats import SegmentSummary

SAMPLE_HEADER = [
    "timestamp", "timegap", "lat", "lon",
    "carHeading", "sunAzimuth", "sunElevation", "sunImpactAngle",
]

HISTOGRAM_HEADER = [
    "Impact Angle", "count", "normalized count",
    "timesum sun", "timesum deep sun", "timesum blinding sun",
    "Q1 timed", "Q2 timed", "Q3 timed",
]


def _f6(v: float) -> str:
    return f"{v:.6f}"


def _f2(v: float) -> str:
    return f"{v:.2f}"


def sample_row(s: ImpactSample) -> list[str]:
    return [
        s.time.isoformat().replace("+00:00", "Z"),
        f"{s.gap_s:g}",
        _f6(s.lat),
        _f6(s.lon),
        _f6(s.car_heading),
        _f6(s.sun_azimuth),
        _f6(s.sun_elevation),
        _f6(s.sun_impact_angle),
    ]


def write_samples_csv(out_path: Path, samples: Iterable[ImpactSample]) -> int:
    """Write the per-sample records; returns the number of rows written."""
    out_path.parent.mkdir(parents=True, exist_ok=True)
    n = 0
    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(SAMPLE_HEADER)
        for s in samples:
            w.writerow(sample_row(s))
            n += 1
    return n


def histogram_rows(
        histogram: AngleHistogram,
        summary: SegmentSummary,
        normalized: Optional[np.ndarray],
) -> list[list[str]]:
    """
    360 rows; the quartiles repeat on each row for plotting convenience.
    `normalized` is None for a segment without samples: the column stays empty.
    """
    rows = []
    for i in range(len(histogram.count)):
        rows.append([
            str(i),
            _f2(histogram.count[i]),
            _f2(normalized[i]) if normalized is not None else "",
            _f2(histogram.time_sum[i]),
            _f2(histogram.deep_time_sum[i]),
            _f2(histogram.blinding_time_sum[i]),
            _f2(summary.q1),
            _f2(summary.q2),
            _f2(summary.q3),
        ])
    return rows


def write_histogram_csv(
        out_path: Path,
        histogram: AngleHistogram,
        summary: SegmentSummary,
        normalized: Optional[np.ndarray],
) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(HISTOGRAM_HEADER)
        w.writerows(histogram_rows(histogram, summary, normalized))
