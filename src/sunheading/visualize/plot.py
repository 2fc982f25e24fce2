# sunheading/visualize/plot.py
"""
Plotting routines for sunheading
"""

from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt

from sunheading.analyze.histogram import AngleHistogram
from sunheading.analyze.stats import SegmentSummary


def plot_impact_histogram(histogram: AngleHistogram, summary: SegmentSummary, out_path: Path, title: str = "") -> Path:
    """Polar chart of sun exposure minutes per impact angle (0 = ahead, clockwise)."""
    theta = np.radians(np.arange(len(histogram.time_sum)) + 0.5)
    width = np.radians(1.0)

    fig = plt.figure(figsize=(8, 8))
    ax = fig.add_subplot(projection="polar")
    ax.set_theta_zero_location("N")
    ax.set_theta_direction(-1)

    ax.bar(theta, histogram.time_sum / 60.0, width=width, color="gold", label="sun")
    ax.bar(theta, histogram.deep_time_sum / 60.0, width=width, color="darkorange", label="deep sun")
    ax.bar(theta, histogram.blinding_time_sum / 60.0, width=width, color="red", label="blinding sun")

    pf = f"{summary.peak_factor:.2f}" if summary.peak_factor is not None else "undefined"
    ax.set_title(f"{title}\nIQR {summary.iqr:.0f} s, peak factor {pf}".strip())
    ax.legend(loc="lower right", bbox_to_anchor=(1.15, -0.05))

    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, dpi=100)
    plt.close(fig)
    return out_path
