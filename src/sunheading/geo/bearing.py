# sunheading/geo/bearing.py
"""
Great-circle heading between consecutive fixes.
"""

from __future__ import annotations

import math
from typing import Protocol

from sunheading.errors import NonComputableSample


class LatLon(Protocol):
    lat: float
    lon: float


def normalize360(deg: float) -> float:
    """
    Wrap any angle into [0, 360).

    Python's float modulo already takes the sign of the divisor; tiny negative
    inputs such as -1e-15 wrap to exactly 360.0 and are folded back to 0.
    Values already in range are returned unchanged.
    """
    d = deg % 360.0
    if d >= 360.0:
        d = 0.0
    return d


def bearing(p1: LatLon, p2: LatLon) -> float:
    """
    Initial great-circle bearing from p1 to p2, degrees clockwise from north.

    Raises NonComputableSample when both fixes share the same longitude:
    stationary loggers produce those pairs and their heading is GPS noise.
    """
    phi1 = math.radians(p1.lat)
    phi2 = math.radians(p2.lat)
    delta_lambda = math.radians(p2.lon) - math.radians(p1.lon)

    if delta_lambda == 0:
        raise NonComputableSample(
            f"no longitudinal movement between ({p1.lat}, {p1.lon}) and ({p2.lat}, {p2.lon})"
        )

    x = math.sin(delta_lambda) * math.cos(phi2)
    y = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(delta_lambda)
    theta = math.atan2(x, y)

    return normalize360(math.degrees(theta))
