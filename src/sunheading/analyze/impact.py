# sunheading/analyze/impact.py
"""
Sun impact angle and sun state classification.

The impact angle is the sun's compass bearing relative to the direction of
travel: 0 = sun dead ahead, 90 = sun on the right, 180 = sun behind.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sunheading.geo.bearing import normalize360

# Sun lower than this (deg) counts as "deep" sun.
DEEP_SUN_ELEVATION_DEG = 15.0
# Deep sun within this many degrees of dead ahead (or dead behind) is blinding.
BLINDING_HALF_ANGLE_DEG = 30.0


class SunState(Enum):
    UNKNOWN = ("Unknown", "Transparent")
    DOWN = ("Sun Down", "DarkGray")
    UP = ("Sun Up", "Yellow")
    LOW = ("Sun Low", "Magenta")
    BLINDING = ("Sun Blinding", "Red")

    def __init__(self, label: str, color: str) -> None:
        self.label = label
        # Garmin gpxx DisplayColor value
        self.color = color

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class ImpactThresholds:
    deep_sun_elevation: float = DEEP_SUN_ELEVATION_DEG
    blinding_half_angle: float = BLINDING_HALF_ANGLE_DEG
    hemisphere_correction: bool = True


DEFAULT_THRESHOLDS = ImpactThresholds()


def correct_azimuth(sun_azimuth: float, lat: float, *, hemisphere_correction: bool = True) -> float:
    """
    Turn a south-referenced provider azimuth into the bearing used for impact.

    Northern hemisphere fixes get +180; the result is wrapped to [0, 360).
    """
    if hemisphere_correction and lat > 0:
        sun_azimuth += 180.0
    return normalize360(sun_azimuth)


def impact_angle(sun_azimuth: float, heading: float) -> float:
    return normalize360(sun_azimuth - heading)


def sun_state(elevation: float, angle: float, thresholds: ImpactThresholds = DEFAULT_THRESHOLDS) -> SunState:
    """Classify one sample; first matching rule wins."""
    if elevation < 0:
        return SunState.DOWN
    if elevation < thresholds.deep_sun_elevation:
        half = thresholds.blinding_half_angle
        if angle < half or angle > 360.0 - half:
            return SunState.BLINDING
        return SunState.LOW
    return SunState.UP


def classify(
        heading: float,
        sun_azimuth: float,
        sun_elevation: float,
        lat: float,
        thresholds: ImpactThresholds = DEFAULT_THRESHOLDS,
) -> tuple[float, SunState, float]:
    """
    Combine heading and solar position for one sample.

    Returns:
      (impact_angle, state, corrected_azimuth)
    """
    azimuth = correct_azimuth(sun_azimuth, lat, hemisphere_correction=thresholds.hemisphere_correction)
    angle = impact_angle(azimuth, heading)
    return angle, sun_state(sun_elevation, angle, thresholds), azimuth
