# sunheading/solar/ephemeris.py
"""
Solar position providers.

Every provider answers one question: where is the sun, seen from (lat, lon),
at a given instant. The azimuth convention is fixed for all of them:

  - azimuth is referenced to SOUTH and grows towards WEST
    (0 = south, 90 = west, -90 / 270 = east, 180 = north)
  - elevation is geometric (no refraction), negative below the horizon

The impact classifier turns this into a compass bearing with its hemisphere
correction step; a provider must not do that itself.
"""

from __future__ import annotations

import datetime as _dt
import math
from typing import Protocol

from astral import Observer
from astral.sun import azimuth as astral_azimuth
from astral.sun import elevation as astral_elevation

from sunheading.errors import ConfigError

# Julian day of the Unix epoch and of J2000.0
JD_UNIX_EPOCH = 2440587.5
JD_J2000 = 2451545.0


class SolarPosition(Protocol):
    def sun_position(self, time: _dt.datetime, lat: float, lon: float) -> tuple[float, float]:
        """Return (azimuth_deg, elevation_deg) in the module convention."""
        ...


def _as_utc(time: _dt.datetime) -> _dt.datetime:
    # Naive datetimes are UTC, matching the GPX reader.
    if time.tzinfo is None:
        return time.replace(tzinfo=_dt.timezone.utc)
    return time.astimezone(_dt.timezone.utc)


def julian_day(time: _dt.datetime) -> float:
    """Julian Day (UT) for a datetime."""
    return _as_utc(time).timestamp() / 86400.0 + JD_UNIX_EPOCH


class MeeusEphemeris:
    """
    Low-precision solar ephemeris after Meeus, "Astronomical Algorithms",
    ch. 25, in the form used by the NOAA solar calculator. Good to roughly
    0.01 deg in declination for years 1800-2100, which is far below GPS
    heading noise.
    """

    name = "meeus"

    def sun_position(self, time: _dt.datetime, lat: float, lon: float) -> tuple[float, float]:
        t_utc = _as_utc(time)
        t = (julian_day(t_utc) - JD_J2000) / 36525.0

        # Geometric mean longitude and mean anomaly (deg)
        l0 = (280.46646 + t * (36000.76983 + t * 0.0003032)) % 360.0
        m = 357.52911 + t * (35999.05029 - 0.0001537 * t)
        e = 0.016708634 - t * (0.000042037 + 0.0000001267 * t)
        m_rad = math.radians(m)

        # Equation of centre
        c = (
            math.sin(m_rad) * (1.914602 - t * (0.004817 + 0.000014 * t))
            + math.sin(2 * m_rad) * (0.019993 - 0.000101 * t)
            + math.sin(3 * m_rad) * 0.000289
        )
        true_lon = l0 + c

        # Apparent longitude (nutation + aberration)
        omega = math.radians(125.04 - 1934.136 * t)
        app_lon = math.radians(true_lon - 0.00569 - 0.00478 * math.sin(omega))

        # Obliquity of the ecliptic, corrected
        eps0 = 23.0 + (26.0 + (21.448 - t * (46.815 + t * (0.00059 - t * 0.001813))) / 60.0) / 60.0
        eps = math.radians(eps0 + 0.00256 * math.cos(omega))

        decl = math.asin(math.sin(eps) * math.sin(app_lon))

        # Equation of time (minutes)
        y = math.tan(eps / 2.0) ** 2
        l0_rad = math.radians(l0)
        eot = 4.0 * math.degrees(
            y * math.sin(2 * l0_rad)
            - 2 * e * math.sin(m_rad)
            + 4 * e * y * math.sin(m_rad) * math.cos(2 * l0_rad)
            - 0.5 * y * y * math.sin(4 * l0_rad)
            - 1.25 * e * e * math.sin(2 * m_rad)
        )

        minutes = t_utc.hour * 60.0 + t_utc.minute + (t_utc.second + t_utc.microsecond / 1e6) / 60.0
        true_solar_time = (minutes + eot + 4.0 * lon) % 1440.0
        hour_angle = math.radians(true_solar_time / 4.0 - 180.0)

        phi = math.radians(lat)
        cos_zenith = math.sin(phi) * math.sin(decl) + math.cos(phi) * math.cos(decl) * math.cos(hour_angle)
        cos_zenith = max(-1.0, min(1.0, cos_zenith))
        elevation = 90.0 - math.degrees(math.acos(cos_zenith))

        azimuth = math.degrees(
            math.atan2(
                math.sin(hour_angle),
                math.cos(hour_angle) * math.sin(phi) - math.tan(decl) * math.cos(phi),
            )
        )
        return azimuth, elevation


class AstralEphemeris:
    """Solar position from the `astral` package (north-referenced, converted)."""

    name = "astral"

    def sun_position(self, time: _dt.datetime, lat: float, lon: float) -> tuple[float, float]:
        observer = Observer(latitude=lat, longitude=lon)
        t_utc = _as_utc(time)
        az_north = astral_azimuth(observer, t_utc)
        elev = astral_elevation(observer, t_utc, with_refraction=False)
        return az_north - 180.0, elev


_PROVIDERS = {
    MeeusEphemeris.name: MeeusEphemeris,
    AstralEphemeris.name: AstralEphemeris,
}


def available_ephemerides() -> list[str]:
    return sorted(_PROVIDERS)


def get_ephemeris(name: str) -> SolarPosition:
    """Instantiate a provider by name ("meeus" or "astral")."""
    key = (name or "").strip().lower()
    if key not in _PROVIDERS:
        raise ConfigError(
            f"Unknown ephemeris '{name}' (choose from: {', '.join(available_ephemerides())})"
        )
    return _PROVIDERS[key]()
