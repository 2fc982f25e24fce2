import datetime as dt
from pathlib import Path

import matplotlib
import pytest

matplotlib.use("Agg")

from sunheading.formats.gpx import TrackPoint


T0 = dt.datetime(2024, 6, 21, 10, 0, 0, tzinfo=dt.timezone.utc)


class StubEphemeris:
    """
    Fixed solar position, or one position per call taken from `script`.
    Azimuths are in the provider convention (south-referenced).
    """

    def __init__(self, azimuth=0.0, elevation=20.0, script=None):
        self.azimuth = azimuth
        self.elevation = elevation
        self.script = list(script) if script else None
        self.calls = []

    def sun_position(self, time, lat, lon):
        self.calls.append((time, lat, lon))
        if self.script:
            return self.script[(len(self.calls) - 1) % len(self.script)]
        return self.azimuth, self.elevation


@pytest.fixture
def sample_gpx_path() -> Path:
    return Path(__file__).parent / "data" / "sample.gpx"


@pytest.fixture
def stub_ephemeris():
    return StubEphemeris


@pytest.fixture
def equator_points():
    """Factory: n fixes heading due east along the equator, `step_s` apart."""
    def make(n, step_s=5.0, start=T0, dlon=0.0005):
        return [
            TrackPoint(lat=0.0, lon=10.0 + i * dlon, time=start + dt.timedelta(seconds=i * step_s))
            for i in range(n)
        ]
    return make
