import datetime as dt

import pytest

from sunheading.errors import ConfigError
from sunheading.solar.ephemeris import (
    AstralEphemeris,
    MeeusEphemeris,
    available_ephemerides,
    get_ephemeris,
    julian_day,
)

UTC = dt.timezone.utc
GREENWICH = (51.4769, 0.0)


def test_julian_day_j2000():
    assert julian_day(dt.datetime(2000, 1, 1, 12, 0, tzinfo=UTC)) == pytest.approx(2451545.0)


def test_naive_datetime_is_utc():
    eph = MeeusEphemeris()
    aware = eph.sun_position(dt.datetime(2024, 6, 21, 9, 30, tzinfo=UTC), *GREENWICH)
    naive = eph.sun_position(dt.datetime(2024, 6, 21, 9, 30), *GREENWICH)
    assert naive == aware


def test_meeus_solstice_noon_greenwich():
    az, elev = MeeusEphemeris().sun_position(dt.datetime(2024, 6, 20, 12, 2, tzinfo=UTC), *GREENWICH)
    # 90 - 51.48 + 23.44
    assert elev == pytest.approx(61.96, abs=0.3)
    # south-referenced: the noon sun sits near 0
    assert abs(az) < 2.0


def test_meeus_equinox_morning_sun_is_east():
    az, elev = MeeusEphemeris().sun_position(dt.datetime(2024, 3, 20, 6, 30, tzinfo=UTC), *GREENWICH)
    assert 0.0 < elev < 10.0
    assert -100.0 < az < -75.0


def test_meeus_afternoon_sun_is_west():
    az, elev = MeeusEphemeris().sun_position(dt.datetime(2024, 6, 21, 16, 0, tzinfo=UTC), *GREENWICH)
    assert elev > 15.0
    assert 45.0 < az < 120.0


def test_meeus_midnight_sun_is_down():
    _, elev = MeeusEphemeris().sun_position(dt.datetime(2024, 6, 21, 0, 0, tzinfo=UTC), *GREENWICH)
    assert elev < 0.0


def test_meeus_equator_equinox_noon_near_zenith():
    _, elev = MeeusEphemeris().sun_position(dt.datetime(2024, 3, 20, 12, 7, tzinfo=UTC), 0.0, 0.0)
    assert elev > 85.0


def test_meeus_southern_hemisphere_noon_sun_is_north():
    # Sydney, local noon ~ 02:00 UTC in June: sun to the north, i.e. ~180 south-referenced
    az, elev = MeeusEphemeris().sun_position(dt.datetime(2024, 6, 21, 1, 57, tzinfo=UTC), -33.87, 151.21)
    assert elev == pytest.approx(90.0 - 33.87 - 23.44, abs=0.5)
    assert abs(abs(az) - 180.0) < 3.0


def test_meeus_is_deterministic():
    t = dt.datetime(2023, 10, 1, 7, 45, 12, tzinfo=UTC)
    eph = MeeusEphemeris()
    assert eph.sun_position(t, 48.1, 11.5) == eph.sun_position(t, 48.1, 11.5)


@pytest.mark.parametrize(
    "when, lat, lon",
    [
        (dt.datetime(2024, 6, 21, 10, 0, tzinfo=UTC), 48.1, 11.5),
        (dt.datetime(2024, 12, 21, 14, 30, tzinfo=UTC), 40.7, -74.0),
        (dt.datetime(2024, 3, 1, 3, 0, tzinfo=UTC), -33.87, 151.21),
    ],
)
def test_astral_agrees_with_meeus(when, lat, lon):
    az_m, el_m = MeeusEphemeris().sun_position(when, lat, lon)
    az_a, el_a = AstralEphemeris().sun_position(when, lat, lon)
    assert el_a == pytest.approx(el_m, abs=0.5)
    diff = (az_a - az_m + 180.0) % 360.0 - 180.0
    assert abs(diff) < 1.0


def test_get_ephemeris():
    assert available_ephemerides() == ["astral", "meeus"]
    assert isinstance(get_ephemeris("meeus"), MeeusEphemeris)
    assert isinstance(get_ephemeris(" Astral "), AstralEphemeris)
    with pytest.raises(ConfigError):
        get_ephemeris("suncalc")
