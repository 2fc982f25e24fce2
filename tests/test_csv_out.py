import csv

from sunheading.analyze.pipeline import SunImpactAnalyzer
from sunheading.formats.csv_out import (
    HISTOGRAM_HEADER,
    SAMPLE_HEADER,
    write_histogram_csv,
    write_samples_csv,
)


def _rows(path):
    with path.open(newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


def test_samples_csv(tmp_path, stub_ephemeris, equator_points):
    res = SunImpactAnalyzer(stub_ephemeris(azimuth=180.5, elevation=20.0)).analyze_segment(equator_points(3))
    out = tmp_path / "ride_0_0.csv"
    assert write_samples_csv(out, res.samples) == 2

    rows = _rows(out)
    assert rows[0] == SAMPLE_HEADER
    assert len(rows) == 3
    ts, gap, lat, lon, heading, az, elev, impact = rows[1]
    assert ts == "2024-06-21T10:00:05Z"
    assert gap == "5"
    assert lat == "0.000000"
    assert lon == "10.000500"
    assert heading == "90.000000"
    assert az == "180.500000"
    assert elev == "20.000000"
    assert impact == "90.500000"


def test_histogram_csv(tmp_path, stub_ephemeris, equator_points):
    res = SunImpactAnalyzer(stub_ephemeris(azimuth=180.5, elevation=10.0)).analyze_segment(equator_points(3))
    out = tmp_path / "ride_0_0.sunimpact.csv"
    write_histogram_csv(out, res.histogram, res.summary, res.normalized_counts)

    rows = _rows(out)
    assert rows[0] == HISTOGRAM_HEADER
    assert len(rows) == 361
    assert rows[91][:6] == ["90", "2.00", "100.00", "10.00", "10.00", "0.00"]
    assert rows[1][:3] == ["0", "0.00", "0.00"]
    # quartiles on every row
    assert {tuple(r[6:]) for r in rows[1:]} == {("0.00", "0.00", "0.00")}


def test_histogram_csv_without_samples_leaves_normalized_empty(tmp_path, stub_ephemeris, equator_points):
    res = SunImpactAnalyzer(stub_ephemeris(elevation=-1.0)).analyze_segment(equator_points(3))
    out = tmp_path / "down.sunimpact.csv"
    write_histogram_csv(out, res.histogram, res.summary, res.normalized_counts)
    rows = _rows(out)
    assert all(r[2] == "" for r in rows[1:])
