# sunheading/analyze/pipeline.py
"""
Sun impact analysis over GPX tracks.

One pass per track segment over consecutive point pairs:

  pair -> pause / movement checks -> heading + solar position
       -> impact angle + sun state -> per-sample record
       -> sun-state sections (output track) + histogram accumulation

and, once the segment is consumed, the histogram statistics.
"""

from __future__ import annotations

import dataclasses
import datetime as _dt
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np
from haversine import Unit, haversine

from sunheading.analyze.histogram import AngleHistogram, bucket_of
from sunheading.analyze.impact import DEFAULT_THRESHOLDS, ImpactThresholds, SunState, classify
from sunheading.analyze.state import SunStateMachine
from sunheading.analyze.stats import SegmentSummary, normalized_counts, summarize
from sunheading.errors import DegenerateDistribution, NonComputableSample
from sunheading.formats.gpx import GpxDocument, OutputTrack, Track, TrackPoint
from sunheading.geo.bearing import bearing
from sunheading.solar.ephemeris import MeeusEphemeris, SolarPosition
from sunheading.util.logging import log

DEFAULT_PAUSE_DETECT_S = 10.0


@dataclass(frozen=True)
class ImpactSample:
    time: _dt.datetime
    gap_s: float
    lat: float
    lon: float
    car_heading: float
    sun_azimuth: float          # hemisphere-corrected, [0, 360)
    sun_elevation: float
    sun_impact_angle: float
    state: SunState

    @property
    def bucket(self) -> int:
        return bucket_of(self.sun_impact_angle)


@dataclass
class OutputSection:
    """Points travelled while one sun state held; starts at the previous fix."""
    state: SunState
    points: list[TrackPoint] = field(default_factory=list)


@dataclass
class SegmentResult:
    track_index: int
    segment_index: int
    samples: list[ImpactSample]
    histogram: AngleHistogram
    summary: SegmentSummary
    normalized_counts: Optional[np.ndarray]
    skipped_gap: int = 0
    skipped_no_movement: int = 0
    distance_m: float = 0.0
    duration_s: float = 0.0

    def summary_line(self) -> str:
        s = self.summary
        pf = f"{s.peak_factor:.2f}" if s.peak_factor is not None else "undefined"
        return (
            f"Track: {self.track_index} Segment: {self.segment_index} "
            f"Timed InterQuartileRange: {s.iqr:.0f}, Peak factor: {pf}, "
            f"blinding for {s.blinding_minutes:.2f} minutes."
        )


@dataclass
class TrackResult:
    track_index: int
    name: str
    segments: list[SegmentResult] = field(default_factory=list)
    sections: list[OutputSection] = field(default_factory=list)

    def output_tracks(self) -> list[OutputTrack]:
        return [
            OutputTrack(
                name=f"{self.name} {self.track_index} {sec.state.label}",
                number=self.track_index,
                color=sec.state.color,
                points=list(sec.points),
            )
            for sec in self.sections
            if sec.points
        ]


class SunImpactAnalyzer:
    """
    Drives the angular analysis.

    The sun state machine belongs to the analyzer and is reset at the start
    of every track, so one analyzer can process many tracks (or files) in a
    row without carrying state between them.
    """

    def __init__(
            self,
            ephemeris: Optional[SolarPosition] = None,
            *,
            pause_detect_s: float = DEFAULT_PAUSE_DETECT_S,
            thresholds: ImpactThresholds = DEFAULT_THRESHOLDS,
            verbose: bool = False,
    ) -> None:
        if pause_detect_s <= 0:
            raise ValueError(f"pause detection must be positive, got {pause_detect_s}")
        self.ephemeris = ephemeris if ephemeris is not None else MeeusEphemeris()
        self.pause_detect_s = pause_detect_s
        self.thresholds = thresholds
        self.verbose = verbose
        self.machine = SunStateMachine()

    def _sample(self, p0: TrackPoint, p1: TrackPoint, gap_s: float) -> ImpactSample:
        heading = bearing(p0, p1)
        az, elev = self.ephemeris.sun_position(p1.time, p1.lat, p1.lon)
        angle, state, az_corrected = classify(heading, az, elev, p1.lat, self.thresholds)
        return ImpactSample(
            time=p1.time,
            gap_s=gap_s,
            lat=p1.lat,
            lon=p1.lon,
            car_heading=heading,
            sun_azimuth=az_corrected,
            sun_elevation=elev,
            sun_impact_angle=angle,
            state=state,
        )

    def analyze_segment(
            self,
            points: Sequence[TrackPoint],
            *,
            track_index: int = 0,
            segment_index: int = 0,
            sections: Optional[list[OutputSection]] = None,
    ) -> SegmentResult:
        """
        Analyze one segment. `sections` collects the sun-state sections of the
        enclosing track and is extended in place.
        """
        if sections is None:
            sections = []
        histogram = AngleHistogram()
        samples: list[ImpactSample] = []
        skipped_gap = 0
        skipped_no_movement = 0
        distance_m = 0.0
        duration_s = 0.0

        for p0, p1 in zip(points, points[1:]):
            gap_s = (p1.time - p0.time).total_seconds()
            # pause detection; also drops out-of-order fixes
            if gap_s > self.pause_detect_s or gap_s <= 0:
                skipped_gap += 1
                continue

            try:
                sample = self._sample(p0, p1, gap_s)
            except NonComputableSample:
                skipped_no_movement += 1
                continue

            samples.append(sample)

            if self.machine.has_changed(sample.state) or not sections:
                sections.append(OutputSection(state=sample.state, points=[p0]))
            sections[-1].points.append(p1)

            histogram.accumulate(sample.sun_impact_angle, gap_s, sample.state)
            distance_m += haversine((p0.lat, p0.lon), (p1.lat, p1.lon), unit=Unit.METERS)
            duration_s += gap_s

        summary = summarize(histogram.time_sum, histogram.blinding_time_sum)
        try:
            norm = normalized_counts(histogram.count)
        except DegenerateDistribution as e:
            norm = None
            summary = dataclasses.replace(summary, degenerate=summary.degenerate + (str(e),))

        if self.verbose:
            log(
                f"Track {track_index} segment {segment_index}: {len(samples)} samples, "
                f"{skipped_gap} skipped (time gap), {skipped_no_movement} skipped (no movement)"
            )
            for reason in summary.degenerate:
                log(f"Track {track_index} segment {segment_index}: degenerate distribution: {reason}")

        return SegmentResult(
            track_index=track_index,
            segment_index=segment_index,
            samples=samples,
            histogram=histogram,
            summary=summary,
            normalized_counts=norm,
            skipped_gap=skipped_gap,
            skipped_no_movement=skipped_no_movement,
            distance_m=distance_m,
            duration_s=duration_s,
        )

    def analyze_track(self, track: Track, track_index: int = 0) -> TrackResult:
        self.machine.reset()
        result = TrackResult(track_index=track_index, name=track.name)
        for segment_index, points in enumerate(track.segments):
            result.segments.append(
                self.analyze_segment(
                    points,
                    track_index=track_index,
                    segment_index=segment_index,
                    sections=result.sections,
                )
            )
        return result

    def analyze_document(self, doc: GpxDocument) -> list[TrackResult]:
        return [self.analyze_track(trk, i) for i, trk in enumerate(doc.tracks)]
