#!/usr/bin/env python3
"""
sun_impact.py: sun impact analysis for GPX tracks

For every GPX given on the command line, writes next to it (or into --out-dir):
- <stem>_<track>_<segment>.csv            heading and sun position per sample
- <stem>_<track>_<segment>.sunimpact.csv  360-degree impact histogram + quartiles
- <stem>.sunstatus.gpx                    track split into sun-state sections
- <stem>_<track>_<segment>.sunimpact.png  polar histogram (with --plot)

and prints one summary line per track segment.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from sunheading.analyze.impact import ImpactThresholds
from sunheading.analyze.pipeline import SunImpactAnalyzer, TrackResult
from sunheading.config import OutputConfig, SunHeadingConfig, format_duration, load_config, parse_duration
from sunheading.errors import ConfigError, InputError
from sunheading.formats.csv_out import write_histogram_csv, write_samples_csv
from sunheading.formats.gpx import GpxDocument, build_sunstatus_gpx, load_gpx, write_gpx
from sunheading.solar.ephemeris import available_ephemerides, get_ephemeris
from sunheading.util.logging import log, warn
from sunheading.util.paths import ensure_dir, output_base, segment_artifact
from sunheading.visualize.plot import plot_impact_histogram


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="sunheading: add heading and sun impact to GPX track(s).")
    ap.add_argument("gpx", nargs="+",
                    help="One or more GPX files.")
    ap.add_argument("--pause", default=None,
                    help="Pause detection: pairs further apart are skipped, e.g. 10s (default), 1m, 500ms.")
    ap.add_argument("--ephemeris", default=None, choices=available_ephemerides(),
                    help="Solar position provider (default: from config, else meeus).")
    ap.add_argument("--no-hemisphere-correction", action="store_true",
                    help="Use provider azimuth as-is instead of adding 180 deg north of the equator.")
    ap.add_argument("--out-dir", default=None,
                    help="Directory for output files (default: next to each input).")
    ap.add_argument("--no-csv", action="store_true", help="Do not write CSV files.")
    ap.add_argument("--no-gpx", action="store_true", help="Do not write the sun-status GPX.")
    ap.add_argument("--plot", action="store_true", help="Also write a polar histogram PNG per segment.")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log skipped pairs and degenerate segments.")
    return ap


def apply_cli_overrides(cfg: SunHeadingConfig, args: argparse.Namespace) -> SunHeadingConfig:
    """CLI flags win over every config layer."""
    analysis = cfg.analysis
    output = cfg.output
    src = dict(cfg.source)

    if args.pause is not None:
        analysis = replace(analysis, pause_detect_s=parse_duration(args.pause))
        src["analysis.pause_detect"] = "cli"
    if args.ephemeris is not None:
        analysis = replace(analysis, ephemeris=args.ephemeris)
        src["analysis.ephemeris"] = "cli"
    if args.no_hemisphere_correction:
        analysis = replace(analysis, hemisphere_correction=False)
        src["analysis.hemisphere_correction"] = "cli"
    if analysis.pause_detect_s <= 0:
        raise ConfigError(f"pause detection must be positive, got {analysis.pause_detect_s}")

    output = OutputConfig(
        out_dir=Path(args.out_dir).expanduser() if args.out_dir else output.out_dir,
        write_csv=output.write_csv and not args.no_csv,
        write_gpx=output.write_gpx and not args.no_gpx,
        plot=output.plot or args.plot,
    )
    return SunHeadingConfig(analysis=analysis, output=output, source=src)


def make_analyzer(cfg: SunHeadingConfig, *, verbose: bool = False) -> SunImpactAnalyzer:
    a = cfg.analysis
    return SunImpactAnalyzer(
        get_ephemeris(a.ephemeris),
        pause_detect_s=a.pause_detect_s,
        thresholds=ImpactThresholds(
            deep_sun_elevation=a.deep_sun_elevation,
            blinding_half_angle=a.blinding_half_angle,
            hemisphere_correction=a.hemisphere_correction,
        ),
        verbose=verbose,
    )


def write_outputs(
        src: Path, doc: GpxDocument, results: Sequence[TrackResult], output: OutputConfig,
) -> list[Path]:
    """Write every artifact for one input file; returns the paths written."""
    base = output_base(src, output.out_dir)
    ensure_dir(base.parent)
    written: list[Path] = []

    for trk in results:
        for seg in trk.segments:
            if output.write_csv:
                p = segment_artifact(base, seg.track_index, seg.segment_index, ".csv")
                write_samples_csv(p, seg.samples)
                written.append(p)
                p = segment_artifact(base, seg.track_index, seg.segment_index, ".sunimpact.csv")
                write_histogram_csv(p, seg.histogram, seg.summary, seg.normalized_counts)
                written.append(p)
            if output.plot:
                p = segment_artifact(base, seg.track_index, seg.segment_index, ".sunimpact.png")
                plot_impact_histogram(
                    seg.histogram, seg.summary, p,
                    title=f"{trk.name} track {seg.track_index} segment {seg.segment_index}",
                )
                written.append(p)

    if output.write_gpx:
        tracks = [ot for trk in results for ot in trk.output_tracks()]
        p = base.with_name(f"{base.name}.sunstatus.gpx")
        write_gpx(build_sunstatus_gpx(doc, tracks), p)
        written.append(p)

    return written


def print_report(results: Sequence[TrackResult], *, verbose: bool) -> None:
    for trk in results:
        for seg in trk.segments:
            print(seg.summary_line())
            if verbose:
                log(
                    f"  analyzed {len(seg.samples)} samples over {seg.distance_m / 1000.0:.2f} km "
                    f"in {seg.duration_s / 60.0:.1f} min"
                )


def process_file(
        src: Path, analyzer: SunImpactAnalyzer, output: OutputConfig, *, verbose: bool = False,
) -> list[TrackResult]:
    doc = load_gpx(src)
    if not doc.tracks:
        warn(f"No tracks in {src}")
    results = analyzer.analyze_document(doc)
    print_report(results, verbose=verbose)
    for p in write_outputs(src, doc, results, output):
        if verbose:
            log(f"Wrote {p}")
    return results


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = apply_cli_overrides(load_config(), args)
        analyzer = make_analyzer(cfg, verbose=args.verbose)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    print(f"running with {format_duration(cfg.analysis.pause_detect_s)} pause detection")

    failures = 0
    for name in args.gpx:
        path = Path(name).expanduser()
        if not path.is_file():
            warn(f"Skipping (not a file): {path}")
            failures += 1
            continue
        try:
            process_file(path, analyzer, cfg.output, verbose=args.verbose)
        except InputError as e:
            warn(str(e))
            failures += 1

    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
