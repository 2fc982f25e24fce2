# sunheading/formats/gpx.py
"""
GPX helpers for sunheading

This module is intentionally format-focused:
- GPX namespace handling
- safely reading and writing ElementTree
- turning <trk>/<trkseg>/<trkpt> into typed, ordered track points
- building the sun-status GPX (one <trk> per sun-state section)

Key design principle:
  Keep orchestration (paths, CSV files, summaries) in the CLI and the angular
  analysis in sunheading.analyze, separate from GPX parsing and writing (here).
"""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Sequence
from xml.etree import ElementTree as ET

from sunheading.errors import InvalidGpxError

# GPX 1.1 default namespace
GPX_NS = {"gpx": "http://www.topografix.com/GPX/1/1"}
GPX10_URI = "http://www.topografix.com/GPX/1/0"
# Garmin extension namespace (track display colour)
GPXX_URI = "http://www.garmin.com/xmlschemas/GpxExtensions/v3"

CREATOR = "sunheading"

ET.register_namespace("", GPX_NS["gpx"])
ET.register_namespace("gpxx", GPXX_URI)


def qn(tag: str, uri: str = GPX_NS["gpx"]) -> str:
    """
    Build an ElementTree-qualified name for a GPX tag.

    ElementTree represents namespaced tags internally as
      "{namespace-uri}tag"
    """
    return f"{{{uri}}}{tag}"


def _parse_gpx_time(text: str) -> Optional[_dt.datetime]:
    """
    Parse an ISO-8601 timestamp commonly found in GPX <time> nodes.

    Expected examples:
      - "2026-01-02T21:14:44Z"
      - "2026-01-02T21:14:44.123Z"
      - "2026-01-02T21:14:44+00:00"
    """
    if not text:
        return None
    s = text.strip()
    if not s:
        return None

    # ElementTree GPX times commonly use Z for UTC.
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    try:
        dt = _dt.datetime.fromisoformat(s)
    except ValueError:
        return None

    # Ensure tz-aware; if naive, assume UTC (conservative for GPX sources)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=_dt.timezone.utc)

    return dt.astimezone(_dt.timezone.utc)


def _format_gpx_time(dt: _dt.datetime) -> str:
    """
    Format a tz-aware datetime as GPX time (UTC with Z).
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=_dt.timezone.utc)
    dt_utc = dt.astimezone(_dt.timezone.utc)
    if dt_utc.microsecond:
        return dt_utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return dt_utc.isoformat().replace("+00:00", "Z")


def _indent(elem: ET.Element, level: int = 0, indent: str = "  ") -> None:
    """
    In-place pretty-printer for ElementTree output. Eliminates double blank-line
    issues by explicitly controlling .text/.tail.
    """
    i = "\n" + level * indent
    j = "\n" + (level -1) * indent if level > 0 else "\n"

    children = list(elem)
    if children:
        if elem.text is None or not elem.text.strip():
            elem.text = i + indent
        for child in children:
            _indent(child, level + 1, indent=indent)
        if children[-1].tail is None or not children[-1].tail.strip():
            children[-1].tail = i
    if elem.tail is None or not elem.tail.strip():
        elem.tail = j


@dataclass(frozen=True)
class TrackPoint:
    lat: float
    lon: float
    time: _dt.datetime
    ele: float | None = None


@dataclass
class Track:
    name: str
    segments: list[list[TrackPoint]] = field(default_factory=list)

    @property
    def point_count(self) -> int:
        return sum(len(s) for s in self.segments)


@dataclass
class GpxDocument:
    name: str = ""
    creator: str = ""
    time: Optional[_dt.datetime] = None
    author_name: str = ""
    tracks: list[Track] = field(default_factory=list)


@dataclass(frozen=True)
class OutputTrack:
    """One <trk> of the sun-status GPX."""
    name: str
    number: int
    color: str
    points: Sequence[TrackPoint]


def read_gpx(path: Path) -> ET.ElementTree:
    """
    Read a GPX file into an ElementTree.

    Raises:
      InvalidGpxError on unreadable or malformed XML
    """
    try:
        return ET.parse(path)
    except (ET.ParseError, OSError) as e:
        raise InvalidGpxError(f"Cannot read GPX {path}: {e}") from e


def _namespace_of(root: ET.Element) -> str:
    if root.tag.startswith("{"):
        uri = root.tag[1:].split("}", 1)[0]
    else:
        uri = ""
    if root.tag.rsplit("}", 1)[-1] != "gpx":
        raise InvalidGpxError(f"Root element is <{root.tag}>, expected <gpx>")
    if uri not in (GPX_NS["gpx"], GPX10_URI):
        raise InvalidGpxError(f"Unsupported GPX namespace: '{uri}'")
    return uri


def _parse_trkpt(trkpt: ET.Element, ns: dict[str, str]) -> TrackPoint:
    try:
        lat = float(trkpt.get("lat"))
        lon = float(trkpt.get("lon"))
    except (TypeError, ValueError) as e:
        raise InvalidGpxError(f"Trackpoint with bad lat/lon: {trkpt.attrib}") from e
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        raise InvalidGpxError(f"Trackpoint out of range: lat={lat} lon={lon}")

    t = (trkpt.findtext("g:time", default="", namespaces=ns) or "").strip()
    time = _parse_gpx_time(t)
    if time is None:
        raise InvalidGpxError(f"Trackpoint ({lat}, {lon}) has missing or bad <time>: '{t}'")

    ele_text = (trkpt.findtext("g:ele", default="", namespaces=ns) or "").strip()
    try:
        ele = float(ele_text) if ele_text else None
    except ValueError:
        ele = None

    return TrackPoint(lat=lat, lon=lon, time=time, ele=ele)


def parse_document(tree: ET.ElementTree) -> GpxDocument:
    """
    Extract tracks, segments and ordered trackpoints from a GPX tree.

    Every trackpoint must carry a valid lat/lon and <time>; anything else
    is an InvalidGpxError (the whole file is rejected).
    """
    root = tree.getroot()
    ns = {"g": _namespace_of(root)}

    # GPX 1.1 keeps name/time/author under <metadata>; GPX 1.0 at the root.
    md = root.find("g:metadata", ns)
    meta = md if md is not None else root
    author = meta.find("g:author", ns)
    if author is not None:
        author_name = (author.findtext("g:name", default="", namespaces=ns) or author.text or "").strip()
    else:
        author_name = ""

    doc = GpxDocument(
        name=(meta.findtext("g:name", default="", namespaces=ns) or "").strip(),
        creator=root.get("creator", ""),
        time=_parse_gpx_time(meta.findtext("g:time", default="", namespaces=ns) or ""),
        author_name=author_name,
    )

    for trk in root.findall("g:trk", ns):
        track = Track(name=(trk.findtext("g:name", default="", namespaces=ns) or "").strip())
        for seg in trk.findall("g:trkseg", ns):
            track.segments.append([_parse_trkpt(p, ns) for p in seg.findall("g:trkpt", ns)])
        doc.tracks.append(track)

    return doc


def load_gpx(path: Path) -> GpxDocument:
    """read_gpx + parse_document."""
    return parse_document(read_gpx(path))


def _trkpt_element(parent: ET.Element, p: TrackPoint) -> ET.Element:
    el = ET.SubElement(parent, qn("trkpt"), {"lat": f"{p.lat:.7f}", "lon": f"{p.lon:.7f}"})
    if p.ele is not None:
        ET.SubElement(el, qn("ele")).text = f"{p.ele:g}"
    ET.SubElement(el, qn("time")).text = _format_gpx_time(p.time)
    return el


def build_sunstatus_gpx(doc: GpxDocument, tracks: Iterable[OutputTrack]) -> ET.Element:
    """
    Build the sun-status GPX: input metadata carried over, one <trk> per
    sun-state section with a Garmin DisplayColor extension.
    """
    root = ET.Element(qn("gpx"), {"version": "1.1", "creator": CREATOR})

    md = ET.SubElement(root, qn("metadata"))
    if doc.name:
        ET.SubElement(md, qn("name")).text = doc.name
    if doc.author_name:
        author = ET.SubElement(md, qn("author"))
        ET.SubElement(author, qn("name")).text = doc.author_name
    if doc.time is not None:
        ET.SubElement(md, qn("time")).text = _format_gpx_time(doc.time)

    for ot in tracks:
        trk = ET.SubElement(root, qn("trk"))
        ET.SubElement(trk, qn("name")).text = ot.name
        ET.SubElement(trk, qn("number")).text = str(ot.number)
        ext = ET.SubElement(trk, qn("extensions"))
        track_ext = ET.SubElement(ext, qn("TrackExtension", GPXX_URI))
        ET.SubElement(track_ext, qn("DisplayColor", GPXX_URI)).text = ot.color
        seg = ET.SubElement(trk, qn("trkseg"))
        for p in ot.points:
            _trkpt_element(seg, p)

    return root


def write_gpx(root: ET.Element, out_path: Path, *, pretty: bool = True) -> None:
    """
    Write a GPX XML tree to disk.

    - pretty=True applies indentation for human readability
    - writes UTF-8 with XML declaration
    """
    if pretty:
        _indent(root)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    tree = ET.ElementTree(root)
    tree.write(out_path, encoding="utf-8", xml_declaration=True)
