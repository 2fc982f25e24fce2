# sunheading/util/paths.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

def ensure_dir(path: Path) -> None:
    """Ensure a directory exists."""
    path.mkdir(parents=True, exist_ok=True)

def output_base(src: Path, out_dir: Optional[Path] = None) -> Path:
    """
    Base path (no extension) for all artifacts derived from `src`.

    Artifacts land next to the input unless `out_dir` is given:
      tracks/ride.gpx           -> tracks/ride
      tracks/ride.gpx, out/     -> out/ride
    """
    folder = out_dir.expanduser() if out_dir is not None else src.parent
    return folder / src.stem

def segment_artifact(base: Path, track_index: int, segment_index: int, suffix: str) -> Path:
    """Per-segment artifact path, e.g. ride_0_1.sunimpact.csv."""
    return base.with_name(f"{base.name}_{track_index}_{segment_index}{suffix}")
