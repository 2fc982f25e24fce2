"""
sunheading configuration loader

This module centralizes *all* configuration handling for sunheading.

Design goals:
- Keep the CLI Unix-friendly: flags override everything.
- Provide sensible defaults if no config exists.
- Allow per-machine config without committing personal paths:
    ~/.config/sunheading/config.toml
- Allow repo-local config:
    <repo_root>/config/config.toml
- Allow environment variable overrides for automation.

Precedence (highest to lowest) for any given value:
1) CLI argument (handled by the CLI)
2) Environment variables (SUNHEADING_*)
3) User config: ~/.config/sunheading/config.toml
4) Repo config: <repo_root>/config/config.toml
5) Hard defaults (10s pause detection, 15 deg deep sun, 30 deg blinding, meeus)

This module uses Python's built-in tomllib on Python 3.11+, or `tomli` if installed.

Sections understood:

    [analysis]
    pause_detect = "10s"          # Go-style duration or seconds
    deep_sun_elevation = 15.0
    blinding_half_angle = 30.0
    hemisphere_correction = true
    ephemeris = "meeus"           # or "astral"

    [output]
    out_dir = "~/sun"             # default: next to each input file
    write_csv = true
    write_gpx = true
    plot = false
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from sunheading.errors import ConfigError

# ---------------------------------------------------------------------------
# TOML loading helpers
# ---------------------------------------------------------------------------
def _load_toml(path: Path) -> dict[str, Any]:
    """
    Parse a TOML file at `path`.

    Behavior:
    - If the file does not exist, return an empty dict (non-fatal).
    - If the file exists but is invalid TOML, raise a ConfigError
      with a clear, user-facing message.

    Rationale:
    - Missing config files are normal and expected.
    - Malformed config files indicate user intent and should fail loudly.
    """
    if not path.is_file():
        return {}

    try:
        try:
            # Python 3.11+ standard library
            import tomllib
            return tomllib.loads(path.read_text(encoding="utf-8")) or {}
        except ModuleNotFoundError:
            import tomli
            return tomli.loads(path.read_text(encoding="utf-8")) or {}
    except (ValueError, OSError) as e:
        # TOMLDecodeError subclasses ValueError in both tomllib and tomli
        raise ConfigError(f"Failed to parse TOML config: {path} ({e})") from e


# ---------------------------------------------------------------------------
# Generic coercion helpers
# ---------------------------------------------------------------------------
def _deep_get(d: dict[str, Any], dotted_key: str) -> Any:
    """
    Fetch nested dictionary values using dot-separated keys.

    Example:
        _deep_get(cfg, "analysis.pause_detect")

    Returns None if any part of the path is missing.
    """
    cur: Any = d
    for part in dotted_key.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return None
        cur = cur[part]
    return cur


def _as_path(v: Any) -> Optional[Path]:
    """
    Coerce a config value into a pathlib.Path if possible.

    Returns None if value cannot be interpreted as a path.
    """
    if v is None:
        return None
    if isinstance(v, Path):
        return v.expanduser()
    if isinstance(v, str) and v.strip():
        return Path(v).expanduser()
    return None


def _as_bool(v: Any, default: bool) -> bool:
    """
    Coerce loosely-typed config values into booleans.

    Accepts common truthy / falsy representations so that TOML,
    environment variables and CLI overrides all behave consistently.
    """
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    if isinstance(v, str):
        s = v.strip().lower()
        if s in ("true", "yes", "y", "1", "on"):
            return True
        if s in ("false", "no", "n", "0", "off"):
            return False
    return default


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return default
    return str(v)


def _as_float(v: Any, key: str) -> Optional[float]:
    """
    Coerce numbers (or numeric strings) to float. Unlike booleans, a bad
    number is an error: a typo in a threshold must not silently fall back.
    """
    if v is None:
        return None
    if isinstance(v, bool):
        raise ConfigError(f"{key}: expected a number, got {v!r}")
    try:
        return float(v)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key}: expected a number, got {v!r}") from e


# ---------------------------------------------------------------------------
# Durations
# ---------------------------------------------------------------------------
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(h|ms|us|µs|ns|m|s)")
_DURATION_UNITS = {
    "h": 3600.0, "m": 60.0, "s": 1.0,
    "ms": 1e-3, "us": 1e-6, "µs": 1e-6, "ns": 1e-9,
}


def parse_duration(v: Any) -> float:
    """
    Parse a duration into seconds.

    Accepts plain numbers (seconds) and Go-style strings:
      "10s", "1m30s", "250ms", "1h", "2.5s"
    """
    if isinstance(v, bool):
        raise ConfigError(f"Invalid duration: {v!r}")
    if isinstance(v, (int, float)):
        return float(v)
    s = str(v).strip()
    if not s:
        raise ConfigError("Invalid duration: empty string")
    try:
        return float(s)
    except ValueError:
        pass

    pos = 0
    total = 0.0
    for m in _DURATION_PART.finditer(s):
        if m.start() != pos:
            break
        total += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()
    if pos != len(s) or pos == 0:
        raise ConfigError(f"Invalid duration: '{s}' (examples: 10s, 1m30s, 500ms)")
    return total


def format_duration(seconds: float) -> str:
    """Short Go-like rendering used in log lines, e.g. 10s, 1m30s."""
    if seconds >= 60 and float(seconds).is_integer():
        m, s = divmod(int(seconds), 60)
        h, m = divmod(m, 60)
        out = (f"{h}h" if h else "") + (f"{m}m" if m or h else "") + f"{s}s"
        return out
    return f"{seconds:g}s"


# ---------------------------------------------------------------------------
# Repo discovery + defaults
# ---------------------------------------------------------------------------
def find_repo_root(start: Path) -> Optional[Path]:
    """
    Walk upward from `start` looking for the repo root.

    Heuristic:
    - The presence of a `config/` directory marks the repo root
    """
    start = start.resolve()
    for p in [start] + list(start.parents):
        if (p / "config").is_dir():
            return p
    return None


# ---------------------------------------------------------------------------
# Typed config dataclasses
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class AnalysisConfig:
    """
    Parameters of the angular analysis engine.
    """

    pause_detect_s: float = 10.0
    deep_sun_elevation: float = 15.0
    blinding_half_angle: float = 30.0
    hemisphere_correction: bool = True
    ephemeris: str = "meeus"


@dataclass(frozen=True)
class OutputConfig:
    """
    What gets written, and where. out_dir None means next to the input.
    """

    out_dir: Optional[Path] = None
    write_csv: bool = True
    write_gpx: bool = True
    plot: bool = False


@dataclass(frozen=True)
class SunHeadingConfig:
    """
    Fully merged configuration.

    Attributes:
    - analysis: engine parameters
    - output: artifact selection and location
    - source: provenance map showing where each value came from
    """

    analysis: AnalysisConfig
    output: OutputConfig
    source: dict[str, str]


_KEYS = (
    "analysis.pause_detect",
    "analysis.deep_sun_elevation",
    "analysis.blinding_half_angle",
    "analysis.hemisphere_correction",
    "analysis.ephemeris",
    "output.out_dir",
    "output.write_csv",
    "output.write_gpx",
    "output.plot",
)

ENV_MAP = {
    "SUNHEADING_PAUSE_DETECT": "analysis.pause_detect",
    "SUNHEADING_EPHEMERIS": "analysis.ephemeris",
    "SUNHEADING_HEMISPHERE_CORRECTION": "analysis.hemisphere_correction",
    "SUNHEADING_OUT_DIR": "output.out_dir",
}


def _validate(analysis: AnalysisConfig) -> None:
    if analysis.pause_detect_s <= 0:
        raise ConfigError(f"analysis.pause_detect must be positive, got {analysis.pause_detect_s}")
    if not 0 <= analysis.deep_sun_elevation <= 90:
        raise ConfigError(f"analysis.deep_sun_elevation must be in [0, 90], got {analysis.deep_sun_elevation}")
    if not 0 <= analysis.blinding_half_angle <= 180:
        raise ConfigError(f"analysis.blinding_half_angle must be in [0, 180], got {analysis.blinding_half_angle}")


# ---------------------------------------------------------------------------
# Main config loader
# ---------------------------------------------------------------------------
def load_config(
    repo_root: Optional[Path] = None,
    repo_config_path: Optional[Path] = None,
    user_config_path: Optional[Path] = None,
) -> SunHeadingConfig:
    """
    Load, merge, and normalize all sunheading configuration.

    This function is the single authoritative entry point
    for configuration access.
    """

    # Locate repo and config files
    if repo_root is None:
        repo_root = find_repo_root(Path(__file__).resolve())
    if repo_config_path is None and repo_root is not None:
        repo_config_path = repo_root / "config" / "config.toml"
    if user_config_path is None:
        user_config_path = Path.home() / ".config" / "sunheading" / "config.toml"

    # Load raw TOML dicts
    repo_cfg = _load_toml(repo_config_path) if repo_config_path else {}
    user_cfg = _load_toml(user_config_path) if user_config_path else {}

    # Raw values by dotted key; later layers override earlier ones
    raw: dict[str, Any] = {}
    src = {k: "default" for k in _KEYS}

    for cfg, label, path in ((repo_cfg, "repo", repo_config_path), (user_cfg, "user", user_config_path)):
        for k in _KEYS:
            v = _deep_get(cfg, k)
            if v is None:
                continue
            raw[k] = v
            src[k] = f"{label}:{path}"

    # Environment variable overrides (highest non-CLI precedence)
    for env, key in ENV_MAP.items():
        v = os.environ.get(env)
        if not v:
            continue
        raw[key] = v
        src[key] = f"env:{env}"

    defaults = AnalysisConfig()
    pause = raw.get("analysis.pause_detect")
    deep = _as_float(raw.get("analysis.deep_sun_elevation"), "analysis.deep_sun_elevation")
    blind = _as_float(raw.get("analysis.blinding_half_angle"), "analysis.blinding_half_angle")

    analysis = AnalysisConfig(
        pause_detect_s=parse_duration(pause) if pause is not None else defaults.pause_detect_s,
        deep_sun_elevation=deep if deep is not None else defaults.deep_sun_elevation,
        blinding_half_angle=blind if blind is not None else defaults.blinding_half_angle,
        hemisphere_correction=_as_bool(raw.get("analysis.hemisphere_correction"), defaults.hemisphere_correction),
        ephemeris=_as_str(raw.get("analysis.ephemeris"), defaults.ephemeris).strip().lower(),
    )
    _validate(analysis)

    output = OutputConfig(
        out_dir=_as_path(raw.get("output.out_dir")),
        write_csv=_as_bool(raw.get("output.write_csv"), True),
        write_gpx=_as_bool(raw.get("output.write_gpx"), True),
        plot=_as_bool(raw.get("output.plot"), False),
    )

    return SunHeadingConfig(analysis=analysis, output=output, source=src)
