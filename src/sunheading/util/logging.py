# sunheading/util/logging.py
from __future__ import annotations

import datetime
import sys

def utc_now_iso() -> str:
    """Return current UTC timestamp as ISO-8601 string."""
    return datetime.datetime.now(datetime.timezone.utc).isoformat()

def log(msg: str) -> None:
    """Print a timestamped log line (local time with timezone)."""
    ts = datetime.datetime.now().astimezone().isoformat(timespec="seconds")
    print(f"{ts}  {msg}")

def warn(msg: str) -> None:
    """Print a timestamped warning line to stderr."""
    ts = datetime.datetime.now().astimezone().isoformat(timespec="seconds")
    print(f"{ts}  WARNING: {msg}", file=sys.stderr)
