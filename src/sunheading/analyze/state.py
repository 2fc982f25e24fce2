# sunheading/analyze/state.py
"""
Tracks the current sun state across a track and reports transitions.
"""

from __future__ import annotations

from sunheading.analyze.impact import SunState


class SunStateMachine:
    """
    Two-state compare: any state may follow any other.

    One instance per track; call reset() before each track so that
    consecutive tracks never share state.
    """

    def __init__(self) -> None:
        self.current = SunState.UNKNOWN

    def reset(self) -> None:
        self.current = SunState.UNKNOWN

    def has_changed(self, new_state: SunState) -> bool:
        """Commit `new_state` and return True if it differs from the current one."""
        if new_state is self.current:
            return False
        self.current = new_state
        return True
