"""
Gesture Dwell Filter
=====================

Optional debouncing between the classifier and the render loop.

A newly classified gesture only replaces the accepted one after it has
been seen continuously for ``dwell_ms``. Losing the hand is not debounced:
it switches to NONE immediately. With ``dwell_ms`` at 0 the filter passes
every classification straight through, which reproduces the raw
per-frame behavior including any flicker.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from ..core.types import Gesture, GestureState

logger = logging.getLogger(__name__)


@dataclass
class GestureDwellConfig:
    """Dwell filter configuration."""
    dwell_ms: int = 0

    @classmethod
    def from_dict(cls, config: dict) -> "GestureDwellConfig":
        """Create config from dictionary."""
        return cls(dwell_ms=config.get("dwell_ms", 0))

    @property
    def enabled(self) -> bool:
        return self.dwell_ms > 0


class GestureDwellFilter:
    """
    Minimum-dwell-time filter for gesture states.

    Example:
        >>> dwell = GestureDwellFilter(GestureDwellConfig(dwell_ms=150))
        >>> stable = dwell.update(classifier.update(frame))
    """

    def __init__(self, config: Optional[GestureDwellConfig] = None):
        self.config = config or GestureDwellConfig()
        self._accepted = Gesture.NONE
        self._candidate: Optional[Gesture] = None
        self._candidate_since = 0
        self._suppressed = 0

    @property
    def accepted(self) -> Gesture:
        return self._accepted

    @property
    def suppressed_count(self) -> int:
        """Classifications held back because they did not dwell long enough."""
        return self._suppressed

    def update(self, state: GestureState, now_ms: Optional[int] = None) -> GestureState:
        """
        Filter one classification.

        Args:
            state: Raw state from the classifier
            now_ms: Time of the update; defaults to the state's timestamp

        Returns:
            The state with its gesture replaced by the accepted gesture.
            The displacement is never filtered.
        """
        if not self.config.enabled:
            self._accepted = state.gesture
            return state

        now_ms = state.timestamp_ms if now_ms is None else now_ms
        gesture = state.gesture

        if gesture is Gesture.NONE or gesture is self._accepted:
            self._accepted = gesture
            self._candidate = None
        elif gesture is not self._candidate:
            self._candidate = gesture
            self._candidate_since = now_ms
        elif now_ms - self._candidate_since >= self.config.dwell_ms:
            logger.debug("Gesture %s accepted after %dms",
                         gesture.value, now_ms - self._candidate_since)
            self._accepted = gesture
            self._candidate = None

        if self._accepted is not gesture:
            self._suppressed += 1
            return replace(state, gesture=self._accepted)
        return state

    def reset(self) -> None:
        self._accepted = Gesture.NONE
        self._candidate = None
        self._candidate_since = 0
