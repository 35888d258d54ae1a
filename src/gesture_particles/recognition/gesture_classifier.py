"""
Gesture Classifier
===================

Rule-based gesture recognition from hand landmark geometry.

A finger counts as extended when its tip is above (smaller image y than)
the joint below it. Four such predicates select the gesture from a
priority table, and the wrist position drives a continuous hand
displacement used to drag the particle cloud around.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ..core.types import Gesture, GestureState
from ..detection.landmarks import LandmarkFrame, LandmarkIndex

logger = logging.getLogger(__name__)

# (tip, joint) pairs for each extension predicate
FINGER_JOINTS = {
    "index": (LandmarkIndex.INDEX_TIP, LandmarkIndex.INDEX_PIP),
    "middle": (LandmarkIndex.MIDDLE_TIP, LandmarkIndex.MIDDLE_PIP),
    "pinky": (LandmarkIndex.PINKY_TIP, LandmarkIndex.PINKY_PIP),
    "thumb": (LandmarkIndex.THUMB_TIP, LandmarkIndex.THUMB_MCP),
}

_REQUIRED_LANDMARKS = max(max(pair) for pair in FINGER_JOINTS.values()) + 1


def classify_fingers(index: bool, middle: bool, pinky: bool, thumb: bool) -> Gesture:
    """
    Map the four finger predicates to a gesture.

    Rules are checked in priority order and the first match wins:

        index and middle, no pinky      -> PEACE
        index and pinky, no middle      -> ROCK
        thumb, no index, no middle      -> LIKE
        no index, no middle, no pinky   -> FIST
        anything else                   -> DETECTED
    """
    if index and middle and not pinky:
        return Gesture.PEACE
    if index and pinky and not middle:
        return Gesture.ROCK
    if thumb and not index and not middle:
        return Gesture.LIKE
    if not index and not middle and not pinky:
        return Gesture.FIST
    return Gesture.DETECTED


@dataclass
class GestureClassifierConfig:
    """Gesture classifier configuration."""
    # World units the displacement spans across the full image width/height
    displacement_range_x: float = 40.0
    displacement_range_y: float = 30.0
    # Fraction of the remaining displacement removed per no-hand update
    decay: float = 0.05
    debug: bool = False

    @classmethod
    def from_dict(cls, config: dict) -> "GestureClassifierConfig":
        """Create config from dictionary."""
        return cls(
            displacement_range_x=config.get("displacement_range_x", 40.0),
            displacement_range_y=config.get("displacement_range_y", 30.0),
            decay=config.get("decay", 0.05),
            debug=config.get("debug", False),
        )


class GestureClassifier:
    """
    Landmark-frame to GestureState classifier.

    The classifier keeps no gesture history; the only state carried between
    frames is the hand displacement, which eases back to zero while no hand
    is visible instead of snapping.

    Example:
        >>> classifier = GestureClassifier()
        >>> state = classifier.update(landmark_frame)
        >>> state.gesture, state.displacement
        (<Gesture.PEACE: 'peace'>, (4.0, 1.5, 0.0))
    """

    def __init__(self, config: Optional[GestureClassifierConfig] = None):
        self.config = config or GestureClassifierConfig()
        if not 0.0 < self.config.decay <= 1.0:
            raise ValueError(f"decay must be in (0, 1], got {self.config.decay}")
        self._displacement = np.zeros(3, dtype=np.float64)

    @property
    def displacement(self) -> Tuple[float, float, float]:
        """Current hand displacement as a plain tuple."""
        return tuple(float(v) for v in self._displacement)

    def set_displacement(self, displacement) -> None:
        """Overwrite the displacement (used when resuming or in tests)."""
        self._displacement = np.asarray(displacement, dtype=np.float64).reshape(3).copy()

    def finger_states(self, frame: LandmarkFrame) -> Optional[Tuple[bool, bool, bool, bool]]:
        """
        Evaluate the (index, middle, pinky, thumb) extension predicates.

        Returns:
            The four predicates, or None if the frame lacks the landmarks
            needed to evaluate them
        """
        landmarks = frame.landmarks
        if landmarks is None or len(landmarks) < _REQUIRED_LANDMARKS:
            return None
        index, middle, pinky, thumb = (
            landmarks[tip].y < landmarks[joint].y
            for tip, joint in FINGER_JOINTS.values()
        )
        return index, middle, pinky, thumb

    def update(self, frame: LandmarkFrame) -> GestureState:
        """
        Process one landmark frame.

        Args:
            frame: Latest tracking result

        Returns:
            Complete GestureState snapshot for this frame
        """
        if not frame.has_hand:
            self._displacement += (0.0 - self._displacement) * self.config.decay
            return GestureState(Gesture.NONE, self.displacement, frame.timestamp_ms)

        wrist = frame.landmarks[LandmarkIndex.WRIST]
        # Mirror horizontally and flip vertically so the cloud follows the hand
        self._displacement = np.array([
            (wrist.x - 0.5) * -self.config.displacement_range_x,
            (0.5 - wrist.y) * self.config.displacement_range_y,
            0.0,
        ])

        states = self.finger_states(frame)
        if states is None:
            logger.debug("Incomplete landmark set (%d points), treating as unclassified",
                         len(frame.landmarks))
            gesture = Gesture.DETECTED
        else:
            gesture = classify_fingers(*states)
            if self.config.debug:
                logger.debug("Fingers index=%s middle=%s pinky=%s thumb=%s -> %s",
                             *states, gesture.value)

        return GestureState(gesture, self.displacement, frame.timestamp_ms)

    def reset(self) -> None:
        self._displacement = np.zeros(3, dtype=np.float64)
