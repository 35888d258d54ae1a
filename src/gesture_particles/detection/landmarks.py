"""
Hand landmark containers shared by the detector and the classifier.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, NamedTuple, Sequence


class LandmarkIndex(IntEnum):
    """Hand landmark indices following MediaPipe convention."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


NUM_LANDMARKS = len(LandmarkIndex)


class Landmark(NamedTuple):
    """A single landmark with normalized image coordinates."""
    x: float  # 0.0 to 1.0, normalized by image width
    y: float  # 0.0 to 1.0, normalized by image height, grows downward
    z: float = 0.0


@dataclass(frozen=True)
class LandmarkFrame:
    """One tracking result: a single hand's landmarks, or no hand at all."""
    landmarks: Optional[Sequence[Landmark]] = None
    timestamp_ms: int = 0
    handedness: str = ""

    @property
    def has_hand(self) -> bool:
        return bool(self.landmarks)

    @property
    def is_complete(self) -> bool:
        """True if every MediaPipe landmark index is present."""
        return self.landmarks is not None and len(self.landmarks) >= NUM_LANDMARKS

    @staticmethod
    def empty(timestamp_ms: int = 0) -> "LandmarkFrame":
        return LandmarkFrame(landmarks=None, timestamp_ms=timestamp_ms)

    @staticmethod
    def from_points(points: List[Sequence[float]], timestamp_ms: int = 0,
                    handedness: str = "") -> "LandmarkFrame":
        """Build a frame from raw (x, y) or (x, y, z) tuples."""
        return LandmarkFrame(
            landmarks=tuple(Landmark(*p) for p in points),
            timestamp_ms=timestamp_ms,
            handedness=handedness,
        )
