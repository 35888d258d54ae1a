"""
Hand Detection Module - MediaPipe Tasks API
============================================

Wraps the MediaPipe HandLandmarker and turns its results into
LandmarkFrame objects delivered to a registered callback.

In LIVE_STREAM mode MediaPipe runs inference on its own thread and calls
back whenever a result is ready, so results arrive at a rate independent
of the render loop. IMAGE and VIDEO modes run synchronously and invoke
the same callback before ``process()`` returns.
"""

import logging
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

import numpy as np
import mediapipe as mp
from mediapipe.tasks import python
from mediapipe.tasks.python import vision

from .landmarks import Landmark, LandmarkFrame

logger = logging.getLogger(__name__)

HAND_LANDMARKER_MODEL_URL = "https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/1/hand_landmarker.task"
DEFAULT_MODEL_PATH = Path(__file__).parent.parent.parent.parent / "models" / "hand_landmarker.task"

_RUNNING_MODES = {
    "IMAGE": vision.RunningMode.IMAGE,
    "VIDEO": vision.RunningMode.VIDEO,
    "LIVE_STREAM": vision.RunningMode.LIVE_STREAM,
}


@dataclass
class HandDetectorConfig:
    """Configuration for hand detector."""
    model_path: str = ""
    max_num_hands: int = 1
    min_detection_confidence: float = 0.6
    min_tracking_confidence: float = 0.5
    min_presence_confidence: float = 0.5
    running_mode: str = "LIVE_STREAM"

    @classmethod
    def from_dict(cls, d: dict) -> "HandDetectorConfig":
        """Create config from dictionary."""
        return cls(
            model_path=d.get("model_path", ""),
            max_num_hands=d.get("max_num_hands", 1),
            min_detection_confidence=d.get("min_detection_confidence", 0.6),
            min_tracking_confidence=d.get("min_tracking_confidence", 0.5),
            min_presence_confidence=d.get("min_presence_confidence", 0.5),
            running_mode=d.get("running_mode", "LIVE_STREAM").upper(),
        )


def download_model(url: str, save_path: Path) -> bool:
    """Download the hand landmarker model if not present."""
    if save_path.exists():
        logger.info("Model already exists at %s", save_path)
        return True

    try:
        save_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Downloading hand landmarker model to %s...", save_path)
        urllib.request.urlretrieve(url, save_path)
        logger.info("Model download complete!")
        return True
    except OSError as e:
        logger.error("Failed to download model: %s", e)
        return False


def to_landmark_frame(result, timestamp_ms: int) -> LandmarkFrame:
    """Convert a HandLandmarkerResult to a LandmarkFrame for the first hand."""
    if not result.hand_landmarks:
        return LandmarkFrame.empty(timestamp_ms)

    handedness = ""
    if result.handedness and result.handedness[0]:
        handedness = result.handedness[0][0].category_name

    landmarks = tuple(
        Landmark(x=lm.x, y=lm.y, z=lm.z)
        for lm in result.hand_landmarks[0]
    )
    return LandmarkFrame(landmarks=landmarks, timestamp_ms=timestamp_ms,
                         handedness=handedness)


class HandDetector:
    """
    Single-hand landmark source.

    The detector never captures video itself; the caller feeds it frames
    and receives results through ``on_result``.

    Example:
        >>> detector = HandDetector(HandDetectorConfig())
        >>> detector.on_result(lambda frame: mailbox.post(classifier.update(frame)))
        >>> detector.start()
        >>> detector.process(rgb_image, timestamp_ms)
        >>> detector.stop()
    """

    def __init__(self, config: Optional[HandDetectorConfig] = None):
        self.config = config or HandDetectorConfig()
        self._landmarker: Optional[vision.HandLandmarker] = None
        self._callbacks: List[Callable[[LandmarkFrame], None]] = []
        self._last_timestamp = -1
        self._results = 0

    def on_result(self, callback: Callable[[LandmarkFrame], None]) -> None:
        """Register a callback receiving every LandmarkFrame."""
        self._callbacks.append(callback)

    def start(self) -> bool:
        """Initialize the hand landmarker."""
        if self.config.running_mode not in _RUNNING_MODES:
            logger.error("Unknown running mode '%s'", self.config.running_mode)
            return False

        model_path = self.config.model_path or str(DEFAULT_MODEL_PATH)
        if not Path(model_path).exists():
            if not download_model(HAND_LANDMARKER_MODEL_URL, Path(model_path)):
                logger.error("Could not download hand landmarker model")
                return False

        running_mode = _RUNNING_MODES[self.config.running_mode]
        options = vision.HandLandmarkerOptions(
            base_options=python.BaseOptions(model_asset_path=model_path),
            running_mode=running_mode,
            num_hands=self.config.max_num_hands,
            min_hand_detection_confidence=self.config.min_detection_confidence,
            min_hand_presence_confidence=self.config.min_presence_confidence,
            min_tracking_confidence=self.config.min_tracking_confidence,
            result_callback=(self._on_live_result
                             if running_mode == vision.RunningMode.LIVE_STREAM else None),
        )

        try:
            self._landmarker = vision.HandLandmarker.create_from_options(options)
        except (RuntimeError, ValueError) as e:
            logger.error("Failed to initialize HandLandmarker: %s", e)
            return False

        logger.info("HandLandmarker initialized with model: %s", model_path)
        logger.info("Running mode: %s, Max hands: %d",
                    self.config.running_mode, self.config.max_num_hands)
        return True

    def stop(self) -> None:
        """Release resources."""
        if self._landmarker:
            self._landmarker.close()
            self._landmarker = None
            logger.info("HandLandmarker stopped after %d results", self._results)

    def process(self, image: np.ndarray, timestamp_ms: int) -> None:
        """
        Submit an RGB frame for detection.

        Args:
            image: RGB image as numpy array (H, W, 3)
            timestamp_ms: Capture timestamp; must increase between calls
        """
        if self._landmarker is None:
            logger.warning("HandLandmarker not initialized. Call start() first.")
            return
        if timestamp_ms <= self._last_timestamp:
            # MediaPipe rejects non-increasing timestamps
            timestamp_ms = self._last_timestamp + 1
        self._last_timestamp = timestamp_ms

        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=image)
        mode = self.config.running_mode
        if mode == "LIVE_STREAM":
            self._landmarker.detect_async(mp_image, timestamp_ms)
        elif mode == "VIDEO":
            self._dispatch(to_landmark_frame(
                self._landmarker.detect_for_video(mp_image, timestamp_ms), timestamp_ms))
        else:
            self._dispatch(to_landmark_frame(self._landmarker.detect(mp_image), timestamp_ms))

    def _on_live_result(self, result, output_image, timestamp_ms: int) -> None:
        self._dispatch(to_landmark_frame(result, timestamp_ms))

    def _dispatch(self, frame: LandmarkFrame) -> None:
        self._results += 1
        for callback in self._callbacks:
            callback(frame)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
