"""
Camera Capture Module
======================

Threaded OpenCV capture that hands every frame to registered listeners.

The capture thread drives the landmark detector directly, so hand
tracking runs at the camera's pace while the render loop runs at its own.
"""

import cv2
import time
import threading
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional
import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    device_id: int = 0
    width: int = 640
    height: int = 480
    fps: int = 30
    buffer_size: int = 1  # Minimal buffering for low latency
    warmup_frames: int = 5

    @classmethod
    def from_dict(cls, config: dict) -> "CameraConfig":
        """Create config from dictionary (YAML parsed)."""
        return cls(
            device_id=config.get("device_id", 0),
            width=config.get("width", 640),
            height=config.get("height", 480),
            fps=config.get("fps", 30),
            buffer_size=config.get("buffer_size", 1),
            warmup_frames=config.get("warmup_frames", 5),
        )


@dataclass
class Frame:
    """Captured frame with metadata."""
    image: np.ndarray
    timestamp_ms: int
    frame_number: int

    @property
    def rgb(self) -> np.ndarray:
        """Convert BGR to RGB."""
        return cv2.cvtColor(self.image, cv2.COLOR_BGR2RGB)


class Camera:
    """
    Background camera capture.

    Frames are not mirrored here; the gesture classifier mirrors the hand
    displacement itself.

    Example:
        >>> camera = Camera(CameraConfig())
        >>> camera.on_frame(lambda f: detector.process(f.rgb, f.timestamp_ms))
        >>> camera.start()
        >>> ...
        >>> camera.stop()
    """

    def __init__(self, config: Optional[CameraConfig] = None):
        self.config = config or CameraConfig()
        self._cap: Optional[cv2.VideoCapture] = None
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._frame_number = 0
        self._listeners: List[Callable[[Frame], None]] = []
        self._start_time = 0.0

    def on_frame(self, callback: Callable[[Frame], None]) -> None:
        """Register a listener called on the capture thread for each frame."""
        self._listeners.append(callback)

    def start(self) -> bool:
        """
        Open the device and start the capture thread.

        Returns:
            True if the camera delivered a test frame
        """
        cfg = self.config
        logger.info("Starting camera (device=%d, %dx%d@%dfps)",
                    cfg.device_id, cfg.width, cfg.height, cfg.fps)

        self._cap = cv2.VideoCapture(cfg.device_id)
        if not self._cap.isOpened():
            logger.error("Failed to open camera device %d", cfg.device_id)
            self._cap = None
            return False

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, cfg.width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, cfg.height)
        self._cap.set(cv2.CAP_PROP_FPS, cfg.fps)
        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, cfg.buffer_size)

        for _ in range(max(1, cfg.warmup_frames)):
            ok, _ = self._cap.read()
        if not ok:
            logger.error("Camera device %d opened but delivers no frames", cfg.device_id)
            self._cap.release()
            self._cap = None
            return False

        logger.info("Camera initialized: %dx%d",
                    int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
                    int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)))

        self._running = True
        self._start_time = time.monotonic()
        self._thread = threading.Thread(target=self._capture_loop,
                                        name="camera-capture", daemon=True)
        self._thread.start()
        return True

    def stop(self) -> None:
        """Stop capture and release the device."""
        self._running = False
        if self._thread:
            self._thread.join(timeout=1.0)
            self._thread = None
        if self._cap:
            self._cap.release()
            self._cap = None
        logger.info("Camera stopped after %d frames", self._frame_number)

    def _capture_loop(self) -> None:
        while self._running:
            ok, image = self._cap.read()
            if not ok or image is None:
                logger.warning("Failed to capture frame")
                time.sleep(0.01)
                continue

            self._frame_number += 1
            frame = Frame(
                image=image,
                timestamp_ms=int((time.monotonic() - self._start_time) * 1000),
                frame_number=self._frame_number,
            )
            for listener in self._listeners:
                try:
                    listener(frame)
                except Exception:
                    logger.exception("Frame listener failed on frame %d", frame.frame_number)

    @property
    def is_running(self) -> bool:
        return self._running

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
