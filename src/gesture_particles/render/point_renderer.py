"""
Point Cloud Renderer
=====================

A small OpenCV scene host for the particle cloud: a perspective camera on
the z axis looking at the origin, soft round sprites and additive blending.

The renderer exposes the interface the presentation adapter drives:
``set_positions``, mutable ``color`` / ``size`` / ``position``,
read-only ``fov`` / ``aspect``, ``render()`` and an ``on_resize`` hook.
"""

import math
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class RendererConfig:
    """Camera and window settings."""
    window_name: str = "Gesture Particles"
    width: int = 1280
    height: int = 720
    fov: float = 75.0
    near: float = 0.1
    far: float = 1000.0
    camera_z: float = 35.0
    opacity: float = 0.8
    background: Tuple[int, int, int] = (0, 0, 0)   # BGR
    show_window: bool = True

    @classmethod
    def from_dict(cls, config: dict) -> "RendererConfig":
        """Create config from dictionary."""
        return cls(
            window_name=config.get("window_name", "Gesture Particles"),
            width=config.get("width", 1280),
            height=config.get("height", 720),
            fov=config.get("fov", 75.0),
            near=config.get("near", 0.1),
            far=config.get("far", 1000.0),
            camera_z=config.get("camera_z", 35.0),
            opacity=config.get("opacity", 0.8),
            background=tuple(config.get("background", [0, 0, 0])),
            show_window=config.get("show_window", True),
        )


class PointCloudRenderer:
    """
    Perspective point renderer drawing into an OpenCV window.

    Points are splatted into an intensity accumulator, softened with a
    Gaussian whose width follows the projected point size, tinted with the
    material color and added onto the background.

    Example:
        >>> renderer = PointCloudRenderer(RendererConfig())
        >>> renderer.open()
        >>> renderer.on_resize(lambda w, h: regenerate_shapes())
        >>> renderer.set_positions(engine.positions)
        >>> frame = renderer.render()
    """

    def __init__(self, config: Optional[RendererConfig] = None):
        self.config = config or RendererConfig()
        self.width = self.config.width
        self.height = self.config.height

        # Material / object parameters mutated by the presentation adapter
        self.color: Sequence[float] = (0.4, 0.4, 0.4)
        self.size: float = 0.15
        self.position: Sequence[float] = (0.0, 0.0, 0.0)
        self.overlay: Sequence[str] = ()

        self._positions: Optional[np.ndarray] = None
        self._resize_callbacks: List[Callable[[int, int], None]] = []
        self._window_open = False
        self._frames = 0

    # -------------------------------------------------------------------------
    # Camera
    # -------------------------------------------------------------------------

    @property
    def fov(self) -> float:
        """Vertical field of view in degrees."""
        return self.config.fov

    @property
    def aspect(self) -> float:
        return self.width / self.height

    @property
    def camera_z(self) -> float:
        return self.config.camera_z

    def project(self, points: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """
        Project world points to pixel coordinates.

        Args:
            points: (N, 3) world positions

        Returns:
            (px, py, depth, visible) where px/py are integer pixel indices,
            depth is the distance along the view axis and visible masks points
            inside the view frustum and the image
        """
        cfg = self.config
        depth = cfg.camera_z - points[:, 2]
        in_range = (depth > cfg.near) & (depth < cfg.far)
        safe_depth = np.where(in_range, depth, 1.0)

        tan_half = math.tan(math.radians(cfg.fov) / 2.0)
        ndc_x = points[:, 0] / (safe_depth * tan_half * self.aspect)
        ndc_y = points[:, 1] / (safe_depth * tan_half)

        px = np.floor((ndc_x + 1.0) * 0.5 * self.width).astype(np.int64)
        py = np.floor((1.0 - ndc_y) * 0.5 * self.height).astype(np.int64)
        visible = (in_range
                   & (px >= 0) & (px < self.width)
                   & (py >= 0) & (py < self.height))
        return px, py, depth, visible

    def point_size_px(self, depth: float) -> float:
        """Projected diameter in pixels of a point of ``size`` world units at ``depth``."""
        tan_half = math.tan(math.radians(self.config.fov) / 2.0)
        return self.size * self.height / (2.0 * tan_half * depth)

    # -------------------------------------------------------------------------
    # Scene interface
    # -------------------------------------------------------------------------

    def set_positions(self, positions: np.ndarray) -> None:
        """Receive the live buffer for the next render (copied)."""
        if self._positions is None or self._positions.shape != positions.shape:
            self._positions = np.empty(positions.shape, dtype=np.float32)
        np.copyto(self._positions, positions)

    def on_resize(self, callback: Callable[[int, int], None]) -> None:
        """Register a callback fired with (width, height) after a resize."""
        self._resize_callbacks.append(callback)

    def resize(self, width: int, height: int) -> None:
        """Change the viewport size and notify resize listeners."""
        if width <= 0 or height <= 0:
            return
        if (width, height) == (self.width, self.height):
            return
        logger.info("Viewport resized to %dx%d", width, height)
        self.width, self.height = width, height
        for callback in self._resize_callbacks:
            callback(width, height)

    def compose(self) -> np.ndarray:
        """Draw the current scene into a new BGR image."""
        frame = np.empty((self.height, self.width, 3), dtype=np.float32)
        frame[:] = self.config.background
        if self._positions is None or len(self._positions) == 0:
            return frame.astype(np.uint8)

        world = self._positions + np.asarray(self.position, dtype=np.float32)
        px, py, _, visible = self.project(world)
        flat = py[visible] * self.width + px[visible]
        intensity = np.bincount(flat, minlength=self.width * self.height)
        intensity = intensity.reshape(self.height, self.width).astype(np.float32)

        # Soft sprite: blur each splat to roughly the projected point size,
        # keeping a single point's peak at the material opacity
        sigma = self.point_size_px(self.config.camera_z) / 2.0
        if sigma >= 0.5:
            intensity = cv2.GaussianBlur(intensity, (0, 0), sigma)
            intensity *= 2.0 * math.pi * sigma * sigma
        intensity *= self.config.opacity

        r, g, b = self.color
        tint = np.array([b, g, r], dtype=np.float32) * 255.0
        frame += intensity[:, :, np.newaxis] * tint
        return np.clip(frame, 0, 255).astype(np.uint8)

    def render(self) -> np.ndarray:
        """
        Render a frame and show it if the window is open.

        Lines in ``overlay`` are drawn in the top-left corner.

        Returns:
            The rendered BGR frame
        """
        frame = self.compose()
        if self.overlay:
            y = 30
            for line in self.overlay:
                cv2.putText(frame, line, (20, y), cv2.FONT_HERSHEY_SIMPLEX,
                            0.6, (200, 200, 200), 1, cv2.LINE_AA)
                y += 25
        if self._window_open:
            cv2.imshow(self.config.window_name, frame)
        self._frames += 1
        return frame

    # -------------------------------------------------------------------------
    # Window plumbing
    # -------------------------------------------------------------------------

    def open(self) -> None:
        """Create the display window (no-op when show_window is off)."""
        if not self.config.show_window:
            return
        cv2.namedWindow(self.config.window_name, cv2.WINDOW_NORMAL)
        cv2.resizeWindow(self.config.window_name, self.width, self.height)
        self._window_open = True
        logger.info("Renderer window opened (%dx%d, fov %.0f)",
                    self.width, self.height, self.config.fov)

    def poll_resize(self) -> None:
        """Check the window size and fire a resize if it changed."""
        if not self._window_open:
            return
        _, _, width, height = cv2.getWindowImageRect(self.config.window_name)
        self.resize(width, height)

    @property
    def window_closed(self) -> bool:
        """True once the user closed the window."""
        if not self._window_open:
            return False
        return cv2.getWindowProperty(self.config.window_name, cv2.WND_PROP_VISIBLE) < 1

    def close(self) -> None:
        if self._window_open:
            cv2.destroyWindow(self.config.window_name)
            self._window_open = False
        logger.info("Renderer closed after %d frames", self._frames)
