"""
Morph Engine
=============

Owns the live particle buffer and advances it one frame at a time.

Each particle moves a fixed fraction of the way toward its index-aligned
target point every frame (exponential approach). With no gesture target
the particles head for the dispersed cloud instead and a small sinusoidal
drift keeps them moving once they arrive.
"""

import time
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..core.errors import ConfigurationError
from ..core.types import Gesture
from ..shapes.generator import ShapeLibrary

logger = logging.getLogger(__name__)


@dataclass
class MorphConfig:
    """Morph engine configuration."""
    smoothing: float = 0.08
    drift_amplitude: float = 0.04

    @classmethod
    def from_dict(cls, config: dict) -> "MorphConfig":
        """Create config from dictionary."""
        return cls(
            smoothing=config.get("smoothing", 0.08),
            drift_amplitude=config.get("drift_amplitude", 0.04),
        )


@dataclass
class TimingConfig:
    """Animation clock configuration."""
    mode: str = "frame"         # "frame": fixed step per frame, "wall": scaled elapsed time
    time_step: float = 0.01
    reference_fps: float = 60.0

    @classmethod
    def from_dict(cls, config: dict) -> "TimingConfig":
        """Create config from dictionary."""
        return cls(
            mode=config.get("mode", "frame"),
            time_step=config.get("time_step", 0.01),
            reference_fps=config.get("reference_fps", 60.0),
        )


class AnimationClock:
    """
    Monotonic animation time.

    In "frame" mode time advances by ``time_step`` per tick, so motion speed
    follows the frame rate. In "wall" mode it advances by the measured
    elapsed time, scaled so that a ``reference_fps`` loop sees the same
    ``time_step`` per frame.
    """

    def __init__(self, config: Optional[TimingConfig] = None, clock=time.perf_counter):
        self.config = config or TimingConfig()
        if self.config.mode not in ("frame", "wall"):
            raise ConfigurationError(f"Unknown timing mode '{self.config.mode}'")
        self._clock = clock
        self._last: Optional[float] = None
        self.time = 0.0
        self.frames = 0

    def tick(self) -> float:
        """Advance one frame and return the new animation time."""
        if self.config.mode == "frame":
            self.time += self.config.time_step
        else:
            now = self._clock()
            if self._last is None:
                self.time += self.config.time_step
            else:
                self.time += (now - self._last) * self.config.time_step * self.config.reference_fps
            self._last = now
        self.frames += 1
        return self.time


class MorphEngine:
    """
    Per-frame particle morphing over a fixed-size buffer.

    All arrays are allocated once; ``step`` works in place.

    Example:
        >>> engine = MorphEngine(15000)
        >>> engine.reset(library.cloud)
        >>> engine.step(Gesture.FIST, clock.tick(), library)
        >>> renderer.set_positions(engine.positions)
    """

    def __init__(self, particle_count: int, config: Optional[MorphConfig] = None):
        if particle_count <= 0:
            raise ConfigurationError(f"particle_count must be positive, got {particle_count}")
        self.config = config or MorphConfig()
        if not 0.0 < self.config.smoothing <= 1.0:
            raise ConfigurationError(
                f"smoothing must be in (0, 1], got {self.config.smoothing}")

        self.particle_count = particle_count
        self._positions = np.zeros((particle_count, 3), dtype=np.float32)
        self._scratch = np.empty((particle_count, 3), dtype=np.float32)
        self._phase = np.arange(particle_count, dtype=np.float64)
        self._drift = np.empty(particle_count, dtype=np.float64)
        self._view = self._positions.view()
        self._view.setflags(write=False)
        self.last_target: Optional[str] = None

    @property
    def positions(self) -> np.ndarray:
        """Read-only view of the live buffer."""
        return self._view

    def reset(self, points: np.ndarray) -> None:
        """Copy a point set into the live buffer (e.g. the initial cloud)."""
        self._check_length(points)
        np.copyto(self._positions, points)

    def _check_length(self, points: np.ndarray) -> None:
        if points.shape != self._positions.shape:
            raise ValueError(f"Point set shape {points.shape} does not match "
                             f"buffer shape {self._positions.shape}")

    def step(self, gesture: Gesture, t: float, shapes: ShapeLibrary) -> None:
        """
        Advance every particle by one frame.

        Args:
            gesture: Gesture observed for this frame
            t: Animation time
            shapes: Current shape library (read only)
        """
        target = shapes.target_for(gesture)
        idle = target is None
        if idle:
            target = shapes.cloud
        self._check_length(target)

        name = "cloud" if idle else shapes.bindings[gesture]
        if name != self.last_target:
            logger.debug("Morph target -> %s", name)
            self.last_target = name

        # positions += (target - positions) * smoothing
        np.subtract(target, self._positions, out=self._scratch)
        self._scratch *= self.config.smoothing
        self._positions += self._scratch

        if idle and self.config.drift_amplitude:
            np.add(self._phase, t, out=self._drift)
            np.sin(self._drift, out=self._drift)
            self._drift *= self.config.drift_amplitude
            self._positions += self._drift[:, np.newaxis]
