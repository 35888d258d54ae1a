"""
Presentation Adapter
=====================

Derives the per-frame visual parameters (color, point size, cloud
translation) from the gesture and animation time, and pushes them along
with the live particle buffer to the renderer.
"""

import math
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ..core.types import Gesture, Vector3

logger = logging.getLogger(__name__)

RGB = Tuple[float, float, float]


def parse_color(value) -> RGB:
    """
    Parse a color into RGB floats in [0, 1].

    Accepts "#rrggbb" / "rrggbb" strings, 0xRRGGBB integers and
    0-255 sequences (as found in YAML config).
    """
    if isinstance(value, str):
        text = value.lstrip("#")
        if len(text) != 6:
            raise ValueError(f"Expected a 6-digit hex color, got '{value}'")
        value = int(text, 16)
    if isinstance(value, int):
        return ((value >> 16 & 0xFF) / 255.0, (value >> 8 & 0xFF) / 255.0, (value & 0xFF) / 255.0)
    r, g, b = value
    return (r / 255.0, g / 255.0, b / 255.0)


@dataclass
class PresentationConfig:
    """Visual parameter settings."""
    base_color: RGB = parse_color("#666666")
    like_color: RGB = parse_color("#ff4488")
    active_color: RGB = parse_color("#00ccff")
    color_blend: float = 0.1
    elasticity: float = 0.05
    size_pulse_amplitude: float = 0.05
    size_pulse_frequency: float = 5.0

    @classmethod
    def from_dict(cls, config: dict) -> "PresentationConfig":
        """Create config from dictionary."""
        colors = config.get("colors", {})
        return cls(
            base_color=parse_color(colors.get("base", "#666666")),
            like_color=parse_color(colors.get("like", "#ff4488")),
            active_color=parse_color(colors.get("active", "#00ccff")),
            color_blend=config.get("color_blend", 0.1),
            elasticity=config.get("elasticity", 0.05),
            size_pulse_amplitude=config.get("size_pulse_amplitude", 0.05),
            size_pulse_frequency=config.get("size_pulse_frequency", 5.0),
        )


@dataclass(frozen=True)
class VisualState:
    """Visual parameters for one frame."""
    color: RGB
    size: float
    translation: Vector3


class PresentationAdapter:
    """
    Eases visual parameters toward gesture-dependent targets.

    - LIKE: warm accent color, point size pulsing around the base size
    - any other gesture with a hand: cool accent color
    - NONE: neutral base color

    Colors never snap; they move ``color_blend`` of the way each frame. The
    cloud translation follows the hand displacement with ``elasticity``.

    Example:
        >>> presenter = PresentationAdapter(PresentationConfig(), base_size=0.15)
        >>> visual = presenter.update(state.gesture, clock.time, state.displacement)
        >>> presenter.push(renderer, engine.positions, visual)
    """

    def __init__(self, config: Optional[PresentationConfig] = None, base_size: float = 0.15):
        self.config = config or PresentationConfig()
        self.base_size = base_size
        self._color = np.array(self.config.base_color, dtype=np.float64)
        self._translation = np.zeros(3, dtype=np.float64)
        self._size = base_size

    def target_color(self, gesture: Gesture) -> RGB:
        if gesture is Gesture.LIKE:
            return self.config.like_color
        if gesture is Gesture.NONE:
            return self.config.base_color
        return self.config.active_color

    def update(self, gesture: Gesture, t: float, displacement: Vector3) -> VisualState:
        """
        Advance the visual parameters by one frame.

        Args:
            gesture: Gesture observed this frame
            t: Animation time
            displacement: Latest hand displacement

        Returns:
            VisualState for this frame
        """
        cfg = self.config
        self._color += (np.asarray(self.target_color(gesture)) - self._color) * cfg.color_blend

        if gesture is Gesture.LIKE:
            self._size = self.base_size + math.sin(t * cfg.size_pulse_frequency) * cfg.size_pulse_amplitude
        else:
            self._size = self.base_size

        self._translation += (np.asarray(displacement, dtype=np.float64) - self._translation) * cfg.elasticity

        return VisualState(
            color=tuple(float(c) for c in self._color),
            size=float(self._size),
            translation=tuple(float(v) for v in self._translation),
        )

    def push(self, renderer, positions: np.ndarray, visual: VisualState):
        """
        Hand the frame to the renderer.

        The renderer must expose ``set_positions``, mutable ``color``,
        ``size`` and ``position`` attributes, and ``render()``.

        Returns:
            Whatever ``renderer.render()`` returns
        """
        renderer.set_positions(positions)
        renderer.color = visual.color
        renderer.size = visual.size
        renderer.position = visual.translation
        return renderer.render()
