"""
Shape Generator
================

Builds the target point sets the particles morph between:

- text shapes sampled from rasterized strings,
- a planet made of a Fibonacci-style sphere core and a flat ring,
- a dispersed cloud used as the idle target.

Every point set is a read-only ``(N, 3)`` float32 array index-aligned with
the live particle buffer. A full set of shapes is bundled into an immutable
``ShapeLibrary`` so a resize can swap all of them in one assignment.
"""

import math
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional

import numpy as np

from ..core.errors import ShapeGenerationError
from ..core.types import Gesture
from ..utils.logger import log_timing
from .rasterizer import TextRasterizer

logger = logging.getLogger(__name__)

PLANET = "planet"
CLOUD = "cloud"


@dataclass
class ShapeGeneratorConfig:
    """Target shape settings."""
    # Gesture name -> text drawn for that gesture
    texts: Dict[str, str] = field(default_factory=lambda: {
        "peace": "WILL YOU",
        "rock": "BE MY",
        "like": "VALENTINE?",
    })
    planet_gesture: str = "fist"
    sample_stride: int = 2
    luminance_threshold: int = 128
    text_fill: float = 0.8              # Fraction of viewport width spanned by text
    cloud_extent: float = 30.0          # Half-extent of the idle cloud cube
    core_fraction: float = 0.4
    core_radius: float = 15.0
    ring_inner_radius: float = 20.0
    ring_outer_radius: float = 26.0
    ring_thickness: float = 0.3         # Half-height of the ring disk

    @classmethod
    def from_dict(cls, config: dict) -> "ShapeGeneratorConfig":
        """Create config from dictionary."""
        defaults = cls()
        return cls(
            texts=dict(config.get("texts", defaults.texts)),
            planet_gesture=config.get("planet_gesture", "fist"),
            sample_stride=config.get("sample_stride", 2),
            luminance_threshold=config.get("luminance_threshold", 128),
            text_fill=config.get("text_fill", 0.8),
            cloud_extent=config.get("cloud_extent", 30.0),
            core_fraction=config.get("core_fraction", 0.4),
            core_radius=config.get("core_radius", 15.0),
            ring_inner_radius=config.get("ring_inner_radius", 20.0),
            ring_outer_radius=config.get("ring_outer_radius", 26.0),
            ring_thickness=config.get("ring_thickness", 0.3),
        )


# =============================================================================
# Point set primitives
# =============================================================================

def _freeze(points: np.ndarray) -> np.ndarray:
    points = np.ascontiguousarray(points, dtype=np.float32)
    points.setflags(write=False)
    return points


def responsive_scale(fov_deg: float, aspect: float, camera_z: float,
                     canvas_width: int = 512, fill: float = 0.8) -> float:
    """
    World units per canvas pixel so that text spans ``fill`` of the view.

    Args:
        fov_deg: Vertical field of view of the camera in degrees
        aspect: Viewport width / height
        camera_z: Distance from the camera to the z=0 plane
        canvas_width: Width of the text canvas in pixels
        fill: Fraction of the visible width the canvas should cover

    Returns:
        Scale factor applied to canvas coordinates
    """
    if aspect <= 0 or camera_z <= 0:
        raise ValueError(f"aspect and camera_z must be positive (got {aspect}, {camera_z})")
    visible_height = 2.0 * math.tan(math.radians(fov_deg) / 2.0) * camera_z
    visible_width = visible_height * aspect
    return (visible_width / canvas_width) * fill


def sample_foreground(bitmap: np.ndarray, stride: int = 2,
                      threshold: int = 128) -> np.ndarray:
    """
    Scan an RGBA bitmap on an even grid and collect foreground positions.

    Samples are returned row by row (y outer, x inner) as an ``(M, 2)``
    int array of canvas ``(x, y)`` coordinates. A sample is foreground when
    its red channel exceeds ``threshold``.
    """
    red = bitmap[::stride, ::stride, 0]
    rows, cols = np.nonzero(red > threshold)
    return np.stack([cols * stride, rows * stride], axis=1)


def text_points(samples: np.ndarray, count: int, scale: float,
                canvas_size=(512, 128)) -> np.ndarray:
    """
    Turn foreground samples into exactly ``count`` world-space points.

    Coordinates are centered on the canvas midpoint, scaled by ``scale`` and
    flipped so canvas-down becomes world-up. When there are fewer samples
    than points the samples are reused cyclically, so point ``i`` is sample
    ``i % M`` and repeated positions are expected.

    Raises:
        ShapeGenerationError: If there are no samples to draw from
    """
    if len(samples) == 0:
        raise ShapeGenerationError("Text produced no foreground pixels to sample")

    half_w, half_h = canvas_size[0] / 2.0, canvas_size[1] / 2.0
    picked = samples[np.arange(count) % len(samples)]
    points = np.zeros((count, 3), dtype=np.float32)
    points[:, 0] = (picked[:, 0] - half_w) * scale
    points[:, 1] = (half_h - picked[:, 1]) * scale
    return _freeze(points)


def planet_points(count: int, scale: float, rng: np.random.Generator,
                  core_fraction: float = 0.4, core_radius: float = 15.0,
                  ring_radii=(20.0, 26.0), ring_thickness: float = 0.3) -> np.ndarray:
    """
    Sphere core plus flat ring.

    Core point ``i`` (for ``i < core_fraction * count``) sits on a sphere of
    radius ``core_radius * scale`` at polar angle
    ``phi = acos(-1 + 2i / core_extent)`` and azimuth
    ``theta = sqrt(core_extent * pi) * phi``. Ring points take a random
    azimuth, a radius drawn from ``ring_radii * scale`` and a small vertical
    jitter.
    """
    core_extent = count * core_fraction
    core_count = min(count, int(math.ceil(core_extent)))
    points = np.zeros((count, 3), dtype=np.float32)

    if core_count:
        i = np.arange(core_count, dtype=np.float64)
        phi = np.arccos(np.clip(-1.0 + 2.0 * i / core_extent, -1.0, 1.0))
        theta = math.sqrt(core_extent * math.pi) * phi
        radius = core_radius * scale
        points[:core_count, 0] = radius * np.sin(phi) * np.sin(theta)
        points[:core_count, 1] = radius * np.cos(phi)
        points[:core_count, 2] = radius * np.sin(phi) * np.cos(theta)

    ring_count = count - core_count
    if ring_count:
        inner, outer = ring_radii
        angle = rng.random(ring_count) * 2.0 * math.pi
        radius = (inner + rng.random(ring_count) * (outer - inner)) * scale
        points[core_count:, 0] = np.cos(angle) * radius
        points[core_count:, 1] = (rng.random(ring_count) - 0.5) * 2.0 * ring_thickness * scale
        points[core_count:, 2] = np.sin(angle) * radius

    return _freeze(points)


def cloud_points(count: int, rng: np.random.Generator, extent: float = 30.0) -> np.ndarray:
    """Uniform random points in the cube ``[-extent, extent]^3``."""
    return _freeze((rng.random((count, 3)) - 0.5) * 2.0 * extent)


# =============================================================================
# Shape library
# =============================================================================

@dataclass(frozen=True)
class ShapeLibrary:
    """A complete, immutable generation of target shapes.

    Attributes:
        shapes: Shape name -> point set
        bindings: Gesture -> shape name it morphs toward
        particle_count: Length of every point set
        text_scale: Responsive scale the text shapes were built with
        planet_scale: Device scale the planet was built with
    """
    shapes: Mapping[str, np.ndarray]
    bindings: Mapping[Gesture, str]
    particle_count: int
    text_scale: float
    planet_scale: float

    @property
    def cloud(self) -> np.ndarray:
        return self.shapes[CLOUD]

    @property
    def planet(self) -> np.ndarray:
        return self.shapes[PLANET]

    def target_for(self, gesture: Gesture) -> Optional[np.ndarray]:
        """Point set bound to a gesture, or None when the gesture has no target."""
        name = self.bindings.get(gesture)
        return self.shapes[name] if name is not None else None

    def __getitem__(self, name: str) -> np.ndarray:
        return self.shapes[name]


def _bindable_gesture(name: str) -> Gesture:
    """Resolve a configured gesture name that may own a target shape."""
    try:
        gesture = Gesture(name)
    except ValueError:
        raise ShapeGenerationError(f"Unknown gesture '{name}'") from None
    if gesture in (Gesture.NONE, Gesture.DETECTED):
        raise ShapeGenerationError(f"Gesture '{name}' cannot be bound to a shape")
    return gesture


class ShapeGenerator:
    """
    Produces ShapeLibrary generations for a fixed particle count.

    Rasterization does not depend on the viewport, so foreground samples are
    computed once per text and only rescaled on later generations.

    Example:
        >>> generator = ShapeGenerator(ShapeGeneratorConfig(), TextRasterizer())
        >>> library = generator.generate(15000, text_scale=0.07, planet_scale=1.0)
        >>> library.target_for(Gesture.FIST).shape
        (15000, 3)
    """

    def __init__(self, config: ShapeGeneratorConfig = None,
                 rasterizer: TextRasterizer = None,
                 rng: Optional[np.random.Generator] = None):
        self.config = config or ShapeGeneratorConfig()
        self.rasterizer = rasterizer or TextRasterizer()
        self._rng = rng if rng is not None else np.random.default_rng()
        self._samples: Dict[str, np.ndarray] = {}

        self._bindings = {_bindable_gesture(self.config.planet_gesture): PLANET}
        for gesture_name, text in self.config.texts.items():
            if text in (PLANET, CLOUD):
                raise ShapeGenerationError(
                    f"Text '{text}' collides with a built-in shape name")
            gesture = _bindable_gesture(gesture_name)
            if gesture in self._bindings:
                raise ShapeGenerationError(
                    f"Gesture '{gesture_name}' is bound to more than one shape")
            self._bindings[gesture] = text

    def samples_for(self, text: str) -> np.ndarray:
        """Foreground samples of a text, rasterized on first use."""
        if text not in self._samples:
            bitmap = self.rasterizer.rasterize(text)
            samples = sample_foreground(bitmap, self.config.sample_stride,
                                        self.config.luminance_threshold)
            if len(samples) == 0:
                raise ShapeGenerationError(
                    f"Text '{text}' rasterized to zero foreground pixels; "
                    f"check the font and canvas settings")
            logger.debug("Text '%s': %d foreground samples", text, len(samples))
            self._samples[text] = samples
        return self._samples[text]

    @log_timing
    def generate(self, particle_count: int, text_scale: float,
                 planet_scale: float) -> ShapeLibrary:
        """
        Build every target shape for the given scales.

        Args:
            particle_count: Number of points in every set
            text_scale: Responsive world units per canvas pixel
            planet_scale: Device tier scale for the planet

        Returns:
            A new ShapeLibrary; nothing from a previous generation is reused
            except the cached text samples
        """
        if particle_count <= 0:
            raise ValueError(f"particle_count must be positive, got {particle_count}")
        if text_scale <= 0 or planet_scale <= 0:
            raise ValueError(f"scales must be positive (got {text_scale}, {planet_scale})")

        cfg = self.config
        shapes = {}
        for text in cfg.texts.values():
            shapes[text] = text_points(self.samples_for(text), particle_count,
                                       text_scale, self.rasterizer.size)

        shapes[PLANET] = planet_points(
            particle_count, planet_scale, self._rng,
            core_fraction=cfg.core_fraction,
            core_radius=cfg.core_radius,
            ring_radii=(cfg.ring_inner_radius, cfg.ring_outer_radius),
            ring_thickness=cfg.ring_thickness,
        )
        shapes[CLOUD] = cloud_points(particle_count, self._rng, cfg.cloud_extent)

        logger.info("Generated %d shapes (%d points, text scale %.4f)",
                    len(shapes), particle_count, text_scale)
        return ShapeLibrary(
            shapes=MappingProxyType(shapes),
            bindings=MappingProxyType(dict(self._bindings)),
            particle_count=particle_count,
            text_scale=text_scale,
            planet_scale=planet_scale,
        )
