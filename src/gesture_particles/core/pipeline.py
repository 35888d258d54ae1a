"""
Animation pipeline: the explicit context shared by the landmark handler
and the render loop.

Architecture:
    Camera thread -> HandDetector -> handle_landmarks()
        -> GestureClassifier -> GestureDwellFilter -> Mailbox
    Render loop -> tick()
        -> Mailbox.latest() -> MorphEngine -> PresentationAdapter -> renderer

The landmark side only ever writes complete GestureState snapshots into
the mailbox; the render side reads one snapshot per frame. Shape libraries
are swapped by a single assignment after they are fully built, so a frame
always morphs toward one complete generation.
"""

import logging
from typing import Optional

from ..detection.landmarks import LandmarkFrame
from ..morph.engine import AnimationClock, MorphEngine
from ..recognition.gesture_buffer import GestureDwellFilter
from ..recognition.gesture_classifier import GestureClassifier
from ..render.presentation import PresentationAdapter, VisualState
from ..shapes.generator import ShapeGenerator, ShapeLibrary, responsive_scale
from ..utils.logger import GestureLogger
from ..utils.performance import PerformanceMonitor
from .mailbox import Mailbox
from .types import DeviceProfile, Gesture, GestureState

logger = logging.getLogger(__name__)


class FrameResult:
    """Result of a single render tick."""

    __slots__ = ("frame", "gesture", "state", "visual", "time", "frame_index")

    def __init__(self, frame, gesture: Gesture, state: GestureState,
                 visual: VisualState, time: float, frame_index: int):
        self.frame = frame
        self.gesture = gesture
        self.state = state
        self.visual = visual
        self.time = time
        self.frame_index = frame_index


class AnimationPipeline:
    """
    Owns everything one animation session needs.

    Example:
        >>> pipeline = AnimationPipeline(profile, generator, engine, presenter,
        ...                              clock, classifier)
        >>> pipeline.regenerate(renderer.fov, renderer.aspect, renderer.camera_z)
        >>> detector.on_result(pipeline.handle_landmarks)
        >>> while running:
        ...     pipeline.tick(renderer)
    """

    def __init__(
        self,
        profile: DeviceProfile,
        generator: ShapeGenerator,
        engine: MorphEngine,
        presenter: PresentationAdapter,
        clock: AnimationClock,
        classifier: GestureClassifier,
        dwell_filter: Optional[GestureDwellFilter] = None,
        performance_monitor: Optional[PerformanceMonitor] = None,
        gesture_logger: Optional[GestureLogger] = None,
    ):
        if engine.particle_count != profile.particle_count:
            raise ValueError(f"Engine holds {engine.particle_count} particles, "
                             f"profile expects {profile.particle_count}")
        self.profile = profile
        self._generator = generator
        self._engine = engine
        self._presenter = presenter
        self._clock = clock
        self._classifier = classifier
        self._dwell = dwell_filter or GestureDwellFilter()
        self._perf = performance_monitor or PerformanceMonitor()
        self._gesture_logger = gesture_logger or GestureLogger()

        self.mailbox: Mailbox[GestureState] = Mailbox(GestureState.idle())
        self._shapes: Optional[ShapeLibrary] = None
        self._forced: Optional[Gesture] = None
        self._frame_index = 0

    @property
    def shapes(self) -> Optional[ShapeLibrary]:
        return self._shapes

    @property
    def engine(self) -> MorphEngine:
        return self._engine

    @property
    def clock(self) -> AnimationClock:
        return self._clock

    # -------------------------------------------------------------------------
    # Shapes
    # -------------------------------------------------------------------------

    def regenerate(self, fov: float, aspect: float, camera_z: float) -> ShapeLibrary:
        """
        Rebuild every target shape for a new viewport and swap it in.

        Called at startup and from the renderer's resize hook on the render
        thread, so it completes before the next tick reads the shapes.
        """
        canvas_width = self._generator.rasterizer.size[0]
        scale = responsive_scale(fov, aspect, camera_z, canvas_width,
                                 self._generator.config.text_fill)
        with self._perf.measure("regenerate"):
            library = self._generator.generate(self.profile.particle_count, scale,
                                               self.profile.planet_scale)
        self._shapes = library
        return library

    # -------------------------------------------------------------------------
    # Landmark side
    # -------------------------------------------------------------------------

    def handle_landmarks(self, frame: LandmarkFrame) -> GestureState:
        """Classify a landmark frame and publish the result (landmark thread)."""
        state = self._dwell.update(self._classifier.update(frame))
        self.mailbox.post(state)
        return state

    def force_gesture(self, gesture: Optional[Gesture]) -> None:
        """Override tracked gestures (None returns to tracked input)."""
        if gesture != self._forced:
            logger.info("Gesture override: %s", gesture.value if gesture else "off")
        self._forced = gesture

    # -------------------------------------------------------------------------
    # Render side
    # -------------------------------------------------------------------------

    def tick(self, renderer) -> FrameResult:
        """
        Advance and draw one frame.

        Args:
            renderer: Scene host receiving positions and visual parameters

        Returns:
            FrameResult describing what was drawn
        """
        if self._shapes is None:
            raise RuntimeError("regenerate() must run before the first tick")

        with self._perf.measure("mailbox"):
            state = self.mailbox.latest()
        gesture = self._forced or state.gesture
        shapes = self._shapes
        t = self._clock.tick()

        with self._perf.measure("morph"):
            self._engine.step(gesture, t, shapes)

        self._gesture_logger.observe(gesture.value, state.displacement)

        with self._perf.measure("present"):
            visual = self._presenter.update(gesture, t, state.displacement)
            frame = self._presenter.push(renderer, self._engine.positions, visual)

        self._frame_index += 1
        return FrameResult(frame, gesture, state, visual, t, self._frame_index)
