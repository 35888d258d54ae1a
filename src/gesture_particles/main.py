"""
Gesture Particles - Main Application
=====================================

Entry point wiring camera, hand tracking, gesture recognition, particle
morphing and rendering together.
"""

import argparse
import logging
import signal
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import cv2
import numpy as np
import yaml

from .capture.camera import Camera, CameraConfig
from .core.errors import GestureParticlesError
from .core.pipeline import AnimationPipeline
from .core.types import DeviceProfile, Gesture, resolve_device_profile
from .morph.engine import AnimationClock, MorphConfig, MorphEngine, TimingConfig
from .recognition.gesture_buffer import GestureDwellConfig, GestureDwellFilter
from .recognition.gesture_classifier import GestureClassifier, GestureClassifierConfig
from .render.point_renderer import PointCloudRenderer, RendererConfig
from .render.presentation import PresentationAdapter, PresentationConfig
from .shapes.generator import ShapeGenerator, ShapeGeneratorConfig
from .shapes.rasterizer import TextRasterizer, TextRasterizerConfig
from .utils.logger import GestureLogger, setup_logging
from .utils.performance import PerformanceMonitor

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "config.yaml"

# Keyboard overrides for running without a camera
KEY_GESTURES = {
    ord("1"): Gesture.PEACE,
    ord("2"): Gesture.ROCK,
    ord("3"): Gesture.LIKE,
    ord("4"): Gesture.FIST,
    ord("5"): Gesture.DETECTED,
}


@dataclass
class AppConfig:
    """Application configuration container."""
    device: DeviceProfile
    camera: CameraConfig
    mediapipe: dict
    recognition: GestureClassifierConfig
    dwell: GestureDwellConfig
    rasterizer: TextRasterizerConfig
    shapes: ShapeGeneratorConfig
    morph: MorphConfig
    timing: TimingConfig
    presentation: PresentationConfig
    renderer: RendererConfig
    logging: dict
    target_fps: float = 60.0


def load_config(config_path) -> dict:
    """Load configuration from a YAML file."""
    with open(config_path, "r") as f:
        return yaml.safe_load(f) or {}


def create_app_config(config_dict: dict) -> AppConfig:
    """Create AppConfig from configuration dictionary."""
    shapes = config_dict.get("shapes", {})
    return AppConfig(
        device=resolve_device_profile(config_dict.get("device", {})),
        camera=CameraConfig.from_dict(config_dict.get("camera", {})),
        mediapipe=config_dict.get("mediapipe", {}),
        recognition=GestureClassifierConfig.from_dict(config_dict.get("recognition", {})),
        dwell=GestureDwellConfig.from_dict(config_dict.get("recognition", {})),
        rasterizer=TextRasterizerConfig.from_dict(shapes),
        shapes=ShapeGeneratorConfig.from_dict(shapes),
        morph=MorphConfig.from_dict(config_dict.get("morph", {})),
        timing=TimingConfig.from_dict(config_dict.get("timing", {})),
        presentation=PresentationConfig.from_dict(config_dict.get("presentation", {})),
        renderer=RendererConfig.from_dict(config_dict.get("renderer", {})),
        logging=config_dict.get("logging", {}),
        target_fps=config_dict.get("performance", {}).get("target_fps", 60.0),
    )


def build_pipeline(config: AppConfig, rng: Optional[np.random.Generator] = None,
                   performance_monitor: Optional[PerformanceMonitor] = None) -> AnimationPipeline:
    """Assemble an AnimationPipeline from configuration."""
    profile = config.device
    generator = ShapeGenerator(config.shapes, TextRasterizer(config.rasterizer), rng)
    return AnimationPipeline(
        profile=profile,
        generator=generator,
        engine=MorphEngine(profile.particle_count, config.morph),
        presenter=PresentationAdapter(config.presentation, base_size=profile.point_size),
        clock=AnimationClock(config.timing),
        classifier=GestureClassifier(config.recognition),
        dwell_filter=GestureDwellFilter(config.dwell),
        performance_monitor=performance_monitor,
        gesture_logger=GestureLogger(),
    )


class ParticleApplication:
    """
    Main application class.

    Coordinates:
    - Camera capture (background thread)
    - Hand tracking (MediaPipe, result callback)
    - Gesture classification -> mailbox
    - Render loop: morph, presentation, OpenCV window
    """

    def __init__(self, config: AppConfig, use_camera: bool = True,
                 rng: Optional[np.random.Generator] = None):
        self.config = config
        self.use_camera = use_camera
        self.performance = PerformanceMonitor(target_fps=config.target_fps)
        self.renderer = PointCloudRenderer(config.renderer)
        self.pipeline = build_pipeline(config, rng, self.performance)

        self.camera: Optional[Camera] = None
        self.detector = None
        self._running = False
        self._show_hud = True
        self._last_gesture = Gesture.NONE

    def _on_resize(self, width: int, height: int) -> None:
        self.pipeline.regenerate(self.renderer.fov, self.renderer.aspect, self.renderer.camera_z)

    def start(self) -> bool:
        """Start all components."""
        logger.info("Starting Gesture Particles (%s tier, %d particles)...",
                    self.config.device.tier, self.config.device.particle_count)

        self.pipeline.regenerate(self.renderer.fov, self.renderer.aspect, self.renderer.camera_z)
        self.renderer.on_resize(self._on_resize)

        if self.use_camera:
            # Imported lazily so --no-camera works without MediaPipe
            from .detection.hand_detector import HandDetector, HandDetectorConfig

            self.detector = HandDetector(HandDetectorConfig.from_dict(self.config.mediapipe))
            self.detector.on_result(self.pipeline.handle_landmarks)
            if not self.detector.start():
                logger.error("Failed to start hand detector")
                return False

            self.camera = Camera(self.config.camera)
            self.camera.on_frame(lambda frame: self.detector.process(frame.rgb, frame.timestamp_ms))
            if not self.camera.start():
                logger.error("Failed to start camera")
                self.detector.stop()
                return False
        else:
            logger.info("Camera disabled; use keys 1-5 to pick gestures")

        self.renderer.open()
        self.performance.start()
        self._running = True
        logger.info("Gesture Particles started")
        return True

    def stop(self) -> None:
        """Stop all components."""
        logger.info("Stopping Gesture Particles...")
        self._running = False
        if self.camera:
            self.camera.stop()
        if self.detector:
            self.detector.stop()
        self.renderer.close()
        self.performance.stop()

    def run(self) -> None:
        """Run until the window is closed or a quit key/signal arrives."""
        if not self.start():
            return

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        try:
            self._main_loop()
        finally:
            self.stop()
            print(self.performance.get_report())

    def _main_loop(self) -> None:
        while self._running:
            self.performance.frame_start()

            self.renderer.poll_resize()
            if self._show_hud:
                self.renderer.overlay = self._hud_lines()
            else:
                self.renderer.overlay = ()
            result = self.pipeline.tick(self.renderer)
            self._last_gesture = result.gesture

            self.performance.frame_complete()

            key = cv2.waitKey(1) & 0xFF
            if key in (ord("q"), 27) or self.renderer.window_closed:
                self._running = False
            elif key == ord("p"):
                print(self.performance.get_report())
            elif key == ord("h"):
                self._show_hud = not self._show_hud
            elif key == ord("0"):
                self.pipeline.force_gesture(None)
            elif key in KEY_GESTURES:
                self.pipeline.force_gesture(KEY_GESTURES[key])

    def _hud_lines(self):
        return [
            f"FPS: {self.performance.fps:.1f}",
            f"Gesture: {self._last_gesture.value}",
        ]

    def _signal_handler(self, signum, frame) -> None:
        logger.info("Received signal %d, shutting down...", signum)
        self._running = False


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Hand-gesture driven particle morphing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Gestures:
  peace (index+middle)  - "WILL YOU"
  rock (index+pinky)    - "BE MY"
  like (thumb up)       - "VALENTINE?"
  fist                  - planet
  no hand / other       - drifting cloud

Keyboard Controls:
  q/ESC     - Quit
  1-5       - Force peace/rock/like/fist/detected
  0         - Back to tracked gestures
  h         - Toggle HUD
  p         - Print performance report
        """,
    )
    parser.add_argument("--config", "-c", default=str(DEFAULT_CONFIG_PATH),
                        help="Path to configuration file")
    parser.add_argument("--tier", choices=["auto", "desktop", "constrained"],
                        help="Override the device tier")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for the random planet ring and cloud")
    parser.add_argument("--no-camera", action="store_true",
                        help="Run without camera and hand tracking")
    parser.add_argument("--debug", "-d", action="store_true",
                        help="Enable debug logging")
    args = parser.parse_args(argv)

    config_path = Path(args.config)
    if config_path.exists():
        config_dict = load_config(config_path)
    else:
        config_dict = {}

    log_cfg = config_dict.get("logging", {})
    setup_logging(
        level="DEBUG" if args.debug else log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )
    if config_path.exists():
        logger.info("Loaded configuration from %s", config_path)
    else:
        logger.warning("Config file not found: %s, using defaults", config_path)

    if args.tier:
        config_dict.setdefault("device", {})["tier"] = args.tier

    try:
        app_config = create_app_config(config_dict)
        app = ParticleApplication(app_config, use_camera=not args.no_camera,
                                  rng=np.random.default_rng(args.seed))
        app.run()
    except GestureParticlesError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
