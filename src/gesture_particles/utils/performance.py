"""
Performance Monitoring Module
==============================

Rolling frame rate and per-stage timings for the render loop.
"""

import time
import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, Callable
from collections import deque
from contextlib import contextmanager
import threading

logger = logging.getLogger(__name__)


class Timer:
    """
    High-precision timer for measuring code execution time.

    Can be used as a context manager or decorator.

    Example:
        >>> with Timer("regenerate") as t:
        ...     generator.generate(15000, scale, 1.0)
        >>> print(f"Took {t.elapsed_ms:.2f}ms")
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._start_time: Optional[float] = None
        self._end_time: Optional[float] = None
        self._elapsed: float = 0.0

    def start(self) -> "Timer":
        """Start the timer."""
        self._start_time = time.perf_counter()
        self._end_time = None
        return self

    def stop(self) -> float:
        """Stop the timer and return elapsed time in seconds."""
        self._end_time = time.perf_counter()
        if self._start_time is not None:
            self._elapsed = self._end_time - self._start_time
        return self._elapsed

    @property
    def elapsed(self) -> float:
        """Elapsed time in seconds (running time if not stopped)."""
        if self._start_time is None:
            return 0.0
        if self._end_time is None:
            return time.perf_counter() - self._start_time
        return self._elapsed

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed * 1000

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

    @staticmethod
    def decorate(name: str = ""):
        """Decorator factory for timing functions."""
        def decorator(func: Callable):
            def wrapper(*args, **kwargs):
                with Timer(name or func.__name__) as t:
                    result = func(*args, **kwargs)
                logger.debug("%s: %.2fms", t.name, t.elapsed_ms)
                return result
            return wrapper
        return decorator


@dataclass
class PerformanceMetrics:
    """Snapshot of render loop performance."""
    fps: float = 0.0
    frame_time_ms: float = 0.0
    stage_times_ms: Dict[str, float] = field(default_factory=dict)
    total_frames: int = 0
    dropped_frames: int = 0


class PerformanceMonitor:
    """
    Rolling performance statistics for the render loop.

    Tracks frame rate, per-stage time (e.g. "mailbox", "morph", "present",
    "regenerate") and frames that overran the target frame budget.

    Example:
        >>> monitor = PerformanceMonitor()
        >>> monitor.start()
        >>> while running:
        ...     monitor.frame_start()
        ...     with monitor.measure("morph"):
        ...         engine.step(gesture, t, shapes)
        ...     monitor.frame_complete()
    """

    def __init__(self, window_size: int = 60, target_fps: float = 60.0):
        """
        Initialize performance monitor.

        Args:
            window_size: Number of frames for rolling averages
            target_fps: Frames slower than 1/target_fps count as dropped
        """
        self.window_size = window_size
        self.target_fps = target_fps
        self._frame_times: deque = deque(maxlen=window_size)
        self._stage_times: Dict[str, deque] = {}
        self._frame_start: Optional[float] = None
        self._total_frames: int = 0
        self._dropped_frames: int = 0
        self._lock = threading.Lock()

    def start(self) -> None:
        """Reset counters and start monitoring."""
        self._total_frames = 0
        self._dropped_frames = 0
        self._frame_times.clear()
        self._stage_times.clear()
        logger.info("Performance monitor started (target %.0f fps)", self.target_fps)

    def stop(self) -> None:
        logger.info("Performance monitor stopped. Total frames: %d, dropped: %d",
                    self._total_frames, self._dropped_frames)

    def frame_start(self) -> None:
        """Mark the start of a frame."""
        self._frame_start = time.perf_counter()

    def frame_complete(self) -> None:
        """Mark the frame complete and update metrics."""
        if self._frame_start is None:
            return

        frame_time = time.perf_counter() - self._frame_start
        with self._lock:
            self._frame_times.append(frame_time)
            self._total_frames += 1
            if frame_time > (1.0 / self.target_fps):
                self._dropped_frames += 1
        self._frame_start = None

    @contextmanager
    def measure(self, stage: str):
        """Context manager timing one stage of the frame."""
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            with self._lock:
                if stage not in self._stage_times:
                    self._stage_times[stage] = deque(maxlen=self.window_size)
                self._stage_times[stage].append(elapsed)

    @property
    def fps(self) -> float:
        """Current FPS (rolling average)."""
        with self._lock:
            if not self._frame_times:
                return 0.0
            avg_frame_time = sum(self._frame_times) / len(self._frame_times)
            return 1.0 / avg_frame_time if avg_frame_time > 0 else 0.0

    @property
    def frame_time_ms(self) -> float:
        with self._lock:
            if not self._frame_times:
                return 0.0
            return (sum(self._frame_times) / len(self._frame_times)) * 1000

    def stage_time_ms(self, stage: str) -> float:
        """Average time for a stage in milliseconds (0 if never measured)."""
        with self._lock:
            times = self._stage_times.get(stage)
            if not times:
                return 0.0
            return (sum(times) / len(times)) * 1000

    def get_metrics(self) -> PerformanceMetrics:
        with self._lock:
            stages = list(self._stage_times)
        return PerformanceMetrics(
            fps=self.fps,
            frame_time_ms=self.frame_time_ms,
            stage_times_ms={stage: self.stage_time_ms(stage) for stage in stages},
            total_frames=self._total_frames,
            dropped_frames=self._dropped_frames,
        )

    def get_report(self) -> str:
        """Formatted performance report."""
        metrics = self.get_metrics()
        status = "OK" if metrics.fps >= self.target_fps else "SLOW"

        lines = [
            f"Performance Report [{status}]",
            "=" * 40,
            f"FPS: {metrics.fps:.1f} (target: >={self.target_fps:.0f})",
            f"Frame time: {metrics.frame_time_ms:.2f}ms",
            "",
            "Per-Stage Breakdown:",
        ]
        for stage, ms in metrics.stage_times_ms.items():
            lines.append(f"  {stage}: {ms:.2f}ms")
        dropped_pct = 100 * metrics.dropped_frames / max(1, metrics.total_frames)
        lines += [
            "",
            "Frame Stats:",
            f"  Total: {metrics.total_frames}",
            f"  Dropped: {metrics.dropped_frames} ({dropped_pct:.1f}%)",
        ]
        return "\n".join(lines) + "\n"
