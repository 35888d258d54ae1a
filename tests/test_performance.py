"""
Tests for Performance Module
=============================
"""

import pytest
import time
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gesture_particles.utils.logger import GestureLogger
from gesture_particles.utils.performance import PerformanceMonitor, Timer


class TestTimer:
    """Test suite for Timer class."""

    def test_context_manager(self):
        """Test timer as context manager."""
        with Timer("regenerate") as t:
            time.sleep(0.05)

        assert t.elapsed >= 0.04
        assert t.elapsed_ms >= 40

    def test_elapsed_without_stop(self):
        """Running timers report time so far."""
        timer = Timer("morph").start()
        time.sleep(0.02)
        assert timer.elapsed >= 0.015

    def test_unstarted_timer(self):
        assert Timer().elapsed == 0.0

    def test_decorate(self):
        @Timer.decorate("step")
        def step(x):
            return x * 2

        assert step(21) == 42


class TestPerformanceMonitor:
    """Test suite for PerformanceMonitor class."""

    @pytest.fixture
    def monitor(self):
        """Create performance monitor."""
        mon = PerformanceMonitor(window_size=5, target_fps=60.0)
        mon.start()
        return mon

    def test_fps_calculation(self, monitor):
        """Simulated ~30 FPS loop."""
        for _ in range(10):
            monitor.frame_start()
            time.sleep(0.033)
            monitor.frame_complete()

        assert 20 < monitor.fps < 35

    def test_stage_timing(self, monitor):
        """Test per-stage timing."""
        for _ in range(5):
            monitor.frame_start()
            with monitor.measure("morph"):
                time.sleep(0.005)
            with monitor.measure("present"):
                time.sleep(0.010)
            monitor.frame_complete()

        morph_time = monitor.stage_time_ms("morph")
        present_time = monitor.stage_time_ms("present")

        assert morph_time >= 4
        assert present_time >= 9
        assert present_time > morph_time
        assert monitor.stage_time_ms("regenerate") == 0.0

    def test_slow_frames_counted_as_dropped(self, monitor):
        monitor.frame_start()
        time.sleep(0.03)
        monitor.frame_complete()

        metrics = monitor.get_metrics()
        assert metrics.total_frames == 1
        assert metrics.dropped_frames == 1

    def test_frame_complete_without_start(self, monitor):
        monitor.frame_complete()
        assert monitor.get_metrics().total_frames == 0

    def test_report_generation(self, monitor):
        monitor.frame_start()
        with monitor.measure("morph"):
            pass
        monitor.frame_complete()

        report = monitor.get_report()

        assert "Performance Report" in report
        assert "FPS" in report
        assert "morph" in report

    def test_start_resets(self, monitor):
        monitor.frame_start()
        monitor.frame_complete()
        monitor.start()
        assert monitor.get_metrics().total_frames == 0
        assert monitor.fps == 0.0


class TestGestureLogger:
    """Test gesture transition logging."""

    def test_only_transitions_recorded(self):
        gesture_logger = GestureLogger()
        assert gesture_logger.observe("none")
        assert not gesture_logger.observe("none")
        assert gesture_logger.observe("peace", (1.0, 0.0, 0.0))

        history = gesture_logger.get_history()
        assert [entry["gesture"] for entry in history] == ["none", "peace"]
        assert history[1]["previous"] == "none"
        assert gesture_logger.total_transitions == 2

    def test_history_is_bounded(self):
        gesture_logger = GestureLogger(max_history=3)
        for name in ["a", "b", "c", "d", "e"]:
            gesture_logger.observe(name)
        assert [entry["gesture"] for entry in gesture_logger.get_history()] == ["c", "d", "e"]
        assert len(gesture_logger.get_history(last_n=2)) == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
