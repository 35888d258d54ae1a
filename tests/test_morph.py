"""
Tests for Morph Engine
=======================
"""

import sys
from pathlib import Path
from types import MappingProxyType

import numpy as np
import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gesture_particles.core.errors import ConfigurationError
from gesture_particles.core.types import Gesture
from gesture_particles.morph.engine import (
    AnimationClock,
    MorphConfig,
    MorphEngine,
    TimingConfig,
)
from gesture_particles.shapes.generator import ShapeLibrary

N = 500


def make_library(count: int = N, seed: int = 0) -> ShapeLibrary:
    """Small hand-built library: cloud, planet and one text target."""
    rng = np.random.default_rng(seed)
    shapes = {
        "cloud": (rng.random((count, 3)) - 0.5) * 60.0,
        "planet": (rng.random((count, 3)) - 0.5) * 30.0,
        "HELLO": (rng.random((count, 3)) - 0.5) * 10.0,
    }
    for name, points in shapes.items():
        points = points.astype(np.float32)
        points.setflags(write=False)
        shapes[name] = points
    return ShapeLibrary(
        shapes=MappingProxyType(shapes),
        bindings=MappingProxyType({Gesture.FIST: "planet", Gesture.PEACE: "HELLO"}),
        particle_count=count,
        text_scale=1.0,
        planet_scale=1.0,
    )


class TestMorphEngine:
    """Test suite for MorphEngine."""

    @pytest.fixture
    def library(self):
        return make_library()

    @pytest.fixture
    def engine(self, library):
        engine = MorphEngine(N, MorphConfig())
        engine.reset(library.cloud)
        return engine

    def test_converges_monotonically(self, engine, library):
        """Distance to a held target shrinks every frame."""
        target = library.planet
        initial = np.abs(engine.positions - target).max()
        previous = initial

        t = 0.0
        for _ in range(60):
            t += 0.01
            engine.step(Gesture.FIST, t, library)
            distance = np.abs(engine.positions - target).max()
            assert distance < previous
            previous = distance

        # 0.92 ** 60 is about 0.0067
        assert previous < 0.01 * initial

    def test_no_drift_at_bound_target(self, engine, library):
        engine.reset(library.planet)
        engine.step(Gesture.FIST, 1.0, library)
        np.testing.assert_array_equal(engine.positions, library.planet)

    def test_switching_targets(self, engine, library):
        for t in range(100):
            engine.step(Gesture.FIST, t * 0.01, library)
        for t in range(100):
            engine.step(Gesture.PEACE, t * 0.01, library)
        assert engine.last_target == "HELLO"
        assert np.abs(engine.positions - library["HELLO"]).max() < 0.01 * 30.0

    def test_idle_drift_is_bounded(self, engine, library):
        """At rest on the cloud, drift keeps particles moving near their cloud point."""
        t = 0.0
        for _ in range(300):
            t += 0.01
            engine.step(Gesture.NONE, t, library)

        offset = engine.positions - library.cloud
        assert np.abs(offset).max() <= 0.04 / 0.08 + 1e-3
        assert np.abs(offset).max() > 0.0
        assert engine.last_target == "cloud"

    def test_drift_applies_to_all_axes(self, engine, library):
        engine.step(Gesture.NONE, 0.5, library)
        offset = engine.positions - library.cloud
        np.testing.assert_allclose(offset[:, 0], offset[:, 1], atol=1e-5)
        np.testing.assert_allclose(offset[:, 1], offset[:, 2], atol=1e-5)

    def test_detected_heads_for_cloud(self, engine, library):
        engine.reset(library.planet)
        engine.step(Gesture.DETECTED, 0.0, library)
        assert engine.last_target == "cloud"
        before = np.abs(library.planet - library.cloud).max()
        assert np.abs(engine.positions - library.cloud).max() < before

    def test_positions_read_only(self, engine):
        with pytest.raises(ValueError):
            engine.positions[0, 0] = 1.0

    def test_buffer_is_updated_in_place(self, engine, library):
        view = engine.positions
        engine.step(Gesture.FIST, 0.01, library)
        assert engine.positions is view
        np.testing.assert_array_equal(view, engine.positions)

    def test_length_mismatch(self, engine):
        with pytest.raises(ValueError):
            engine.reset(np.zeros((N + 1, 3), dtype=np.float32))
        with pytest.raises(ValueError):
            engine.step(Gesture.FIST, 0.0, make_library(count=N - 1))

    def test_invalid_config(self):
        with pytest.raises(ConfigurationError):
            MorphEngine(0)
        with pytest.raises(ConfigurationError):
            MorphEngine(10, MorphConfig(smoothing=1.5))


class TestAnimationClock:
    """Test the animation time source."""

    def test_frame_mode(self):
        clock = AnimationClock(TimingConfig(mode="frame", time_step=0.01))
        for _ in range(3):
            clock.tick()
        assert clock.time == pytest.approx(0.03)
        assert clock.frames == 3

    def test_wall_mode_scales_to_reference_rate(self):
        times = iter([0.0, 1 / 60, 3 / 60])
        clock = AnimationClock(TimingConfig(mode="wall", time_step=0.01, reference_fps=60),
                               clock=lambda: next(times))
        assert clock.tick() == pytest.approx(0.01)
        assert clock.tick() == pytest.approx(0.02)
        # A slow frame advances time by two reference steps
        assert clock.tick() == pytest.approx(0.04)

    def test_time_is_monotonic(self):
        clock = AnimationClock()
        previous = clock.time
        for _ in range(10):
            now = clock.tick()
            assert now > previous
            previous = now

    def test_unknown_mode(self):
        with pytest.raises(ConfigurationError):
            AnimationClock(TimingConfig(mode="vsync"))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
