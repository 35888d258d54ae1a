"""
Tests for the Animation Pipeline
=================================
"""

import sys
import threading
from pathlib import Path

import numpy as np
import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from conftest import StripeRasterizer
from test_gestures import create_mock_landmarks
from gesture_particles.core.mailbox import Mailbox
from gesture_particles.core.pipeline import AnimationPipeline
from gesture_particles.core.types import DeviceProfile, Gesture, GestureState
from gesture_particles.detection.landmarks import LandmarkFrame
from gesture_particles.morph.engine import AnimationClock, MorphEngine
from gesture_particles.recognition.gesture_buffer import GestureDwellConfig, GestureDwellFilter
from gesture_particles.recognition.gesture_classifier import GestureClassifier
from gesture_particles.render.presentation import PresentationAdapter
from gesture_particles.shapes.generator import ShapeGenerator, ShapeGeneratorConfig

COUNT = 200


def make_pipeline(dwell_ms: int = 0, count: int = COUNT) -> AnimationPipeline:
    profile = DeviceProfile(tier="desktop", particle_count=COUNT,
                            point_size=0.15, planet_scale=1.0)
    generator = ShapeGenerator(ShapeGeneratorConfig(texts={"peace": "A", "rock": "B", "like": "C"}),
                               StripeRasterizer(samples=20), np.random.default_rng(7))
    return AnimationPipeline(
        profile=profile,
        generator=generator,
        engine=MorphEngine(count),
        presenter=PresentationAdapter(base_size=profile.point_size),
        clock=AnimationClock(),
        classifier=GestureClassifier(),
        dwell_filter=GestureDwellFilter(GestureDwellConfig(dwell_ms=dwell_ms)),
    )


class TestMailbox:
    """Test the single-slot mailbox."""

    def test_initial_value(self):
        box = Mailbox(GestureState.idle())
        assert box.take() is None
        assert box.latest().gesture is Gesture.NONE

    def test_newest_value_wins(self):
        box = Mailbox(GestureState.idle())
        box.post(GestureState(Gesture.PEACE))
        box.post(GestureState(Gesture.FIST))

        assert box.take().gesture is Gesture.FIST
        assert box.take() is None
        assert box.latest().gesture is Gesture.FIST
        assert box.posted_count == 2
        assert box.overwritten_count == 1

    def test_concurrent_posts_stay_whole(self):
        """Readers only ever see snapshots that were posted as a whole."""
        box = Mailbox(GestureState.idle())
        posted = {GestureState(Gesture.PEACE, (1.0, 1.0, 0.0)),
                  GestureState(Gesture.FIST, (2.0, 2.0, 0.0))}

        def writer():
            for i in range(2000):
                box.post(GestureState(Gesture.PEACE, (1.0, 1.0, 0.0)) if i % 2
                         else GestureState(Gesture.FIST, (2.0, 2.0, 0.0)))

        thread = threading.Thread(target=writer)
        thread.start()
        seen = [box.latest() for _ in range(2000)]
        thread.join()

        assert all(state in posted or state == GestureState.idle() for state in seen)


class TestAnimationPipeline:
    """Test suite for AnimationPipeline."""

    @pytest.fixture
    def pipeline(self):
        pipeline = make_pipeline()
        pipeline.regenerate(75.0, 16 / 9, 35.0)
        return pipeline

    def test_tick_requires_shapes(self, recording_renderer):
        with pytest.raises(RuntimeError):
            make_pipeline().tick(recording_renderer)

    def test_engine_must_match_profile(self):
        with pytest.raises(ValueError):
            make_pipeline(count=COUNT + 1)

    def test_idle_start(self, pipeline, recording_renderer):
        result = pipeline.tick(recording_renderer)
        assert result.gesture is Gesture.NONE
        assert result.frame_index == 1
        assert pipeline.engine.last_target == "cloud"
        assert recording_renderer.positions.shape == (COUNT, 3)

    def test_landmarks_drive_the_morph(self, pipeline, recording_renderer):
        state = pipeline.handle_landmarks(create_mock_landmarks({"index": "up", "middle": "up"}))
        assert state.gesture is Gesture.PEACE

        result = pipeline.tick(recording_renderer)
        assert result.gesture is Gesture.PEACE
        assert result.state is state
        assert pipeline.engine.last_target == "A"

    def test_latest_state_persists(self, pipeline, recording_renderer):
        """Frames without a new result keep using the last posted state."""
        pipeline.handle_landmarks(create_mock_landmarks({}))
        for _ in range(3):
            assert pipeline.tick(recording_renderer).gesture is Gesture.FIST

    def test_hand_loss(self, pipeline, recording_renderer):
        pipeline.handle_landmarks(create_mock_landmarks({}, wrist=(0.0, 0.5)))
        pipeline.handle_landmarks(LandmarkFrame.empty())
        result = pipeline.tick(recording_renderer)
        assert result.gesture is Gesture.NONE
        assert result.state.displacement[0] == pytest.approx(20.0 * 0.95)

    def test_forced_gesture(self, pipeline, recording_renderer):
        pipeline.force_gesture(Gesture.LIKE)
        assert pipeline.tick(recording_renderer).gesture is Gesture.LIKE

        pipeline.force_gesture(None)
        assert pipeline.tick(recording_renderer).gesture is Gesture.NONE

    def test_dwell_filter_applied(self, recording_renderer):
        pipeline = make_pipeline(dwell_ms=100)
        pipeline.regenerate(75.0, 16 / 9, 35.0)
        pipeline.handle_landmarks(create_mock_landmarks({"thumb": "up"}, timestamp_ms=0))
        assert pipeline.tick(recording_renderer).gesture is Gesture.NONE

        pipeline.handle_landmarks(create_mock_landmarks({"thumb": "up"}, timestamp_ms=120))
        assert pipeline.tick(recording_renderer).gesture is Gesture.LIKE

    def test_regenerate_swaps_library(self, pipeline, recording_renderer):
        first = pipeline.shapes
        second = pipeline.regenerate(75.0, 1.0, 35.0)

        assert pipeline.shapes is second
        assert second is not first
        assert second.text_scale < first.text_scale
        assert second.particle_count == first.particle_count

        # The live buffer carries over and morphs toward the new targets
        before = np.array(pipeline.engine.positions)
        pipeline.tick(recording_renderer)
        assert not np.array_equal(before, pipeline.engine.positions)

    def test_time_advances_per_tick(self, pipeline, recording_renderer):
        first = pipeline.tick(recording_renderer)
        second = pipeline.tick(recording_renderer)
        assert second.time > first.time
        assert second.frame_index == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
