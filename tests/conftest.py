"""
Shared test fixtures
=====================
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


class StripeRasterizer:
    """
    Stand-in rasterizer that lights ``samples`` pixels on the top row,
    two pixels apart, so a stride-2 scan finds exactly that many.
    """

    def __init__(self, samples: int = 10, width: int = 512, height: int = 128):
        self.samples = samples
        self.size = (width, height)
        self.calls = 0

    def rasterize(self, text):
        self.calls += 1
        width, height = self.size
        bitmap = np.zeros((height, width, 4), dtype=np.uint8)
        for k in range(self.samples):
            bitmap[0, 2 * k] = (255, 255, 255, 255)
        return bitmap


class RecordingRenderer:
    """Renderer double recording what the presentation adapter pushes."""

    def __init__(self, width: int = 1280, height: int = 720):
        self.fov = 75.0
        self.camera_z = 35.0
        self.aspect = width / height
        self.color = None
        self.size = None
        self.position = None
        self.positions = None
        self.renders = 0

    def set_positions(self, positions):
        self.positions = np.array(positions, copy=True)

    def render(self):
        self.renders += 1
        return self.renders


@pytest.fixture
def stripe_rasterizer():
    return StripeRasterizer()


@pytest.fixture
def recording_renderer():
    return RecordingRenderer()
