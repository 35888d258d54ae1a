"""Hand landmark containers and the MediaPipe-backed detector.

The detector itself is imported from ``detection.hand_detector`` so that the
landmark types can be used without MediaPipe installed.
"""
from .landmarks import Landmark, LandmarkFrame, LandmarkIndex, NUM_LANDMARKS

__all__ = ["Landmark", "LandmarkFrame", "LandmarkIndex", "NUM_LANDMARKS"]
