"""Gesture recognition module."""
from .gesture_classifier import GestureClassifier, GestureClassifierConfig, classify_fingers
from .gesture_buffer import GestureDwellFilter, GestureDwellConfig

__all__ = [
    "GestureClassifier",
    "GestureClassifierConfig",
    "classify_fingers",
    "GestureDwellFilter",
    "GestureDwellConfig",
]
