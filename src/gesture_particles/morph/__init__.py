"""Particle morphing."""
from .engine import MorphEngine, MorphConfig, AnimationClock, TimingConfig

__all__ = ["MorphEngine", "MorphConfig", "AnimationClock", "TimingConfig"]
