"""Shared types, errors and inter-thread hand-off."""
from .errors import GestureParticlesError, ConfigurationError, ShapeGenerationError
from .mailbox import Mailbox
from .types import Gesture, GestureState, DeviceProfile

__all__ = [
    "GestureParticlesError",
    "ConfigurationError",
    "ShapeGenerationError",
    "Mailbox",
    "Gesture",
    "GestureState",
    "DeviceProfile",
]
