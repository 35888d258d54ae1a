"""
Shared domain types for the particle system.

Centralizes the gesture enum, the published gesture snapshot and the
device tier profiles so that recognition, morphing and presentation can
import them without depending on each other.
"""

import platform
import logging
from enum import Enum
from dataclasses import dataclass
from typing import Tuple

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


# =============================================================================
# Gesture Types
# =============================================================================

class Gesture(Enum):
    """Discrete hand poses recognized by the classifier."""
    NONE = "none"
    PEACE = "peace"
    ROCK = "rock"
    LIKE = "like"
    FIST = "fist"
    DETECTED = "detected"

    @property
    def hand_present(self) -> bool:
        return self is not Gesture.NONE


Vector3 = Tuple[float, float, float]

ZERO_VECTOR: Vector3 = (0.0, 0.0, 0.0)


@dataclass(frozen=True)
class GestureState:
    """Immutable snapshot published by the landmark handler.

    The gesture and the hand displacement always travel together so a
    reader never sees a gesture from one frame paired with the
    displacement of another.
    """
    gesture: Gesture = Gesture.NONE
    displacement: Vector3 = ZERO_VECTOR
    timestamp_ms: int = 0

    @staticmethod
    def idle() -> "GestureState":
        return GestureState()


# =============================================================================
# Device Tiers
# =============================================================================

@dataclass(frozen=True)
class DeviceProfile:
    """Per-device constants fixed for the whole session."""
    tier: str
    particle_count: int
    point_size: float
    planet_scale: float

    def __post_init__(self):
        if self.particle_count <= 0:
            raise ConfigurationError(
                f"particle_count must be positive, got {self.particle_count}")
        if self.point_size <= 0 or self.planet_scale <= 0:
            raise ConfigurationError(
                f"point_size and planet_scale must be positive "
                f"(got {self.point_size}, {self.planet_scale})")


DEVICE_TIERS = {
    "desktop": DeviceProfile(tier="desktop", particle_count=15000,
                             point_size=0.15, planet_scale=1.0),
    "constrained": DeviceProfile(tier="constrained", particle_count=8000,
                                 point_size=0.35, planet_scale=0.6),
}

_CONSTRAINED_MACHINES = ("aarch64", "arm64", "armv7l", "armv6l")


def detect_tier() -> str:
    """Guess the device tier from the CPU architecture.

    ARM boards (Jetson, Raspberry Pi) get the constrained profile.
    """
    machine = platform.machine().lower()
    tier = "constrained" if machine in _CONSTRAINED_MACHINES else "desktop"
    logger.debug("Detected machine '%s' -> tier '%s'", machine, tier)
    return tier


def _override(config: dict, key: str, default):
    # Only a missing or null key falls back; 0 is passed on and rejected
    value = config.get(key)
    return default if value is None else value


def resolve_device_profile(config: dict) -> DeviceProfile:
    """Build the session's DeviceProfile from the `device` config section.

    Explicit particle_count / point_size / planet_scale values override
    the tier defaults.
    """
    tier = config.get("tier", "auto")
    if tier == "auto":
        tier = detect_tier()
    if tier not in DEVICE_TIERS:
        raise ConfigurationError(
            f"Unknown device tier '{tier}', expected one of "
            f"{sorted(DEVICE_TIERS)} or 'auto'")

    base = DEVICE_TIERS[tier]
    profile = DeviceProfile(
        tier=tier,
        particle_count=int(_override(config, "particle_count", base.particle_count)),
        point_size=float(_override(config, "point_size", base.point_size)),
        planet_scale=float(_override(config, "planet_scale", base.planet_scale)),
    )
    logger.info("Device tier: %s (%d particles)", profile.tier, profile.particle_count)
    return profile

