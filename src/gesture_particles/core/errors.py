"""
Exception hierarchy for the particle system.
"""


class GestureParticlesError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(GestureParticlesError):
    """Invalid or inconsistent configuration detected at startup."""


class ShapeGenerationError(ConfigurationError):
    """A target shape could not be built from its configuration.

    Raised for example when a text string rasterizes to zero foreground
    pixels, which would otherwise leave nothing to cycle through.
    """
