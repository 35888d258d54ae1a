"""Target point set generation."""
from .generator import (
    ShapeGenerator, ShapeGeneratorConfig, ShapeLibrary, responsive_scale,
    sample_foreground, text_points, planet_points, cloud_points,
)
from .rasterizer import TextRasterizer, TextRasterizerConfig

__all__ = [
    "ShapeGenerator",
    "ShapeGeneratorConfig",
    "ShapeLibrary",
    "responsive_scale",
    "sample_foreground",
    "text_points",
    "planet_points",
    "cloud_points",
    "TextRasterizer",
    "TextRasterizerConfig",
]
