"""Visual parameter derivation and the OpenCV point renderer."""
from .presentation import PresentationAdapter, PresentationConfig, VisualState, parse_color
from .point_renderer import PointCloudRenderer, RendererConfig

__all__ = [
    "PresentationAdapter",
    "PresentationConfig",
    "VisualState",
    "parse_color",
    "PointCloudRenderer",
    "RendererConfig",
]
