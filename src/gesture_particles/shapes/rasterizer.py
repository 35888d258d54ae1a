"""
Text Rasterizer
================

Draws a string white-on-transparent onto a small RGBA canvas with OpenCV.
The shape generator only samples the red channel of the result, so any
object with a compatible ``rasterize(text)`` method can stand in for it.
"""

import cv2
import numpy as np
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_FONTS = {
    "simplex": cv2.FONT_HERSHEY_SIMPLEX,
    "duplex": cv2.FONT_HERSHEY_DUPLEX,
    "complex": cv2.FONT_HERSHEY_COMPLEX,
    "triplex": cv2.FONT_HERSHEY_TRIPLEX,
}


@dataclass
class TextRasterizerConfig:
    """Canvas and font settings for text rasterization."""
    width: int = 512
    height: int = 128
    font: str = "duplex"
    font_scale: float = 2.4
    thickness: int = 6          # Heavy stroke stands in for a bold face
    max_fill: float = 0.95      # Shrink the font if text would exceed this width fraction
    antialias: bool = True

    @classmethod
    def from_dict(cls, config: dict) -> "TextRasterizerConfig":
        """Create config from dictionary."""
        return cls(
            width=config.get("canvas_width", 512),
            height=config.get("canvas_height", 128),
            font=config.get("font", "duplex"),
            font_scale=config.get("font_scale", 2.4),
            thickness=config.get("thickness", 6),
            max_fill=config.get("max_fill", 0.95),
            antialias=config.get("antialias", True),
        )


class TextRasterizer:
    """
    OpenCV text rasterizer producing RGBA bitmaps.

    Text is centered both horizontally and vertically on the canvas. If the
    rendered width would exceed ``max_fill`` of the canvas, the font scale is
    reduced until it fits.

    Example:
        >>> raster = TextRasterizer()
        >>> bitmap = raster.rasterize("BE MY")
        >>> bitmap.shape
        (128, 512, 4)
    """

    def __init__(self, config: TextRasterizerConfig = None):
        self.config = config or TextRasterizerConfig()
        if self.config.font not in _FONTS:
            raise ValueError(f"Unknown font '{self.config.font}', "
                             f"expected one of {sorted(_FONTS)}")
        self._font = _FONTS[self.config.font]

    @property
    def size(self):
        """Canvas size as (width, height)."""
        return (self.config.width, self.config.height)

    def _fit_scale(self, text: str) -> float:
        scale = self.config.font_scale
        limit = self.config.width * self.config.max_fill
        (text_w, _), _ = cv2.getTextSize(text, self._font, scale, self.config.thickness)
        while text_w > limit and scale > 0.2:
            scale *= 0.9
            (text_w, _), _ = cv2.getTextSize(text, self._font, scale, self.config.thickness)
        if scale != self.config.font_scale:
            logger.debug("Shrunk font for '%s' to scale %.2f", text, scale)
        return scale

    def rasterize(self, text: str) -> np.ndarray:
        """
        Render text onto a transparent canvas.

        Args:
            text: String to draw

        Returns:
            uint8 array of shape (height, width, 4) in RGBA order
        """
        width, height = self.size
        canvas = np.zeros((height, width, 4), dtype=np.uint8)
        if not text:
            return canvas

        scale = self._fit_scale(text)
        (text_w, text_h), _ = cv2.getTextSize(text, self._font, scale, self.config.thickness)

        # putText anchors at the baseline; center the cap height on the canvas
        origin = ((width - text_w) // 2, (height + text_h) // 2)
        line_type = cv2.LINE_AA if self.config.antialias else cv2.LINE_8
        cv2.putText(canvas, text, origin, self._font, scale,
                    (255, 255, 255, 255), self.config.thickness, line_type)
        return canvas
