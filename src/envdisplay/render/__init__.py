"""画面渲染与编码。"""

from .encoding import ENCODERS, encode_bmp, encode_png, encode_text
from .renderer import PixelBuffer, Renderer, TrendGlyph, classify_trend, enlarge

__all__ = [
    "ENCODERS",
    "PixelBuffer",
    "Renderer",
    "TrendGlyph",
    "classify_trend",
    "encode_bmp",
    "encode_png",
    "encode_text",
    "enlarge",
]
