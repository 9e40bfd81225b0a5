"""把快照渲染为小尺寸像素画面。"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Mapping, Tuple

import numpy as np

from envdisplay.core.snapshot import (
    OUTDOOR_TEMPERATURE,
    RELATIVE_HUMIDITY,
    TEMPERATURE,
    Frame,
    Measurement,
    Snapshot,
)
from envdisplay.errors import RenderError
from envdisplay.render.font import ADVANCE, ARROW_DOWN, ARROW_UP, GLYPH_HEIGHT, GLYPHS

logger = logging.getLogger(__name__)

RGBA = Tuple[int, int, int, int]

BACKGROUND: RGBA = (0, 0, 0, 255)
FOREGROUND: RGBA = (255, 255, 255, 255)

TEMPERATURE_THRESHOLD = 0.5
HUMIDITY_THRESHOLD = 0.5
OUTDOOR_TEMPERATURE_THRESHOLD = 1.0

LINE_HEIGHT = GLYPH_HEIGHT


class TrendGlyph(Enum):
    """当前值相对滑动均值的变化方向，值为字体中的字符。"""

    RISING = ARROW_UP
    FALLING = ARROW_DOWN
    FLAT = " "

    @property
    def char(self) -> str:
        return self.value


def classify_trend(current: float, trailing_mean: float, threshold: float) -> TrendGlyph:
    change = current - trailing_mean
    if change > threshold:
        return TrendGlyph.RISING
    if change < -threshold:
        return TrendGlyph.FALLING
    return TrendGlyph.FLAT


class PixelBuffer:
    """只读 RGBA 像素网格，形状为 (height, width, 4)。"""

    __slots__ = ("_pixels",)

    def __init__(self, pixels: np.ndarray) -> None:
        array = np.array(pixels, dtype=np.uint8, copy=True)
        if array.ndim != 3 or array.shape[2] != 4:
            raise ValueError(f"像素数组形状应为 (h, w, 4)，实际为 {array.shape}")
        array.flags.writeable = False
        self._pixels = array

    @classmethod
    def blank(cls, width: int, height: int, color: RGBA = (0, 0, 0, 0)) -> "PixelBuffer":
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[:, :] = color
        return cls(pixels)

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    def pixel(self, x: int, y: int) -> RGBA:
        r, g, b, a = (int(v) for v in self._pixels[y, x])
        return r, g, b, a

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height})"


def draw_text(pixels: np.ndarray, text: str, x: int, y: int, color: RGBA) -> None:
    """在可写像素数组上左对齐绘制一行文字，超出边界的部分被裁掉。"""

    missing = [char for char in text if char not in GLYPHS]
    if missing:
        raise RenderError(f"字体中没有字符 {missing[0]!r}（文本 {text!r}）")

    height, width = pixels.shape[:2]
    y0, y1 = max(y, 0), min(y + GLYPH_HEIGHT, height)
    if y0 >= y1:
        return

    for i, char in enumerate(text):
        left = x + i * ADVANCE
        if left >= width:
            break
        mask = GLYPHS[char]
        x0, x1 = max(left, 0), min(left + mask.shape[1], width)
        if x0 >= x1:
            continue
        region = pixels[y0:y1, x0:x1]
        region[mask[y0 - y : y1 - y, x0 - left : x1 - left]] = color


def enlarge(buffer: PixelBuffer, factor: int, margin: int) -> PixelBuffer:
    """把每个像素放大为 factor×factor 的方块，方块外圈 margin 像素留空。

    用于在普通屏幕上模拟低分辨率点阵的网格效果，不修改原缓冲。
    """

    if factor < 1:
        raise ValueError(f"放大倍数必须 >= 1，实际为 {factor}")
    if margin < 0:
        raise ValueError(f"边距不能为负，实际为 {margin}")

    out = np.repeat(np.repeat(buffer.pixels, factor, axis=0), factor, axis=1)
    block = np.zeros((factor, factor), dtype=bool)
    block[margin : factor - margin, margin : factor - margin] = True
    out[~np.tile(block, (buffer.height, buffer.width))] = 0
    return PixelBuffer(out)


class Renderer:
    """根据测量值生成两行文字与对应的像素画面。"""

    def __init__(
        self,
        width: int = 64,
        height: int = 32,
        foreground: RGBA = FOREGROUND,
        background: RGBA = BACKGROUND,
    ) -> None:
        if width < 1 or height < 1:
            raise ValueError(f"画面尺寸无效: {width}x{height}")
        self._width = width
        self._height = height
        self._foreground = foreground
        self._background = background

    def compose_lines(self, measurements: Mapping[str, Measurement]) -> Tuple[str, str]:
        temperature = measurements.get(TEMPERATURE, Measurement())
        humidity = measurements.get(RELATIVE_HUMIDITY, Measurement())
        outdoor = measurements.get(OUTDOOR_TEMPERATURE, Measurement())

        temperature_trend = classify_trend(
            temperature.current, temperature.trailing_mean, TEMPERATURE_THRESHOLD
        )
        humidity_trend = classify_trend(humidity.current, humidity.trailing_mean, HUMIDITY_THRESHOLD)
        outdoor_trend = classify_trend(
            outdoor.current, outdoor.trailing_mean, OUTDOOR_TEMPERATURE_THRESHOLD
        )

        line1 = (
            f"{temperature.current:.1f}{temperature_trend.char}"
            f" {humidity.current:.0f}{humidity_trend.char}"
        )
        line2 = f"{outdoor.current:.1f}{outdoor_trend.char}"
        return line1, line2

    def draw(self, measurements: Mapping[str, Measurement]) -> Frame:
        """纯函数：测量值 → Frame。"""

        lines = self.compose_lines(measurements)

        pixels = np.empty((self._height, self._width, 4), dtype=np.uint8)
        pixels[:, :] = self._background
        for index, line in enumerate(lines):
            top = index * LINE_HEIGHT
            if top >= self._height:
                break
            draw_text(pixels, line, 0, top, self._foreground)

        return Frame(lines=lines, buffer=PixelBuffer(pixels))

    def render(self, snapshot: Snapshot) -> Frame:
        """在快照写锁内绘制并发布新画面。"""

        frame = snapshot.publish_render(self.draw)
        logger.debug("画面已更新: %r", frame.lines)
        return frame
