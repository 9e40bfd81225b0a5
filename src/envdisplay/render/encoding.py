"""像素缓冲的 PNG / BMP / 文本编码。"""

from __future__ import annotations

import io

import numpy as np
from PIL import Image

from envdisplay.errors import EncodingError
from envdisplay.render.renderer import PixelBuffer


def _to_image(buffer: PixelBuffer) -> Image.Image:
    # (h, w, 4) 的 uint8 数组会被识别为 RGBA
    return Image.fromarray(np.ascontiguousarray(buffer.pixels))


def encode_png(buffer: PixelBuffer) -> bytes:
    try:
        out = io.BytesIO()
        _to_image(buffer).save(out, format="PNG")
    except (OSError, ValueError) as exc:
        raise EncodingError(f"png: {exc}") from exc
    return out.getvalue()


def encode_bmp(buffer: PixelBuffer) -> bytes:
    """24 位 BMP，透明通道被丢弃。"""

    try:
        out = io.BytesIO()
        _to_image(buffer).convert("RGB").save(out, format="BMP")
    except (OSError, ValueError) as exc:
        raise EncodingError(f"bmp: {exc}") from exc
    return out.getvalue()


def encode_text(buffer: PixelBuffer) -> bytes:
    """列出所有非黑色像素的坐标，每行 `x y`，按列优先顺序。"""

    lit = np.any(buffer.pixels[:, :, :3] != 0, axis=2)
    # 转置后 argwhere 按 (x, y) 排序
    coords = np.argwhere(lit.T)
    return "".join(f"{x} {y}\n" for x, y in coords).encode("ascii")


ENCODERS = {
    ".png": ("image/png", encode_png),
    ".bmp": ("image/bmp", encode_bmp),
    ".txt": ("text/plain", encode_text),
}
