"""5x8 点阵字体。

每个字形按列存储 5 个字节，最低位对应最上面一行。字符码 24/25 是上下箭头，
用作趋势符号。
"""

from __future__ import annotations

from typing import Dict, Tuple

import numpy as np

GLYPH_WIDTH = 5
GLYPH_HEIGHT = 8
ADVANCE = GLYPH_WIDTH + 1

ARROW_UP = chr(24)
ARROW_DOWN = chr(25)

_COLUMNS: Dict[str, Tuple[int, int, int, int, int]] = {
    " ": (0x00, 0x00, 0x00, 0x00, 0x00),
    ARROW_UP: (0x04, 0x02, 0x7F, 0x02, 0x04),
    ARROW_DOWN: (0x10, 0x20, 0x7F, 0x20, 0x10),
    "%": (0x23, 0x13, 0x08, 0x64, 0x62),
    "+": (0x08, 0x08, 0x3E, 0x08, 0x08),
    "-": (0x08, 0x08, 0x08, 0x08, 0x08),
    ".": (0x00, 0x60, 0x60, 0x00, 0x00),
    ":": (0x00, 0x36, 0x36, 0x00, 0x00),
    "0": (0x3E, 0x51, 0x49, 0x45, 0x3E),
    "1": (0x00, 0x42, 0x7F, 0x40, 0x00),
    "2": (0x42, 0x61, 0x51, 0x49, 0x46),
    "3": (0x21, 0x41, 0x45, 0x4B, 0x31),
    "4": (0x18, 0x14, 0x12, 0x7F, 0x10),
    "5": (0x27, 0x45, 0x45, 0x45, 0x39),
    "6": (0x3C, 0x4A, 0x49, 0x49, 0x30),
    "7": (0x01, 0x71, 0x09, 0x05, 0x03),
    "8": (0x36, 0x49, 0x49, 0x49, 0x36),
    "9": (0x06, 0x49, 0x49, 0x29, 0x1E),
    "C": (0x3E, 0x41, 0x41, 0x41, 0x22),
    "F": (0x7F, 0x09, 0x09, 0x09, 0x01),
}

_ROWS = np.arange(GLYPH_HEIGHT)[:, None]

# 预先展开为 (8, 5) 的布尔掩码
GLYPHS: Dict[str, np.ndarray] = {
    char: ((np.array(columns)[None, :] >> _ROWS) & 1).astype(bool)
    for char, columns in _COLUMNS.items()
}
for _mask in GLYPHS.values():
    _mask.flags.writeable = False


def glyph(char: str) -> np.ndarray:
    """返回字符的点阵掩码，不支持的字符抛出 KeyError。"""

    return GLYPHS[char]
