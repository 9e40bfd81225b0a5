"""模拟数据源，用于开发阶段。"""

from __future__ import annotations

import asyncio
import random

from envdisplay.adapters.base import DataSource


class SimulatedSource(DataSource):
    """围绕基准值缓慢漂移的随机读数，便于不接外部服务时调试画面。"""

    def __init__(self, baseline: float, spread: float = 1.0, seed: int | None = None) -> None:
        self._value = baseline
        self._baseline = baseline
        self._spread = spread
        self._random = random.Random(seed)

    async def fetch(self) -> float:
        await asyncio.sleep(0)
        # 带回归的随机游走，避免长期跑偏
        drift = self._random.gauss(0.0, self._spread * 0.2)
        self._value += drift + (self._baseline - self._value) * 0.1
        return round(self._value, 2)
