"""数据源适配器基类。"""

from __future__ import annotations

import abc
import asyncio

from envdisplay.core.aggregator import FetchJob
from envdisplay.core.snapshot import Measurement, Snapshot


class DataSource(abc.ABC):
    """所有标量数据源的抽象基类。"""

    @abc.abstractmethod
    async def fetch(self) -> float:
        """获取一次读数。"""


class MeasurementJob(FetchJob):
    """同时读取当前值与滑动均值，并作为一对写入快照。"""

    def __init__(
        self,
        name: str,
        measurement: str,
        current_source: DataSource,
        mean_source: DataSource,
    ) -> None:
        self.name = name
        self._measurement = measurement
        self._current_source = current_source
        self._mean_source = mean_source

    async def run(self, snapshot: Snapshot) -> None:
        # 网络往返期间不持锁，两项都成功后才写入
        current, mean = await asyncio.gather(
            self._current_source.fetch(),
            self._mean_source.fetch(),
        )
        snapshot.update_measurement(
            self._measurement,
            Measurement(current=current, trailing_mean=mean),
        )
