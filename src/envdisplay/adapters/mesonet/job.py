"""室外温度采集任务（带频率限制）。"""

from __future__ import annotations

import datetime as dt
import logging
import math
from typing import List, Optional, Protocol, Sequence, Tuple

from envdisplay.adapters.mesonet.models import Result, Variable
from envdisplay.core.aggregator import FetchJob
from envdisplay.core.snapshot import OUTDOOR_TEMPERATURE, Measurement, Snapshot
from envdisplay.errors import SourceError

logger = logging.getLogger(__name__)


class StationClient(Protocol):
    async def fetch(
        self,
        start: dt.datetime,
        end: dt.datetime,
        stations: Sequence[str],
        variables: Sequence[Variable],
    ) -> Result:
        ...


def summarize_series(
    values: Sequence[float],
    times: Sequence[dt.datetime] = (),
) -> Tuple[float, float, Optional[dt.datetime]]:
    """返回 (最新非零值, 非零值均值, 最新非零值的时间)。

    接口偶尔把最新一个点报成 0，所以所有为 0 的点都不参与计算；NaN 与溢出的
    无穷值同样剔除。
    """

    total = 0.0
    count = 0
    last = 0.0
    last_update: Optional[dt.datetime] = None
    for i, value in enumerate(values):
        if value == 0 or not math.isfinite(value):
            continue
        total += value
        count += 1
        last = value
        if i < len(times):
            last_update = times[i]
    if count == 0:
        raise SourceError(f"all {len(values)} data points are zero or non-finite")
    return last, total / count, last_update


class OutdoorTemperatureJob(FetchJob):
    """从气象站获取室外温度。

    站点数据约每 5 分钟更新一次，距离上次观测到的数据点不足 `min_interval`
    时直接跳过请求。
    """

    def __init__(
        self,
        client: StationClient,
        stations: Sequence[str],
        variable: str = "tair",
        units: str = "degF",
        min_interval: dt.timedelta = dt.timedelta(minutes=6),
        window: dt.timedelta = dt.timedelta(hours=1),
        measurement: str = OUTDOOR_TEMPERATURE,
        name: str = "get outdoor temperature",
    ) -> None:
        self.name = name
        self._client = client
        self._stations: List[str] = list(stations)
        self._variable = variable
        self._units = units
        self._min_interval = min_interval
        self._window = window
        self._measurement = measurement

    async def run(self, snapshot: Snapshot) -> None:
        last_point = snapshot.last_external_update(self._measurement)
        now = self._now()
        logger.debug("最近一次气象站数据点: %s", last_point)
        if last_point is not None and now - last_point < self._min_interval:
            return

        result = await self._client.fetch(
            start=now - self._window,
            end=now,
            stations=self._stations,
            variables=[Variable(id=self._variable, units=self._units)],
        )
        series = result.response.data_vars.get(self._variable)
        values = series.float_data if series is not None else []
        if not values:
            raise SourceError(
                f"no data points returned (data_vars: {sorted(result.response.data_vars)})"
            )

        time_var = result.response.coords.get("time")
        times = time_var.time_data if time_var is not None else []
        latest, mean, last_update = summarize_series(values, times)

        snapshot.update_measurement(
            self._measurement,
            Measurement(current=latest, trailing_mean=mean),
            observed_at=last_update,
        )

    def _now(self) -> dt.datetime:
        return dt.datetime.now(dt.timezone.utc)
