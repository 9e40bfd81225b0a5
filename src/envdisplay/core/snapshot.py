"""共享快照：各测量值、外部数据时间戳与最近一次渲染结果。"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Tuple

from envdisplay.core.rwlock import RWLock

if TYPE_CHECKING:
    from envdisplay.render.renderer import PixelBuffer

TEMPERATURE = "temperature"
RELATIVE_HUMIDITY = "relative_humidity"
OUTDOOR_TEMPERATURE = "outdoor_temperature"

MEASUREMENT_NAMES = (TEMPERATURE, RELATIVE_HUMIDITY, OUTDOOR_TEMPERATURE)


@dataclass(frozen=True)
class Measurement:
    """单个物理量：当前读数与滑动窗口均值。"""

    current: float = 0.0
    trailing_mean: float = 0.0


@dataclass(frozen=True)
class Frame:
    """一次渲染的产物，发布后不再修改。"""

    lines: Tuple[str, ...]
    buffer: "PixelBuffer"


class Snapshot:
    """由读写锁保护的可变状态。

    只有采集任务与渲染器会写入；HTTP 等读取方只能通过持读锁的访问器获取副本。
    """

    def __init__(self, names: Iterable[str] = MEASUREMENT_NAMES) -> None:
        self._lock = RWLock()
        self._measurements: Dict[str, Measurement] = {name: Measurement() for name in names}
        self._last_external_update: Dict[str, dt.datetime] = {}
        self._frame: Optional[Frame] = None

    def measurement(self, name: str) -> Measurement:
        with self._lock.read():
            return self._measurements[name]

    def measurements(self) -> Dict[str, Measurement]:
        with self._lock.read():
            return dict(self._measurements)

    def update_measurement(
        self,
        name: str,
        value: Measurement,
        observed_at: Optional[dt.datetime] = None,
    ) -> None:
        """原子地替换一组 current/trailing_mean，可同时记录外部数据时间戳。"""

        if name not in self._measurements:
            raise KeyError(f"未知测量项: {name}")
        with self._lock.write():
            self._measurements[name] = value
            if observed_at is not None:
                self._last_external_update[name] = observed_at

    def last_external_update(self, name: str) -> Optional[dt.datetime]:
        with self._lock.read():
            return self._last_external_update.get(name)

    def publish_render(self, draw: Callable[[Dict[str, Measurement]], Frame]) -> Frame:
        """持写锁执行绘制并发布结果；绘制抛错时保留上一帧。"""

        with self._lock.write():
            frame = draw(dict(self._measurements))
            self._frame = frame
            return frame

    def frame(self) -> Optional[Frame]:
        with self._lock.read():
            return self._frame

    def screen(self) -> List[str]:
        """返回最近一次成功渲染的文本行。"""

        with self._lock.read():
            if self._frame is None:
                return []
            return list(self._frame.lines)
