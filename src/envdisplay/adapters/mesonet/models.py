"""Mesonet 时间序列接口的请求与响应模型。

响应里每个变量的数组形状与元素类型无法由名字确定，解码时按以下顺序尝试：
时间数组 → 缩放后的浮点序列 → 原样保留。
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

TIME_FORMAT = "%Y%m%dT%H%M"


class Variable(BaseModel):
    """请求中的单个变量及其单位。"""

    id: str
    units: str


class Request(BaseModel):
    """timeseries2 接口的 POST 请求体。"""

    dataset: str
    start: dt.datetime
    end: dt.datetime
    stations: List[str] = Field(default_factory=list)
    variables: List[Variable] = Field(default_factory=list)


class Attr(BaseModel):
    long_name: str = ""
    scale_factor: Optional[float] = None
    units: str = ""


class DataKind(str, Enum):
    """变量数组的解码结果类别。"""

    TIME = "time"
    FLOAT = "float"
    RAW = "raw"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_times(values: List[Any]) -> Optional[List[dt.datetime]]:
    parsed: List[dt.datetime] = []
    for value in values:
        if not isinstance(value, str):
            return None
        try:
            stamp = dt.datetime.strptime(value, TIME_FORMAT)
        except ValueError:
            return None
        parsed.append(stamp.replace(tzinfo=dt.timezone.utc))
    return parsed


class DataVar(BaseModel):
    """单个坐标或数据变量。

    `kind` 标记解码结果：TIME 时 `time_data` 有效，FLOAT 时 `float_data` 有效，
    RAW 时只保留原始 `data`。
    """

    attrs: Attr = Field(default_factory=Attr)
    dims: List[str] = Field(default_factory=list)
    data: List[Any] = Field(default_factory=list)
    kind: DataKind = DataKind.RAW
    time_data: List[dt.datetime] = Field(default_factory=list)
    float_data: List[float] = Field(default_factory=list)

    @model_validator(mode="after")
    def _decode(self) -> "DataVar":
        self.kind = DataKind.RAW
        self.time_data = []
        self.float_data = []
        if not self.data:
            return self

        if self.attrs.long_name == "time":
            times = _parse_times(self.data)
            if times is not None:
                self.kind = DataKind.TIME
                self.time_data = times
                return self

        first = self.data[0]
        if isinstance(first, list) and first and _is_number(first[0]):
            scale = self.attrs.scale_factor if self.attrs.scale_factor is not None else 1.0
            # 非数值元素（如 null）按 0 处理，由调用方统一剔除
            self.kind = DataKind.FLOAT
            self.float_data = [float(v) * scale if _is_number(v) else 0.0 for v in first]
        return self


class Response(BaseModel):
    attrs: Attr = Field(default_factory=Attr)
    coords: Dict[str, DataVar] = Field(default_factory=dict)
    dims: Dict[str, int] = Field(default_factory=dict)
    data_vars: Dict[str, DataVar] = Field(default_factory=dict)


class Result(BaseModel):
    """接口返回的外层结构。"""

    success: bool = False
    response: Response = Field(default_factory=Response)
