"""InfluxDB 查询数据源。

每个查询只取第一张表的第一条记录的 `_value`，再交给调用方提供的解码函数，
不做运行时类型推断。
"""

from __future__ import annotations

import math
from typing import Any, Callable, Protocol

from envdisplay.adapters.base import DataSource
from envdisplay.errors import MalformedRecordError, NoRowsError, QueryError, TypeMismatchError

# 传感器温度以纳开尔文存储
_TEMPERATURE_QUERY = """from(bucket: "{bucket}")
  |> range(start: -1h, stop: now())
  |> filter(fn: (r) => r._measurement == "environment" and r._field == "temperature")
  |> map(fn: (r) => ({{ r with _value: float(v: r._value) / 1000000000.0 - 273.15 }}))
  |> map(fn: (r) => ({{ r with _value: r._value * 1.8 + 32.0 }}))
  {aggregate}"""

_HUMIDITY_QUERY = """from(bucket: "{bucket}")
  |> range(start: -1h, stop: now())
  |> filter(fn: (r) => r._measurement == "environment" and r._field == "relative_humidity")
  |> map(fn: (r) => ({{ r with _value: float(v: r._value) / 100000.0 }}))
  {aggregate}"""

_LAST = "|> last()"
_MEAN = "|> mean()\n  |> last()"


def temperature_query(bucket: str, mean: bool = False) -> str:
    return _TEMPERATURE_QUERY.format(bucket=bucket, aggregate=_MEAN if mean else _LAST)


def humidity_query(bucket: str, mean: bool = False) -> str:
    return _HUMIDITY_QUERY.format(bucket=bucket, aggregate=_MEAN if mean else _LAST)


def decode_float(value: Any) -> float:
    """把记录值解码为有限浮点数。"""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeMismatchError(f"记录值 {value!r} 不是数值 ({type(value).__name__})")
    result = float(value)
    if not math.isfinite(result):
        raise TypeMismatchError(f"记录值 {value!r} 不是有限数")
    return result


class QueryAPI(Protocol):
    """influxdb_client 异步查询接口的结构化描述，便于测试替身。"""

    async def query(self, query: str) -> Any:
        ...


class InfluxQuerySource(DataSource):
    """执行一条 Flux 查询，返回唯一的标量结果。"""

    def __init__(
        self,
        query_api: QueryAPI,
        query: str,
        decode: Callable[[Any], float] = decode_float,
    ) -> None:
        self._query_api = query_api
        self._query = query
        self._decode = decode

    async def fetch(self) -> float:
        try:
            tables = await self._query_api.query(self._query)
        except Exception as exc:
            raise QueryError(f"query: {exc}") from exc

        if not tables or not tables[0].records:
            raise NoRowsError("no rows")

        record = tables[0].records[0]
        values = getattr(record, "values", None)
        if record is None or not isinstance(values, dict) or "_value" not in values:
            raise MalformedRecordError(f"malformed record: {record!r}")

        try:
            return self._decode(values["_value"])
        except TypeMismatchError:
            raise
        except (TypeError, ValueError) as exc:
            raise TypeMismatchError(f"decode: {exc}") from exc
