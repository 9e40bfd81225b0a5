"""数据源适配器。"""

from .base import DataSource, MeasurementJob
from .influx import InfluxQuerySource, decode_float, humidity_query, temperature_query
from .simulated import SimulatedSource

__all__ = [
    "DataSource",
    "InfluxQuerySource",
    "MeasurementJob",
    "SimulatedSource",
    "decode_float",
    "humidity_query",
    "temperature_query",
]
