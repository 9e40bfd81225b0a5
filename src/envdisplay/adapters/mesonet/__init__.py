"""纽约州 Mesonet 气象站适配器。"""

from .client import MesonetClient
from .job import OutdoorTemperatureJob, summarize_series
from .models import DataKind, DataVar, Request, Result, Variable

__all__ = [
    "DataKind",
    "DataVar",
    "MesonetClient",
    "OutdoorTemperatureJob",
    "Request",
    "Result",
    "Variable",
    "summarize_series",
]
