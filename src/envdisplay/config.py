"""应用配置模型。"""

from __future__ import annotations

import importlib.util
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

MESONET_ENDPOINT = "https://api.nysmesonet.org/data/dynserv/timeseries2"


class InfluxDBConfig(BaseModel):
    """室内传感器所在的 InfluxDB。"""

    address: str = "http://localhost:8086"
    token: str = ""
    org: str = ""
    bucket: str = "home-sensors"


class OutputConfig(BaseModel):
    """目标显示屏的像素尺寸。"""

    width: int = Field(64, ge=1)
    height: int = Field(32, ge=1)


class WeatherStationConfig(BaseModel):
    """Mesonet 气象站请求参数。"""

    endpoint: str = MESONET_ENDPOINT
    dataset: str = "nysm"
    stations: list[str] = Field(default_factory=lambda: ["bkln"])
    variable: str = "tair"
    units: str = "degF"
    min_interval_minutes: float = Field(6.0, gt=0.0)
    window_minutes: float = Field(60.0, gt=0.0)


class AppConfig(BaseModel):
    """总配置。"""

    influxdb: InfluxDBConfig = Field(default_factory=InfluxDBConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    weather: WeatherStationConfig = Field(default_factory=WeatherStationConfig)
    refresh_interval_seconds: float = Field(10.0, ge=1.0)
    simulate: bool = False
    host: str = "127.0.0.1"
    port: int = Field(8000, ge=1, le=65535)

    @classmethod
    def load(cls) -> "AppConfig":
        """优先尝试加载项目根目录的 `config.local.py`，否则读取环境变量。"""

        root_dir = Path(__file__).resolve().parents[2]
        local_path = root_dir / "config.local.py"
        if not local_path.exists():
            return cls.from_env()

        spec = importlib.util.spec_from_file_location("config_local", local_path)
        if spec is None or spec.loader is None:
            return cls.from_env()

        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)  # type: ignore[arg-type]
        except Exception:
            logger.warning("config.local.py 加载失败，改用环境变量", exc_info=True)
            return cls.from_env()

        load_fn = getattr(module, "load_config", None)
        if callable(load_fn):
            try:
                return load_fn()
            except Exception:
                logger.warning("load_config() 执行失败，改用环境变量", exc_info=True)
                return cls.from_env()
        return cls.from_env()

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "AppConfig":
        """从环境变量构建配置，未设置的项保持默认值。"""

        env = os.environ if environ is None else environ

        influx: dict[str, Any] = {}
        for env_key, field_name in (
            ("INFLUXDB_ADDRESS", "address"),
            ("INFLUXDB_TOKEN", "token"),
            ("INFLUXDB_ORG", "org"),
            ("INFLUXDB_BUCKET", "bucket"),
        ):
            if env.get(env_key) is not None:
                influx[field_name] = env[env_key]

        output: dict[str, Any] = {}
        if env.get("DISPLAY_WIDTH") is not None:
            output["width"] = env["DISPLAY_WIDTH"]
        if env.get("DISPLAY_HEIGHT") is not None:
            output["height"] = env["DISPLAY_HEIGHT"]

        kwargs: dict[str, Any] = {
            "influxdb": InfluxDBConfig(**influx),
            "output": OutputConfig(**output),
        }
        if env.get("DISPLAY_REFRESH_SECONDS") is not None:
            kwargs["refresh_interval_seconds"] = env["DISPLAY_REFRESH_SECONDS"]
        if env.get("DISPLAY_HOST") is not None:
            kwargs["host"] = env["DISPLAY_HOST"]
        if env.get("DISPLAY_PORT") is not None:
            kwargs["port"] = env["DISPLAY_PORT"]
        simulate = env.get("DISPLAY_SIMULATE")
        if simulate is not None:
            kwargs["simulate"] = simulate.strip().lower() in {"1", "true", "yes", "on"}

        return cls(**kwargs)
