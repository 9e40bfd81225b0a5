"""本地配置覆盖示例：复制为 config.local.py 后由 AppConfig.load() 自动加载。"""

from envdisplay.config import AppConfig, InfluxDBConfig, OutputConfig, WeatherStationConfig


def load_config() -> AppConfig:
    return AppConfig(
        influxdb=InfluxDBConfig(
            address="http://localhost:8086",
            token="",
            org="home",
            bucket="home-sensors",
        ),
        output=OutputConfig(width=64, height=32),
        weather=WeatherStationConfig(
            stations=["bkln"],
            variable="tair",
            units="degF",
            min_interval_minutes=6,
        ),
        refresh_interval_seconds=10.0,
        simulate=True,
    )
