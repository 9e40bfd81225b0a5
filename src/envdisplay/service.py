"""后台刷新循环：周期性采集、渲染并更新共享快照。"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
import threading
from typing import List, Optional

import aiohttp
from influxdb_client.client.influxdb_client_async import InfluxDBClientAsync

from envdisplay.adapters.base import MeasurementJob
from envdisplay.adapters.influx import InfluxQuerySource, QueryAPI, humidity_query, temperature_query
from envdisplay.adapters.mesonet import MesonetClient, OutdoorTemperatureJob
from envdisplay.adapters.simulated import SimulatedSource
from envdisplay.config import AppConfig
from envdisplay.core.aggregator import Aggregator, FetchJob
from envdisplay.core.snapshot import OUTDOOR_TEMPERATURE, RELATIVE_HUMIDITY, TEMPERATURE, Snapshot
from envdisplay.errors import AggregateError, RenderError
from envdisplay.render.renderer import Renderer

logger = logging.getLogger(__name__)


def build_jobs(
    config: AppConfig,
    query_api: QueryAPI,
    http_session: aiohttp.ClientSession,
) -> List[FetchJob]:
    """按配置组装三项测量的采集任务。"""

    bucket = config.influxdb.bucket
    weather = config.weather
    station = MesonetClient(http_session, weather.endpoint, dataset=weather.dataset)
    return [
        MeasurementJob(
            "get temperature",
            TEMPERATURE,
            InfluxQuerySource(query_api, temperature_query(bucket)),
            InfluxQuerySource(query_api, temperature_query(bucket, mean=True)),
        ),
        MeasurementJob(
            "get relative humidity",
            RELATIVE_HUMIDITY,
            InfluxQuerySource(query_api, humidity_query(bucket)),
            InfluxQuerySource(query_api, humidity_query(bucket, mean=True)),
        ),
        OutdoorTemperatureJob(
            station,
            stations=weather.stations,
            variable=weather.variable,
            units=weather.units,
            min_interval=dt.timedelta(minutes=weather.min_interval_minutes),
            window=dt.timedelta(minutes=weather.window_minutes),
        ),
    ]


def build_simulated_jobs() -> List[FetchJob]:
    """不依赖外部服务的模拟任务。"""

    return [
        MeasurementJob(
            "get temperature",
            TEMPERATURE,
            SimulatedSource(70.0, spread=1.5),
            SimulatedSource(70.0, spread=0.2),
        ),
        MeasurementJob(
            "get relative humidity",
            RELATIVE_HUMIDITY,
            SimulatedSource(45.0, spread=2.0),
            SimulatedSource(45.0, spread=0.3),
        ),
        MeasurementJob(
            "get outdoor temperature",
            OUTDOOR_TEMPERATURE,
            SimulatedSource(60.0, spread=3.0),
            SimulatedSource(60.0, spread=0.5),
        ),
    ]


async def update_once(aggregator: Aggregator, renderer: Renderer, snapshot: Snapshot, timeout: float) -> None:
    """执行一个完整周期：刷新后无论成败都重新渲染。"""

    try:
        await aggregator.refresh(timeout)
    except AggregateError as exc:
        logger.warning("更新数据时出现问题: %s", exc)

    try:
        renderer.render(snapshot)
    except RenderError as exc:
        logger.error("渲染失败，继续显示上一帧: %s", exc)


async def _refresh_loop(aggregator: Aggregator, renderer: Renderer, snapshot: Snapshot, interval: float) -> None:
    loop = asyncio.get_running_loop()
    while True:
        started = loop.time()
        await update_once(aggregator, renderer, snapshot, timeout=interval)
        await asyncio.sleep(max(0.0, interval - (loop.time() - started)))


async def run_backend(snapshot: Snapshot, config: Optional[AppConfig] = None) -> None:
    """运行异步后台服务，周期性刷新共享快照。"""

    config = config or AppConfig.load()
    renderer = Renderer(config.output.width, config.output.height)
    interval = config.refresh_interval_seconds

    if config.simulate:
        logger.info("使用模拟数据源")
        aggregator = Aggregator(snapshot, build_simulated_jobs())
        await _refresh_loop(aggregator, renderer, snapshot, interval)
        return

    influx = config.influxdb
    logger.info("连接 InfluxDB %s，刷新间隔 %.0f 秒", influx.address, interval)
    async with InfluxDBClientAsync(url=influx.address, token=influx.token, org=influx.org) as client:
        async with aiohttp.ClientSession() as http_session:
            jobs = build_jobs(config, client.query_api(), http_session)
            aggregator = Aggregator(snapshot, jobs)
            await _refresh_loop(aggregator, renderer, snapshot, interval)


def start_backend_in_thread(snapshot: Snapshot, config: Optional[AppConfig] = None) -> threading.Thread:
    """在独立线程运行 asyncio 后台服务。"""

    loop = asyncio.new_event_loop()

    def _run() -> None:
        asyncio.set_event_loop(loop)
        try:
            loop.run_until_complete(run_backend(snapshot, config))
        except Exception:
            logger.exception("后台服务异常退出")
            raise

    thread = threading.Thread(target=_run, name="envdisplay-backend", daemon=True)
    thread.start()
    return thread
