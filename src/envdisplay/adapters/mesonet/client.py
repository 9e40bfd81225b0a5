"""Mesonet HTTP 客户端。

数据使用许可见 http://www.nysmesonet.org/about/data 。
"""

from __future__ import annotations

import asyncio
import datetime as dt
import json
import logging
from typing import Sequence

import aiohttp
from pydantic import ValidationError

from envdisplay.adapters.mesonet.models import Request, Result, Variable
from envdisplay.errors import StationResponseError, StationTransportError

logger = logging.getLogger(__name__)


class MesonetClient:
    """向 timeseries2 接口发送 JSON 请求并解码响应。

    构造后无内部状态，可在并发任务间共享。
    """

    def __init__(self, session: aiohttp.ClientSession, endpoint: str, dataset: str = "nysm") -> None:
        self._session = session
        self._endpoint = endpoint
        self._dataset = dataset

    async def fetch(
        self,
        start: dt.datetime,
        end: dt.datetime,
        stations: Sequence[str],
        variables: Sequence[Variable],
    ) -> Result:
        request = Request(
            dataset=self._dataset,
            start=start,
            end=end,
            stations=list(stations),
            variables=list(variables),
        )
        return await self.do(request)

    async def do(self, request: Request) -> Result:
        body = json.dumps(request.model_dump(mode="json"))
        headers = {"content-type": "application/json"}

        logger.debug("POST %s", self._endpoint)

        try:
            async with self._session.post(self._endpoint, data=body, headers=headers) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise StationTransportError(
                        f"non-OK status: {resp.status}; body: {text[:200]}",
                        status_code=resp.status,
                    )
        except StationTransportError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise StationTransportError(f"do request: {exc}") from exc

        try:
            result = Result.model_validate_json(text)
        except ValidationError as exc:
            raise StationResponseError(f"unmarshal response: {exc}") from exc

        if not result.success:
            raise StationResponseError("request marked as unsuccessful by server")
        return result
