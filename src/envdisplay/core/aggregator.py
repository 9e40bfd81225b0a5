"""并发采集任务的调度与错误汇总。"""

from __future__ import annotations

import abc
import asyncio
import logging
from typing import List, Sequence, Tuple

from envdisplay.core.snapshot import Snapshot
from envdisplay.errors import AggregateError, SourceError

logger = logging.getLogger(__name__)


class FetchJob(abc.ABC):
    """一个具名采集单元：从某数据源取值并写入快照的指定字段。"""

    name: str = "job"

    @abc.abstractmethod
    async def run(self, snapshot: Snapshot) -> None:
        """执行一次采集；成功时自行在写锁内写入快照，失败时抛出异常。"""


class Aggregator:
    """并发运行固定的一组 FetchJob，并把结果合并进快照。"""

    def __init__(self, snapshot: Snapshot, jobs: Sequence[FetchJob]) -> None:
        self._snapshot = snapshot
        self._jobs = list(jobs)

    async def refresh(self, timeout: float) -> None:
        """运行全部任务，等待全部结束或超时。

        任何任务失败都不会中断其他任务；存在失败时抛出 AggregateError。
        超时仍未完成的任务会被取消且不再等待，记为该任务的超时错误。
        """

        tasks: List[Tuple[str, asyncio.Task[None]]] = [
            (job.name, asyncio.create_task(job.run(self._snapshot), name=f"fetch:{job.name}"))
            for job in self._jobs
        ]
        if not tasks:
            return

        _, pending = await asyncio.wait([task for _, task in tasks], timeout=timeout)

        errors: List[SourceError] = []
        for name, task in tasks:
            if task in pending:
                task.cancel()
                errors.append(SourceError(f"deadline exceeded after {timeout:g}s", job=name))
                continue
            if task.cancelled():
                errors.append(SourceError("cancelled", job=name))
                continue
            exc = task.exception()
            if exc is None:
                continue
            error = SourceError(str(exc), job=name)
            error.__cause__ = exc
            errors.append(error)

        if errors:
            for error in errors:
                logger.debug("采集任务失败: %s", error)
            raise AggregateError(errors)
