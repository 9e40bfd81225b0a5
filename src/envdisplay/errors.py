"""显示服务的异常层级。"""

from __future__ import annotations


class DisplayError(Exception):
    """所有 envdisplay 异常的基类。"""


class SourceError(DisplayError):
    """单个数据源失败，可附带所属采集任务名。"""

    def __init__(self, message: str, *, job: str = "") -> None:
        self.job = job
        super().__init__(f"{job}: {message}" if job else message)


class QueryError(SourceError):
    """时序数据库查询本身失败。"""


class NoRowsError(QueryError):
    """查询没有返回任何记录。"""


class MalformedRecordError(QueryError):
    """记录缺失或不含 `_value` 字段。"""


class TypeMismatchError(QueryError):
    """记录值无法解码为目标类型。"""


class StationTransportError(SourceError):
    """气象站 HTTP 层失败（网络错误或非 200）。"""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class StationResponseError(SourceError):
    """气象站返回 success=false 或无法解析的响应。"""


class AggregateError(DisplayError):
    """一次刷新周期内一个或多个任务失败。"""

    def __init__(self, errors: list[SourceError]) -> None:
        self.errors = list(errors)
        lines = "\n".join(str(err) for err in self.errors)
        super().__init__(f"{len(self.errors)} errors: {lines}")


class RenderError(DisplayError):
    """绘制输入不合法，本周期渲染作废。"""


class EncodingError(DisplayError):
    """像素缓冲编码失败。"""
