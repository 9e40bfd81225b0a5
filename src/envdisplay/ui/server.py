"""FastAPI 应用：以 JSON / PNG / BMP / 文本形式提供当前画面。"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse, Response

from envdisplay.core.snapshot import Snapshot
from envdisplay.errors import EncodingError
from envdisplay.render.encoding import ENCODERS, encode_png
from envdisplay.render.renderer import PixelBuffer, enlarge

logger = logging.getLogger(__name__)

LARGE_FACTOR = 16
LARGE_MARGIN = 2


def create_app(snapshot: Optional[Snapshot] = None) -> FastAPI:
    """构建 FastAPI 应用并注册显示相关路由。"""

    app = FastAPI(title="envdisplay")
    state = snapshot if snapshot is not None else Snapshot()

    @app.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/index.json", tags=["display"])
    def index_json() -> dict[str, list[str]]:
        return {"screen": state.screen()}

    def _serve_encoded(ext: str) -> Response:
        media_type, encoder = ENCODERS[ext]
        frame = state.frame()
        if frame is None:
            logger.error("图像编码失败: 画面尚未渲染")
            return PlainTextResponse("image has not been rendered yet", status_code=500)
        return _encode_response(encoder, frame.buffer, media_type)

    @app.get("/index.png", tags=["display"])
    def index_png() -> Response:
        return _serve_encoded(".png")

    @app.get("/index.bmp", tags=["display"])
    def index_bmp() -> Response:
        return _serve_encoded(".bmp")

    @app.get("/index.txt", tags=["display"])
    def index_txt() -> Response:
        return _serve_encoded(".txt")

    @app.get("/large.png", tags=["display"])
    def large_png() -> Response:
        frame = state.frame()
        src = frame.buffer if frame is not None else PixelBuffer.blank(1, 1)
        return _encode_response(
            encode_png, enlarge(src, LARGE_FACTOR, LARGE_MARGIN), "image/png"
        )

    return app


def _encode_response(
    encoder: Callable[[PixelBuffer], bytes],
    buffer: PixelBuffer,
    media_type: str,
) -> Response:
    # 完整编码后才开始响应，失败时还能返回 500
    try:
        body = encoder(buffer)
    except EncodingError as exc:
        logger.error("图像编码失败: %s", exc)
        return PlainTextResponse(str(exc), status_code=500)
    return Response(content=body, media_type=media_type)
