"""显示服务启动入口。"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

# 确保 src 加入路径
PROJECT_ROOT = Path(__file__).resolve().parent
SRC_DIR = PROJECT_ROOT / "src"
if SRC_DIR.exists() and str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from scripts.dev_server import main as run_dev_server
from envdisplay.config import AppConfig
from envdisplay.core.snapshot import Snapshot
from envdisplay.service import start_backend_in_thread


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(asctime)s][%(levelname)s] %(name)s: %(message)s")

    config = AppConfig.load()
    logging.getLogger(__name__).info(
        "画面尺寸 %sx%s，监听 %s:%s",
        config.output.width,
        config.output.height,
        config.host,
        config.port,
    )

    snapshot = Snapshot()
    start_backend_in_thread(snapshot, config)

    asyncio.run(run_dev_server(snapshot=snapshot, config=config))


if __name__ == "__main__":
    main()
