"""envdisplay 打包配置。"""

from __future__ import annotations

from setuptools import find_packages, setup


VERSION = "0.1.0"

INSTALL_REQUIRES = [
    "aiohttp>=3.9",
    "fastapi>=0.110",
    "influxdb-client[async]>=1.40",
    "numpy>=1.26",
    "Pillow>=10.0",
    "pydantic>=2.5",
    "uvicorn>=0.27",
]

EXTRAS_REQUIRE = {
    "test": [
        "httpx>=0.27",
        "pytest>=8.0",
    ],
}


setup(
    name="envdisplay",
    version=VERSION,
    description="室内外环境数据的小尺寸点阵屏显示服务",
    python_requires=">=3.10",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=INSTALL_REQUIRES,
    extras_require=EXTRAS_REQUIRE,
)
