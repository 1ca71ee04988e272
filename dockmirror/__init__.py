"""Docker Hub 镜像同步工具包"""

# 导入loguru并配置默认logger，只输出警告和错误
from loguru import logger

from .utils import configure_logging

configure_logging()

# 导入其他模块
from .cli import app, main

__version__ = "0.1.0"

__all__ = [
    "logger",
    "app",
    "main",
]
