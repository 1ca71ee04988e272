"""测试配置和共享fixture"""

import os

import pytest
from loguru import logger

from dockmirror.managers.config_manager import MirrorConfig
from dockmirror.utils import configure_logging


@pytest.fixture
def log_messages():
    """收集测试期间的所有日志消息"""
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG", format="{message}")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def config():
    """默认同步配置，目标仓库为 ghcr.io/acme"""
    return MirrorConfig(registry="ghcr.io/acme")


@pytest.fixture(autouse=True)
def clean_mirror_env(monkeypatch):
    """清除测试机上可能存在的 MIRROR_ 环境变量"""
    for key in list(os.environ):
        if key.startswith("MIRROR_"):
            monkeypatch.delenv(key)


@pytest.fixture(autouse=True)
def reset_logging():
    """命令行测试会把日志输出到临时流，测试结束后恢复默认配置"""
    yield
    configure_logging()
