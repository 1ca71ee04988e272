"""镜像同步管理器模块

该模块包含各种管理器类，用于解析配置、访问仓库和同步镜像。
"""

from .base_manager import BaseManager, check_command
from .config_manager import ConfigError, ConfigManager, MirrorConfig
from .mirror_manager import MirrorManager
from .registry_client import RegistryClient

__all__ = [
    "BaseManager",
    "check_command",
    "ConfigError",
    "ConfigManager",
    "MirrorConfig",
    "MirrorManager",
    "RegistryClient",
]
