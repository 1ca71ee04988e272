"""配置管理器类"""

import os
import re
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Pattern

from loguru import logger

from ..constants import (
    DEFAULT_REGISTRY,
    DEFAULT_TAG_PATTERN,
    ENV_PREFIX,
    ERROR_MESSAGES,
)
from .image.base import VersionKey, VersionParseError, VersionRange
from .image.version import compare_versions, format_range, parse_version


class ConfigError(Exception):
    """配置错误"""

    pass


@dataclass(frozen=True)
class MirrorConfig:
    """一次运行的同步配置，创建后不可修改"""

    registry: str = DEFAULT_REGISTRY
    tag_pattern: Pattern[str] = field(default_factory=lambda: re.compile(DEFAULT_TAG_PATTERN))
    version_range: VersionRange = field(default_factory=VersionRange)
    force: bool = False
    dry_run: bool = False
    verbose: int = 0
    keep_going: bool = False
    jobs: int = 1


def _parse_bound(text: Optional[str]) -> Optional[VersionKey]:
    """解析版本边界，空字符串表示无界"""
    if text is None or not text.strip():
        return None
    try:
        return parse_version(text.strip())
    except VersionParseError as e:
        raise ConfigError(ERROR_MESSAGES["invalid_version"].format(text)) from e


def parse_range(text: Optional[str]) -> VersionRange:
    """
    解析版本区间字符串

    支持 "min:max"、"min:"、":max"，不含冒号时视为最小版本

    Args:
        text: 版本区间字符串

    Returns:
        VersionRange: 版本区间

    Raises:
        ConfigError: 格式错误时抛出
    """
    if text is None or not text.strip():
        return VersionRange()
    if text.count(":") > 1:
        raise ConfigError(ERROR_MESSAGES["invalid_range"].format(text))
    low, _, high = text.partition(":")
    return VersionRange(min=_parse_bound(low), max=_parse_bound(high))


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    获取当前设置的所有环境变量覆盖

    Returns:
        Dict[str, str]: 按名称排序的 MIRROR_ 环境变量
    """
    environ = os.environ if environ is None else environ
    return {key: environ[key] for key in sorted(environ) if key.startswith(ENV_PREFIX)}


class ConfigManager:
    """配置管理器类，校验命令行和环境变量的取值并生成同步配置"""

    def __init__(
        self,
        registry: Optional[str] = None,
        tags: Optional[str] = None,
        minver: Optional[str] = None,
        version_range: Optional[str] = None,
        force: bool = False,
        dry_run: bool = False,
        verbose: int = 0,
        keep_going: bool = False,
        jobs: int = 1,
    ) -> None:
        """
        初始化配置管理器

        Args:
            registry: 目标仓库路径
            tags: 标签正则表达式
            minver: 最小版本（旧参数）
            version_range: 版本区间 min:max
            force: 目标已存在时也同步
            dry_run: 只记录将要执行的操作
            verbose: 日志详细程度
            keep_going: 任务失败后继续处理其他任务
            jobs: 并发任务数
        """
        self.registry = DEFAULT_REGISTRY if registry is None else registry
        self.tags = DEFAULT_TAG_PATTERN if tags is None else tags
        self.minver = minver
        self.version_range = version_range
        self.force = force
        self.dry_run = dry_run
        self.verbose = verbose
        self.keep_going = keep_going
        self.jobs = jobs

    def build_config(self) -> MirrorConfig:
        """
        校验配置并生成同步配置

        Returns:
            MirrorConfig: 同步配置

        Raises:
            ConfigError: 配置校验失败时抛出
        """
        registry = self.registry.strip().rstrip("/")
        if not registry:
            raise ConfigError(ERROR_MESSAGES["empty_registry"])

        try:
            pattern = re.compile(self.tags)
        except re.error as e:
            raise ConfigError(ERROR_MESSAGES["invalid_pattern"].format(self.tags, e)) from e

        if self.jobs < 1:
            raise ConfigError(ERROR_MESSAGES["invalid_jobs"].format(self.jobs))

        version_range = self._merge_range()
        if (
            version_range.min is not None
            and version_range.max is not None
            and compare_versions(version_range.min, version_range.max) >= 0
        ):
            logger.warning(f"版本区间 {format_range(version_range)} 为空，不会同步任何标签")

        return MirrorConfig(
            registry=registry,
            tag_pattern=pattern,
            version_range=version_range,
            force=self.force,
            dry_run=self.dry_run,
            verbose=self.verbose,
            keep_going=self.keep_going,
            jobs=self.jobs,
        )

    def _merge_range(self) -> VersionRange:
        """合并 -m 与 -g，-g 中给出的边界优先"""
        minimum = _parse_bound(self.minver)
        # 默认的最小版本 0 / 0.0.0 等同于无界
        if minimum is not None and not any(minimum):
            minimum = None

        explicit = parse_range(self.version_range)
        return VersionRange(
            min=explicit.min if explicit.min is not None else minimum,
            max=explicit.max,
        )
