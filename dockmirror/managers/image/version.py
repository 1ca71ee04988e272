"""版本号解析与比较"""

import re
from itertools import zip_longest
from typing import Optional

from ...constants import TAG_VERSION_PATTERN
from .base import VersionKey, VersionParseError, VersionRange

_LEADING_VERSION = re.compile(r"[0-9]+(?:\.[0-9]+)*")
_TAG_VERSION = re.compile(TAG_VERSION_PATTERN)


def _to_key(text: str) -> VersionKey:
    return tuple(int(part) for part in text.split("."))


def parse_version(text: str) -> VersionKey:
    """
    解析版本字符串，提取第一段以点分隔的非负整数序列

    Args:
        text: 版本字符串，例如 "3.18" 或 "v1.2.3"

    Returns:
        VersionKey: 版本号元组，例如 (3, 18)

    Raises:
        VersionParseError: 字符串中不包含数字时抛出
    """
    match = _LEADING_VERSION.search(text or "")
    if not match:
        raise VersionParseError(f"无法从 '{text}' 中提取版本号")
    return _to_key(match.group(0))


def extract_tag_version(tag: str) -> Optional[VersionKey]:
    """
    从标签中提取版本号，只识别至少包含一个点的数字序列

    Args:
        tag: 镜像标签，例如 "3.19.1-alpine"

    Returns:
        Optional[VersionKey]: 版本号，无法提取时返回None
    """
    match = _TAG_VERSION.search(tag)
    if not match:
        return None
    return _to_key(match.group(0))


def compare_versions(a: VersionKey, b: VersionKey) -> int:
    """
    比较两个版本号，较短的一方以0补齐

    Returns:
        int: a < b 返回 -1，相等返回 0，a > b 返回 1
    """
    for x, y in zip_longest(a, b, fillvalue=0):
        if x < y:
            return -1
        if x > y:
            return 1
    return 0


def in_range(version: VersionKey, version_range: VersionRange) -> bool:
    """判断版本号是否落在 [min, max) 区间内"""
    if version_range.min is not None and compare_versions(version, version_range.min) < 0:
        return False
    if version_range.max is not None and compare_versions(version, version_range.max) >= 0:
        return False
    return True


def format_version(version: VersionKey) -> str:
    return ".".join(str(part) for part in version)


def format_range(version_range: VersionRange) -> str:
    """格式化版本区间，用于日志"""
    low = format_version(version_range.min) if version_range.min is not None else "-∞"
    high = format_version(version_range.max) if version_range.max is not None else "∞"
    return f"[{low}, {high})"
