"""多平台清单解析"""

import json
from typing import Any, List, Optional, Union

from loguru import logger

from ...constants import (
    ATTESTATION_ANNOTATION,
    ATTESTATION_MANIFEST,
    MANIFEST_LIST_MEDIA_TYPES,
)
from .base import ManifestDocument, PlatformIdentifier, RegistryError


def parse_manifest(raw: Union[str, bytes]) -> ManifestDocument:
    """
    将清单的JSON文本解析为清单文档

    Args:
        raw: docker manifest inspect 的输出

    Returns:
        ManifestDocument: 清单文档

    Raises:
        RegistryError: 输出不是JSON对象时抛出
    """
    try:
        document = json.loads(raw)
    except ValueError as e:
        raise RegistryError(f"无法解析清单: {e}") from e
    if not isinstance(document, dict):
        raise RegistryError("清单格式错误: 顶层不是对象")
    return document  # type: ignore[return-value]


def is_manifest_list(document: ManifestDocument) -> bool:
    """判断清单是否为多平台清单列表，OCI索引可以省略mediaType"""
    if document.get("mediaType") in MANIFEST_LIST_MEDIA_TYPES:
        return True
    return isinstance(document.get("manifests"), list)


def _platform_of(entry: Any) -> Optional[PlatformIdentifier]:
    if not isinstance(entry, dict):
        return None
    annotations = entry.get("annotations") or {}
    if isinstance(annotations, dict) and annotations.get(ATTESTATION_ANNOTATION) == ATTESTATION_MANIFEST:
        return None
    platform = entry.get("platform")
    if not isinstance(platform, dict):
        return None
    os_name = platform.get("os")
    arch = platform.get("architecture")
    if not os_name or not arch:
        return None
    return PlatformIdentifier(os=os_name, arch=arch, variant=platform.get("variant") or None)


def enumerate_platforms(document: ManifestDocument) -> List[PlatformIdentifier]:
    """
    列出清单列表中声明的所有平台

    缺少 os 或 architecture 的条目以及构建证明条目会被跳过，不会报错。
    重复的平台只保留第一次出现的位置

    Args:
        document: 多平台清单文档

    Returns:
        List[PlatformIdentifier]: 按清单顺序排列的平台列表
    """
    platforms: List[PlatformIdentifier] = []
    entries = document.get("manifests") or []
    for entry in entries:
        platform = _platform_of(entry)
        if platform is None:
            logger.debug(f"跳过不完整的清单条目: {entry}")
            continue
        if platform not in platforms:
            platforms.append(platform)
    return platforms
