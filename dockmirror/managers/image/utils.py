"""镜像引用工具函数"""

from typing import Optional, Tuple

from ...constants import DOCKER_HUB_HOSTS, DOCKER_HUB_NAMESPACE, SOURCE_REGISTRY
from .base import ImageReference, ImageReferenceError


def parse_image_name(image_name: str) -> Tuple[str, Optional[str]]:
    """
    解析镜像名称，分离仓库名和标签

    只在最后一段路径中查找标签，避免把仓库端口误认为标签

    Args:
        image_name: 镜像名称，格式为 "仓库名[:标签]"

    Returns:
        Tuple[str, Optional[str]]: 仓库名和标签，未指定标签时为None
    """
    head, _, last = image_name.rpartition("/")
    if ":" in last:
        last, tag = last.split(":", 1)
    else:
        tag = None
    repository = f"{head}/{last}" if head else last
    return repository, tag or None


def _is_registry_host(segment: str) -> bool:
    return "." in segment or ":" in segment or segment == "localhost"


def canonicalize(image_name: str) -> ImageReference:
    """
    将镜像名称规范化为带仓库主机的完整引用

    例如 "alpine" -> docker.io/library/alpine，"efrecon/reg-tags:1.0" ->
    docker.io/efrecon/reg-tags:1.0，Docker Hub 的各个别名统一为 docker.io

    Args:
        image_name: 镜像名称

    Returns:
        ImageReference: 规范化的镜像引用

    Raises:
        ImageReferenceError: 名称为空或使用摘要引用时抛出
    """
    name = (image_name or "").strip()
    if name.startswith("docker://"):
        name = name[len("docker://"):]
    if not name:
        raise ImageReferenceError("镜像名称不能为空")
    if "@" in name:
        raise ImageReferenceError(f"不支持摘要引用: {image_name}")

    path, tag = parse_image_name(name)
    segments = path.split("/")
    if len(segments) > 1 and _is_registry_host(segments[0]):
        registry = segments[0].lower()
        segments = segments[1:]
    else:
        registry = SOURCE_REGISTRY

    if registry in DOCKER_HUB_HOSTS:
        registry = SOURCE_REGISTRY
        if segments[0] == "_":
            segments = segments[1:]
        if len(segments) == 1:
            segments = [DOCKER_HUB_NAMESPACE] + segments

    if not segments or not all(segments):
        raise ImageReferenceError(f"无效的镜像名称: {image_name}")

    return ImageReference(registry=registry, repository="/".join(segments), tag=tag)


def destination_for(source: ImageReference, registry: str) -> ImageReference:
    """
    计算目标镜像引用

    目标仓库路径中含有 "/" 时只保留源镜像的最后一段名称；否则去掉源仓库的主机部分，
    把剩余路径挂到目标仓库下

    Args:
        source: 规范化的源镜像引用
        registry: 目标仓库路径，例如 ghcr.io 或 ghcr.io/acme

    Returns:
        ImageReference: 目标镜像引用，标签与源镜像相同
    """
    registry = registry.rstrip("/")
    host, _, path = registry.partition("/")
    if path:
        repository = f"{path}/{source.repository.rsplit('/', 1)[-1]}"
    else:
        repository = source.repository
    return ImageReference(registry=host, repository=repository, tag=source.tag)
