"""镜像标签筛选相关功能"""

from typing import TYPE_CHECKING, List, Pattern

from loguru import logger

from .base import ImageReference, TagCandidate, VersionRange
from .version import extract_tag_version, format_range, format_version, in_range

if TYPE_CHECKING:
    from ..registry_client import RegistryClient


class TagSelector:
    """标签筛选器类"""

    def __init__(self, registry_client: "RegistryClient"):
        """
        初始化标签筛选器

        Args:
            registry_client: 仓库客户端实例
        """
        self.registry_client = registry_client

    def select(
        self, repository: ImageReference, pattern: Pattern[str], version_range: VersionRange
    ) -> List[TagCandidate]:
        """
        筛选需要同步的标签

        依次按正则表达式、版本号提取和版本区间过滤，结果保持仓库返回的顺序

        Args:
            repository: 规范化的仓库引用
            pattern: 标签正则表达式
            version_range: 版本区间

        Returns:
            List[TagCandidate]: 符合条件的标签，没有时返回空列表
        """
        candidates: List[TagCandidate] = []
        for tag in self.registry_client.list_tags(repository):
            if not pattern.search(tag):
                continue

            version = extract_tag_version(tag)
            if version is None:
                continue

            if not in_range(version, version_range):
                logger.info(f"丢弃版本 {format_version(version)}（{tag}），不在区间 {format_range(version_range)} 内")
                continue

            candidates.append(TagCandidate(tag=tag, version=version))

        logger.debug(f"{repository.name} 中有 {len(candidates)} 个标签符合条件")
        return candidates
