"""镜像复制相关功能"""

from typing import TYPE_CHECKING, List

from loguru import logger

from .base import (
    ImageReference,
    ManifestDocument,
    MirrorResult,
    MirrorStatus,
    MirrorTask,
    PlatformIdentifier,
    ReplicationError,
)
from .platform import enumerate_platforms, is_manifest_list

if TYPE_CHECKING:
    from ..config_manager import MirrorConfig
    from ..registry_client import RegistryClient


class ManifestReplicator:
    """清单复制器类，把一个带标签的源镜像的所有平台复制到目标仓库"""

    def __init__(self, registry_client: "RegistryClient", config: "MirrorConfig"):
        """
        初始化清单复制器

        Args:
            registry_client: 仓库客户端实例
            config: 同步配置
        """
        self.registry_client = registry_client
        self.config = config

    def replicate(self, task: MirrorTask) -> MirrorResult:
        """
        复制一个镜像

        目标已存在且未强制同步时直接跳过。任何一步失败都会中止整个任务，
        多平台清单列表只在所有平台推送成功后才推送

        Args:
            task: 同步任务

        Returns:
            MirrorResult: 同步结果

        Raises:
            ReplicationError: 拉取、打标签、推送或清单操作失败时抛出
        """
        source, destination = task.source, task.destination
        if not self.config.force and self.registry_client.inspect_manifest(destination) is not None:
            logger.warning(f"{destination} 已存在，跳过同步")
            return MirrorResult(task=task, status=MirrorStatus.SKIPPED)

        logger.info(f"同步 {source} 到 {destination}")
        logger.info(f"查询 {source} 的平台...")
        document = self.registry_client.inspect_manifest(source)
        if document is None:
            raise ReplicationError(f"源镜像 {source} 的清单不存在")

        created: List[ImageReference] = []
        manifest_lists: List[ImageReference] = []
        try:
            if is_manifest_list(document):
                logger.info(f"{source} 是多平台镜像，逐个平台推送")
                platforms = self._replicate_platforms(task, document, created, manifest_lists)
            else:
                logger.info(f"{source} 是单平台镜像")
                self._replicate_single(task, created)
                platforms = []
        finally:
            self._cleanup(created, manifest_lists)

        status = MirrorStatus.DRY_RUN if self.config.dry_run else MirrorStatus.MIRRORED
        return MirrorResult(task=task, status=status, platforms=platforms)

    def _replicate_single(self, task: MirrorTask, created: List[ImageReference]) -> None:
        self.registry_client.pull(task.source)
        self.registry_client.tag(task.source, task.destination)
        created.append(task.destination)
        if self.config.dry_run:
            logger.info(f"将推送镜像 {task.destination}（模拟运行）")
        else:
            logger.info(f"推送镜像 {task.destination}")
            self.registry_client.push(task.destination)

    def _replicate_platforms(
        self,
        task: MirrorTask,
        document: ManifestDocument,
        created: List[ImageReference],
        manifest_lists: List[ImageReference],
    ) -> List[PlatformIdentifier]:
        source, destination = task.source, task.destination
        platforms = enumerate_platforms(document)
        if not platforms:
            raise ReplicationError(f"{source} 的清单列表中没有可用的平台")

        for index, platform in enumerate(platforms):
            logger.info(f"拉取 {source} 的 {platform} 平台")
            self.registry_client.pull(source, platform)

            member = destination.with_tag(f"{destination.tag}-{platform.platform_id}")
            logger.info(f"将 {source} 的 {platform} 平台标记为 {member}")
            self.registry_client.tag(source, member)
            created.append(member)

            if self.config.dry_run:
                logger.info(f"将推送镜像 {member}（模拟运行）")
                logger.info(f"将把 {member} 加入清单 {destination}（模拟运行）")
                continue

            self.registry_client.push(member)
            logger.info(f"把 {member} 加入清单 {destination}")
            if index == 0:
                manifest_lists.append(destination)
            self.registry_client.create_or_amend_manifest_list(destination, member, is_first=index == 0)

        if self.config.dry_run:
            logger.info(f"将推送清单 {destination}（模拟运行）")
        else:
            logger.info(f"推送清单 {destination}")
            self.registry_client.push_manifest_list(destination)
            # push --purge 已删除本地清单列表
            manifest_lists.remove(destination)
        return platforms

    def _cleanup(self, created: List[ImageReference], manifest_lists: List[ImageReference]) -> None:
        """删除本地创建的目标镜像标签和未推送的清单列表，删除失败只记录警告"""
        for name in manifest_lists:
            logger.info(f"删除未推送的本地清单列表 {name}")
            self.registry_client.remove_manifest_list(name)
        for reference in created:
            if self.config.dry_run:
                logger.info(f"将删除本地镜像 {reference}（模拟运行）")
                continue
            try:
                self.registry_client.remove_local(reference)
            except ReplicationError as e:
                logger.warning(f"清理本地镜像失败: {e}")
