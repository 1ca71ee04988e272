"""镜像同步管理器类 - 门面模式实现"""

from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from threading import Lock
from typing import Dict, List, Optional, Sequence

from loguru import logger

from ..constants import ERROR_MESSAGES, REQUIRED_COMMANDS, SOURCE_REGISTRY
from .base_manager import check_command
from .config_manager import MirrorConfig
from .image.base import (
    ImageReference,
    MirrorResult,
    MirrorStatus,
    MirrorTask,
    MissingDependencyError,
    NotFromSourceHubError,
    RegistryError,
    ReplicationError,
)
from .image.replicate import ManifestReplicator
from .image.tag import TagSelector
from .image.utils import destination_for
from .image.version import format_range
from .registry_client import RegistryClient


class MirrorManager:
    """镜像同步管理器类，解析命令行给出的镜像并逐个同步"""

    def __init__(self, config: MirrorConfig, registry_client: Optional[RegistryClient] = None) -> None:
        """
        初始化镜像同步管理器

        Args:
            config: 同步配置
            registry_client: 仓库客户端，默认检查docker命令后新建

        Raises:
            MissingDependencyError: 缺少docker命令或无法连接Docker时抛出
        """
        self.config = config
        if registry_client is None:
            check_command(*REQUIRED_COMMANDS)
            registry_client = RegistryClient()
            if not registry_client._check_docker_connection():
                raise MissingDependencyError(ERROR_MESSAGES["docker_connection"].format("ping失败"))
        self.registry_client = registry_client

        # 初始化子组件
        self.selector = TagSelector(self.registry_client)
        self.replicator = ManifestReplicator(self.registry_client, config)

    def mirror(self, images: Sequence[str]) -> List[MirrorResult]:
        """
        依次同步所有镜像

        Args:
            images: 命令行给出的镜像名称

        Returns:
            List[MirrorResult]: 所有任务的同步结果

        Raises:
            NotFromSourceHubError: 镜像不在Docker Hub上时抛出
            ReplicationError: 未设置keep_going且任一任务失败时抛出
        """
        results: List[MirrorResult] = []
        for image in images:
            results += self.mirror_image(image)

        for result in results:
            logger.info(f"{result.task.source} -> {result.task.destination}: {result.status.value}")
        return results

    def mirror_image(self, image: str) -> List[MirrorResult]:
        """同步一个镜像参数对应的全部任务"""
        return self._run_tasks(self.plan(image))

    def plan(self, image: str) -> List[MirrorTask]:
        """
        生成镜像参数对应的同步任务

        带标签的镜像只生成一个任务；否则按标签正则和版本区间筛选仓库中的标签

        Args:
            image: 镜像名称，例如 alpine 或 alpine:3.18

        Returns:
            List[MirrorTask]: 同步任务列表

        Raises:
            NotFromSourceHubError: 镜像不在Docker Hub上时抛出
        """
        source = self.registry_client.resolve_canonical_name(image)
        if source.registry != SOURCE_REGISTRY:
            raise NotFromSourceHubError(ERROR_MESSAGES["not_from_hub"].format(image, source))

        if source.tag:
            return [self._task_for(source)]

        logger.info(
            f"收集 {source.name} 中匹配 {self.config.tag_pattern.pattern} "
            f"且版本在 {format_range(self.config.version_range)} 内的标签"
        )
        candidates = self.selector.select(source, self.config.tag_pattern, self.config.version_range)
        if not candidates:
            logger.warning(f"{source.name} 中没有符合条件的标签")
        return [self._task_for(source.with_tag(candidate.tag)) for candidate in candidates]

    def _task_for(self, source: ImageReference) -> MirrorTask:
        return MirrorTask(source=source, destination=destination_for(source, self.config.registry))

    def _run_task(self, task: MirrorTask, lock: Lock) -> MirrorResult:
        with lock:
            try:
                return self.replicator.replicate(task)
            except (ReplicationError, RegistryError) as e:
                if not self.config.keep_going:
                    raise
                logger.error(f"同步 {task.source} 失败: {e}")
                return MirrorResult(task=task, status=MirrorStatus.FAILED, error=e)

    def _run_tasks(self, tasks: List[MirrorTask]) -> List[MirrorResult]:
        # 同一个目标标签的清单操作必须串行
        locks: Dict[str, Lock] = {str(task.destination): Lock() for task in tasks}
        if self.config.jobs <= 1 or len(tasks) <= 1:
            return [self._run_task(task, locks[str(task.destination)]) for task in tasks]

        with ThreadPoolExecutor(max_workers=self.config.jobs) as executor:
            futures = [executor.submit(self._run_task, task, locks[str(task.destination)]) for task in tasks]
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            failed = [future for future in futures if future in done and future.exception() is not None]
            if failed:
                for future in pending:
                    future.cancel()
                raise failed[0].exception()
            return [future.result() for future in futures]
