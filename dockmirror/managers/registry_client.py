"""仓库客户端 - 封装Docker SDK、docker manifest命令和Docker Hub接口"""

import subprocess
from threading import Lock
from typing import Dict, List, Optional

import docker
import requests
from docker.client import DockerClient
from loguru import logger

from ..constants import (
    DOCKER_HUB_API,
    DOCKER_HUB_PAGE_SIZE,
    HTTP_TIMEOUT,
    MANIFEST_NOT_FOUND_MARKERS,
    SOURCE_REGISTRY,
)
from ..utils import run_command
from .base_manager import BaseManager
from .image.base import (
    ImageReference,
    ManifestDocument,
    PlatformIdentifier,
    RegistryError,
    ReplicationError,
)
from .image.platform import parse_manifest
from .image.utils import canonicalize


class RegistryClient(BaseManager):
    """仓库客户端类，提供镜像同步所需的全部仓库和本地镜像操作"""

    def __init__(
        self,
        docker_client: Optional[DockerClient] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        初始化仓库客户端

        Args:
            docker_client: Docker客户端实例，默认从环境变量创建
            session: HTTP会话，默认新建
        """
        super().__init__(docker_client)
        self.session = session or requests.Session()
        self._tags_cache: Dict[str, List[str]] = {}
        self._cache_lock = Lock()

    def resolve_canonical_name(self, image_name: str) -> ImageReference:
        """将镜像名称解析为带仓库主机的完整引用"""
        return canonicalize(image_name)

    def list_tags(self, repository: ImageReference) -> List[str]:
        """
        获取仓库的全部标签，保持Docker Hub返回的顺序

        Args:
            repository: 规范化的仓库引用

        Returns:
            List[str]: 标签列表

        Raises:
            RegistryError: 非Docker Hub仓库或查询失败时抛出
        """
        if repository.registry != SOURCE_REGISTRY:
            raise RegistryError(f"只能从 {SOURCE_REGISTRY} 获取标签: {repository.name}")

        with self._cache_lock:
            if repository.repository in self._tags_cache:
                return list(self._tags_cache[repository.repository])

        url: Optional[str] = f"{DOCKER_HUB_API}/repositories/{repository.repository}/tags"
        params: Optional[Dict[str, int]] = {"page_size": DOCKER_HUB_PAGE_SIZE}
        tags: List[str] = []
        while url:
            logger.debug(f"请求标签列表: {url}")
            try:
                response = self.session.get(url, params=params, timeout=HTTP_TIMEOUT)
                response.raise_for_status()
                page = response.json()
            except (requests.RequestException, ValueError) as e:
                raise RegistryError(f"获取 {repository.name} 的标签失败: {e}") from e

            tags += [result["name"] for result in page.get("results", []) if "name" in result]
            # next 链接中已经包含分页参数
            url = page.get("next")
            params = None

        with self._cache_lock:
            self._tags_cache[repository.repository] = tags
        return list(tags)

    def inspect_manifest(self, reference: ImageReference) -> Optional[ManifestDocument]:
        """
        获取镜像清单

        Args:
            reference: 带标签的镜像引用

        Returns:
            Optional[ManifestDocument]: 清单文档，清单不存在时返回None

        Raises:
            RegistryError: 查询失败时抛出
        """
        return_code, stdout, stderr = run_command(
            ["docker", "manifest", "inspect", str(reference)], check=False
        )
        if return_code != 0:
            message = stderr.strip().lower()
            if any(marker in message for marker in MANIFEST_NOT_FOUND_MARKERS):
                logger.debug(f"清单 {reference} 不存在")
                return None
            raise RegistryError(f"获取清单 {reference} 失败: {stderr.strip()}")
        return parse_manifest(stdout)

    def pull(self, reference: ImageReference, platform: Optional[PlatformIdentifier] = None) -> None:
        """
        拉取镜像

        Args:
            reference: 带标签的镜像引用
            platform: 只拉取指定平台，默认为本机平台

        Raises:
            ReplicationError: 拉取失败时抛出
        """
        try:
            self.docker_client.images.pull(
                reference.name,
                tag=reference.tag,
                platform=str(platform) if platform else None,
            )
        except docker.errors.APIError as e:
            raise ReplicationError(f"拉取镜像 {reference} 失败: {e}") from e

    def tag(self, source: ImageReference, target: ImageReference) -> None:
        """
        为本地镜像添加新标签

        Raises:
            ReplicationError: 添加标签失败时抛出
        """
        try:
            image = self.docker_client.images.get(str(source))
            if not image.tag(target.name, tag=target.tag):
                raise ReplicationError(f"为镜像 {source} 添加标签 {target} 失败")
        except docker.errors.APIError as e:
            raise ReplicationError(f"为镜像 {source} 添加标签 {target} 失败: {e}") from e

    def push(self, reference: ImageReference) -> None:
        """
        推送本地镜像

        Raises:
            ReplicationError: 推送失败时抛出
        """
        try:
            for line in self.docker_client.images.push(
                reference.name, tag=reference.tag, stream=True, decode=True
            ):
                if "error" in line:
                    raise ReplicationError(f"推送镜像 {reference} 失败: {line['error']}")
                if "status" in line:
                    logger.debug(line["status"])
        except docker.errors.APIError as e:
            raise ReplicationError(f"推送镜像 {reference} 失败: {e}") from e

    def remove_local(self, reference: ImageReference) -> None:
        """
        删除本地镜像标签，镜像不存在时忽略

        Raises:
            ReplicationError: 删除失败时抛出
        """
        try:
            self.docker_client.images.remove(str(reference), force=True)
        except docker.errors.ImageNotFound:
            logger.debug(f"本地镜像 {reference} 不存在，无需删除")
        except docker.errors.APIError as e:
            raise ReplicationError(f"删除本地镜像 {reference} 失败: {e}") from e

    def create_or_amend_manifest_list(
        self, name: ImageReference, member: ImageReference, is_first: bool
    ) -> None:
        """
        创建或修改本地清单列表

        Args:
            name: 清单列表引用
            member: 要加入的单平台镜像引用
            is_first: 是否为第一个平台，是则先丢弃本地残留的同名清单列表

        Raises:
            ReplicationError: 命令执行失败时抛出
        """
        if is_first:
            self.remove_manifest_list(name)
            command = ["docker", "manifest", "create", str(name), str(member)]
        else:
            command = ["docker", "manifest", "create", "--amend", str(name), str(member)]
        self._run_manifest_command(command)

    def push_manifest_list(self, name: ImageReference) -> None:
        """
        推送清单列表，推送后删除本地清单列表

        Raises:
            ReplicationError: 命令执行失败时抛出
        """
        self._run_manifest_command(["docker", "manifest", "push", "--purge", str(name)])

    def remove_manifest_list(self, name: ImageReference) -> None:
        """删除本地清单列表，清单列表不存在时忽略"""
        return_code, _, stderr = run_command(["docker", "manifest", "rm", str(name)], check=False)
        if return_code != 0:
            logger.debug(f"删除本地清单列表 {name} 失败: {stderr.strip()}")

    def _run_manifest_command(self, command: List[str]) -> None:
        try:
            run_command(command)
        except subprocess.CalledProcessError as e:
            raise ReplicationError(f"命令 {' '.join(command)} 失败: {(e.stderr or '').strip()}") from e
