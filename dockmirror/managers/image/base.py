"""镜像同步基础类型定义"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple, TypedDict


class MirrorError(Exception):
    """镜像同步错误基类"""
    pass


class MissingDependencyError(MirrorError):
    """缺少必需的外部工具"""
    pass


class NotFromSourceHubError(MirrorError):
    """镜像不在源仓库上"""
    pass


class VersionParseError(MirrorError):
    """无法从字符串中提取版本号"""
    pass


class ImageReferenceError(MirrorError):
    """镜像引用格式错误"""
    pass


class RegistryError(MirrorError):
    """仓库查询错误"""
    pass


class ReplicationError(MirrorError):
    """拉取、打标签、推送或清单操作失败"""
    pass


# 版本号，例如 "3.18" -> (3, 18)
VersionKey = Tuple[int, ...]


@dataclass(frozen=True)
class ImageReference:
    """镜像引用，registry 为空时表示尚未规范化"""
    registry: str
    repository: str
    tag: Optional[str] = None

    @property
    def name(self) -> str:
        """不带标签的完整名称"""
        if self.registry:
            return f"{self.registry}/{self.repository}"
        return self.repository

    def with_tag(self, tag: str) -> "ImageReference":
        return replace(self, tag=tag)

    def __str__(self) -> str:
        if self.tag:
            return f"{self.name}:{self.tag}"
        return self.name


@dataclass(frozen=True)
class TagCandidate:
    """通过筛选的标签及其版本号"""
    tag: str
    version: VersionKey


@dataclass(frozen=True)
class VersionRange:
    """半开版本区间 [min, max)，None 表示该侧无界"""
    min: Optional[VersionKey] = None
    max: Optional[VersionKey] = None


@dataclass(frozen=True)
class PlatformIdentifier:
    """平台标识 os/arch[/variant]"""
    os: str
    arch: str
    variant: Optional[str] = None

    @property
    def platform_id(self) -> str:
        """用于标签后缀的平台标识，例如 linux-arm64-v8"""
        return str(self).replace("/", "-")

    def __str__(self) -> str:
        if self.variant:
            return f"{self.os}/{self.arch}/{self.variant}"
        return f"{self.os}/{self.arch}"


@dataclass(frozen=True)
class MirrorTask:
    """一次镜像同步任务，source 与 destination 都带有具体标签"""
    source: ImageReference
    destination: ImageReference


class MirrorStatus(str, Enum):
    """镜像同步结果状态"""
    MIRRORED = "mirrored"
    SKIPPED = "skipped"
    DRY_RUN = "dry-run"
    FAILED = "failed"


@dataclass
class MirrorResult:
    """镜像同步结果"""
    task: MirrorTask
    status: MirrorStatus
    platforms: List[PlatformIdentifier] = field(default_factory=list)
    error: Optional[Exception] = None


class PlatformInfo(TypedDict, total=False):
    """清单列表条目中的平台信息"""
    os: str
    architecture: str
    variant: str


class ManifestEntry(TypedDict, total=False):
    """清单列表中的子清单条目"""
    mediaType: str
    digest: str
    size: int
    platform: PlatformInfo
    annotations: dict


class ManifestDocument(TypedDict, total=False):
    """docker manifest inspect 返回的清单文档"""
    schemaVersion: int
    mediaType: str
    manifests: List[ManifestEntry]
    config: dict
    layers: List[dict]
