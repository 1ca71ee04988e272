"""镜像同步相关功能模块

该子包包含镜像同步的各个功能模块，如版本比较、标签筛选、平台解析、清单复制等。
"""

from .base import (
    ImageReference,
    ImageReferenceError,
    MirrorError,
    MirrorResult,
    MirrorStatus,
    MirrorTask,
    MissingDependencyError,
    NotFromSourceHubError,
    PlatformIdentifier,
    RegistryError,
    ReplicationError,
    TagCandidate,
    VersionParseError,
    VersionRange,
)
from .platform import enumerate_platforms, is_manifest_list, parse_manifest
from .replicate import ManifestReplicator
from .tag import TagSelector
from .utils import canonicalize, destination_for, parse_image_name
from .version import compare_versions, extract_tag_version, in_range, parse_version

__all__ = [
    "ImageReference",
    "ImageReferenceError",
    "MirrorError",
    "MirrorResult",
    "MirrorStatus",
    "MirrorTask",
    "MissingDependencyError",
    "NotFromSourceHubError",
    "PlatformIdentifier",
    "RegistryError",
    "ReplicationError",
    "TagCandidate",
    "VersionParseError",
    "VersionRange",
    "ManifestReplicator",
    "TagSelector",
    "canonicalize",
    "destination_for",
    "parse_image_name",
    "enumerate_platforms",
    "is_manifest_list",
    "parse_manifest",
    "compare_versions",
    "extract_tag_version",
    "in_range",
    "parse_version",
]
