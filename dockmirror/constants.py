"""常量配置模块"""

from typing import Dict, FrozenSet, List, TypedDict

# 程序名称，用于日志前缀
PROG_NAME: str = "dockmirror"

# 源仓库与目标仓库
SOURCE_REGISTRY: str = "docker.io"
DEFAULT_REGISTRY: str = "ghcr.io"
DOCKER_HUB_NAMESPACE: str = "library"

# Docker Hub 的各种别名都归一化为 SOURCE_REGISTRY
DOCKER_HUB_HOSTS: FrozenSet[str] = frozenset({
    "docker.io",
    "docker.com",
    "index.docker.io",
    "index.docker.com",
    "registry.docker.io",
    "registry.docker.com",
    "registry-1.docker.io",
    "registry-1.docker.com",
    "registry.hub.docker.com",
})

# Docker Hub 标签查询接口
DOCKER_HUB_API: str = "https://hub.docker.com/v2"
DOCKER_HUB_PAGE_SIZE: int = 100
HTTP_TIMEOUT: int = 30

# 标签筛选
DEFAULT_TAG_PATTERN: str = r"[0-9]+(\.[0-9]+)+$"
TAG_VERSION_PATTERN: str = r"[0-9]+(\.[0-9]+)+"

# 清单类型
MANIFEST_LIST_MEDIA_TYPES: FrozenSet[str] = frozenset({
    "application/vnd.docker.distribution.manifest.list.v2+json",
    "application/vnd.oci.image.index.v1+json",
})
ATTESTATION_ANNOTATION: str = "vnd.docker.reference.type"
ATTESTATION_MANIFEST: str = "attestation-manifest"

# 清单不存在时 docker manifest inspect 的错误输出特征
MANIFEST_NOT_FOUND_MARKERS: List[str] = [
    "no such manifest",
    "manifest unknown",
    "not found",
]

# 必需的外部命令
REQUIRED_COMMANDS: List[str] = ["docker"]

# 环境变量覆盖
ENV_PREFIX: str = "MIRROR_"


class EnvVars(TypedDict):
    registry: str
    tags: str
    minver: str
    range: str
    force: str
    dryrun: str
    verbose: str
    keepgoing: str
    jobs: str


ENV_VARS: EnvVars = {
    "registry": f"{ENV_PREFIX}REGISTRY",
    "tags": f"{ENV_PREFIX}TAGS",
    "minver": f"{ENV_PREFIX}MINVER",
    "range": f"{ENV_PREFIX}RANGE",
    "force": f"{ENV_PREFIX}FORCE",
    "dryrun": f"{ENV_PREFIX}DRYRUN",
    "verbose": f"{ENV_PREFIX}VERBOSE",
    "keepgoing": f"{ENV_PREFIX}KEEPGOING",
    "jobs": f"{ENV_PREFIX}JOBS",
}

# 日志级别到标记的映射
LEVEL_TAGS: Dict[str, str] = {
    "TRACE": "DBG",
    "DEBUG": "DBG",
    "INFO": "NFO",
    "SUCCESS": "NFO",
    "WARNING": "WRN",
    "ERROR": "ERR",
    "CRITICAL": "ERR",
}


# 错误消息
class ErrorMessages(TypedDict):
    missing_command: str
    docker_connection: str
    not_from_hub: str
    invalid_pattern: str
    invalid_version: str
    invalid_range: str
    invalid_jobs: str
    empty_registry: str


ERROR_MESSAGES: ErrorMessages = {
    "missing_command": "{} 不可用，这是必需的依赖，无法继续！",
    "docker_connection": "无法连接到Docker守护进程: {}",
    "not_from_hub": "{} 不在 Docker Hub 上（解析为 {}）",
    "invalid_pattern": "无效的标签正则表达式 '{}': {}",
    "invalid_version": "无效的版本号 '{}'",
    "invalid_range": "无效的版本范围 '{}'，正确格式为 min:max",
    "invalid_jobs": "并发数必须大于等于1，当前为 {}",
    "empty_registry": "目标仓库地址不能为空",
}
