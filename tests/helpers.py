"""测试辅助类"""

from typing import Callable, Dict, List, Optional, Tuple

from dockmirror.managers.image.base import ImageReference, PlatformIdentifier, ReplicationError
from dockmirror.managers.image.utils import canonicalize

MANIFEST_LIST_V2 = "application/vnd.docker.distribution.manifest.list.v2+json"
OCI_INDEX = "application/vnd.oci.image.index.v1+json"
MANIFEST_V2 = "application/vnd.docker.distribution.manifest.v2+json"

Call = Tuple[Optional[str], ...]


def manifest_list(*platforms: dict, media_type: str = MANIFEST_LIST_V2) -> dict:
    """构造多平台清单列表，每个参数是一个条目的platform字段"""
    return {
        "schemaVersion": 2,
        "mediaType": media_type,
        "manifests": [
            {
                "mediaType": MANIFEST_V2,
                "digest": f"sha256:{index:064d}",
                "size": 528,
                "platform": platform,
            }
            for index, platform in enumerate(platforms)
        ],
    }


def single_manifest() -> dict:
    return {
        "schemaVersion": 2,
        "mediaType": MANIFEST_V2,
        "config": {"mediaType": "application/vnd.docker.container.image.v1+json", "digest": "sha256:" + "a" * 64},
        "layers": [],
    }


class FakeRegistryClient:
    """记录所有调用的仓库客户端"""

    READ_ONLY = ("list_tags", "inspect")

    def __init__(
        self,
        tags: Optional[Dict[str, List[str]]] = None,
        manifests: Optional[Dict[str, dict]] = None,
        fail_on: Optional[Callable[[Call], bool]] = None,
    ):
        self.tags = tags or {}
        self.manifests = manifests or {}
        self.fail_on = fail_on
        self.calls: List[Call] = []

    def resolve_canonical_name(self, image_name: str) -> ImageReference:
        return canonicalize(image_name)

    def list_tags(self, repository: ImageReference) -> List[str]:
        self.calls.append(("list_tags", repository.name))
        return list(self.tags.get(repository.name, []))

    def inspect_manifest(self, reference: ImageReference) -> Optional[dict]:
        self.calls.append(("inspect", str(reference)))
        return self.manifests.get(str(reference))

    def pull(self, reference: ImageReference, platform: Optional[PlatformIdentifier] = None) -> None:
        self._record("pull", str(reference), str(platform) if platform else None)

    def tag(self, source: ImageReference, target: ImageReference) -> None:
        self._record("tag", str(source), str(target))

    def push(self, reference: ImageReference) -> None:
        self._record("push", str(reference))

    def remove_local(self, reference: ImageReference) -> None:
        self._record("remove", str(reference))

    def create_or_amend_manifest_list(self, name: ImageReference, member: ImageReference, is_first: bool) -> None:
        self._record("create" if is_first else "amend", str(name), str(member))

    def push_manifest_list(self, name: ImageReference) -> None:
        self._record("push_manifest", str(name))

    def remove_manifest_list(self, name: ImageReference) -> None:
        self.calls.append(("remove_manifest", str(name)))

    def mutating_calls(self) -> List[Call]:
        return [call for call in self.calls if call[0] not in self.READ_ONLY]

    def names(self) -> List[Optional[str]]:
        """按顺序返回修改操作的名称"""
        return [call[0] for call in self.mutating_calls()]

    def _record(self, *call: Optional[str]) -> None:
        self.calls.append(call)
        if self.fail_on and self.fail_on(call):
            raise ReplicationError(f"模拟失败: {call}")
