"""镜像同步管理器测试"""

from dataclasses import replace
from unittest.mock import patch

import pytest

from dockmirror.managers.config_manager import MirrorConfig
from dockmirror.managers.image.base import (
    ImageReference,
    MirrorResult,
    MirrorStatus,
    MissingDependencyError,
    NotFromSourceHubError,
    ReplicationError,
    VersionRange,
)
from dockmirror.managers.mirror_manager import MirrorManager
from tests.helpers import FakeRegistryClient, single_manifest

HUB_TAGS = {"docker.io/library/alpine": ["3.17", "3.18", "3.19"]}
HUB_MANIFESTS = {
    "docker.io/library/alpine:3.17": single_manifest(),
    "docker.io/library/alpine:3.18": single_manifest(),
    "docker.io/library/alpine:3.19": single_manifest(),
}


def manager_for(config, client):
    return MirrorManager(config, registry_client=client)


class TestPlan:
    """MirrorManager.plan 测试"""

    def test_end_to_end_selection(self, config):
        client = FakeRegistryClient(tags=HUB_TAGS)
        manager = manager_for(replace(config, version_range=VersionRange(min=(3, 18))), client)

        tasks = manager.plan("alpine")

        assert [(str(task.source), str(task.destination)) for task in tasks] == [
            ("docker.io/library/alpine:3.18", "ghcr.io/acme/alpine:3.18"),
            ("docker.io/library/alpine:3.19", "ghcr.io/acme/alpine:3.19"),
        ]

    def test_explicit_tag_skips_listing(self, config):
        client = FakeRegistryClient(tags=HUB_TAGS)

        tasks = manager_for(config, client).plan("alpine:3.17")

        assert [str(task.destination) for task in tasks] == ["ghcr.io/acme/alpine:3.17"]
        assert client.calls == []

    def test_bare_registry_keeps_namespace(self):
        client = FakeRegistryClient(tags={"docker.io/efrecon/reg-tags": ["1.2"]})

        tasks = manager_for(MirrorConfig(registry="ghcr.io"), client).plan("efrecon/reg-tags")

        assert [str(task.destination) for task in tasks] == ["ghcr.io/efrecon/reg-tags:1.2"]

    def test_rejects_images_not_on_hub(self, config):
        client = FakeRegistryClient()

        with pytest.raises(NotFromSourceHubError):
            manager_for(config, client).plan("quay.io/coreos/etcd:3.5")
        assert client.calls == []

    def test_no_matching_tags(self, config, log_messages):
        client = FakeRegistryClient(tags={"docker.io/library/alpine": ["latest"]})

        assert manager_for(config, client).plan("alpine") == []
        assert any("没有符合条件的标签" in message for message in log_messages)


class TestMirror:
    """MirrorManager.mirror 测试"""

    def test_mirrors_each_selected_tag(self, config):
        client = FakeRegistryClient(tags=HUB_TAGS, manifests=HUB_MANIFESTS)
        manager = manager_for(replace(config, version_range=VersionRange(min=(3, 18))), client)

        results = manager.mirror(["alpine"])

        assert [result.status for result in results] == [MirrorStatus.MIRRORED, MirrorStatus.MIRRORED]
        pushes = [call[1] for call in client.mutating_calls() if call[0] == "push"]
        assert pushes == ["ghcr.io/acme/alpine:3.18", "ghcr.io/acme/alpine:3.19"]

    def test_already_mirrored_tags_are_skipped(self, config):
        manifests = dict(HUB_MANIFESTS)
        manifests["ghcr.io/acme/alpine:3.18"] = single_manifest()
        client = FakeRegistryClient(tags=HUB_TAGS, manifests=manifests)
        manager = manager_for(replace(config, version_range=VersionRange(min=(3, 18))), client)

        results = manager.mirror(["alpine"])

        assert [result.status for result in results] == [MirrorStatus.SKIPPED, MirrorStatus.MIRRORED]

    def test_not_from_hub_aborts_remaining_images(self, config):
        client = FakeRegistryClient(manifests=HUB_MANIFESTS)

        with pytest.raises(NotFromSourceHubError):
            manager_for(config, client).mirror(["ghcr.io/other/tool:1.0", "alpine:3.18"])
        assert client.mutating_calls() == []

    def test_fail_fast_by_default(self, config):
        client = FakeRegistryClient(
            tags=HUB_TAGS,
            manifests=HUB_MANIFESTS,
            fail_on=lambda call: call == ("push", "ghcr.io/acme/alpine:3.17"),
        )

        with pytest.raises(ReplicationError):
            manager_for(config, client).mirror(["alpine"])
        pulled = [call[1] for call in client.mutating_calls() if call[0] == "pull"]
        assert pulled == ["docker.io/library/alpine:3.17"]

    def test_keep_going_records_failure(self, config):
        client = FakeRegistryClient(
            tags=HUB_TAGS,
            manifests=HUB_MANIFESTS,
            fail_on=lambda call: call == ("push", "ghcr.io/acme/alpine:3.17"),
        )

        results = manager_for(replace(config, keep_going=True), client).mirror(["alpine"])

        assert [result.status for result in results] == [
            MirrorStatus.FAILED,
            MirrorStatus.MIRRORED,
            MirrorStatus.MIRRORED,
        ]
        assert isinstance(results[0].error, ReplicationError)

    def test_parallel_jobs_keep_result_order(self, config):
        client = FakeRegistryClient(tags=HUB_TAGS, manifests=HUB_MANIFESTS)

        results = manager_for(replace(config, jobs=3), client).mirror(["alpine"])

        assert [result.task.source.tag for result in results] == ["3.17", "3.18", "3.19"]
        assert all(result.status == MirrorStatus.MIRRORED for result in results)
        assert sorted(call[1] for call in client.mutating_calls() if call[0] == "push") == [
            "ghcr.io/acme/alpine:3.17",
            "ghcr.io/acme/alpine:3.18",
            "ghcr.io/acme/alpine:3.19",
        ]

    def test_parallel_jobs_fail_fast(self, config):
        client = FakeRegistryClient(
            tags=HUB_TAGS,
            manifests=HUB_MANIFESTS,
            fail_on=lambda call: call == ("push", "ghcr.io/acme/alpine:3.18"),
        )

        with pytest.raises(ReplicationError):
            manager_for(replace(config, jobs=2), client).mirror(["alpine"])

    def test_tasks_share_lock_per_destination(self, config):
        manager = manager_for(config, FakeRegistryClient())
        first = manager._task_for(ImageReference("docker.io", "library/alpine", "3.18"))
        second = manager._task_for(ImageReference("docker.io", "library/alpine", "3.19"))
        seen = []

        def record(task, lock):
            seen.append(lock)
            return MirrorResult(task=task, status=MirrorStatus.MIRRORED)

        with patch.object(manager, "_run_task", side_effect=record):
            manager._run_tasks([first, second, first])
            manager._run_tasks([first])

        assert seen[0] is seen[2]
        assert seen[0] is not seen[1]
        # 每次调用使用新的锁表
        assert seen[3] is not seen[0]


class TestPreflight:
    """依赖检查"""

    def test_missing_docker_command(self, config):
        with patch("dockmirror.managers.base_manager.shutil.which", return_value=None):
            with pytest.raises(MissingDependencyError, match="docker"):
                MirrorManager(config)
