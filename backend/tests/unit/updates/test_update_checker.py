"""
Unit tests for update availability detection.

Tests verify:
- Digest comparison rules (never a false positive from missing data)
- Per-container status records
- One failing registry does not affect other containers
- Bounded fan-out
"""

import asyncio
from unittest.mock import patch

import pytest

from updates.registry_adapter import MANIFEST_MEDIA_TYPES
from updates.registry_profiles import RegistryKind
from updates.types import ContainerInventoryItem
from updates.update_checker import UpdateChecker, is_update_available

OCI_INDEX, MANIFEST_LIST, MANIFEST_V2 = MANIFEST_MEDIA_TYPES
LOCAL = "sha256:aaaa1111bbbb2222cccc3333dddd4444eeee5555ffff6666aaaa7777bbbb8888"
REMOTE = "sha256:9999888877776666555544443333222211110000ffffeeeeddddccccbbbbaaaa"


def make_item(name="web", image="nginx:1.25", repo_digest=f"nginx@{LOCAL}"):
    return ContainerInventoryItem(
        container_id=f"{name}0000000000000000",
        name=name,
        status="Up 3 hours",
        state="running",
        image=image,
        local_repo_digest=repo_digest,
    )


# =============================================================================
# Digest Comparison Tests
# =============================================================================

class TestIsUpdateAvailable:
    """Test update decision from local and remote digests"""

    @pytest.mark.parametrize("local,remote,expected,reason", [
        ("sha256:AA", "sha256:AA", False, "Same digest"),
        ("sha256:AA", "sha256:BB", True, "Different digest"),
        (None, "sha256:BB", False, "No local digest - can't compare"),
        ("sha256:AA", None, False, "Remote unknown - can't compare"),
        (None, None, False, "Both missing"),
        ("", "sha256:BB", False, "Empty local treated as missing"),
    ])
    def test_digest_comparison(self, local, remote, expected, reason):
        assert is_update_available(local, remote) is expected, f"Failed: {reason}"


# =============================================================================
# Container Check Tests
# =============================================================================

class TestCheckAllContainers:
    """Test the per-poll container check"""

    @pytest.mark.asyncio
    async def test_update_detected(self, fake_session_factory, registry_handler):
        session, factory = fake_session_factory(
            registry_handler(digests={OCI_INDEX: REMOTE}, tags=["latest", "1.25.3", "1.26.0"])
        )
        checker = UpdateChecker(session_factory=factory)

        [status] = await checker.check_all_containers([make_item()])

        assert status.update_available is True
        assert status.local_digest == LOCAL
        assert status.remote_digest == REMOTE
        assert status.latest_version_tag == "1.26.0"
        assert status.current_tag == "1.25"
        assert status.container_id == "web000000000"
        assert status.registry is RegistryKind.DOCKERHUB
        assert session.closed

    @pytest.mark.asyncio
    async def test_same_digest_is_up_to_date(self, fake_session_factory, registry_handler):
        _, factory = fake_session_factory(registry_handler(digests={MANIFEST_V2: LOCAL}, tags=["1.25"]))
        checker = UpdateChecker(session_factory=factory)

        [status] = await checker.check_all_containers([make_item()])

        assert status.update_available is False
        assert status.remote_digest == LOCAL

    @pytest.mark.asyncio
    async def test_locally_built_image_never_reports_update(self, fake_session_factory, registry_handler):
        _, factory = fake_session_factory(registry_handler(digests={OCI_INDEX: REMOTE}))
        checker = UpdateChecker(session_factory=factory)

        [status] = await checker.check_all_containers([make_item(repo_digest=None)])

        assert status.local_digest is None
        assert status.update_available is False

    @pytest.mark.asyncio
    async def test_token_failure_for_one_container_does_not_affect_others(
        self, fake_session_factory, registry_handler
    ):
        handler = registry_handler(
            digests={OCI_INDEX: REMOTE},
            tags=["2.0"],
            failing_repositories=("library/redis",),
        )
        _, factory = fake_session_factory(handler)
        checker = UpdateChecker(session_factory=factory)

        results = await checker.check_all_containers([
            make_item(name="cache", image="redis:7", repo_digest=f"redis@{LOCAL}"),
            make_item(name="web"),
        ])

        cache, web = results
        assert cache.name == "cache"
        assert cache.remote_digest is None
        assert cache.latest_version_tag is None
        assert cache.update_available is False

        assert web.remote_digest == REMOTE
        assert web.latest_version_tag == "2.0"
        assert web.update_available is True

    @pytest.mark.asyncio
    async def test_unexpected_error_degrades_container(self, fake_session_factory, registry_handler):
        _, factory = fake_session_factory(registry_handler(digests={OCI_INDEX: REMOTE}))
        checker = UpdateChecker(session_factory=factory)

        with patch.object(UpdateChecker, "check_container", side_effect=RuntimeError("boom")):
            [status] = await checker.check_all_containers([make_item()])

        assert status.remote_digest is None
        assert status.update_available is False
        assert status.name == "web"

    @pytest.mark.asyncio
    async def test_ghcr_container(self, fake_session_factory, registry_handler):
        session, factory = fake_session_factory(registry_handler(digests={OCI_INDEX: REMOTE}, tags=["v1.0.0"]))
        checker = UpdateChecker(session_factory=factory)

        [status] = await checker.check_all_containers([
            make_item(image="ghcr.io/org/app:v1.0.0", repo_digest=f"ghcr.io/org/app@{LOCAL}")
        ])

        assert status.registry is RegistryKind.GHCR
        assert status.latest_version_tag == "v1.0.0"
        assert any(url == "https://ghcr.io/v2/org/app/manifests/v1.0.0" for _, url, _ in session.calls)

    @pytest.mark.asyncio
    async def test_empty_inventory(self, fake_session_factory, registry_handler):
        session, factory = fake_session_factory(registry_handler())

        assert await UpdateChecker(session_factory=factory).check_all_containers([]) == []
        assert session.calls == []

    @pytest.mark.asyncio
    async def test_fan_out_is_bounded(self, fake_session_factory, registry_handler):
        _, factory = fake_session_factory(registry_handler(digests={OCI_INDEX: REMOTE}))
        checker = UpdateChecker(max_concurrency=2, session_factory=factory)

        in_flight = 0
        peak = 0
        original = UpdateChecker.check_container

        async def tracking_check(self, registry, container):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            try:
                return await original(self, registry, container)
            finally:
                in_flight -= 1

        with patch.object(UpdateChecker, "check_container", tracking_check):
            results = await checker.check_all_containers([make_item(name=f"c{i}") for i in range(6)])

        assert len(results) == 6
        assert peak <= 2

    def test_rejects_zero_concurrency(self):
        with pytest.raises(ValueError):
            UpdateChecker(max_concurrency=0)
