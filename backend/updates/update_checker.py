"""
Update Checker Service

Checks every running container for a newer image in its source registry.

Workflow, per container:
1. Parse the image reference and classify its registry
2. Resolve the tag to the registry's current digest (own token)
3. Find the newest version tag of the repository (own token)
4. Compare digests to determine if an update is available

Containers are checked concurrently, bounded by a semaphore. A registry
failure only marks that container's registry fields as unknown.
"""

import asyncio
import logging
from typing import Callable, List, Optional

import aiohttp

from updates.image_reference import parse_image_ref
from updates.registry_adapter import RegistryAdapter, DEFAULT_TIMEOUT_SECONDS
from updates.registry_profiles import classify_registry
from updates.types import ContainerImageStatus, ContainerInventoryItem

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 10


def is_update_available(local_digest: Optional[str], remote_digest: Optional[str]) -> bool:
    """
    Decide update availability from the two digests.

    Missing data on either side means "cannot confirm", never "update found".
    """
    if not local_digest or not remote_digest:
        return False
    return local_digest != remote_digest


class UpdateChecker:
    """Service that checks containers for available image updates."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        session_factory: Callable[[], aiohttp.ClientSession] = aiohttp.ClientSession
    ):
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1: {max_concurrency}")
        self.timeout = timeout
        self.max_concurrency = max_concurrency
        self._session_factory = session_factory

    async def check_all_containers(self, containers: List[ContainerInventoryItem]) -> List[ContainerImageStatus]:
        """
        Check all containers for updates.

        Returns:
            One status per container, in inventory order
        """
        if not containers:
            return []

        logger.info(f"Checking {len(containers)} containers for updates")
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async with self._session_factory() as session:
            registry = RegistryAdapter(session, timeout=self.timeout)

            async def _bounded(container: ContainerInventoryItem) -> ContainerImageStatus:
                async with semaphore:
                    return await self._check_or_degrade(registry, container)

            results = await asyncio.gather(*(_bounded(c) for c in containers))

        updates_found = sum(1 for r in results if r.update_available)
        logger.info(f"Update check complete: {len(results)} checked, {updates_found} updates available")
        return list(results)

    async def _check_or_degrade(
        self,
        registry: RegistryAdapter,
        container: ContainerInventoryItem
    ) -> ContainerImageStatus:
        try:
            return await self.check_container(registry, container)
        except Exception as e:
            logger.error(f"Error checking container {container.name}: {e}", exc_info=True)
            return self._build_status(container, remote_digest=None, latest_version=None)

    async def check_container(
        self,
        registry: RegistryAdapter,
        container: ContainerInventoryItem
    ) -> ContainerImageStatus:
        """
        Check if an update is available for one container.

        Digest and version lookups run concurrently, each with its own token.
        """
        reference = parse_image_ref(container.image)

        remote_digest, latest_version = await asyncio.gather(
            registry.get_remote_digest(reference),
            registry.get_latest_version(reference),
        )

        status = self._build_status(container, remote_digest, latest_version)
        if status.update_available:
            logger.info(
                f"Update available for {container.name}: "
                f"{status.local_digest[:19]} → {remote_digest[:19]}"
            )
        else:
            logger.debug(f"No update detected for {container.name} ({reference})")
        return status

    def _build_status(
        self,
        container: ContainerInventoryItem,
        remote_digest: Optional[str],
        latest_version: Optional[str]
    ) -> ContainerImageStatus:
        reference = parse_image_ref(container.image)
        local_digest = container.local_digest

        return ContainerImageStatus(
            container_id=container.short_id,
            name=container.name,
            image_reference=container.image,
            current_tag=reference.tag,
            local_digest=local_digest,
            remote_digest=remote_digest,
            latest_version_tag=latest_version,
            update_available=is_update_available(local_digest, remote_digest),
            status=container.status,
            state=container.state,
            registry=classify_registry(reference).kind,
        )
