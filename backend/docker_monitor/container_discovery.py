"""
Container Discovery Module
Lists running containers and the digests of the images they run
"""

import asyncio
import logging
from typing import Dict, List, Optional

import docker
from docker import DockerClient
from docker.errors import DockerException
from requests.exceptions import RequestException

from updates.types import ContainerInventoryItem
from utils.async_docker import async_docker_call

logger = logging.getLogger(__name__)

DOCKER_UNAVAILABLE_DETAILS = "Failed to connect to Docker. Make sure Docker is running and accessible."

# docker-py raises requests errors unwrapped when the daemon socket goes away
DOCKER_ERRORS = (DockerException, RequestException)


class InventoryUnavailable(Exception):
    """Raised when the container runtime cannot be queried at all"""

    def __init__(self, message: str, details: str = DOCKER_UNAVAILABLE_DETAILS):
        super().__init__(message)
        self.details = details


def container_display_name(summary: Dict) -> str:
    """
    Name shown for a container summary.

    Docker reports names with a leading slash ("/web"); the first one is used.
    """
    names = summary.get("Names") or []
    if names:
        return names[0].lstrip("/")
    return summary.get("Id", "")[:12]


class ContainerDiscovery:
    """
    Reads the container inventory of the local Docker host.

    The Docker client is created lazily so the API can start without a
    reachable daemon; every poll retries the connection.
    """

    def __init__(self, client: Optional[DockerClient] = None):
        self._client = client

    def _get_client(self) -> DockerClient:
        if self._client is None:
            self._client = docker.from_env()
        return self._client

    async def list_containers(self) -> List[ContainerInventoryItem]:
        """
        List running containers.

        Raises:
            InventoryUnavailable: Docker could not be reached or listed
        """
        try:
            client = await async_docker_call(self._get_client)
            summaries = await async_docker_call(client.api.containers)
        except DOCKER_ERRORS as e:
            logger.error(f"Error fetching containers: {e}")
            raise InventoryUnavailable(str(e)) from e

        items = await asyncio.gather(*(self._describe_container(client, s) for s in summaries))

        logger.debug(f"Discovered {len(items)} running containers")
        return list(items)

    async def _describe_container(self, client: DockerClient, summary: Dict) -> ContainerInventoryItem:
        container_id = summary.get("Id", "")
        name = container_display_name(summary)

        # Config.Image keeps the tag the container was created with,
        # the summary's Image may already be a bare image ID
        image = summary.get("Image", "")
        image_id = summary.get("ImageID")
        try:
            details = await async_docker_call(client.api.inspect_container, container_id)
            image = details.get("Config", {}).get("Image") or image
            image_id = details.get("Image") or image_id
        except DOCKER_ERRORS as e:
            logger.warning(f"Could not inspect container {name}: {e}")

        return ContainerInventoryItem(
            container_id=container_id,
            name=name,
            status=summary.get("Status", ""),
            state=summary.get("State", ""),
            image=image,
            local_repo_digest=await self._get_repo_digest(client, image_id, name),
        )

    async def _get_repo_digest(self, client: DockerClient, image_id: Optional[str], name: str) -> Optional[str]:
        """First RepoDigests entry of the image, or None for locally built images"""
        if not image_id:
            return None
        try:
            image_attrs = await async_docker_call(client.api.inspect_image, image_id)
        except DOCKER_ERRORS as e:
            logger.warning(f"Could not inspect image of container {name}: {e}")
            return None

        repo_digests = image_attrs.get("RepoDigests") or []
        if not repo_digests:
            logger.debug(f"No RepoDigests found for container {name}, image may have been built locally")
            return None
        return repo_digests[0]


# Global singleton instance
_container_discovery = None


def get_container_discovery() -> ContainerDiscovery:
    """Get or create global ContainerDiscovery instance"""
    global _container_discovery
    if _container_discovery is None:
        _container_discovery = ContainerDiscovery()
    return _container_discovery
