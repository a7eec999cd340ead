"""
Registry Adapter for Docker Image Update Detection

Resolves image tags to manifest digests and finds the newest version tag
by querying the Registry v2 API of Docker Hub, GHCR and lscr.io.

Every lookup authenticates on its own with an anonymous pull-scope token.
Failures never raise: a registry that is slow, down or refuses us only
turns the affected value into None ("unknown").
"""

import asyncio
import logging
from typing import List, Optional, Union

import aiohttp

from updates.image_reference import ImageReference, parse_image_ref
from updates.registry_profiles import RegistryProfile, classify_registry
from updates.types import AuthToken
from updates.version_tags import select_latest_version

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5

# Tried in order, first response carrying a digest header wins.
# Multi-arch images must be matched by their index digest, which is what
# the local runtime records in RepoDigests.
MANIFEST_MEDIA_TYPES = (
    "application/vnd.oci.image.index.v1+json",
    "application/vnd.docker.distribution.manifest.list.v2+json",
    "application/vnd.docker.distribution.manifest.v2+json",
)

DIGEST_HEADER = "Docker-Content-Digest"


class RegistryAdapter:
    """
    Adapter for querying Docker registries.

    Supports:
    - Docker Hub (docker.io)
    - GitHub Container Registry (ghcr.io)
    - LinuxServer registry (lscr.io)

    The adapter borrows an aiohttp session from its caller and holds no
    other state, so one instance can serve any number of concurrent lookups.
    """

    def __init__(self, session: aiohttp.ClientSession, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    @staticmethod
    def _as_reference(image_ref: Union[str, ImageReference]) -> ImageReference:
        if isinstance(image_ref, ImageReference):
            return image_ref
        return parse_image_ref(image_ref)

    async def get_token(
        self,
        image_ref: Union[str, ImageReference],
        profile: Optional[RegistryProfile] = None
    ) -> Optional[AuthToken]:
        """
        Get an anonymous pull token for an image's repository.

        Args:
            image_ref: Image reference string or parsed ImageReference
            profile: Registry profile, classified from image_ref if omitted

        Returns:
            AuthToken, or None if the token endpoint failed
        """
        reference = self._as_reference(image_ref)
        profile = profile or classify_registry(reference)
        repository = profile.api_repository(reference.repository)
        auth_url = profile.auth_url(reference.repository)

        try:
            async with self.session.get(auth_url, timeout=self._timeout) as response:
                if response.status != 200:
                    response_text = await response.text()
                    logger.warning(
                        f"Token request for '{repository}' failed with status {response.status}: {response_text[:200]}"
                    )
                    return None

                data = await response.json(content_type=None)
                token = data.get("token") if isinstance(data, dict) else None
                if not token:
                    logger.warning(f"Token endpoint returned 200 but no token for '{repository}'")
                    return None

                logger.debug(f"Obtained {profile.kind.value} token for '{repository}'")
                return AuthToken(value=token, issued_for=repository)

        except asyncio.TimeoutError:
            logger.warning(f"Timeout fetching token for '{repository}' from {profile.canonical_host}")
        except (aiohttp.ClientError, ValueError) as e:
            logger.warning(f"Error fetching token for '{repository}' from {profile.canonical_host}: {e}")

        return None

    async def resolve_digest(
        self,
        profile: RegistryProfile,
        repository: str,
        tag: str,
        token: AuthToken
    ) -> Optional[str]:
        """
        Resolve a tag to the registry's current manifest digest.

        Sends one HEAD request per media type in MANIFEST_MEDIA_TYPES and
        returns the first Docker-Content-Digest header found.

        Returns:
            Digest (e.g., "sha256:abc123..."), or None if no attempt succeeded
        """
        manifest_url = profile.manifest_url(repository, tag)

        for media_type in MANIFEST_MEDIA_TYPES:
            headers = {
                "Authorization": token.authorization,
                "Accept": media_type,
            }
            try:
                async with self.session.head(
                    manifest_url,
                    headers=headers,
                    timeout=self._timeout,
                    allow_redirects=True
                ) as response:
                    if not 200 <= response.status < 300:
                        logger.debug(f"HEAD {manifest_url} ({media_type}) returned {response.status}")
                        continue

                    digest = response.headers.get(DIGEST_HEADER)
                    if digest:
                        logger.debug(f"Resolved {repository}:{tag} → {digest[:19]} via {media_type}")
                        return digest

                    logger.debug(f"HEAD {manifest_url} ({media_type}) had no digest header")

            except asyncio.TimeoutError:
                logger.debug(f"Timeout fetching manifest {manifest_url} ({media_type})")
            except aiohttp.ClientError as e:
                logger.debug(f"Error fetching manifest {manifest_url} ({media_type}): {e}")

        logger.warning(f"Could not resolve digest for {repository}:{tag} on {profile.canonical_host}")
        return None

    async def list_tags(
        self,
        profile: RegistryProfile,
        repository: str,
        token: AuthToken
    ) -> Optional[List[str]]:
        """
        Fetch the tag list of a repository.

        Returns:
            List of tag names, or None if the request failed
        """
        tags_url = profile.tags_url(repository)
        headers = {
            "Authorization": token.authorization,
            "Accept": "application/json",
        }

        try:
            async with self.session.get(tags_url, headers=headers, timeout=self._timeout) as response:
                if response.status != 200:
                    logger.warning(f"Tag list request for {repository} returned {response.status}")
                    return None

                data = await response.json(content_type=None)
                tags = data.get("tags") if isinstance(data, dict) else None
                if not isinstance(tags, list):
                    logger.warning(f"Tag list for {repository} has no 'tags' array")
                    return None
                return [tag for tag in tags if isinstance(tag, str)]

        except asyncio.TimeoutError:
            logger.warning(f"Timeout fetching tag list for {repository}")
        except (aiohttp.ClientError, ValueError) as e:
            logger.warning(f"Error fetching tag list for {repository}: {e}")

        return None

    async def resolve_latest_version(
        self,
        profile: RegistryProfile,
        repository: str,
        token: AuthToken
    ) -> Optional[str]:
        """Highest version tag of a repository, or None if unknown"""
        tags = await self.list_tags(profile, repository, token)
        if not tags:
            return None

        latest = select_latest_version(tags)
        if latest is None:
            logger.debug(f"No version tags among {len(tags)} tags for {repository}")
        return latest

    async def get_remote_digest(self, image_ref: Union[str, ImageReference]) -> Optional[str]:
        """Authenticate and resolve the image's tag to a digest"""
        reference = self._as_reference(image_ref)
        profile = classify_registry(reference)

        token = await self.get_token(reference, profile)
        if token is None:
            return None
        return await self.resolve_digest(profile, reference.repository, reference.tag, token)

    async def get_latest_version(self, image_ref: Union[str, ImageReference]) -> Optional[str]:
        """Authenticate and find the image repository's newest version tag"""
        reference = self._as_reference(image_ref)
        profile = classify_registry(reference)

        token = await self.get_token(reference, profile)
        if token is None:
            return None
        return await self.resolve_latest_version(profile, reference.repository, token)
