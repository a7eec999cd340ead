"""
Image Reference Parsing

Splits a raw image string, as stored by the container runtime, into
registry host, repository path, tag and optional digest.

Examples:
    redis                      → (None, library/redis, latest)
    ghcr.io/org/app:1.2.3      → (ghcr.io, org/app, 1.2.3)
    myregistry.com:5000/app:v1 → (myregistry.com:5000, app, v1)
    app@sha256:abc...          → (None, library/app, latest, sha256:abc...)
"""

from dataclasses import dataclass
from typing import Optional

DEFAULT_TAG = "latest"
DEFAULT_NAMESPACE = "library"

# Host names that all mean "Docker Hub"
DOCKER_HUB_HOSTS = (
    "docker.io",
    "index.docker.io",
    "registry-1.docker.io",
    "registry.hub.docker.com",
)


@dataclass(frozen=True)
class ImageReference:
    """Parsed image reference. Never mutated after parsing."""
    raw: str
    registry_host: Optional[str]
    repository: str
    tag: str = DEFAULT_TAG
    digest: Optional[str] = None

    @property
    def is_docker_hub(self) -> bool:
        return self.registry_host is None or self.registry_host in DOCKER_HUB_HOSTS

    def __str__(self) -> str:
        name = f"{self.registry_host}/{self.repository}" if self.registry_host else self.repository
        return f"{name}:{self.tag}"


def _looks_like_host(segment: str) -> bool:
    """A leading path segment is a registry host if it has a dot, a port or is localhost"""
    return "." in segment or ":" in segment or segment == "localhost"


def expand_official_name(repository: str) -> str:
    """Prefix single-segment Docker Hub names with library/ (idempotent)"""
    if repository and "/" not in repository:
        return f"{DEFAULT_NAMESPACE}/{repository}"
    return repository


def parse_image_ref(image_ref: str) -> ImageReference:
    """
    Parse an image reference string.

    Never raises: malformed input degrades to treating the whole string
    as the repository path with tag "latest".

    Args:
        image_ref: Raw image string (e.g., "nginx:1.25", "ghcr.io/user/app:v1.0")

    Returns:
        ImageReference
    """
    raw = image_ref or ""
    remainder = raw.strip()

    # A pinned digest is kept for display only, tag lookups ignore it
    remainder, _, digest = remainder.partition("@")

    # The tag colon must come after the last slash, otherwise it is host:port
    tag = DEFAULT_TAG
    last_slash = remainder.rfind("/")
    last_colon = remainder.rfind(":")
    if last_colon > last_slash:
        candidate = remainder[last_colon + 1:]
        if candidate:
            tag = candidate
        remainder = remainder[:last_colon]

    registry_host = None
    repository = remainder
    if "/" in remainder:
        first, rest = remainder.split("/", 1)
        if _looks_like_host(first) and rest:
            registry_host = first.lower()
            repository = rest

    if not repository:
        return ImageReference(raw=raw, registry_host=None, repository=raw, tag=DEFAULT_TAG)

    if registry_host is None or registry_host in DOCKER_HUB_HOSTS:
        repository = expand_official_name(repository)

    return ImageReference(
        raw=raw,
        registry_host=registry_host,
        repository=repository,
        tag=tag,
        digest=digest or None,
    )
