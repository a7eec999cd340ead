"""
Registry classification.

Maps an image reference to one of a fixed set of registry profiles. Each
profile carries the URL templates needed to talk to that registry:
the anonymous token endpoint and the Registry v2 API base.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from updates.image_reference import ImageReference, expand_official_name


class RegistryKind(Enum):
    """Registries the update checker knows how to query"""
    DOCKERHUB = "dockerhub"
    GHCR = "ghcr"
    LSCR = "lscr"


@dataclass(frozen=True)
class RegistryProfile:
    kind: RegistryKind
    canonical_host: str
    auth_url_template: str
    manifest_api_base: str

    def api_repository(self, repository: str) -> str:
        """Repository path as used in API URLs (Docker Hub needs library/ for official images)"""
        if self.kind is RegistryKind.DOCKERHUB:
            return expand_official_name(repository)
        return repository

    def auth_url(self, repository: str) -> str:
        return self.auth_url_template.format(repository=self.api_repository(repository))

    def manifest_url(self, repository: str, tag: str) -> str:
        return f"{self.manifest_api_base}/{self.api_repository(repository)}/manifests/{tag}"

    def tags_url(self, repository: str) -> str:
        return f"{self.manifest_api_base}/{self.api_repository(repository)}/tags/list"


DOCKERHUB_PROFILE = RegistryProfile(
    kind=RegistryKind.DOCKERHUB,
    canonical_host="docker.io",
    auth_url_template="https://auth.docker.io/token?service=registry.docker.io&scope=repository:{repository}:pull",
    manifest_api_base="https://registry-1.docker.io/v2",
)

GHCR_PROFILE = RegistryProfile(
    kind=RegistryKind.GHCR,
    canonical_host="ghcr.io",
    auth_url_template="https://ghcr.io/token?service=ghcr.io&scope=repository:{repository}:pull",
    manifest_api_base="https://ghcr.io/v2",
)

# lscr.io fronts GHCR and delegates token issuance to it
LSCR_PROFILE = RegistryProfile(
    kind=RegistryKind.LSCR,
    canonical_host="lscr.io",
    auth_url_template="https://ghcr.io/token?service=ghcr.io&scope=repository:{repository}:pull",
    manifest_api_base="https://lscr.io/v2",
)

# Checked in order, first match wins. Anything else is Docker Hub.
KNOWN_REGISTRY_PREFIXES = (
    ("ghcr.io/", GHCR_PROFILE),
    ("lscr.io/", LSCR_PROFILE),
)


def classify_registry(image_ref: Union[str, ImageReference]) -> RegistryProfile:
    """
    Pick the registry profile for an image reference.

    Examples:
        ghcr.io/org/app:1.0       → ghcr
        lscr.io/linuxserver/sonarr → lscr
        nginx, docker.io/nginx    → dockerhub
    """
    raw = image_ref.raw if isinstance(image_ref, ImageReference) else (image_ref or "")
    raw = raw.strip().lower()
    for prefix, profile in KNOWN_REGISTRY_PREFIXES:
        if raw.startswith(prefix):
            return profile
    return DOCKERHUB_PROFILE
