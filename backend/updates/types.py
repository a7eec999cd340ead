"""
Shared types for the update checker.

Records passed between the container inventory, the registry adapter and
the API layer. All of them are immutable once built.
"""

from dataclasses import dataclass
from typing import Optional

from updates.registry_profiles import RegistryKind


@dataclass(frozen=True)
class AuthToken:
    """Anonymous pull-scope bearer token, valid for a single lookup"""
    value: str
    issued_for: str

    @property
    def authorization(self) -> str:
        """Value for the Authorization header"""
        return f"Bearer {self.value}"


@dataclass(frozen=True)
class ContainerInventoryItem:
    """
    A running container as reported by the container runtime.

    image is the reference the container was created from (Config.Image),
    local_repo_digest the first RepoDigests entry of its image, if any.
    """
    container_id: str
    name: str
    status: str
    state: str
    image: str
    local_repo_digest: Optional[str] = None

    @property
    def short_id(self) -> str:
        return normalize_container_id(self.container_id)

    @property
    def local_digest(self) -> Optional[str]:
        """Digest half of the repo digest ("repo@sha256:..." → "sha256:...")"""
        return extract_digest(self.local_repo_digest)


@dataclass(frozen=True)
class ContainerImageStatus:
    """Update status of one container for one poll cycle"""
    container_id: str
    name: str
    image_reference: str
    current_tag: str
    local_digest: Optional[str]
    remote_digest: Optional[str]
    latest_version_tag: Optional[str]
    update_available: bool

    # Display data carried over from the inventory
    status: str = ""
    state: str = ""
    registry: RegistryKind = RegistryKind.DOCKERHUB


def extract_digest(repo_digest: Optional[str]) -> Optional[str]:
    if not repo_digest or "@" not in repo_digest:
        return None
    digest = repo_digest.split("@", 1)[1]
    return digest or None


def normalize_container_id(container_id: str) -> str:
    """
    Normalize container ID to 12-char short format.

    Accepts both 12-char and 64-char IDs.
    """
    return container_id[:12]
