"""
Updates Module

Registry lookups that decide whether a container's image has an update.

Architecture:
- parse_image_ref: Splits an image string into host, repository, tag
- classify_registry: Picks the Docker Hub, GHCR or lscr.io profile
- RegistryAdapter: Token, manifest digest and tag list lookups (aiohttp)
- UpdateChecker: Runs the lookups for every container and compares digests
"""

from updates.image_reference import ImageReference, parse_image_ref
from updates.registry_profiles import RegistryKind, RegistryProfile, classify_registry
from updates.registry_adapter import RegistryAdapter
from updates.version_tags import is_version_tag, select_latest_version
from updates.update_checker import UpdateChecker, is_update_available
from updates.types import AuthToken, ContainerImageStatus, ContainerInventoryItem

__all__ = [
    'ImageReference',
    'parse_image_ref',
    'RegistryKind',
    'RegistryProfile',
    'classify_registry',
    'RegistryAdapter',
    'is_version_tag',
    'select_latest_version',
    'UpdateChecker',
    'is_update_available',
    'AuthToken',
    'ContainerImageStatus',
    'ContainerInventoryItem',
]
