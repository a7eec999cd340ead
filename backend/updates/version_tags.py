"""
Version tag grammar and ranking.

A version tag is an optional leading "v", a required major.minor, any number
of further numeric segments, and an optional "-suffix" of word characters:

    2.14, 1.2.3, v1.2.3-alpine      accepted
    3, v3, latest, edge, stable     rejected
"""

import re
from itertools import zip_longest
from typing import Iterable, Optional, Tuple

VERSION_TAG_PATTERN = re.compile(r"v?(\d+(?:\.\d+)+)(?:-\w+)?")


def is_version_tag(tag: str) -> bool:
    if not tag:
        return False
    return VERSION_TAG_PATTERN.fullmatch(tag) is not None


def parse_version_segments(tag: str) -> Optional[Tuple[int, ...]]:
    """
    Numeric segments of a version tag, leading "v" and "-suffix" dropped.

    "v1.2.3-alpine" → (1, 2, 3), "latest" → None
    """
    match = VERSION_TAG_PATTERN.fullmatch(tag or "")
    if not match:
        return None
    return tuple(int(part) for part in match.group(1).split("."))


def compare_versions(left: Tuple[int, ...], right: Tuple[int, ...]) -> int:
    """Compare segment-wise from the most significant end, missing segments count as 0"""
    for a, b in zip_longest(left, right, fillvalue=0):
        if a != b:
            return 1 if a > b else -1
    return 0


def select_latest_version(tags: Iterable[str]) -> Optional[str]:
    """
    Pick the numerically highest version tag.

    Non-version tags are ignored. On a tie (same numbers, different suffix)
    the tag seen first wins.
    """
    best_tag = None
    best_segments = None
    for tag in tags:
        if not isinstance(tag, str):
            continue
        segments = parse_version_segments(tag)
        if segments is None:
            continue
        if best_segments is None or compare_versions(segments, best_segments) > 0:
            best_tag, best_segments = tag, segments
    return best_tag
