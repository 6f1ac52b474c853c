"""
Client-side filters over comparison results.

Device and version filters narrow the rows of a single response; the file
and failed-only filters decide which files of a batch are reported at all.
"""

import dataclasses
import fnmatch
from typing import AbstractSet, Optional

from .domain import Advisory, ComparisonResponse, ComparisonResult


def _as_int(segment: str) -> Optional[int]:
    if not (segment.isascii() and segment.isdigit()):
        return None
    return int(segment)


def matches_version_prefix(version: str, prefix: str) -> bool:
    """
    Checks whether ``prefix`` selects ``version`` segment by segment.

    Both strings are split on dots. Numeric segments compare as integers,
    so ``3.022`` selects ``3.22.1``; other segments must be equal strings.
    A prefix with more segments than the version never matches.
    """

    version_parts = version.split(".")
    prefix_parts = prefix.split(".")

    if len(prefix_parts) > len(version_parts):
        return False

    for prefix_part, version_part in zip(prefix_parts, version_parts):
        prefix_num = _as_int(prefix_part)
        version_num = _as_int(version_part)

        if prefix_num is None or version_num is None:
            if prefix_part != version_part:
                return False
            continue

        if prefix_num != version_num:
            return False

    return True


def matches_device(device: str, devices: AbstractSet[str]) -> bool:
    return not devices or device in devices


def matches_version(version: str, versions: AbstractSet[str]) -> bool:
    if not versions:
        return True
    return any(matches_version_prefix(version, v) for v in versions)


def matches_filter(
    result: ComparisonResult,
    devices: AbstractSet[str],
    versions: AbstractSet[str],
) -> bool:
    """A result is kept when both its device and its version match."""
    return (
        matches_device(result.device, devices)
        and matches_version(result.os_version, versions)
    )


def filter_response(
    response: ComparisonResponse,
    devices: AbstractSet[str],
    versions: AbstractSet[str],
) -> ComparisonResponse:
    """
    Narrows a response to the requested devices and version prefixes.

    Without any device or version constraint the response is returned as
    is. Otherwise ``total_checked`` is recomputed from the kept rows and
    never copied from the server.

    Args:
        response: The per-file result to narrow.
        devices: Exact device identifiers to keep.
        versions: Dotted version prefixes to keep.

    Returns:
        A response containing only the matching rows.
    """

    if not devices and not versions:
        return response

    compatible = tuple(
        r for r in response.compatible
        if matches_filter(r, devices, versions)
    )
    incompatible = tuple(
        r for r in response.incompatible
        if matches_filter(r, devices, versions)
    )

    return dataclasses.replace(
        response,
        compatible=compatible,
        incompatible=incompatible,
        total_checked=len(compatible) + len(incompatible),
    )


def matches_file(filename: str, patterns: AbstractSet[str]) -> bool:
    """
    Checks a batch filename against glob or substring patterns.

    Any pattern matching either as a glob or as a plain substring is
    enough.
    """

    if not patterns:
        return True

    for pattern in patterns:
        if fnmatch.fnmatchcase(filename, pattern):
            return True
        if pattern in filename:
            return True

    return False


def advisory_for(
    original_total: int, filtered: ComparisonResponse
) -> Optional[Advisory]:
    """Explains an empty filtered response, or returns None."""

    if filtered.total_checked != 0:
        return None
    if original_total == 0:
        return Advisory.NO_HASHTABLES
    return Advisory.NO_MATCH
