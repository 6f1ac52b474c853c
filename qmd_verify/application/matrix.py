"""
Projection of a comparison response into a version x device grid.
"""

import dataclasses
import functools
import re
from typing import Dict, List, Optional

from .domain import KNOWN_DEVICES, ComparisonResponse


@dataclasses.dataclass(frozen=True)
class MatrixCell:
    """A populated grid cell. Missing cells mean no data."""

    compatible: bool
    error_detail: Optional[str] = None


# version -> device -> cell
Matrix = Dict[str, Dict[str, MatrixCell]]

_DEVICE_RANK = {device: rank for rank, device in enumerate(KNOWN_DEVICES)}


def build_matrix(response: ComparisonResponse) -> Matrix:
    """
    Builds the two-level grid of a response.

    Incompatible rows are applied last, so they win over a compatible row
    for the same version and device.
    """

    matrix: Matrix = {}

    for result in response.compatible:
        matrix.setdefault(result.os_version, {})[result.device] = MatrixCell(
            compatible=True
        )

    for result in response.incompatible:
        matrix.setdefault(result.os_version, {})[result.device] = MatrixCell(
            compatible=False, error_detail=result.error_detail
        )

    return matrix


_LEADING_DIGITS = re.compile(r"[0-9]+")


def _segment(value: str) -> int:
    """The leading run of ASCII digits of a segment, or 0 if there is none."""
    match = _LEADING_DIGITS.match(value)
    return int(match.group()) if match else 0


def compare_versions(v1: str, v2: str) -> int:
    """
    Compares dotted versions segment by segment.

    A segment counts as its leading digits; segments without any, and
    missing segments, count as zero. Returns a negative number, zero or a
    positive number like a classic ``cmp``.
    """

    p1 = v1.split(".")
    p2 = v2.split(".")

    for i in range(max(len(p1), len(p2))):
        n1 = _segment(p1[i]) if i < len(p1) else 0
        n2 = _segment(p2[i]) if i < len(p2) else 0
        if n1 != n2:
            return n1 - n2

    return 0


def sorted_versions(matrix: Matrix) -> List[str]:
    """Row order of the grid: newest version first."""
    return sorted(
        matrix, key=functools.cmp_to_key(compare_versions), reverse=True
    )


def _device_key(device: str):
    rank = _DEVICE_RANK.get(device)
    if rank is None:
        return (1, 0, device)
    return (0, rank, device)


def device_order(matrix: Matrix) -> List[str]:
    """
    Column order of the grid.

    Known devices come first in their canonical order, followed by any
    other device in lexical order.
    """

    devices = {device for row in matrix.values() for device in row}
    return sorted(devices, key=_device_key)
