"""
Plain-text rendering of check outcomes and server listings.
"""

from typing import List

from ..application.domain import CheckOutcome, ComparisonResponse, FileReport
from ..application.matrix import build_matrix, device_order, sorted_versions
from ..infrastructure.api_models import HashtablesResponse, TreesResponse

COMPATIBLE = "✓"
INCOMPATIBLE = "✗"
NO_DATA = "—"

_TITLE = "QMD Compatibility Check Results"
_MIN_DEVICE_WIDTH = 6
_MIN_VERSION_WIDTH = 15


def render_matrix(response: ComparisonResponse, verbose: bool = False) -> str:
    """Renders a response as a version x device grid with a summary line."""

    matrix = build_matrix(response)
    devices = device_order(matrix)
    versions = sorted_versions(matrix)

    if not versions:
        return "No compatibility data available"

    device_width = max([_MIN_DEVICE_WIDTH] + [len(d) for d in devices])
    version_width = max([_MIN_VERSION_WIDTH] + [len(v) for v in versions])

    lines = [_TITLE, ""]
    header = " " + " " * version_width + " "
    header += "".join(d.center(device_width) for d in devices)
    lines.append(header.rstrip())
    lines.append("─" * (version_width + 2 + device_width * len(devices)))

    details = []
    for version in versions:
        row = matrix[version]
        line = " " + version.ljust(version_width) + " "
        for device in devices:
            cell = row.get(device)
            if cell is None:
                symbol = NO_DATA
            elif cell.compatible:
                symbol = COMPATIBLE
            else:
                symbol = INCOMPATIBLE
                if verbose and cell.error_detail:
                    details.append(
                        f"{version} ({device}): {cell.error_detail}"
                    )
            line += symbol.center(device_width)
        lines.append(line.rstrip())

    if details:
        lines.append("")
        lines.append("Error Details:")
        lines.extend(f"  • {detail}" for detail in details)

    lines.append("")
    lines.append(
        f"Summary: {response.total_checked} checked | "
        f"{len(response.compatible)} compatible | "
        f"{len(response.incompatible)} incompatible"
    )
    return "\n".join(lines)


def render_report(
    report: FileReport, verbose: bool = False, heading: bool = False
) -> str:
    parts = []
    if heading and report.filename:
        parts.append(f"=== {report.filename} ===\n")
    if report.advisory is not None:
        parts.append(f"Warning: {report.advisory.value}")
    else:
        parts.append(render_matrix(report.response, verbose))
    return "\n".join(parts)


def render_outcome(outcome: CheckOutcome, verbose: bool = False) -> str:
    """Renders every report of an outcome, one block per file."""

    heading = outcome.batch is not None
    blocks: List[str] = [
        render_report(report, verbose, heading) for report in outcome.reports
    ]
    if outcome.roots_collapsed:
        blocks.append(
            "Warning: every uploaded file is a dependency of another one; "
            "nothing to show"
        )
    return "\n\n".join(blocks)


def render_hashtables(response: HashtablesResponse) -> str:
    if response.count == 0:
        return "No hashtables available on the server"

    widths = [10, 12, 25, 10]
    for ht in response.hashtables:
        widths[0] = max(widths[0], len(ht.device))
        widths[1] = max(widths[1], len(ht.os_version))
        widths[2] = max(widths[2], len(ht.name))

    rows = [("Device", "OS Version", "Hashtable", "Entries")]
    rows += [
        (ht.device, ht.os_version, ht.name, str(ht.entry_count))
        for ht in response.hashtables
    ]

    lines = ["Available Hashtables", ""]
    for i, row in enumerate(rows):
        lines.append(
            " " + "".join(cell.ljust(w) for cell, w in zip(row, widths))
        )
        if i == 0:
            lines.append("─" * (sum(widths) + len(widths)))
    lines.append("")
    lines.append(f"Total Hashtables: {response.count}")
    return "\n".join(lines)


def render_trees(response: TreesResponse) -> str:
    if response.count == 0:
        return "No dependency trees available on the server"

    lines = ["Available Trees", ""]
    for tree in response.trees:
        lines.append(
            f" {tree.device:<10}{tree.version:<15}{tree.qml_count:>6} QML files"
        )
    lines.append("")
    lines.append(f"Total Trees: {response.count}")
    return "\n".join(lines)
