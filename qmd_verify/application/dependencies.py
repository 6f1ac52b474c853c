"""
Root/dependency classification of the files in a batch job.

The server reports dependency validation inside each result row, keyed by
the dependency's filename. A file referenced that way by another file of
the batch is a dependency; every other file is a root.
"""

import logging
from typing import Dict, Set

from .domain import BatchComparisonResponse

logger = logging.getLogger(__name__)


def dependency_graph(batch: BatchComparisonResponse) -> Dict[str, Set[str]]:
    """
    Builds the adjacency mapping of a batch.

    Each filename maps to the set of files its results declare as
    dependencies, in any compatible or incompatible row. Self references
    are dropped.
    """

    graph: Dict[str, Set[str]] = {}
    for filename, response in batch.items():
        edges = graph.setdefault(filename, set())
        for result in response.results():
            if not result.dependency_results:
                continue
            edges.update(
                dep for dep in result.dependency_results if dep != filename
            )
    return graph


def identify_roots(batch: BatchComparisonResponse) -> Set[str]:
    """
    Returns the filenames of a batch not referenced by any other file.

    This is a single pass over the declared edges: cycles are not detected,
    so files that all depend on each other leave no root at all.
    """

    graph = dependency_graph(batch)
    referenced = set().union(*graph.values()) if graph else set()
    roots = set(batch) - referenced

    logger.debug(
        f"Identified {len(roots)} root(s) out of {len(batch)} file(s)."
    )
    return roots
