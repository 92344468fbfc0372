#!/usr/bin/env python
"""Quick-start guide for dualtreex library usage.

Run with: python -m dualtreex

This module avoids importing dualtreex internals so the help text prints
without building anything.
"""

from __future__ import annotations

QUICKSTART = """\
================================================================================
                               DUALTREEX
     Exact k-nearest / k-furthest neighbour search with dual-tree traversal
================================================================================

INSTALLATION
------------
    pip install dualtreex            # numpy-only core
    pip install "dualtreex[numba]"   # optional Numba brute-force kernel

BASIC USAGE (all-k-nearest-neighbours)
--------------------------------------
    import numpy as np
    from dualtreex import knn, kfn

    reference = np.random.randn(10000, 3)
    queries = np.random.randn(500, 3)

    # Neighbours of each query point, shape (500, 5)
    neighbors, distances = knn(reference, queries, k=5)

    # Self-search: a point is never its own neighbour
    neighbors, distances = knn(reference, k=5)

    # Furthest neighbours use the same engine with the opposite ordering
    neighbors, distances = kfn(reference, queries, k=5)

TREES AND TRAVERSALS
--------------------
    from dualtreex import NeighborSearch

    search = NeighborSearch(reference, tree="cover", mode="dual")
    neighbors, distances = search.search(queries, k=5)
    print(search.last_counters)      # base cases, scores, prunes

    # tree: "kd" | "ball" | "cover"     mode: "dual" | "single" | "naive"

RANGE SEARCH
------------
    from dualtreex import range_search

    ids, dists = range_search(reference, queries, (0.0, 0.25))

RUNTIME CONFIGURATION
---------------------
    from dualtreex import NeighborIndex, Runtime

    index = NeighborIndex(Runtime(tree="ball", metric="manhattan")).fit(reference)
    neighbors = index.knn(queries, k=5)

    # Environment variables: DUALTREEX_TREE, DUALTREEX_MODE, DUALTREEX_METRIC,
    # DUALTREEX_LEAF_SIZE, DUALTREEX_COVER_BASE, DUALTREEX_LOG_LEVEL,
    # DUALTREEX_ENABLE_DIAGNOSTICS, DUALTREEX_ENABLE_NUMBA

BENCHMARKING CLI
----------------
    python -m cli.search knn --dimension 3 --reference-points 4096 --k 10 --verify
    python -m cli.search range --hi 0.5 --tree ball

================================================================================
"""


def main() -> None:
    """Print quick-start guide."""
    print(QUICKSTART)


if __name__ == "__main__":
    main()
