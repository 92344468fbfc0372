"""Dualtreex: exact all-k-nearest / all-k-furthest neighbour search.

Quick Start
-----------
>>> import numpy as np
>>> from dualtreex import knn
>>>
>>> points = np.random.randn(10000, 3)
>>> neighbors, distances = knn(points, k=10)          # self-search
>>> neighbors, distances = knn(points, points[:100], k=10)

Classes
-------
NeighborSearch : Dual-tree, single-tree or naive k-NN / k-FN search.
RangeSearch : All reference points within a distance range.
NeighborIndex : Runtime-configured façade over tree building and queries.
Runtime : Configuration for metric, tree type and traversal mode.
"""

from importlib.metadata import PackageNotFoundError, version as _pkg_version

try:
    __version__ = _pkg_version("dualtreex")
except PackageNotFoundError:  # pragma: no cover - local checkout without install
    __version__ = "0.1.0"

from .api import NeighborIndex, Runtime
from .core import (
    BallBound,
    HRectBound,
    Metric,
    SpaceTree,
    available_metrics,
    get_metric,
    register_metric,
)
from .neighbors import (
    FURTHEST,
    NEAREST,
    AllkFN,
    AllkNN,
    CandidateSet,
    FurthestNeighborSort,
    NearestNeighborSort,
    NeighborSearch,
    NeighborSearchRules,
    SortPolicy,
    kfn,
    knn,
)
from .queries import bruteforce_knn
from .range_search import Range, RangeSearch, range_search
from .trees import BallTree, CoverTree, KDTree, build_tree

__all__ = [
    "__version__",
    "NeighborIndex",
    "Runtime",
    "NeighborSearch",
    "AllkNN",
    "AllkFN",
    "knn",
    "kfn",
    "RangeSearch",
    "Range",
    "range_search",
    "bruteforce_knn",
    "build_tree",
    "KDTree",
    "BallTree",
    "CoverTree",
    "SpaceTree",
    "HRectBound",
    "BallBound",
    "Metric",
    "available_metrics",
    "get_metric",
    "register_metric",
    "SortPolicy",
    "NearestNeighborSort",
    "FurthestNeighborSort",
    "NEAREST",
    "FURTHEST",
    "CandidateSet",
    "NeighborSearchRules",
]
