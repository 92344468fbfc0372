"""Exact k-nearest and k-furthest neighbour search."""

from .candidates import INVALID_NEIGHBOR, CandidateSet
from .rules import NeighborSearchRules
from .search import AllkFN, AllkNN, NeighborSearch, SearchCounters, kfn, knn
from .sort_policy import (
    FURTHEST,
    NEAREST,
    FurthestNeighborSort,
    NearestNeighborSort,
    SortPolicy,
    available_sort_policies,
    get_sort_policy,
)
from .stat import NeighborSearchStat

__all__ = [
    "AllkFN",
    "AllkNN",
    "CandidateSet",
    "FURTHEST",
    "FurthestNeighborSort",
    "INVALID_NEIGHBOR",
    "NEAREST",
    "NearestNeighborSort",
    "NeighborSearch",
    "NeighborSearchRules",
    "NeighborSearchStat",
    "SearchCounters",
    "SortPolicy",
    "available_sort_policies",
    "get_sort_policy",
    "kfn",
    "knn",
]
