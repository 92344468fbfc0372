from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, List, Tuple

import numpy as np

from dualtreex.api.runtime import Runtime
from dualtreex.core.tree import SpaceTree
from dualtreex.neighbors.search import NeighborSearch, as_point_set
from dualtreex.range_search import Range, RangeSearch
from dualtreex.trees import build_tree


@dataclass(frozen=True)
class NeighborIndex:
    """Thin façade around tree construction + neighbour/range queries."""

    runtime: Runtime = field(default_factory=Runtime)
    tree: SpaceTree | None = None

    def fit(self, points: Any) -> "NeighborIndex":
        config = self.runtime.activate()
        data = as_point_set(points, name="Reference set")
        tree = build_tree(
            data,
            kind=config.tree,
            metric=config.metric,
            leaf_size=config.leaf_size,
            base=config.cover_base,
        )
        return replace(self, tree=tree)

    def knn(
        self,
        query_points: Any = None,
        *,
        k: int,
        return_distances: bool = False,
    ) -> np.ndarray | Tuple[np.ndarray, np.ndarray]:
        return self._search("nearest", query_points, k=k, return_distances=return_distances)

    def kfn(
        self,
        query_points: Any = None,
        *,
        k: int,
        return_distances: bool = False,
    ) -> np.ndarray | Tuple[np.ndarray, np.ndarray]:
        return self._search("furthest", query_points, k=k, return_distances=return_distances)

    def nearest(self, query_points: Any = None, *, return_distances: bool = False) -> Any:
        return self.knn(query_points, k=1, return_distances=return_distances)

    def range(
        self,
        query_points: Any = None,
        *,
        lo: float = 0.0,
        hi: float,
    ) -> Tuple[List[np.ndarray], List[np.ndarray]]:
        tree = self._require_tree()
        config = self.runtime.activate()
        search = RangeSearch(None, tree=tree, mode=config.mode)
        return search.search(query_points, Range(lo, hi))

    def _search(
        self,
        policy: str,
        query_points: Any,
        *,
        k: int,
        return_distances: bool,
    ) -> np.ndarray | Tuple[np.ndarray, np.ndarray]:
        tree = self._require_tree()
        config = self.runtime.activate()
        search = NeighborSearch(None, policy=policy, tree=tree, mode=config.mode)
        neighbors, distances = search.search(query_points, k=k)
        return (neighbors, distances) if return_distances else neighbors

    def _require_tree(self) -> SpaceTree:
        if self.tree is None:
            raise ValueError("NeighborIndex requires an existing tree; call fit() first.")
        return self.tree
