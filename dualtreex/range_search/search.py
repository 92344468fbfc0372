from __future__ import annotations

from typing import Any, List, Tuple

import numpy as np

from dualtreex import config as dx_config
from dualtreex.algo.traverse import DualTreeTraverser, SingleTreeTraverser
from dualtreex.core.metrics import Metric, get_metric
from dualtreex.core.tree import SpaceTree
from dualtreex.diagnostics import log_operation
from dualtreex.logging import get_logger
from dualtreex.neighbors.search import as_point_set
from dualtreex.trees import build_tree

from .range import Range
from .rules import RangeSearchRules, RangeSearchStat

LOGGER = get_logger("range_search.search")


def _as_range(value: Range | Tuple[float, float]) -> Range:
    if isinstance(value, Range):
        return value
    lo, hi = value
    return Range(float(lo), float(hi))


class RangeSearch:
    """Find every reference point within a distance range of each query."""

    def __init__(
        self,
        reference: Any,
        *,
        metric: Metric | str | None = None,
        tree: str | SpaceTree | None = None,
        mode: str | None = None,
        leaf_size: int | None = None,
        base: float | None = None,
    ) -> None:
        runtime = dx_config.runtime_config()
        self.mode = dx_config.normalise_mode(mode or runtime.mode)
        self._leaf_size = leaf_size
        self._base = base
        if isinstance(tree, SpaceTree):
            self.metric = tree.metric
            self.tree_kind = tree.name
            self.reference = tree.data
            self.reference_tree: SpaceTree | None = tree
        else:
            self.metric = metric if isinstance(metric, Metric) else get_metric(metric)
            self.tree_kind = dx_config.normalise_tree(tree or runtime.tree)
            self.reference = as_point_set(reference, name="Reference set")
            self.reference_tree = None
            if self.mode != "naive":
                self.reference_tree = self._build(self.reference)

    def _build(self, points: np.ndarray) -> SpaceTree:
        return build_tree(
            points,
            kind=self.tree_kind,
            metric=self.metric,
            leaf_size=getattr(self.reference_tree, "leaf_size", self._leaf_size),
            base=getattr(self.reference_tree, "base", self._base),
        )

    def search(
        self,
        query: Any = None,
        search_range: Range | Tuple[float, float] = Range(),
    ) -> Tuple[List[np.ndarray], List[np.ndarray]]:
        """Return per-query ``(neighbors, distances)`` lists sorted by distance."""

        interval = _as_range(search_range)
        with log_operation(LOGGER, "range_search") as op_log:
            query_set = self.reference if query is None else as_point_set(query, name="Query set")
            if query_set.shape[1] != self.reference.shape[1]:
                raise ValueError(
                    "Query and reference dimensionality differ: "
                    f"{query_set.shape[1]} != {self.reference.shape[1]}."
                )
            rules = self._run(query_set, interval)
            neighbors: List[np.ndarray] = []
            distances: List[np.ndarray] = []
            for found in rules.results:
                ids = np.fromiter(found.keys(), dtype=np.int64, count=len(found))
                dists = np.fromiter(found.values(), dtype=np.float64, count=len(found))
                order = np.lexsort((ids, dists))
                neighbors.append(ids[order])
                distances.append(dists[order])
            if op_log is not None:
                op_log.add_metadata(
                    mode=self.mode,
                    tree=self.tree_kind,
                    queries=query_set.shape[0],
                    lo=interval.lo,
                    hi=interval.hi,
                    results=sum(len(ids) for ids in neighbors),
                    base_cases=rules.num_base_cases,
                )
        return neighbors, distances

    def _run(self, query_set: np.ndarray, interval: Range) -> RangeSearchRules:
        if self.mode == "naive":
            rules = RangeSearchRules(None, self.reference, query_set, interval, self.metric)
            for query_index in range(query_set.shape[0]):
                for reference_index in range(self.reference.shape[0]):
                    rules.base_case(query_index, reference_index)
            return rules

        tree = self.reference_tree or self._build(self.reference)
        self.reference_tree = tree
        tree.reset_statistics(lambda _node: RangeSearchStat())
        if self.mode == "single":
            rules = RangeSearchRules(tree, self.reference, query_set, interval, self.metric)
            traverser = SingleTreeTraverser(rules, tree.traits)
            for query_index in range(query_set.shape[0]):
                traverser.traverse(query_index, tree.root)
            return rules

        query_tree = tree if query_set is self.reference else self._build(query_set)
        if query_tree is not tree:
            query_tree.reset_statistics(lambda _node: RangeSearchStat())
        rules = RangeSearchRules(
            tree, self.reference, query_set, interval, self.metric, query_tree=query_tree
        )
        DualTreeTraverser(rules, tree.traits).traverse(query_tree.root, tree.root)
        return rules


def range_search(
    reference: Any,
    query: Any = None,
    search_range: Range | Tuple[float, float] = Range(),
    **kwargs: Any,
) -> Tuple[List[np.ndarray], List[np.ndarray]]:
    return RangeSearch(reference, **kwargs).search(query, search_range)


__all__ = ["RangeSearch", "range_search"]
