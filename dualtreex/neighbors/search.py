from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Tuple

import numpy as np

from dualtreex import config as dx_config
from dualtreex.algo.traverse import DualTreeTraverser, SingleTreeTraverser, TraversalStats
from dualtreex.core.metrics import Metric, get_metric
from dualtreex.core.tree import SpaceTree
from dualtreex.diagnostics import log_operation
from dualtreex.logging import get_logger
from dualtreex.trees import build_tree

from .candidates import CandidateSet
from .rules import NeighborSearchRules
from .sort_policy import SortPolicy, get_sort_policy
from .stat import NeighborSearchStat

LOGGER = get_logger("neighbors.search")


@dataclass(frozen=True)
class SearchCounters:
    """Work done by the most recent search call."""

    base_cases: int
    reused_distances: int
    scores: int
    prunes: int
    visited: int


def as_point_set(value: Any, *, name: str) -> np.ndarray:
    points = np.array(value, dtype=np.float64)
    if points.ndim == 1:
        points = points[None, :]
    if points.ndim != 2:
        raise ValueError(f"{name} must be a 2-D array of points, got shape {points.shape}.")
    if points.shape[0] == 0:
        raise ValueError(f"{name} cannot be empty.")
    if points.shape[1] == 0:
        raise ValueError(f"{name} points must have at least one coordinate.")
    return points


def _resolve_metric(metric: Metric | str | None) -> Metric:
    if isinstance(metric, Metric):
        return metric
    return get_metric(metric)


class NeighborSearch:
    """Exact k-nearest (or k-furthest) neighbour search over a reference set.

    ``tree`` is either a tree kind (``"kd"``, ``"ball"``, ``"cover"``) or an
    already-built :class:`~dualtreex.core.tree.SpaceTree`. ``mode`` selects
    dual-tree, single-tree or naive all-pairs evaluation; all three run the
    same base-case rule and return identical results.
    """

    def __init__(
        self,
        reference: Any,
        *,
        policy: str | SortPolicy | None = None,
        metric: Metric | str | None = None,
        tree: str | SpaceTree | None = None,
        mode: str | None = None,
        leaf_size: int | None = None,
        base: float | None = None,
    ) -> None:
        runtime = dx_config.runtime_config()
        self.policy = get_sort_policy(policy)
        self.mode = dx_config.normalise_mode(mode or runtime.mode)
        self._leaf_size = leaf_size
        self._base = base

        if isinstance(tree, SpaceTree):
            if metric is not None and _resolve_metric(metric).name != tree.metric.name:
                raise ValueError(
                    f"Metric '{_resolve_metric(metric).name}' does not match the tree "
                    f"metric '{tree.metric.name}'."
                )
            self.metric = tree.metric
            self.tree_kind = tree.name
            self.reference_tree: SpaceTree | None = tree
            self.reference = tree.data
        else:
            self.metric = _resolve_metric(metric)
            self.tree_kind = dx_config.normalise_tree(tree or runtime.tree)
            self.reference = as_point_set(reference, name="Reference set")
            self.reference_tree = None
            if self.mode != "naive":
                self.reference_tree = self._build(self.reference)
        self.last_counters: SearchCounters | None = None

    @property
    def dimension(self) -> int:
        return int(self.reference.shape[1])

    @property
    def num_references(self) -> int:
        return int(self.reference.shape[0])

    def _build(self, points: np.ndarray) -> SpaceTree:
        leaf_size = self._leaf_size
        base = self._base
        if self.reference_tree is not None:
            leaf_size = getattr(self.reference_tree, "leaf_size", leaf_size)
            base = getattr(self.reference_tree, "base", base)
        return build_tree(
            points,
            kind=self.tree_kind,
            metric=self.metric,
            leaf_size=leaf_size,
            base=base,
        )

    def search(
        self,
        query: Any = None,
        *,
        k: int,
        query_tree: SpaceTree | None = None,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(neighbors, distances)``, each of shape ``(n_queries, k)``.

        ``query=None`` runs a self-search over the reference set in which no
        point is reported as its own neighbour. Slots that could not be
        filled hold ``-1`` and the policy's worst distance.
        """

        with log_operation(LOGGER, "knn_search") as op_log:
            neighbors, distances = self._search_impl(query, k=k, query_tree=query_tree)
            if op_log is not None and self.last_counters is not None:
                counters = self.last_counters
                op_log.add_metadata(
                    policy=self.policy.name,
                    mode=self.mode,
                    tree=self.tree_kind,
                    queries=neighbors.shape[0],
                    k=k,
                    base_cases=counters.base_cases,
                    scores=counters.scores,
                    prunes=counters.prunes,
                )
        return neighbors, distances

    def _search_impl(
        self,
        query: Any,
        *,
        k: int,
        query_tree: SpaceTree | None,
    ) -> Tuple[np.ndarray, np.ndarray]:
        if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
            raise ValueError(f"k must be an integer, got {k!r}.")
        if k < 1:
            raise ValueError("k must be positive.")

        if query_tree is not None:
            if self.mode != "dual":
                raise ValueError("A prebuilt query tree is only used by dual-tree search.")
            query_set = query_tree.data
        elif query is None:
            query_set = self.reference
        else:
            query_set = as_point_set(query, name="Query set")
        if query_set.shape[1] != self.dimension:
            raise ValueError(
                "Query and reference dimensionality differ: "
                f"{query_set.shape[1]} != {self.dimension}."
            )
        if k > self.num_references:
            LOGGER.debug(
                "k=%d exceeds the %d reference points; unfilled slots keep sentinels.",
                k,
                self.num_references,
            )

        candidates = CandidateSet(query_set.shape[0], int(k), self.policy)
        stat_factory = NeighborSearchStat.factory(self.policy)
        traversal = TraversalStats()

        if self.mode == "naive":
            rules = NeighborSearchRules(
                self.reference, query_set, candidates, self.metric, self.policy
            )
            for query_index in range(query_set.shape[0]):
                for reference_index in range(self.num_references):
                    rules.base_case(query_index, reference_index)
        elif self.mode == "single":
            tree = self._require_tree()
            tree.reset_statistics(stat_factory)
            rules = NeighborSearchRules(
                self.reference,
                query_set,
                candidates,
                self.metric,
                self.policy,
                traits=tree.traits,
                reference_nodes=tree.nodes,
            )
            traverser = SingleTreeTraverser(rules, tree.traits)
            for query_index in range(query_set.shape[0]):
                traverser.traverse(query_index, tree.root)
            traversal = traverser.stats
        else:
            tree = self._require_tree()
            if query_tree is None:
                query_tree = tree if query_set is self.reference else self._build(query_set)
            _check_compatible(tree, query_tree)
            tree.reset_statistics(stat_factory)
            if query_tree is not tree:
                query_tree.reset_statistics(stat_factory)
            rules = NeighborSearchRules(
                self.reference,
                query_set,
                candidates,
                self.metric,
                self.policy,
                traits=tree.traits,
                reference_nodes=tree.nodes,
                query_nodes=query_tree.nodes,
            )
            traverser = DualTreeTraverser(rules, tree.traits)
            traverser.traverse(query_tree.root, tree.root)
            traversal = traverser.stats

        self.last_counters = SearchCounters(
            base_cases=rules.num_base_cases,
            reused_distances=rules.num_reused,
            scores=traversal.num_scores,
            prunes=traversal.num_prunes,
            visited=traversal.num_visited,
        )
        return candidates.result()

    def _require_tree(self) -> SpaceTree:
        if self.reference_tree is None:
            self.reference_tree = self._build(self.reference)
        return self.reference_tree


def _check_compatible(reference_tree: SpaceTree, query_tree: SpaceTree) -> None:
    if type(reference_tree) is not type(query_tree):
        raise ValueError(
            f"Dual-tree search needs matching tree types, got {query_tree.name} "
            f"queries against a {reference_tree.name} reference tree."
        )
    if reference_tree.metric.name != query_tree.metric.name:
        raise ValueError("Query and reference trees were built with different metrics.")


class AllkNN(NeighborSearch):
    """:class:`NeighborSearch` fixed to nearest-neighbour ordering."""

    def __init__(self, reference: Any, **kwargs: Any) -> None:
        super().__init__(reference, policy="nearest", **kwargs)


class AllkFN(NeighborSearch):
    """:class:`NeighborSearch` fixed to furthest-neighbour ordering."""

    def __init__(self, reference: Any, **kwargs: Any) -> None:
        super().__init__(reference, policy="furthest", **kwargs)


def knn(
    reference: Any,
    query: Any = None,
    *,
    k: int,
    **kwargs: Any,
) -> Tuple[np.ndarray, np.ndarray]:
    return AllkNN(reference, **kwargs).search(query, k=k)


def kfn(
    reference: Any,
    query: Any = None,
    *,
    k: int,
    **kwargs: Any,
) -> Tuple[np.ndarray, np.ndarray]:
    return AllkFN(reference, **kwargs).search(query, k=k)


__all__ = [
    "AllkFN",
    "AllkNN",
    "NeighborSearch",
    "SearchCounters",
    "as_point_set",
    "kfn",
    "knn",
]
