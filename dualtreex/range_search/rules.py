from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

import numpy as np

from dualtreex.algo.rules import PRUNE
from dualtreex.core.metrics import Metric
from dualtreex.core.tree import Node, SpaceTree, TreeTraits

from .range import Range

_NO_INDEX = -1


@dataclass
class RangeSearchStat:
    last_distance: float = 0.0


class RangeSearchRules:
    """Collect every reference point whose distance to a query lies in a range.

    Node pairs whose distance interval misses the range are pruned; pairs whose
    interval sits wholly inside it contribute all their descendants at once and
    are pruned as well.
    """

    def __init__(
        self,
        reference_tree: SpaceTree | None,
        reference_set: np.ndarray,
        query_set: np.ndarray,
        search_range: Range,
        metric: Metric,
        *,
        query_tree: SpaceTree | None = None,
    ) -> None:
        if reference_set.shape[1] != query_set.shape[1]:
            raise ValueError(
                "Query and reference dimensionality differ: "
                f"{query_set.shape[1]} != {reference_set.shape[1]}."
            )
        self.reference_tree = reference_tree
        self.query_tree = query_tree
        self.reference_set = reference_set
        self.query_set = query_set
        self.range = search_range
        self.metric = metric
        self.traits = reference_tree.traits if reference_tree is not None else TreeTraits()
        self.results: List[Dict[int, float]] = [{} for _ in range(query_set.shape[0])]
        self._same_set = query_set is reference_set
        self._last_query_index = _NO_INDEX
        self._last_reference_index = _NO_INDEX
        self._last_base_case = 0.0
        self.num_base_cases = 0

    def base_case(self, query_index: int, reference_index: int) -> float:
        if self._same_set and query_index == reference_index:
            return 0.0
        if (
            query_index == self._last_query_index
            and reference_index == self._last_reference_index
        ):
            return self._last_base_case

        distance = self.metric.evaluate(
            self.query_set[query_index], self.reference_set[reference_index]
        )
        self.num_base_cases += 1
        if self.range.contains(distance):
            self.results[query_index][reference_index] = distance

        self._last_query_index = query_index
        self._last_reference_index = reference_index
        self._last_base_case = distance
        return distance

    def score(self, query_index: int, reference_node: Node) -> float:
        if self.traits.first_point_is_centroid:
            centroid = reference_node.point(0)
            parent = reference_node.parent
            if (
                self.traits.has_self_children
                and parent is not None
                and parent.point(0) == centroid
            ):
                base = parent.stat.last_distance
            else:
                base = self.base_case(query_index, centroid)
            reference_node.stat.last_distance = base
            radius = reference_node.furthest_descendant_distance
            interval = Range(max(base - radius, 0.0), base + radius)
        else:
            point = self.query_set[query_index]
            interval = Range(
                reference_node.bound.min_distance(point),
                reference_node.bound.max_distance(point),
            )

        if not self.range.overlaps(interval):
            return PRUNE
        if self.range.contains_range(interval):
            self._add_point_results(query_index, reference_node)
            return PRUNE
        return interval.lo

    def score_nodes(self, query_node: Node, reference_node: Node) -> float:
        if self.traits.first_point_is_centroid:
            base = self.base_case(query_node.point(0), reference_node.point(0))
            radius = (
                query_node.furthest_descendant_distance
                + reference_node.furthest_descendant_distance
            )
            interval = Range(max(base - radius, 0.0), base + radius)
        else:
            interval = Range(
                query_node.bound.min_distance_to(reference_node.bound),
                query_node.bound.max_distance_to(reference_node.bound),
            )

        if not self.range.overlaps(interval):
            return PRUNE
        if self.range.contains_range(interval):
            for query_index in self._query_descendants(query_node):
                self._add_point_results(int(query_index), reference_node)
            return PRUNE
        return interval.lo

    def rescore(self, query_index: int, reference_node: Node, old_score: float) -> float:
        return old_score

    def rescore_nodes(self, query_node: Node, reference_node: Node, old_score: float) -> float:
        return old_score

    def order_scores(self, scores: np.ndarray) -> np.ndarray:
        return np.argsort(scores, kind="stable")

    def _query_descendants(self, query_node: Node) -> np.ndarray:
        if self.query_tree is None:
            raise RuntimeError("Node-to-node scoring needs the query tree.")
        return self.query_tree.descendant_points(query_node)

    def _add_point_results(self, query_index: int, reference_node: Node) -> None:
        if self.reference_tree is None:
            raise RuntimeError("Node scoring needs the reference tree.")
        found = self.results[query_index]
        members = self.reference_tree.descendant_points(reference_node)
        if self._same_set:
            members = members[members != query_index]
        pending = np.asarray([idx for idx in members if int(idx) not in found], dtype=np.int64)
        if pending.size == 0:
            return
        distances = self.metric.pairwise(self.query_set[query_index], self.reference_set[pending])[0]
        for idx, distance in zip(pending, distances):
            if self.range.contains(float(distance)):
                found[int(idx)] = float(distance)


__all__ = ["RangeSearchRules", "RangeSearchStat"]
