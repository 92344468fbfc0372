"""Branch-and-bound rules for exact k-nearest / k-furthest neighbour search."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from dualtreex.algo.rules import PRUNE
from dualtreex.core.metrics import Metric
from dualtreex.core.tree import Node, TreeTraits

from .candidates import CandidateSet
from .sort_policy import SortPolicy

_NO_INDEX = -1


class NeighborSearchRules:
    """Base case, score and rescore callbacks for neighbour search.

    The rules own the candidate lists and read/write the
    :class:`~dualtreex.neighbors.stat.NeighborSearchStat` installed on every
    node. Query and reference sets alias (self-search) exactly when the same
    array object is passed for both.
    """

    def __init__(
        self,
        reference_set: np.ndarray,
        query_set: np.ndarray,
        candidates: CandidateSet,
        metric: Metric,
        policy: SortPolicy,
        *,
        traits: TreeTraits | None = None,
        reference_nodes: Sequence[Node] = (),
        query_nodes: Sequence[Node] = (),
    ) -> None:
        if reference_set.ndim != 2 or query_set.ndim != 2:
            raise ValueError("Reference and query sets must both be 2-D arrays.")
        if reference_set.shape[1] != query_set.shape[1]:
            raise ValueError(
                "Query and reference dimensionality differ: "
                f"{query_set.shape[1]} != {reference_set.shape[1]}."
            )
        if candidates.num_queries != query_set.shape[0]:
            raise ValueError("Candidate set must hold one row per query point.")
        self.reference_set = reference_set
        self.query_set = query_set
        self.candidates = candidates
        self.metric = metric
        self.policy = policy
        self.traits = traits or TreeTraits()
        self._reference_nodes = reference_nodes
        self._query_nodes = query_nodes
        self._same_set = query_set is reference_set
        self._last_query_index = _NO_INDEX
        self._last_reference_index = _NO_INDEX
        self._last_base_case = 0.0
        self.num_base_cases = 0
        self.num_reused = 0

    @property
    def same_set(self) -> bool:
        return self._same_set

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

        # Binary trees hold each point in one leaf, so a pair is never seen twice.
        self._offer(
            query_index,
            reference_index,
            distance,
            check_listed=self.traits.has_self_children,
        )
        self._remember(query_index, reference_index, distance)
        return distance

    def score(self, query_index: int, reference_node: Node) -> float:
        policy = self.policy
        if self.traits.first_point_is_centroid:
            centroid = reference_node.point(0)
            parent = reference_node.parent
            if (
                self.traits.has_self_children
                and parent is not None
                and parent.point(0) == centroid
            ):
                base = parent.stat.last_distance
                self.num_reused += 1
            else:
                base = self.base_case(query_index, centroid)
            reference_node.stat.last_distance = base
            distance = policy.combine_best(base, reference_node.furthest_descendant_distance)
        else:
            distance = policy.best_point_to_node_distance(
                self.query_set[query_index], reference_node
            )

        best_distance = self.candidates.worst(query_index)
        return distance if policy.is_better(distance, best_distance) else PRUNE

    def rescore(self, query_index: int, reference_node: Node, old_score: float) -> float:
        if old_score == PRUNE:
            return old_score
        best_distance = self.candidates.worst(query_index)
        return old_score if self.policy.is_better(old_score, best_distance) else PRUNE

    def score_nodes(self, query_node: Node, reference_node: Node) -> float:
        policy = self.policy
        if self.traits.first_point_is_centroid:
            base = self._cached_centroid_distance(query_node, reference_node)
            query_point = query_node.point(0)
            reference_point = reference_node.point(0)
            if base is None:
                base = self.base_case(query_point, reference_point)
            else:
                self.num_reused += 1
                # The cached value may have been measured in the other
                # direction when both roles share one tree.
                if not (self._same_set and query_point == reference_point):
                    self._offer(query_point, reference_point, base, check_listed=True)
                self._remember(query_point, reference_point, base)

            distance = policy.combine_best(
                base,
                query_node.furthest_descendant_distance
                + reference_node.furthest_descendant_distance,
            )
            query_node.stat.last_distance_node = reference_node.index
            query_node.stat.last_distance = base
            reference_node.stat.last_distance_node = query_node.index
            reference_node.stat.last_distance = base
        else:
            distance = policy.best_node_to_node_distance(query_node, reference_node)

        best_distance = self.calculate_bound(query_node)
        return distance if policy.is_better(distance, best_distance) else PRUNE

    def rescore_nodes(self, query_node: Node, reference_node: Node, old_score: float) -> float:
        if old_score == PRUNE:
            return old_score
        best_distance = self.calculate_bound(query_node)
        return old_score if self.policy.is_better(old_score, best_distance) else PRUNE

    def calculate_bound(self, query_node: Node) -> float:
        """Refresh and return the pruning threshold of ``query_node``.

        Five candidate bounds, combined with best/worst so that the same
        code serves nearest and furthest search:

        1. worst(worst_p D_p[k], worst_c B(c))
        2. best_p D_p[k] widened by twice the node's descendant distance
        3. best_c B_2(c) widened by 2 (lambda(node) - lambda(c))
        4. B_1(parent)
        5. B_2(parent)

        D_p[k] is the current k-th candidate distance of point p.
        """

        policy = self.policy
        candidates = self.candidates

        worst_point = policy.best_distance
        best_point = policy.worst_distance
        for i in range(query_node.num_points):
            distance = candidates.worst(query_node.point(i))
            if policy.is_better(distance, best_point):
                best_point = distance
            if policy.is_better(worst_point, distance):
                worst_point = distance

        worst_child = policy.best_distance
        best_adjusted_child = policy.worst_distance
        query_radius = query_node.furthest_descendant_distance
        for i in range(query_node.num_children):
            child = query_node.child(i)
            child_bound = child.stat.bound
            if policy.is_better(worst_child, child_bound):
                worst_child = child_bound
            adjusted = policy.combine_worst(
                child.stat.second_bound,
                2.0 * (query_radius - child.furthest_descendant_distance),
            )
            if policy.is_better(adjusted, best_adjusted_child):
                best_adjusted_child = adjusted

        first = policy.worst_of(worst_point, worst_child)
        second = policy.combine_worst(best_point, 2.0 * query_radius)

        parent = query_node.parent
        if parent is not None:
            fourth = parent.stat.first_bound
            fifth = parent.stat.second_bound
        else:
            fourth = fifth = policy.worst_distance

        first_bound = policy.best_of(first, fourth)
        second_bound = policy.best_of(policy.best_of(best_adjusted_child, second), fifth)

        stat = query_node.stat
        stat.first_bound = first_bound
        stat.second_bound = second_bound
        stat.bound = policy.best_of(first_bound, second_bound)
        return stat.bound

    def order_scores(self, scores: np.ndarray) -> np.ndarray:
        return self.policy.order(scores)

    def _offer(
        self,
        query_index: int,
        reference_index: int,
        distance: float,
        *,
        check_listed: bool,
    ) -> None:
        candidates = self.candidates
        position = candidates.candidate_position(query_index, distance)
        if position is None:
            return
        if check_listed and candidates.contains(query_index, reference_index):
            return
        candidates.insert(query_index, position, reference_index, distance)

    def _remember(self, query_index: int, reference_index: int, distance: float) -> None:
        self._last_query_index = query_index
        self._last_reference_index = reference_index
        self._last_base_case = distance

    def _reference_node(self, handle: int | None) -> Node | None:
        if handle is None or handle >= len(self._reference_nodes):
            return None
        return self._reference_nodes[handle]

    def _query_node(self, handle: int | None) -> Node | None:
        if handle is None or handle >= len(self._query_nodes):
            return None
        return self._query_nodes[handle]

    def _cached_centroid_distance(self, query_node: Node, reference_node: Node) -> float | None:
        if not self.traits.has_self_children:
            return None
        query_point = query_node.point(0)
        reference_point = reference_node.point(0)

        last_reference = self._reference_node(query_node.stat.last_distance_node)
        if last_reference is not None and last_reference.point(0) == reference_point:
            return query_node.stat.last_distance

        last_query = self._query_node(reference_node.stat.last_distance_node)
        if last_query is not None and last_query.point(0) == query_point:
            return reference_node.stat.last_distance

        query_parent = query_node.parent
        if query_parent is not None and query_parent.point(0) == query_point:
            parent_reference = self._reference_node(query_parent.stat.last_distance_node)
            if parent_reference is not None and parent_reference.point(0) == reference_point:
                return query_parent.stat.last_distance

        reference_parent = reference_node.parent
        if reference_parent is not None and reference_parent.point(0) == reference_point:
            parent_query = self._query_node(reference_parent.stat.last_distance_node)
            if parent_query is not None and parent_query.point(0) == query_point:
                return reference_parent.stat.last_distance

        return None


__all__ = ["NeighborSearchRules"]
