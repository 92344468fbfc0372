"""Depth-first single-tree and dual-tree traversal drivers.

Both drivers only use the node contract (``num_points``/``point``,
``num_children``/``child``) and the :class:`TraversalRules` callbacks, so they
work with any tree in :mod:`dualtreex.trees`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

import numpy as np

from dualtreex.core.tree import TreeTraits

from .rules import PRUNE, TraversalRules


@dataclass
class TraversalStats:
    num_scores: int = 0
    num_prunes: int = 0
    num_visited: int = 0
    num_leaf_pairs: int = 0


def _children(node: Any) -> List[Any]:
    return [node.child(i) for i in range(node.num_children)]


class SingleTreeTraverser:
    """Visit one reference tree per query point, best-scoring children first."""

    def __init__(self, rules: TraversalRules, traits: TreeTraits | None = None) -> None:
        self.rules = rules
        self.traits = traits or TreeTraits()
        self.stats = TraversalStats()

    def traverse(self, query_index: int, reference_root: Any) -> None:
        self.stats.num_scores += 1
        if self.rules.score(query_index, reference_root) == PRUNE:
            self.stats.num_prunes += 1
            return
        self._descend(query_index, reference_root)

    def _descend(self, query_index: int, node: Any) -> None:
        rules = self.rules
        self.stats.num_visited += 1
        if node.num_children == 0:
            self.stats.num_leaf_pairs += 1
            # Scoring a centroid node already evaluated its first point.
            start = 1 if self.traits.first_point_is_centroid else 0
            for i in range(start, node.num_points):
                rules.base_case(query_index, node.point(i))
            return

        children = _children(node)
        scores = np.asarray([rules.score(query_index, child) for child in children])
        self.stats.num_scores += len(children)
        live = np.flatnonzero(scores != PRUNE)
        self.stats.num_prunes += len(children) - live.shape[0]
        for position, idx in enumerate(live[rules.order_scores(scores[live])]):
            child = children[idx]
            score = float(scores[idx])
            if position > 0:
                score = rules.rescore(query_index, child, score)
                if score == PRUNE:
                    self.stats.num_prunes += 1
                    continue
            self._descend(query_index, child)


class DualTreeTraverser:
    """Recurse over a query tree and a reference tree simultaneously."""

    def __init__(self, rules: TraversalRules, traits: TreeTraits | None = None) -> None:
        self.rules = rules
        self.traits = traits or TreeTraits()
        self.stats = TraversalStats()

    def traverse(self, query_root: Any, reference_root: Any) -> None:
        self.stats.num_scores += 1
        if self.rules.score_nodes(query_root, reference_root) == PRUNE:
            self.stats.num_prunes += 1
            return
        self._descend(query_root, reference_root)

    def _descend(self, query_node: Any, reference_node: Any) -> None:
        self.stats.num_visited += 1
        query_leaf = query_node.num_children == 0
        reference_leaf = reference_node.num_children == 0

        if query_leaf and reference_leaf:
            self._base_cases(query_node, reference_node)
        elif query_leaf:
            self._descend_reference(query_node, reference_node)
        elif reference_leaf:
            for query_child in _children(query_node):
                self.stats.num_scores += 1
                if self.rules.score_nodes(query_child, reference_node) == PRUNE:
                    self.stats.num_prunes += 1
                    continue
                self._descend(query_child, reference_node)
        else:
            for query_child in _children(query_node):
                self._descend_reference(query_child, reference_node)

    def _descend_reference(self, query_node: Any, reference_node: Any) -> None:
        rules = self.rules
        children = _children(reference_node)
        scores = np.asarray([rules.score_nodes(query_node, child) for child in children])
        self.stats.num_scores += len(children)
        live = np.flatnonzero(scores != PRUNE)
        self.stats.num_prunes += len(children) - live.shape[0]
        for position, idx in enumerate(live[rules.order_scores(scores[live])]):
            child = children[idx]
            score = float(scores[idx])
            if position > 0:
                score = rules.rescore_nodes(query_node, child, score)
                if score == PRUNE:
                    self.stats.num_prunes += 1
                    continue
            self._descend(query_node, child)

    def _base_cases(self, query_node: Any, reference_node: Any) -> None:
        self.stats.num_leaf_pairs += 1
        rules = self.rules
        skip_centroid = self.traits.first_point_is_centroid
        query_centroid = query_node.point(0) if skip_centroid else -1
        reference_centroid = reference_node.point(0) if skip_centroid else -1
        for i in range(query_node.num_points):
            query_index = query_node.point(i)
            for j in range(reference_node.num_points):
                reference_index = reference_node.point(j)
                if query_index == query_centroid and reference_index == reference_centroid:
                    continue
                rules.base_case(query_index, reference_index)


__all__ = ["DualTreeTraverser", "SingleTreeTraverser", "TraversalStats"]
