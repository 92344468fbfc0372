from __future__ import annotations

import math
from typing import Any, ClassVar, Dict, List, Tuple

import numpy as np

from dualtreex.core.metrics import Metric
from dualtreex.core.tree import Node, SpaceTree, TreeTraits
from dualtreex.logging import get_logger

LOGGER = get_logger("trees.cover_tree")


class CoverTree(SpaceTree):
    """Explicit cover tree: one point per node, first child is the self-child.

    Every internal node repeats its point in its first child, so each point
    reaches exactly one leaf at the bottom of its self-child chain. The
    furthest descendant distance of a node is the largest distance from its
    point to anything stored beneath it, raised where needed so that it never
    falls below a child's.
    """

    traits: ClassVar[TreeTraits] = TreeTraits(
        first_point_is_centroid=True,
        has_self_children=True,
    )
    name: ClassVar[str] = "cover"

    def __init__(self, data: Any, metric: Metric, *, base: float = 2.0) -> None:
        super().__init__(data, metric)
        if not math.isfinite(base) or base <= 1.0:
            raise ValueError(f"Cover tree base must be a finite value above 1, got {base}.")
        self.base = float(base)
        self._build()
        self._compute_descendant_distances()
        LOGGER.debug(
            "Built cover tree: points=%d nodes=%d depth=%d base=%.3f",
            self.num_points,
            self.num_nodes,
            self.depth(),
            self.base,
        )

    def _distances_from(self, point: int, candidates: np.ndarray) -> np.ndarray:
        if candidates.size == 0:
            return np.empty(0, dtype=np.float64)
        return self.metric.pairwise(self.data[point], self.data[candidates])[0]

    def _scale_for(self, distance: float) -> int:
        return int(math.ceil(math.log(distance) / math.log(self.base)))

    def _build(self) -> None:
        candidates = np.arange(1, self.num_points, dtype=np.int64)
        distances = self._distances_from(0, candidates)
        top = self._scale_for(float(distances.max())) if distances.size and distances.max() > 0 else 0
        root = self._new_node([0], level=top)
        stack: List[Tuple[Node, np.ndarray, np.ndarray]] = [(root, candidates, distances)]

        while stack:
            node, members, member_dist = stack.pop()
            if members.size == 0:
                continue
            center = node.point(0)
            max_dist = float(member_dist.max())
            if max_dist == 0.0:
                # Duplicates of the centre: one leaf each under a leaf self-child.
                self._new_node([center], parent=node, level=node.level - 1)
                for dup in members:
                    self._new_node([int(dup)], parent=node, level=node.level - 1)
                continue

            scale = self._scale_for(max_dist)
            child_radius = self.base ** (scale - 1)
            if child_radius >= max_dist:
                child_radius = max_dist / self.base
            node.level = scale

            near = member_dist <= child_radius
            self_child = self._new_node([center], parent=node, level=scale - 1)
            stack.append((self_child, members[near], member_dist[near]))

            far = members[~near]
            while far.size:
                new_center = int(far[0])
                rest = far[1:]
                rest_dist = self._distances_from(new_center, rest)
                grab = rest_dist <= child_radius
                child = self._new_node([new_center], parent=node, level=scale - 1)
                stack.append((child, rest[grab], rest_dist[grab]))
                far = rest[~grab]

    def _compute_descendant_distances(self) -> None:
        below: Dict[int, np.ndarray] = {}
        # Children are always allocated after their parent.
        for node in reversed(self.nodes):
            if node.is_leaf:
                members = node.points
                node.furthest_descendant_distance = 0.0
            else:
                members = np.concatenate([below.pop(child.index) for child in node.children])
                dists = self._distances_from(node.point(0), members)
                own = float(dists.max()) if dists.size else 0.0
                node.furthest_descendant_distance = max(
                    [own] + [child.furthest_descendant_distance for child in node.children]
                )
            below[node.index] = members


__all__ = ["CoverTree"]
