from __future__ import annotations

from typing import Any, ClassVar

import numpy as np

from dualtreex.core.metrics import Metric
from dualtreex.core.tree import Node, SpaceTree, TreeTraits
from dualtreex.logging import get_logger

LOGGER = get_logger("trees.binary")


class BinarySpaceTree(SpaceTree):
    """Median-split binary tree; points live only in the leaves.

    Subclasses decide the bounding volume through :meth:`_make_bound` and how
    it translates into a furthest descendant distance.
    """

    traits: ClassVar[TreeTraits] = TreeTraits(
        first_point_is_centroid=False,
        has_self_children=False,
    )

    def __init__(self, data: Any, metric: Metric, *, leaf_size: int = 20) -> None:
        super().__init__(data, metric)
        if leaf_size < 1:
            raise ValueError(f"Leaf size must be at least 1, got {leaf_size}.")
        self.leaf_size = int(leaf_size)
        self._split(np.arange(self.num_points, dtype=np.int64), parent=None, level=0)
        LOGGER.debug(
            "Built %s: points=%d nodes=%d depth=%d leaf_size=%d",
            self.name,
            self.num_points,
            self.num_nodes,
            self.depth(),
            self.leaf_size,
        )

    def _make_bound(self, points: np.ndarray) -> Any:
        raise NotImplementedError

    def _descendant_distance(self, bound: Any) -> float:
        raise NotImplementedError

    def _split(self, indices: np.ndarray, *, parent: Node | None, level: int) -> Node:
        members = self.data[indices]
        bound = self._make_bound(members)
        if indices.shape[0] <= self.leaf_size:
            node = self._new_node(indices, parent=parent, level=level)
        else:
            node = self._new_node(np.empty(0, dtype=np.int64), parent=parent, level=level)
            spread = members.max(axis=0) - members.min(axis=0)
            dim = int(np.argmax(spread))
            order = np.argsort(members[:, dim], kind="stable")
            half = indices.shape[0] // 2
            self._split(indices[order[:half]], parent=node, level=level + 1)
            self._split(indices[order[half:]], parent=node, level=level + 1)
        node.bound = bound
        # Never below a child's value; the bound corrections assume it.
        node.furthest_descendant_distance = max(
            [self._descendant_distance(bound)]
            + [child.furthest_descendant_distance for child in node.children]
        )
        return node


__all__ = ["BinarySpaceTree"]
