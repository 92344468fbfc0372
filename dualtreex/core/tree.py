from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Iterator, List, Protocol, Sequence

import numpy as np

from dualtreex.core.metrics import Metric


@dataclass(frozen=True)
class TreeTraits:
    """Structural facts about a tree type that the search rules rely on."""

    first_point_is_centroid: bool = False
    has_self_children: bool = False


class TreeNode(Protocol):
    """Node contract consumed by the traversal drivers and the search rules."""

    index: int
    parent: "TreeNode | None"
    furthest_descendant_distance: float
    stat: Any
    bound: Any

    @property
    def num_points(self) -> int:
        ...

    def point(self, i: int) -> int:
        ...

    @property
    def num_children(self) -> int:
        ...

    def child(self, i: int) -> "TreeNode":
        ...


class Node:
    """Arena-allocated tree node shared by every tree in the package.

    ``points`` are the indices the node owns directly; for centroid trees the
    first of them is the representative point. ``stat`` is whatever the
    running algorithm installs through :meth:`SpaceTree.reset_statistics`.
    """

    __slots__ = (
        "index",
        "points",
        "children",
        "parent",
        "furthest_descendant_distance",
        "bound",
        "stat",
        "level",
    )

    def __init__(
        self,
        index: int,
        points: Sequence[int] | np.ndarray,
        *,
        parent: "Node | None" = None,
        level: int = 0,
    ) -> None:
        self.index = index
        self.points = np.asarray(points, dtype=np.int64)
        self.children: List[Node] = []
        self.parent = parent
        self.furthest_descendant_distance = 0.0
        self.bound: Any = None
        self.stat: Any = None
        self.level = level

    @property
    def num_points(self) -> int:
        return int(self.points.shape[0])

    def point(self, i: int) -> int:
        return int(self.points[i])

    @property
    def num_children(self) -> int:
        return len(self.children)

    def child(self, i: int) -> "Node":
        return self.children[i]

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def __repr__(self) -> str:
        return (
            f"Node(index={self.index}, points={self.num_points}, "
            f"children={self.num_children}, fdd={self.furthest_descendant_distance:.4g})"
        )


class SpaceTree:
    """Base class holding the node arena, the data and the metric."""

    traits: ClassVar[TreeTraits] = TreeTraits()
    name: ClassVar[str] = "tree"

    def __init__(self, data: Any, metric: Metric) -> None:
        points = np.ascontiguousarray(data, dtype=np.float64)
        if points.ndim != 2:
            raise ValueError(f"Tree data must be a 2-D array of points, got shape {points.shape}.")
        if points.shape[0] == 0:
            raise ValueError("Cannot build a tree over an empty point set.")
        self.data = points
        self.metric = metric
        self.nodes: List[Node] = []

    @property
    def root(self) -> Node:
        return self.nodes[0]

    @property
    def num_nodes(self) -> int:
        return len(self.nodes)

    @property
    def num_points(self) -> int:
        return int(self.data.shape[0])

    @property
    def dimension(self) -> int:
        return int(self.data.shape[1])

    def node(self, index: int) -> Node:
        return self.nodes[index]

    def _new_node(
        self,
        points: Sequence[int] | np.ndarray,
        *,
        parent: Node | None = None,
        level: int = 0,
    ) -> Node:
        node = Node(len(self.nodes), points, parent=parent, level=level)
        self.nodes.append(node)
        if parent is not None:
            parent.children.append(node)
        return node

    def reset_statistics(self, factory: Callable[[Node], Any]) -> None:
        for node in self.nodes:
            node.stat = factory(node)

    def leaves(self) -> Iterator[Node]:
        return (node for node in self.nodes if node.is_leaf)

    def depth(self) -> int:
        best = 0
        stack = [(self.root, 1)]
        while stack:
            node, depth = stack.pop()
            best = max(best, depth)
            stack.extend((child, depth + 1) for child in node.children)
        return best

    def descendant_points(self, node: Node) -> np.ndarray:
        """Every point stored under ``node``, each reported once."""

        collected: List[np.ndarray] = []
        stack = [node]
        while stack:
            current = stack.pop()
            if current.is_leaf:
                collected.append(current.points)
            else:
                stack.extend(current.children)
        if not collected:
            return np.empty(0, dtype=np.int64)
        return np.concatenate(collected)


__all__ = ["Node", "SpaceTree", "TreeNode", "TreeTraits"]
