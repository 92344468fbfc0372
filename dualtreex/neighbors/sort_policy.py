"""Sort policies turning one search algorithm into k-NN or k-FN search."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any, Dict, Tuple

import numpy as np


class SortPolicy(ABC):
    """Ordering and bound arithmetic for one direction of neighbour search.

    Implementations are stateless; a single instance is shared by every
    search using it.
    """

    name: str = "abstract"

    @abstractmethod
    def is_better(self, value: float, reference: float) -> bool:
        """Return whether ``value`` ranks strictly ahead of ``reference``."""

    @property
    @abstractmethod
    def worst_distance(self) -> float:
        ...

    @property
    @abstractmethod
    def best_distance(self) -> float:
        ...

    @abstractmethod
    def combine_best(self, value: float, correction: float) -> float:
        """Move ``value`` towards the best end by ``correction``."""

    @abstractmethod
    def combine_worst(self, value: float, correction: float) -> float:
        """Move ``value`` towards the worst end by ``correction``."""

    @abstractmethod
    def best_point_to_node_distance(self, point: np.ndarray, node: Any) -> float:
        ...

    @abstractmethod
    def best_node_to_node_distance(self, query_node: Any, reference_node: Any) -> float:
        ...

    @abstractmethod
    def sort_distance(self, row: np.ndarray, distance: float) -> int | None:
        """Return the insertion position of ``distance`` in a sorted row, or ``None``."""

    def best_of(self, lhs: float, rhs: float) -> float:
        return lhs if self.is_better(lhs, rhs) else rhs

    def worst_of(self, lhs: float, rhs: float) -> float:
        return rhs if self.is_better(lhs, rhs) else lhs

    @abstractmethod
    def order(self, distances: np.ndarray) -> np.ndarray:
        """Stable argsort putting the best distances first."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def _bound_of(node: Any) -> Any:
    bound = getattr(node, "bound", None)
    if bound is None:
        raise TypeError(
            f"Node {getattr(node, 'index', '?')} carries no bounding volume; "
            "centroid trees must be scored through their representative points."
        )
    return bound


class NearestNeighborSort(SortPolicy):
    name = "nearest"

    def is_better(self, value: float, reference: float) -> bool:
        return value < reference

    @property
    def worst_distance(self) -> float:
        return math.inf

    @property
    def best_distance(self) -> float:
        return 0.0

    def combine_best(self, value: float, correction: float) -> float:
        return max(value - correction, 0.0)

    def combine_worst(self, value: float, correction: float) -> float:
        if value == math.inf or correction == math.inf:
            return math.inf
        return value + correction

    def best_point_to_node_distance(self, point: np.ndarray, node: Any) -> float:
        return _bound_of(node).min_distance(point)

    def best_node_to_node_distance(self, query_node: Any, reference_node: Any) -> float:
        return _bound_of(query_node).min_distance_to(_bound_of(reference_node))

    def sort_distance(self, row: np.ndarray, distance: float) -> int | None:
        position = int(np.searchsorted(row, distance, side="right"))
        return position if position < row.shape[0] else None

    def order(self, distances: np.ndarray) -> np.ndarray:
        return np.argsort(distances, kind="stable")


class FurthestNeighborSort(SortPolicy):
    name = "furthest"

    def is_better(self, value: float, reference: float) -> bool:
        return value > reference

    @property
    def worst_distance(self) -> float:
        return 0.0

    @property
    def best_distance(self) -> float:
        return math.inf

    def combine_best(self, value: float, correction: float) -> float:
        if value == math.inf or correction == math.inf:
            return math.inf
        return value + correction

    def combine_worst(self, value: float, correction: float) -> float:
        return max(value - correction, 0.0)

    def best_point_to_node_distance(self, point: np.ndarray, node: Any) -> float:
        return _bound_of(node).max_distance(point)

    def best_node_to_node_distance(self, query_node: Any, reference_node: Any) -> float:
        return _bound_of(query_node).max_distance_to(_bound_of(reference_node))

    def sort_distance(self, row: np.ndarray, distance: float) -> int | None:
        # Rows are kept in descending order; search the negated copy.
        position = int(np.searchsorted(-row, -distance, side="right"))
        return position if position < row.shape[0] else None

    def order(self, distances: np.ndarray) -> np.ndarray:
        return np.argsort(-np.asarray(distances), kind="stable")


NEAREST = NearestNeighborSort()
FURTHEST = FurthestNeighborSort()

_POLICIES: Dict[str, SortPolicy] = {
    "nearest": NEAREST,
    "knn": NEAREST,
    "furthest": FURTHEST,
    "kfn": FURTHEST,
}


def get_sort_policy(name: str | SortPolicy | None = None) -> SortPolicy:
    if name is None:
        return NEAREST
    if isinstance(name, SortPolicy):
        return name
    key = name.strip().lower()
    if key not in _POLICIES:
        raise ValueError(
            f"Unsupported sort policy '{name}'. Expected one of {sorted(_POLICIES)}."
        )
    return _POLICIES[key]


def available_sort_policies() -> Tuple[str, ...]:
    return ("nearest", "furthest")


__all__ = [
    "FURTHEST",
    "NEAREST",
    "FurthestNeighborSort",
    "NearestNeighborSort",
    "SortPolicy",
    "available_sort_policies",
    "get_sort_policy",
]
