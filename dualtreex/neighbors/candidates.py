from __future__ import annotations

from typing import Tuple

import numpy as np

from .sort_policy import SortPolicy

INVALID_NEIGHBOR = -1


class CandidateSet:
    """Fixed-width sorted candidate lists, one row per query point.

    Row ``q`` of :attr:`distances` and :attr:`neighbors` holds the ``k`` best
    (distance, reference id) pairs found so far for query ``q``, best first.
    Unfilled slots keep the policy's worst distance and ``INVALID_NEIGHBOR``.
    """

    __slots__ = ("policy", "distances", "neighbors")

    def __init__(self, num_queries: int, k: int, policy: SortPolicy) -> None:
        if k < 1:
            raise ValueError(f"k must be positive, got {k}.")
        if num_queries < 0:
            raise ValueError(f"Number of queries cannot be negative, got {num_queries}.")
        self.policy = policy
        self.distances = np.full((num_queries, k), policy.worst_distance, dtype=np.float64)
        self.neighbors = np.full((num_queries, k), INVALID_NEIGHBOR, dtype=np.int64)

    @property
    def k(self) -> int:
        return int(self.distances.shape[1])

    @property
    def num_queries(self) -> int:
        return int(self.distances.shape[0])

    def worst(self, query_index: int) -> float:
        """Current pruning threshold of a query: its k-th candidate distance."""

        return float(self.distances[query_index, -1])

    def best(self, query_index: int) -> float:
        return float(self.distances[query_index, 0])

    def contains(self, query_index: int, reference_index: int) -> bool:
        return bool(np.any(self.neighbors[query_index] == reference_index))

    def candidate_position(self, query_index: int, distance: float) -> int | None:
        return self.policy.sort_distance(self.distances[query_index], distance)

    def insert(
        self,
        query_index: int,
        position: int,
        reference_index: int,
        distance: float,
    ) -> None:
        """Ranked insertion: shift ``position..k-2`` down and write the new pair."""

        k = self.k
        if position < 0 or position >= k:
            raise IndexError(f"Insert position {position} outside [0, {k - 1}].")
        distances = self.distances[query_index]
        neighbors = self.neighbors[query_index]
        if position < k - 1:
            distances[position + 1 :] = distances[position:-1].copy()
            neighbors[position + 1 :] = neighbors[position:-1].copy()
        distances[position] = distance
        neighbors[position] = reference_index

    def filled(self, query_index: int) -> int:
        return int(np.count_nonzero(self.neighbors[query_index] != INVALID_NEIGHBOR))

    def is_sorted(self, query_index: int) -> bool:
        row = self.distances[query_index]
        return not any(self.policy.is_better(row[i + 1], row[i]) for i in range(row.shape[0] - 1))

    def result(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.neighbors, self.distances


__all__ = ["CandidateSet", "INVALID_NEIGHBOR"]
