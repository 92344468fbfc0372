from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .sort_policy import SortPolicy


@dataclass
class NeighborSearchStat:
    """Per-node bound state mutated by :class:`NeighborSearchRules`.

    ``first_bound`` bounds the worst candidate distance of every descendant
    query, ``second_bound`` is the looser estimate built from the best
    descendant candidate plus a radius correction, and ``bound`` is the better
    of the two. ``last_distance_node`` is the arena index of the node (in the
    other tree) that ``last_distance`` was computed against.
    """

    first_bound: float
    second_bound: float
    bound: float
    last_distance: float = 0.0
    last_distance_node: int | None = None

    @classmethod
    def initial(cls, policy: SortPolicy) -> "NeighborSearchStat":
        worst = policy.worst_distance
        return cls(first_bound=worst, second_bound=worst, bound=worst)

    @classmethod
    def factory(cls, policy: SortPolicy):
        def make(_node: Any) -> "NeighborSearchStat":
            return cls.initial(policy)

        return make


__all__ = ["NeighborSearchStat"]
