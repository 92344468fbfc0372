from __future__ import annotations

import math
from typing import Any, Protocol

import numpy as np

PRUNE = math.inf
"""Score meaning "skip this subtree"; once returned it is never revised."""


class TraversalRules(Protocol):
    """Callbacks a traversal driver needs from a dual-tree algorithm."""

    def base_case(self, query_index: int, reference_index: int) -> float:
        ...

    def score(self, query_index: int, reference_node: Any) -> float:
        ...

    def score_nodes(self, query_node: Any, reference_node: Any) -> float:
        ...

    def rescore(self, query_index: int, reference_node: Any, old_score: float) -> float:
        ...

    def rescore_nodes(self, query_node: Any, reference_node: Any, old_score: float) -> float:
        ...

    def order_scores(self, scores: np.ndarray) -> np.ndarray:
        """Visiting order (most promising first) for a batch of live scores."""
        ...


__all__ = ["PRUNE", "TraversalRules"]
