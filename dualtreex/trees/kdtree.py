from __future__ import annotations

from typing import Any, ClassVar

import numpy as np

from dualtreex.core.bounds import HRectBound
from dualtreex.core.metrics import Metric

from .binary import BinarySpaceTree


class KDTree(BinarySpaceTree):
    """kd-tree with axis-aligned bounds; requires a Minkowski metric."""

    name: ClassVar[str] = "kd"

    def __init__(self, data: Any, metric: Metric, *, leaf_size: int = 20) -> None:
        if metric.power is None:
            raise ValueError(
                f"KDTree needs a Minkowski metric for its box bounds; got '{metric.name}'."
            )
        super().__init__(data, metric, leaf_size=leaf_size)

    def _make_bound(self, points: np.ndarray) -> HRectBound:
        return HRectBound.from_points(points, power=float(self.metric.power))

    def _descendant_distance(self, bound: HRectBound) -> float:
        return 0.5 * bound.diameter


__all__ = ["KDTree"]
