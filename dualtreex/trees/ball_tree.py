from __future__ import annotations

from typing import ClassVar

import numpy as np

from dualtreex.core.bounds import BallBound

from .binary import BinarySpaceTree


class BallTree(BinarySpaceTree):
    """Binary tree of centroid balls; works with any registered metric."""

    name: ClassVar[str] = "ball"

    def _make_bound(self, points: np.ndarray) -> BallBound:
        return BallBound.from_points(points, self.metric)

    def _descendant_distance(self, bound: BallBound) -> float:
        return bound.radius


__all__ = ["BallTree"]
