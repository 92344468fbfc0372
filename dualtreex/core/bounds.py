"""Bounding volumes used by the kd-tree and ball tree."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from dualtreex.core.metrics import Metric, minkowski_norm


@dataclass
class HRectBound:
    """Axis-aligned box measured with a Minkowski metric of order ``power``."""

    lo: np.ndarray
    hi: np.ndarray
    power: float = 2.0

    @classmethod
    def from_points(cls, points: np.ndarray, power: float) -> "HRectBound":
        return cls(lo=points.min(axis=0), hi=points.max(axis=0), power=power)

    @property
    def diameter(self) -> float:
        return float(minkowski_norm(self.hi - self.lo, self.power))

    def min_distance(self, point: np.ndarray) -> float:
        gap = np.maximum(np.maximum(self.lo - point, point - self.hi), 0.0)
        return float(minkowski_norm(gap, self.power))

    def max_distance(self, point: np.ndarray) -> float:
        span = np.maximum(np.abs(point - self.lo), np.abs(point - self.hi))
        return float(minkowski_norm(span, self.power))

    def min_distance_to(self, other: "HRectBound") -> float:
        _require_same(self, other)
        gap = np.maximum(np.maximum(other.lo - self.hi, self.lo - other.hi), 0.0)
        return float(minkowski_norm(gap, self.power))

    def max_distance_to(self, other: "HRectBound") -> float:
        _require_same(self, other)
        span = np.maximum(np.abs(other.hi - self.lo), np.abs(self.hi - other.lo))
        return float(minkowski_norm(span, self.power))


@dataclass
class BallBound:
    """Ball around a centre; valid for any metric through the triangle inequality."""

    center: np.ndarray
    radius: float
    metric: Metric

    @classmethod
    def from_points(cls, points: np.ndarray, metric: Metric) -> "BallBound":
        center = points.mean(axis=0)
        radius = max((metric.evaluate(center, row) for row in points), default=0.0)
        return cls(center=center, radius=float(radius), metric=metric)

    @property
    def diameter(self) -> float:
        return 2.0 * self.radius

    def min_distance(self, point: np.ndarray) -> float:
        return max(self.metric.evaluate(self.center, point) - self.radius, 0.0)

    def max_distance(self, point: np.ndarray) -> float:
        return self.metric.evaluate(self.center, point) + self.radius

    def min_distance_to(self, other: "BallBound") -> float:
        _require_same(self, other)
        between = self.metric.evaluate(self.center, other.center)
        return max(between - self.radius - other.radius, 0.0)

    def max_distance_to(self, other: "BallBound") -> float:
        _require_same(self, other)
        between = self.metric.evaluate(self.center, other.center)
        return between + self.radius + other.radius


def _require_same(lhs: object, rhs: object) -> None:
    if type(lhs) is not type(rhs):
        raise TypeError(
            f"Cannot compare {type(lhs).__name__} with {type(rhs).__name__}; "
            "query and reference trees must use the same bound type."
        )


__all__ = ["BallBound", "HRectBound"]
