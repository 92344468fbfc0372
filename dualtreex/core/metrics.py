from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

import numpy as np

from dualtreex import config as dx_config

PointKernel = Callable[[np.ndarray, np.ndarray], float]


@dataclass(frozen=True)
class Metric:
    """A symmetric, non-negative distance between two points.

    ``power`` is set for Minkowski metrics (``math.inf`` for Chebyshev) and is
    what axis-aligned bounds need to compute box distances.
    """

    name: str
    kernel: PointKernel
    power: float | None = None

    def evaluate(self, lhs: np.ndarray, rhs: np.ndarray) -> float:
        return float(self.kernel(lhs, rhs))

    def pairwise(self, lhs: np.ndarray, rhs: np.ndarray) -> np.ndarray:
        lhs_arr = np.atleast_2d(np.asarray(lhs, dtype=np.float64))
        rhs_arr = np.atleast_2d(np.asarray(rhs, dtype=np.float64))
        if self.power is not None:
            return minkowski_pairwise(lhs_arr, rhs_arr, self.power)
        out = np.empty((lhs_arr.shape[0], rhs_arr.shape[0]), dtype=np.float64)
        for i, row in enumerate(lhs_arr):
            for j, col in enumerate(rhs_arr):
                out[i, j] = self.evaluate(row, col)
        return out

    @property
    def is_minkowski(self) -> bool:
        return self.power is not None


def minkowski_norm(delta: np.ndarray, power: float, axis: int = -1) -> np.ndarray:
    magnitude = np.abs(delta)
    if math.isinf(power):
        return np.max(magnitude, axis=axis, initial=0.0)
    if power == 1.0:
        return np.sum(magnitude, axis=axis)
    if power == 2.0:
        return np.sqrt(np.sum(magnitude * magnitude, axis=axis))
    return np.power(np.sum(np.power(magnitude, power), axis=axis), 1.0 / power)


def minkowski_pairwise(lhs: np.ndarray, rhs: np.ndarray, power: float) -> np.ndarray:
    if lhs.size == 0 or rhs.size == 0:
        return np.zeros((lhs.shape[0], rhs.shape[0]), dtype=np.float64)
    diff = lhs[:, None, :] - rhs[None, :, :]
    return minkowski_norm(diff, power, axis=-1)


def _minkowski_kernel(power: float) -> PointKernel:
    def kernel(lhs: np.ndarray, rhs: np.ndarray) -> float:
        return float(minkowski_norm(lhs - rhs, power))

    return kernel


class MetricRegistry:
    """Minimal registry for runtime-selectable metrics."""

    def __init__(self) -> None:
        self._metrics: Dict[str, Metric] = {}

    def register(self, metric: Metric, *, overwrite: bool = False) -> None:
        name = metric.name.lower()
        if not overwrite and name in self._metrics:
            raise ValueError(f"Metric '{metric.name}' already registered.")
        self._metrics[name] = metric

    def get(self, name: str) -> Metric:
        key = name.lower()
        if key not in self._metrics:
            raise KeyError(f"Metric '{name}' not registered.")
        return self._metrics[key]

    def names(self) -> Tuple[str, ...]:
        return tuple(sorted(self._metrics.keys()))


def _load_registry() -> MetricRegistry:
    registry = MetricRegistry()
    registry.register(Metric("euclidean", _minkowski_kernel(2.0), power=2.0))
    registry.register(Metric("manhattan", _minkowski_kernel(1.0), power=1.0))
    registry.register(Metric("chebyshev", _minkowski_kernel(math.inf), power=math.inf))
    return registry


_REGISTRY = _load_registry()


def get_metric(name: str | None = None) -> Metric:
    """Return a registered metric, defaulting to the runtime-selected metric."""

    if name is None:
        name = dx_config.runtime_config().metric
    return _REGISTRY.get(name)


def register_metric(metric: Metric, *, overwrite: bool = False) -> None:
    _REGISTRY.register(metric, overwrite=overwrite)


def available_metrics() -> Tuple[str, ...]:
    return _REGISTRY.names()


__all__ = [
    "Metric",
    "MetricRegistry",
    "available_metrics",
    "get_metric",
    "minkowski_norm",
    "minkowski_pairwise",
    "register_metric",
]
