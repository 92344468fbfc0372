"""Reference tree builders satisfying the node contract."""

from __future__ import annotations

from typing import Any

from dualtreex import config as dx_config
from dualtreex.core.metrics import Metric, get_metric
from dualtreex.core.tree import SpaceTree

from .ball_tree import BallTree
from .binary import BinarySpaceTree
from .cover_tree import CoverTree
from .kdtree import KDTree


def build_tree(
    data: Any,
    *,
    kind: str | None = None,
    metric: Metric | str | None = None,
    leaf_size: int | None = None,
    base: float | None = None,
) -> SpaceTree:
    """Build one of the bundled trees, filling gaps from the runtime config."""

    runtime = dx_config.runtime_config()
    kind = dx_config.normalise_tree(kind or runtime.tree)
    if metric is None or isinstance(metric, str):
        metric = get_metric(metric)
    if kind == "cover":
        cover_base = dx_config.normalise_cover_base(
            base if base is not None else runtime.cover_base
        )
        return CoverTree(data, metric, base=cover_base)
    size = dx_config.normalise_leaf_size(leaf_size if leaf_size is not None else runtime.leaf_size)
    if kind == "ball":
        return BallTree(data, metric, leaf_size=size)
    return KDTree(data, metric, leaf_size=size)


__all__ = ["BallTree", "BinarySpaceTree", "CoverTree", "KDTree", "build_tree"]
