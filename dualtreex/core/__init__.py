"""Core data structures: metrics, bounding volumes and the tree node contract."""

from .bounds import BallBound, HRectBound
from .metrics import (
    Metric,
    MetricRegistry,
    available_metrics,
    get_metric,
    register_metric,
)
from .tree import Node, SpaceTree, TreeNode, TreeTraits

__all__ = [
    "BallBound",
    "HRectBound",
    "Metric",
    "MetricRegistry",
    "Node",
    "SpaceTree",
    "TreeNode",
    "TreeTraits",
    "available_metrics",
    "get_metric",
    "register_metric",
]
