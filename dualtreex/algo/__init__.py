"""Traversal drivers and the rule contract they call into."""

from .rules import PRUNE, TraversalRules
from .traverse import DualTreeTraverser, SingleTreeTraverser, TraversalStats

__all__ = [
    "PRUNE",
    "TraversalRules",
    "DualTreeTraverser",
    "SingleTreeTraverser",
    "TraversalStats",
]
