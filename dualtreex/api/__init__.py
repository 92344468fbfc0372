"""Public ergonomic façade for dualtreex."""

from .index import NeighborIndex
from .runtime import Runtime

__all__ = [
    "NeighborIndex",
    "Runtime",
]
