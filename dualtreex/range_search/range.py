from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Range:
    """Closed interval ``[lo, hi]`` of distances."""

    lo: float = 0.0
    hi: float = math.inf

    def __post_init__(self) -> None:
        if math.isnan(self.lo) or math.isnan(self.hi):
            raise ValueError("Range bounds cannot be NaN.")
        if self.lo > self.hi:
            raise ValueError(f"Empty range: lo={self.lo} exceeds hi={self.hi}.")

    def contains(self, value: float) -> bool:
        return self.lo <= value <= self.hi

    def contains_range(self, other: "Range") -> bool:
        return self.lo <= other.lo and other.hi <= self.hi

    def overlaps(self, other: "Range") -> bool:
        return other.lo <= self.hi and other.hi >= self.lo

    @property
    def width(self) -> float:
        return self.hi - self.lo


__all__ = ["Range"]
