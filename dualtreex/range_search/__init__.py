"""Exact range search built on the same traversal drivers."""

from .range import Range
from .rules import RangeSearchRules, RangeSearchStat
from .search import RangeSearch, range_search

__all__ = ["Range", "RangeSearch", "RangeSearchRules", "RangeSearchStat", "range_search"]
