from __future__ import annotations

from .app import SearchCLIOptions, app, main, run_knn, run_range

__all__ = ["SearchCLIOptions", "app", "main", "run_knn", "run_range"]
