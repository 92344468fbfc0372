"""Dense all-pairs baselines used to verify the tree searches."""

from __future__ import annotations

from typing import Any, Tuple

import numpy as np

from dualtreex import config as dx_config
from dualtreex.core.metrics import Metric, get_metric
from dualtreex.diagnostics import log_operation
from dualtreex.logging import get_logger
from dualtreex.neighbors.candidates import INVALID_NEIGHBOR
from dualtreex.neighbors.sort_policy import SortPolicy, get_sort_policy

from ._bruteforce_numba import NUMBA_BRUTEFORCE_AVAILABLE, minkowski_pairwise_numba

LOGGER = get_logger("queries.bruteforce")


def pairwise_distances(lhs: np.ndarray, rhs: np.ndarray, metric: Metric) -> np.ndarray:
    runtime = dx_config.runtime_config()
    use_numba = (
        runtime.enable_numba and NUMBA_BRUTEFORCE_AVAILABLE and metric.power is not None
    )
    if use_numba:
        return minkowski_pairwise_numba(lhs, rhs, float(metric.power))
    return metric.pairwise(lhs, rhs)


def bruteforce_knn(
    reference: Any,
    query: Any = None,
    *,
    k: int,
    policy: str | SortPolicy | None = None,
    metric: Metric | str | None = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Exact answer by sorting every distance; ``query=None`` is a self-search.

    Follows the same conventions as :class:`~dualtreex.neighbors.NeighborSearch`:
    a point never matches itself in a self-search, and slots no candidate can
    fill keep ``-1`` and the policy's worst distance.
    """

    if k < 1:
        raise ValueError("k must be positive.")
    sort_policy = get_sort_policy(policy)
    resolved = metric if isinstance(metric, Metric) else get_metric(metric)
    reference_arr = np.atleast_2d(np.asarray(reference, dtype=np.float64))
    self_search = query is None
    query_arr = reference_arr if self_search else np.atleast_2d(np.asarray(query, dtype=np.float64))
    if query_arr.shape[1] != reference_arr.shape[1]:
        raise ValueError(
            "Query and reference dimensionality differ: "
            f"{query_arr.shape[1]} != {reference_arr.shape[1]}."
        )

    with log_operation(LOGGER, "bruteforce_knn") as op_log:
        distances = pairwise_distances(query_arr, reference_arr, resolved)
        worst = sort_policy.worst_distance
        if self_search:
            np.fill_diagonal(distances, worst)

        num_queries = query_arr.shape[0]
        width = min(k, reference_arr.shape[0])
        neighbors_out = np.full((num_queries, k), INVALID_NEIGHBOR, dtype=np.int64)
        distances_out = np.full((num_queries, k), worst, dtype=np.float64)
        for row in range(num_queries):
            order = sort_policy.order(distances[row])[:width]
            chosen = distances[row, order]
            valid = np.asarray([sort_policy.is_better(value, worst) for value in chosen], dtype=bool)
            count = int(valid.sum())
            neighbors_out[row, :count] = order[valid]
            distances_out[row, :count] = chosen[valid]
        if op_log is not None:
            op_log.add_metadata(queries=num_queries, k=k, policy=sort_policy.name)
    return neighbors_out, distances_out


def bruteforce_range(
    reference: Any,
    query: Any = None,
    *,
    lo: float = 0.0,
    hi: float,
    metric: Metric | str | None = None,
) -> Tuple[list, list]:
    resolved = metric if isinstance(metric, Metric) else get_metric(metric)
    reference_arr = np.atleast_2d(np.asarray(reference, dtype=np.float64))
    self_search = query is None
    query_arr = reference_arr if self_search else np.atleast_2d(np.asarray(query, dtype=np.float64))
    distances = pairwise_distances(query_arr, reference_arr, resolved)
    neighbors_out = []
    distances_out = []
    for row in range(query_arr.shape[0]):
        mask = (distances[row] >= lo) & (distances[row] <= hi)
        if self_search:
            mask[row] = False
        ids = np.flatnonzero(mask)
        order = np.lexsort((ids, distances[row, ids]))
        neighbors_out.append(ids[order])
        distances_out.append(distances[row, ids][order])
    return neighbors_out, distances_out


__all__ = ["bruteforce_knn", "bruteforce_range", "pairwise_distances"]
