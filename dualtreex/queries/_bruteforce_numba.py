from __future__ import annotations

import math

import numpy as np

try:  # pragma: no cover - optional dependency
    import numba as nb

    NUMBA_BRUTEFORCE_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    nb = None  # type: ignore
    NUMBA_BRUTEFORCE_AVAILABLE = False


if NUMBA_BRUTEFORCE_AVAILABLE:

    @nb.njit(cache=True, parallel=True)
    def _minkowski_pairwise_kernel(
        lhs: np.ndarray, rhs: np.ndarray, power: float
    ) -> np.ndarray:  # pragma: no cover - compiled
        n_lhs = lhs.shape[0]
        n_rhs = rhs.shape[0]
        dim = lhs.shape[1]
        out = np.empty((n_lhs, n_rhs), dtype=np.float64)
        chebyshev = math.isinf(power)
        for i in nb.prange(n_lhs):
            for j in range(n_rhs):
                acc = 0.0
                for d in range(dim):
                    delta = abs(lhs[i, d] - rhs[j, d])
                    if chebyshev:
                        if delta > acc:
                            acc = delta
                    elif power == 1.0:
                        acc += delta
                    elif power == 2.0:
                        acc += delta * delta
                    else:
                        acc += delta ** power
                if chebyshev or power == 1.0:
                    out[i, j] = acc
                elif power == 2.0:
                    out[i, j] = math.sqrt(acc)
                else:
                    out[i, j] = acc ** (1.0 / power)
        return out

else:  # pragma: no cover - optional dependency

    _minkowski_pairwise_kernel = None  # type: ignore


def minkowski_pairwise_numba(lhs: np.ndarray, rhs: np.ndarray, power: float) -> np.ndarray:
    if not NUMBA_BRUTEFORCE_AVAILABLE:
        raise RuntimeError("Numba is not installed; brute-force kernel unavailable.")
    return _minkowski_pairwise_kernel(
        np.ascontiguousarray(lhs, dtype=np.float64),
        np.ascontiguousarray(rhs, dtype=np.float64),
        float(power),
    )


__all__ = ["NUMBA_BRUTEFORCE_AVAILABLE", "minkowski_pairwise_numba"]
