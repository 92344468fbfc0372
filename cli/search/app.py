from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Literal, Optional, Tuple

import numpy as np
from numpy.random import default_rng
import typer
from typing_extensions import Annotated

from dualtreex import config as dx_config
from dualtreex.neighbors import NeighborSearch
from dualtreex.queries import bruteforce_knn, bruteforce_range
from dualtreex.range_search import Range, RangeSearch
from dualtreex.trees import build_tree

from cli.runtime import runtime_from_args
from tests.utils.datasets import gaussian_points


@dataclass
class SearchCLIOptions:
    dimension: int = 3
    reference_points: int = 4_096
    queries: int = 0
    k: int = 5
    lo: float = 0.0
    hi: float = 0.5
    seed: int = 0
    reference_file: str | None = None
    query_file: str | None = None
    policy: str = "nearest"
    metric: str = "euclidean"
    tree: str | None = None
    mode: str | None = None
    leaf_size: int | None = None
    base: float | None = None
    enable_numba: bool | None = None
    diagnostics: bool | None = None
    log_level: str | None = None
    verify: bool = False


app = typer.Typer(
    add_completion=False,
    pretty_exceptions_enable=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
    help="Run exact dual-tree neighbour and range searches over synthetic or saved points.",
)

_SHAPE_PANEL = "Data shape"
_RUNTIME_PANEL = "Runtime controls"

DimensionOption = Annotated[
    int,
    typer.Option("--dimension", help="Dimensionality of generated points.", rich_help_panel=_SHAPE_PANEL),
]
ReferenceOption = Annotated[
    int,
    typer.Option(
        "--reference-points",
        help="Number of generated reference points.",
        rich_help_panel=_SHAPE_PANEL,
    ),
]
QueriesOption = Annotated[
    int,
    typer.Option(
        "--queries",
        help="Number of generated query points (0 runs a self-search).",
        rich_help_panel=_SHAPE_PANEL,
    ),
]
SeedOption = Annotated[
    int,
    typer.Option("--seed", help="Base random seed for point generation.", rich_help_panel=_SHAPE_PANEL),
]
ReferenceFileOption = Annotated[
    Optional[str],
    typer.Option(
        "--reference-file",
        help="Load reference points from a .npy file instead of sampling.",
        rich_help_panel=_SHAPE_PANEL,
    ),
]
QueryFileOption = Annotated[
    Optional[str],
    typer.Option(
        "--query-file",
        help="Load query points from a .npy file instead of sampling.",
        rich_help_panel=_SHAPE_PANEL,
    ),
]
MetricOption = Annotated[
    Literal["euclidean", "manhattan", "chebyshev"],
    typer.Option("--metric", case_sensitive=False, help="Distance metric.", rich_help_panel=_RUNTIME_PANEL),
]
TreeOption = Annotated[
    Optional[Literal["kd", "ball", "cover"]],
    typer.Option("--tree", help="Tree type (default: runtime config).", rich_help_panel=_RUNTIME_PANEL),
]
ModeOption = Annotated[
    Optional[Literal["dual", "single", "naive"]],
    typer.Option("--mode", help="Traversal mode (default: runtime config).", rich_help_panel=_RUNTIME_PANEL),
]
LeafSizeOption = Annotated[
    Optional[int],
    typer.Option("--leaf-size", help="Leaf size for kd/ball trees.", rich_help_panel=_RUNTIME_PANEL),
]
BaseOption = Annotated[
    Optional[float],
    typer.Option("--base", help="Cover tree expansion base.", rich_help_panel=_RUNTIME_PANEL),
]
NumbaOption = Annotated[
    Optional[bool],
    typer.Option(
        "--enable-numba/--disable-numba",
        help="Use the Numba kernel for brute-force verification.",
        rich_help_panel=_RUNTIME_PANEL,
    ),
]
DiagnosticsOption = Annotated[
    Optional[bool],
    typer.Option(
        "--enable-diagnostics/--disable-diagnostics",
        help="Control resource polling + diagnostic logging.",
        rich_help_panel=_RUNTIME_PANEL,
    ),
]
LogLevelOption = Annotated[
    Optional[str],
    typer.Option("--log-level", help="Override runtime log level.", rich_help_panel=_RUNTIME_PANEL),
]
VerifyOption = Annotated[
    bool,
    typer.Option("--verify/--no-verify", help="Check results against brute force."),
]


def _load_points(path: str | None, *, seed: int, count: int, dimension: int) -> np.ndarray:
    if path:
        return np.atleast_2d(np.load(path).astype(np.float64))
    return gaussian_points(default_rng(seed), count, dimension, dtype=np.float64)


def _prepare(options: SearchCLIOptions) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    runtime = runtime_from_args(options)
    runtime.activate()
    config = dx_config.runtime_config()
    print(
        f"[dualtreex] tree={config.tree} mode={config.mode} metric={config.metric} "
        f"leaf_size={config.leaf_size} base={config.cover_base}"
    )
    reference = _load_points(
        options.reference_file,
        seed=options.seed,
        count=options.reference_points,
        dimension=options.dimension,
    )
    query: Optional[np.ndarray] = None
    if options.query_file or options.queries > 0:
        query = _load_points(
            options.query_file,
            seed=options.seed + 1,
            count=options.queries,
            dimension=reference.shape[1],
        )
    return reference, query


def run_knn(options: SearchCLIOptions) -> bool:
    """Run one k-NN/k-FN search, print timings, and return the verify outcome."""

    try:
        reference, query = _prepare(options)
        config = dx_config.runtime_config()
        start = time.perf_counter()
        tree = build_tree(reference)
        build_seconds = time.perf_counter() - start

        search = NeighborSearch(None, policy=options.policy, tree=tree, mode=config.mode)
        start = time.perf_counter()
        neighbors, distances = search.search(query, k=options.k)
        search_seconds = time.perf_counter() - start

        num_queries = neighbors.shape[0]
        print(
            f"{options.policy} k={options.k} | nodes={tree.num_nodes} build={build_seconds:.4f}s "
            f"search={search_seconds:.4f}s "
            f"throughput={num_queries / max(search_seconds, 1e-9):,.1f} q/s"
        )
        counters = search.last_counters
        if counters is not None:
            print(
                f"  base_cases={counters.base_cases} reused={counters.reused_distances} "
                f"scores={counters.scores} prunes={counters.prunes} visited={counters.visited}"
            )

        if not options.verify:
            return True
        start = time.perf_counter()
        _, expected = bruteforce_knn(
            reference, query, k=options.k, policy=options.policy, metric=config.metric
        )
        brute_seconds = time.perf_counter() - start
        ok = bool(np.allclose(distances, expected, rtol=1e-9, atol=1e-12))
        print(f"  verify={'ok' if ok else 'MISMATCH'} bruteforce={brute_seconds:.4f}s")
        return ok
    finally:
        dx_config.reset_runtime_config_cache()


def run_range(options: SearchCLIOptions) -> bool:
    """Run one range search, print timings, and return the verify outcome."""

    try:
        reference, query = _prepare(options)
        config = dx_config.runtime_config()
        tree = build_tree(reference)
        search = RangeSearch(None, tree=tree, mode=config.mode)
        start = time.perf_counter()
        neighbors, _ = search.search(query, Range(options.lo, options.hi))
        search_seconds = time.perf_counter() - start
        total = sum(len(ids) for ids in neighbors)
        print(
            f"range [{options.lo}, {options.hi}] | queries={len(neighbors)} results={total} "
            f"search={search_seconds:.4f}s"
        )
        if not options.verify:
            return True
        expected, _ = bruteforce_range(
            reference, query, lo=options.lo, hi=options.hi, metric=config.metric
        )
        ok = all(
            set(got.tolist()) == set(want.tolist()) for got, want in zip(neighbors, expected)
        )
        print(f"  verify={'ok' if ok else 'MISMATCH'}")
        return ok
    finally:
        dx_config.reset_runtime_config_cache()


def _finish(ok: bool) -> None:
    if not ok:
        raise typer.Exit(code=1)


@app.command("knn")
def knn_command(
    dimension: DimensionOption = 3,
    reference_points: ReferenceOption = 4_096,
    queries: QueriesOption = 0,
    k: Annotated[
        int,
        typer.Option("--k", help="Number of neighbours per query.", rich_help_panel=_SHAPE_PANEL),
    ] = 5,
    policy: Annotated[
        Literal["nearest", "furthest"],
        typer.Option("--policy", help="Neighbour ordering.", rich_help_panel=_RUNTIME_PANEL),
    ] = "nearest",
    seed: SeedOption = 0,
    reference_file: ReferenceFileOption = None,
    query_file: QueryFileOption = None,
    metric: MetricOption = "euclidean",
    tree: TreeOption = None,
    mode: ModeOption = None,
    leaf_size: LeafSizeOption = None,
    base: BaseOption = None,
    enable_numba: NumbaOption = None,
    diagnostics: DiagnosticsOption = None,
    log_level: LogLevelOption = None,
    verify: VerifyOption = False,
) -> None:
    """All-k-nearest (or furthest) neighbour search."""

    options = SearchCLIOptions(**_collect(locals()))
    _finish(run_knn(options))


@app.command("range")
def range_command(
    dimension: DimensionOption = 3,
    reference_points: ReferenceOption = 4_096,
    queries: QueriesOption = 0,
    lo: Annotated[
        float,
        typer.Option("--lo", help="Lower distance bound (inclusive).", rich_help_panel=_SHAPE_PANEL),
    ] = 0.0,
    hi: Annotated[
        float,
        typer.Option("--hi", help="Upper distance bound (inclusive).", rich_help_panel=_SHAPE_PANEL),
    ] = 0.5,
    seed: SeedOption = 0,
    reference_file: ReferenceFileOption = None,
    query_file: QueryFileOption = None,
    metric: MetricOption = "euclidean",
    tree: TreeOption = None,
    mode: ModeOption = None,
    leaf_size: LeafSizeOption = None,
    base: BaseOption = None,
    enable_numba: NumbaOption = None,
    diagnostics: DiagnosticsOption = None,
    log_level: LogLevelOption = None,
    verify: VerifyOption = False,
) -> None:
    """Every reference point within [lo, hi] of each query."""

    options = SearchCLIOptions(**_collect(locals()))
    _finish(run_range(options))


def _collect(values: dict[str, Any]) -> dict[str, Any]:
    fields = SearchCLIOptions.__dataclass_fields__
    return {name: value for name, value in values.items() if name in fields}


def main() -> None:
    app()


__all__ = ["SearchCLIOptions", "app", "main", "run_knn", "run_range"]
