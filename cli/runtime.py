from __future__ import annotations

from typing import Any, Mapping

from dualtreex.api import Runtime as ApiRuntime


def _get_arg(source: Any, name: str, default: Any = None) -> Any:
    if isinstance(source, Mapping):
        return source.get(name, default)
    return getattr(source, name, default)


def runtime_from_args(
    args: Any,
    *,
    default_metric: str = "euclidean",
    extra_overrides: Mapping[str, Any] | None = None,
) -> ApiRuntime:
    """Translate parsed CLI options (namespace, dataclass or mapping) into a Runtime."""

    metric = _get_arg(args, "metric", default_metric) or default_metric
    runtime_kwargs: dict[str, Any] = {
        "metric": metric,
        "tree": _get_arg(args, "tree"),
        "mode": _get_arg(args, "mode"),
        "leaf_size": _get_arg(args, "leaf_size"),
        "cover_base": _get_arg(args, "base"),
        "enable_numba": _get_arg(args, "enable_numba"),
        "diagnostics": _get_arg(args, "diagnostics"),
        "log_level": _get_arg(args, "log_level"),
    }
    if extra_overrides:
        runtime_kwargs.update(extra_overrides)
    return ApiRuntime(**runtime_kwargs)


__all__ = ["runtime_from_args"]
