from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict

_LOGGER = logging.getLogger("dualtreex")

_SUPPORTED_TREES = {"kd", "ball", "cover"}
_SUPPORTED_MODES = {"dual", "single", "naive"}
_DEFAULT_LEAF_SIZE = 20
_DEFAULT_COVER_BASE = 2.0


def _bool_from_env(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    value = value.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_optional_int(raw: str | None) -> int | None:
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid integer value '{raw}'") from exc


def _parse_optional_float(raw: str | None) -> float | None:
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid float value '{raw}'") from exc


def normalise_tree(value: str | None) -> str:
    if value is None:
        return "kd"
    tree = value.strip().lower()
    if tree not in _SUPPORTED_TREES:
        raise ValueError(f"Unsupported tree type '{tree}'. Expected one of {_SUPPORTED_TREES}.")
    return tree


def normalise_mode(value: str | None) -> str:
    if value is None:
        return "dual"
    mode = value.strip().lower()
    if mode not in _SUPPORTED_MODES:
        raise ValueError(f"Unsupported search mode '{mode}'. Expected one of {_SUPPORTED_MODES}.")
    return mode


def normalise_leaf_size(value: int | None) -> int:
    if value is None:
        return _DEFAULT_LEAF_SIZE
    if value < 1:
        raise ValueError(f"Leaf size must be at least 1, got {value}.")
    return int(value)


def normalise_cover_base(value: float | None) -> float:
    if value is None:
        return _DEFAULT_COVER_BASE
    if not math.isfinite(value) or value <= 1.0:
        raise ValueError(f"Cover tree base must be a finite value above 1, got {value}.")
    return float(value)


@dataclass(frozen=True)
class RuntimeConfig:
    enable_diagnostics: bool
    enable_numba: bool
    log_level: str
    metric: str
    tree: str
    mode: str
    leaf_size: int
    cover_base: float

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        enable_diagnostics = _bool_from_env(
            os.getenv("DUALTREEX_ENABLE_DIAGNOSTICS"), default=True
        )
        enable_numba = _bool_from_env(os.getenv("DUALTREEX_ENABLE_NUMBA"), default=False)
        log_level = os.getenv("DUALTREEX_LOG_LEVEL", "INFO").strip().upper() or "INFO"
        metric = os.getenv("DUALTREEX_METRIC", "euclidean").strip().lower() or "euclidean"
        tree = normalise_tree(os.getenv("DUALTREEX_TREE"))
        mode = normalise_mode(os.getenv("DUALTREEX_MODE"))
        leaf_size = normalise_leaf_size(_parse_optional_int(os.getenv("DUALTREEX_LEAF_SIZE")))
        cover_base = normalise_cover_base(
            _parse_optional_float(os.getenv("DUALTREEX_COVER_BASE"))
        )
        return cls(
            enable_diagnostics=enable_diagnostics,
            enable_numba=enable_numba,
            log_level=log_level,
            metric=metric,
            tree=tree,
            mode=mode,
            leaf_size=leaf_size,
            cover_base=cover_base,
        )


def _configure_logging(level: str) -> None:
    logger = logging.getLogger("dualtreex")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter("%(levelname)s %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)


_ACTIVE_CONFIG: RuntimeConfig | None = None


@lru_cache(maxsize=None)
def _env_runtime_config() -> RuntimeConfig:
    config = RuntimeConfig.from_env()
    _configure_logging(config.log_level)
    if config.enable_numba:
        _LOGGER.debug("Numba kernels requested for brute-force baselines.")
    return config


def runtime_config() -> RuntimeConfig:
    if _ACTIVE_CONFIG is not None:
        return _ACTIVE_CONFIG
    return _env_runtime_config()


def configure_runtime(config: RuntimeConfig) -> RuntimeConfig:
    """Force the active runtime to use ``config`` instead of env defaults."""

    global _ACTIVE_CONFIG
    _configure_logging(config.log_level)
    _ACTIVE_CONFIG = config
    return config


def reset_runtime_config_cache() -> None:
    global _ACTIVE_CONFIG
    _ACTIVE_CONFIG = None
    _env_runtime_config.cache_clear()


def describe_runtime() -> Dict[str, Any]:
    """Return a serialisable view of the active runtime configuration."""

    config = runtime_config()
    return {
        "enable_diagnostics": config.enable_diagnostics,
        "enable_numba": config.enable_numba,
        "log_level": config.log_level,
        "metric": config.metric,
        "tree": config.tree,
        "mode": config.mode,
        "leaf_size": config.leaf_size,
        "cover_base": config.cover_base,
    }


__all__ = [
    "RuntimeConfig",
    "configure_runtime",
    "describe_runtime",
    "normalise_cover_base",
    "normalise_leaf_size",
    "normalise_mode",
    "normalise_tree",
    "reset_runtime_config_cache",
    "runtime_config",
]
