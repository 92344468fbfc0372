from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict

from dualtreex import config as dx_config
from dualtreex.core.metrics import get_metric

_ATTR_TO_FIELD = {
    "metric": "metric",
    "tree": "tree",
    "mode": "mode",
    "leaf_size": "leaf_size",
    "cover_base": "cover_base",
    "enable_numba": "enable_numba",
    "diagnostics": "enable_diagnostics",
    "log_level": "log_level",
}


@dataclass(frozen=True)
class Runtime:
    """Declarative runtime configuration that can activate a dualtreex context.

    Every field left as ``None`` falls back to the environment-derived
    :class:`~dualtreex.config.RuntimeConfig`.
    """

    metric: str | None = None
    tree: str | None = None
    mode: str | None = None
    leaf_size: int | None = None
    cover_base: float | None = None
    enable_numba: bool | None = None
    diagnostics: bool | None = None
    log_level: str | None = None

    def to_config(self, base: dx_config.RuntimeConfig | None = None) -> dx_config.RuntimeConfig:
        base_config = base or dx_config.RuntimeConfig.from_env()
        updates: Dict[str, Any] = {}
        for attr, field_name in _ATTR_TO_FIELD.items():
            value = getattr(self, attr)
            if value is not None:
                updates[field_name] = value
        if "tree" in updates:
            updates["tree"] = dx_config.normalise_tree(updates["tree"])
        if "mode" in updates:
            updates["mode"] = dx_config.normalise_mode(updates["mode"])
        if "leaf_size" in updates:
            updates["leaf_size"] = dx_config.normalise_leaf_size(updates["leaf_size"])
        if "cover_base" in updates:
            updates["cover_base"] = dx_config.normalise_cover_base(updates["cover_base"])
        if "metric" in updates:
            # Resolve early so typos surface before any tree is built.
            updates["metric"] = get_metric(updates["metric"]).name
        if "log_level" in updates:
            updates["log_level"] = str(updates["log_level"]).upper()
        if not updates:
            return base_config
        return replace(base_config, **updates)

    def activate(self) -> dx_config.RuntimeConfig:
        """Install this runtime as the active global configuration and return it."""

        return dx_config.configure_runtime(self.to_config())

    def describe(self) -> Dict[str, Any]:
        config = self.to_config()
        return {
            "metric": config.metric,
            "tree": config.tree,
            "mode": config.mode,
            "leaf_size": config.leaf_size,
            "cover_base": config.cover_base,
            "enable_numba": config.enable_numba,
            "enable_diagnostics": config.enable_diagnostics,
            "log_level": config.log_level,
        }

    def with_updates(self, **kwargs: Any) -> "Runtime":
        return replace(self, **kwargs)

    @classmethod
    def from_config(cls, config: dx_config.RuntimeConfig) -> "Runtime":
        return cls(
            metric=config.metric,
            tree=config.tree,
            mode=config.mode,
            leaf_size=config.leaf_size,
            cover_base=config.cover_base,
            enable_numba=config.enable_numba,
            diagnostics=config.enable_diagnostics,
            log_level=config.log_level,
        )

    @classmethod
    def from_active(cls) -> "Runtime":
        return cls.from_config(dx_config.runtime_config())


__all__ = ["Runtime"]
