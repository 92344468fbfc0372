from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator

import psutil

from dualtreex import config as dx_config


def _rss_bytes(process: psutil.Process) -> int:
    return int(process.memory_info().rss)


def _format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.3f}"
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


@dataclass
class OperationLog:
    """Resource snapshot and metadata for one logged operation."""

    op: str
    wall_start: float
    cpu_user_start: float
    cpu_system_start: float
    rss_start: int
    metadata: Dict[str, Any] = field(default_factory=dict)

    def add_metadata(self, **values: Any) -> None:
        self.metadata.update(values)

    def render(self, process: psutil.Process) -> str:
        times = os.times()
        wall_ms = (time.perf_counter() - self.wall_start) * 1e3
        user_ms = (times.user - self.cpu_user_start) * 1e3
        system_ms = (times.system - self.cpu_system_start) * 1e3
        rss_delta = _rss_bytes(process) - self.rss_start
        parts = [
            f"op={self.op}",
            f"wall_ms={wall_ms:.3f}",
            f"cpu_user_ms={user_ms:.3f}",
            f"cpu_system_ms={system_ms:.3f}",
            f"rss_delta={rss_delta}",
        ]
        parts.extend(f"{key}={_format_value(val)}" for key, val in self.metadata.items())
        return " ".join(parts)


@contextmanager
def log_operation(logger: logging.Logger, op: str) -> Iterator[OperationLog | None]:
    """Measure a block and log a single ``op=...`` line when diagnostics are on.

    Yields ``None`` when diagnostics are disabled so callers can skip
    collecting metadata.
    """

    runtime = dx_config.runtime_config()
    if not runtime.enable_diagnostics:
        yield None
        return

    process = psutil.Process()
    times = os.times()
    op_log = OperationLog(
        op=op,
        wall_start=time.perf_counter(),
        cpu_user_start=times.user,
        cpu_system_start=times.system,
        rss_start=_rss_bytes(process),
    )
    try:
        yield op_log
    finally:
        logger.info(op_log.render(process))


__all__ = ["OperationLog", "log_operation"]
