from __future__ import annotations

import os

import pytest

from dualtreex import config as dx_config


@pytest.fixture(autouse=True)
def _fresh_runtime_config(monkeypatch: pytest.MonkeyPatch):
    for key in list(os.environ):
        if key.startswith("DUALTREEX_"):
            monkeypatch.delenv(key, raising=False)
    dx_config.reset_runtime_config_cache()
    yield
    dx_config.reset_runtime_config_cache()
