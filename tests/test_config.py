from types import SimpleNamespace

import pytest

from dualtreex import config as dx_config
from dualtreex.api import Runtime
from cli.runtime import runtime_from_args


def test_runtime_config_defaults():
    runtime = dx_config.runtime_config()

    assert runtime.enable_diagnostics is True
    assert runtime.enable_numba is False
    assert runtime.log_level == "INFO"
    assert runtime.metric == "euclidean"
    assert runtime.tree == "kd"
    assert runtime.mode == "dual"
    assert runtime.leaf_size == 20
    assert runtime.cover_base == pytest.approx(2.0)


def test_runtime_config_reads_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DUALTREEX_TREE", "Cover")
    monkeypatch.setenv("DUALTREEX_MODE", "single")
    monkeypatch.setenv("DUALTREEX_METRIC", "Manhattan")
    monkeypatch.setenv("DUALTREEX_LEAF_SIZE", "5")
    monkeypatch.setenv("DUALTREEX_COVER_BASE", "1.3")
    monkeypatch.setenv("DUALTREEX_ENABLE_DIAGNOSTICS", "off")
    monkeypatch.setenv("DUALTREEX_ENABLE_NUMBA", "yes")
    monkeypatch.setenv("DUALTREEX_LOG_LEVEL", "debug")
    dx_config.reset_runtime_config_cache()

    runtime = dx_config.runtime_config()

    assert runtime.tree == "cover"
    assert runtime.mode == "single"
    assert runtime.metric == "manhattan"
    assert runtime.leaf_size == 5
    assert runtime.cover_base == pytest.approx(1.3)
    assert runtime.enable_diagnostics is False
    assert runtime.enable_numba is True
    assert runtime.log_level == "DEBUG"


@pytest.mark.parametrize(
    "key,value",
    [
        ("DUALTREEX_TREE", "octree"),
        ("DUALTREEX_MODE", "parallel"),
        ("DUALTREEX_LEAF_SIZE", "0"),
        ("DUALTREEX_LEAF_SIZE", "many"),
        ("DUALTREEX_COVER_BASE", "1.0"),
    ],
)
def test_invalid_environment_values_raise(monkeypatch: pytest.MonkeyPatch, key, value):
    monkeypatch.setenv(key, value)
    dx_config.reset_runtime_config_cache()

    with pytest.raises(ValueError):
        dx_config.runtime_config()


def test_runtime_config_is_cached(monkeypatch: pytest.MonkeyPatch):
    first = dx_config.runtime_config()
    monkeypatch.setenv("DUALTREEX_TREE", "ball")

    assert dx_config.runtime_config() is first
    dx_config.reset_runtime_config_cache()
    assert dx_config.runtime_config().tree == "ball"


def test_describe_runtime_is_serialisable():
    snapshot = dx_config.describe_runtime()

    assert snapshot["tree"] == "kd"
    assert set(snapshot) >= {"metric", "mode", "leaf_size", "cover_base", "enable_numba"}


def test_api_runtime_overrides_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DUALTREEX_TREE", "ball")
    runtime = Runtime(mode="naive", leaf_size=3)

    config = runtime.to_config()

    assert config.tree == "ball"
    assert config.mode == "naive"
    assert config.leaf_size == 3


def test_api_runtime_validates_values():
    with pytest.raises(ValueError):
        Runtime(tree="octree").to_config()
    with pytest.raises(KeyError):
        Runtime(metric="cosine").to_config()


def test_api_runtime_activate_installs_config():
    Runtime(tree="cover", diagnostics=False).activate()

    active = dx_config.runtime_config()
    assert active.tree == "cover"
    assert active.enable_diagnostics is False
    assert Runtime.from_active().tree == "cover"

    dx_config.reset_runtime_config_cache()
    assert dx_config.runtime_config().tree == "kd"


def test_runtime_from_args_maps_cli_fields():
    args = SimpleNamespace(
        metric="chebyshev",
        tree="ball",
        mode="single",
        leaf_size=4,
        base=None,
        enable_numba=None,
        diagnostics=False,
        log_level="warning",
    )

    runtime = runtime_from_args(args)
    description = runtime.describe()

    assert description["metric"] == "chebyshev"
    assert description["tree"] == "ball"
    assert description["mode"] == "single"
    assert description["leaf_size"] == 4
    assert description["enable_diagnostics"] is False
    assert description["log_level"] == "WARNING"
