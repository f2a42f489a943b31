"""Tests for the configuration store and reload protocol."""

import json
import threading
from pathlib import Path

import pytest

import model_gateway.store as store_mod
from model_gateway.backends.defaults import BUILTIN_MULTI_CONTENT_MODELS, SERVICE_TIMEOUT
from model_gateway.backends.router import apply_global_redirect, resolve_model
from model_gateway.errors import (
    DecodeSyntaxError,
    FileNotReadableTimeout,
    StoreNotInitialized,
    UnsupportedFormat,
)
from model_gateway.store import ConfigStore


def _write(path: Path, data: dict) -> Path:
    path.write_text(json.dumps(data))
    return path


def _service(model: str, **extra) -> dict:
    return {"provider": "openai", "models": [model], "enabled": True, **extra}


@pytest.fixture
def config_file(tmp_path) -> Path:
    """One enabled group svc-a exposing m1 with no timeout."""
    return _write(
        tmp_path / "config.json",
        {
            "api_key": "default-key",
            "log_level": "info",
            "multi_content_models": ["qwen-vl*"],
            "services": {"svc-a": [_service("m1", timeout=0)]},
        },
    )


@pytest.fixture
def store() -> ConfigStore:
    return ConfigStore(max_wait=0.3, poll_interval=0.05)


def test_load_derives_defaults(store, config_file):
    """Unset strategy and port get their defaults."""
    snapshot = store.load(config_file)

    assert snapshot.version == 1
    assert snapshot.load_balancing == "random"
    assert snapshot.server_port == ":9090"
    assert snapshot.api_key == "default-key"
    assert snapshot.log_level == "info"
    assert snapshot.multi_content_models == BUILTIN_MULTI_CONTENT_MODELS + ("qwen-vl*",)
    assert store.snapshot is snapshot
    assert store.path == config_file.resolve()


def test_load_applies_default_timeout(store, config_file):
    """A zero timeout becomes the service default in the binding."""
    store.load(config_file)

    binding = resolve_model(store.snapshot, "m1")
    assert binding.service_name == "svc-a"
    assert binding.timeout == SERVICE_TIMEOUT


def test_load_yaml(store, tmp_path):
    """YAML files load through the same path."""
    path = tmp_path / "config.yml"
    path.write_text("load_balancing: first\nserver_port: 8000\n")

    snapshot = store.load(path)

    assert snapshot.load_balancing == "first"
    assert snapshot.server_port == "8000"


def test_load_unsupported_format(store, tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("")
    with pytest.raises(UnsupportedFormat):
        store.load(path)


def test_load_missing_file_times_out(store, tmp_path):
    with pytest.raises(FileNotReadableTimeout):
        store.load(tmp_path / "missing.json")
    assert not store.loaded


def test_snapshot_before_load(store):
    with pytest.raises(StoreNotInitialized):
        store.snapshot


def test_reload_before_load(store):
    with pytest.raises(StoreNotInitialized):
        store.reload()


def test_reload_replaces_everything(store, config_file):
    """A reload publishes a new index with fresh binding identifiers."""
    first = store.load(config_file)
    old_id = first.index.get("m1")[0].service_id

    _write(
        config_file,
        {
            "load_balancing": "round_robin",
            "services": {"svc-a": [_service("m1")], "svc-b": [_service("m9")]},
        },
    )
    second = store.reload()

    assert second.version == 2
    assert second.load_balancing == "round_robin"
    assert "m9" in second.index
    assert second.index.get("m1")[0].service_id != old_id
    # The old snapshot is untouched
    assert "m9" not in first.index
    assert first.load_balancing == "random"


def test_failed_reload_keeps_live_snapshot(store, config_file):
    """A broken file never replaces the live snapshot."""
    snapshot = store.load(config_file)
    config_file.write_text('{"services": ')

    with pytest.raises(DecodeSyntaxError):
        store.reload()

    assert store.snapshot is snapshot


def test_handle_file_change_swallows_errors(store, config_file):
    """Watcher-triggered reload failures are logged, not raised."""
    snapshot = store.load(config_file)
    config_file.write_text("{not json")

    assert store.handle_file_change() is False
    assert store.snapshot is snapshot


def test_handle_file_change_success(store, config_file):
    store.load(config_file)
    assert store.handle_file_change() is True
    assert store.snapshot.version == 2


def test_callbacks_run_in_order(store, config_file):
    """Callbacks run after load and after every reload, in registration order."""
    calls = []
    store.register_change_callback(lambda: calls.append("first"))
    store.register_change_callback(lambda: calls.append("second"))

    store.load(config_file)
    store.reload()

    assert calls == ["first", "second", "first", "second"]


def test_callbacks_see_new_snapshot(store, config_file):
    seen = []
    store.register_change_callback(lambda: seen.append(store.snapshot.version))

    store.load(config_file)
    store.reload()

    assert seen == [1, 2]


def test_failing_callback_does_not_block_others(store, config_file):
    calls = []

    def broken():
        raise RuntimeError("boom")

    store.register_change_callback(broken)
    store.register_change_callback(lambda: calls.append("ran"))

    store.load(config_file)

    assert calls == ["ran"]


def test_failed_reload_skips_callbacks(store, config_file):
    calls = []
    store.load(config_file)
    store.register_change_callback(lambda: calls.append("ran"))
    config_file.write_text("{")

    store.handle_file_change()

    assert calls == []


def test_concurrent_reload_and_resolve_are_consistent(store, tmp_path):
    """Readers always see index, redirects and keys from the same load."""
    path = tmp_path / "config.json"
    versions = {
        "a": {
            "model_redirect": {"x": "a-model"},
            "api_keys": [{"api_key": "key-a", "supported_models": {"svc": ["*"]}}],
            "services": {"svc": [_service("a-model")]},
        },
        "b": {
            "model_redirect": {"x": "b-model"},
            "api_keys": [{"api_key": "key-b", "supported_models": {"svc": ["*"]}}],
            "services": {"svc": [_service("b-model")]},
        },
    }
    store.load(_write(path, versions["a"]))

    done = threading.Event()
    errors = []

    def reader():
        while not done.is_set():
            snapshot = store.snapshot
            target = apply_global_redirect(snapshot, "x")
            tag = target[0]
            try:
                resolve_model(snapshot, target)
                assert set(snapshot.api_keys) == {f"key-{tag}"}
            except Exception as e:  # collected for the main thread
                errors.append(e)

    readers = [threading.Thread(target=reader) for _ in range(4)]
    for t in readers:
        t.start()
    try:
        for i in range(30):
            _write(path, versions["ab"[i % 2]])
            store.reload()
    finally:
        done.set()
        for t in readers:
            t.join()

    assert errors == []


def test_module_level_api(monkeypatch, config_file):
    """The process-level functions operate on the default store."""
    monkeypatch.setattr(store_mod, "_default_store", ConfigStore())
    calls = []

    store_mod.register_config_change_callback(lambda: calls.append(1))
    store = store_mod.init_config(config_file)
    store_mod.reload_config()

    assert store is store_mod.get_store()
    assert store_mod.current_snapshot().version == 2
    assert calls == [1, 1]
