"""Process-wide configuration store with atomic snapshot publishing.

A ``Snapshot`` bundles the decoded record, the resolution index, the global
redirect table, the API key table and derived settings. The store replaces
the whole snapshot with a single reference assignment, so a reader that
grabs ``store.snapshot`` once sees one consistent configuration version.
"""

import logging
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from model_gateway.backends.defaults import (
    BUILTIN_MULTI_CONTENT_MODELS,
    DEFAULT_LOAD_BALANCING,
    DEFAULT_SERVER_PORT,
)
from model_gateway.backends.index import build_model_index
from model_gateway.config import (
    READABLE_POLL_SECONDS,
    READABLE_WAIT_SECONDS,
    detect_format,
    load_config,
    resolve_config_path,
    wait_for_file_readable,
)
from model_gateway.errors import ConfigError, StoreNotInitialized
from model_gateway.models.config import (
    APIKeyConfig,
    GatewayConfig,
    ProxyConf,
    Translation,
)
from model_gateway.models.routing import ModelIndex

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[], None]


@dataclass(frozen=True)
class Snapshot:
    """One published configuration version. Never mutated after publishing."""

    config: GatewayConfig
    index: ModelIndex
    model_redirect: Mapping[str, str]
    api_keys: Mapping[str, APIKeyConfig]
    load_balancing: str
    server_port: str
    api_key: str
    debug: bool
    log_level: str
    proxy: ProxyConf
    translation: Translation
    multi_content_models: tuple[str, ...]
    version: int = 0
    loaded_at: float = 0.0


def build_snapshot(config: GatewayConfig, version: int = 0) -> Snapshot:
    """Build the index and derive scalar settings from a decoded record."""
    return Snapshot(
        config=config,
        index=build_model_index(config),
        model_redirect=MappingProxyType(dict(config.model_redirect)),
        api_keys=MappingProxyType({k.api_key: k for k in config.api_keys}),
        load_balancing=config.load_balancing or DEFAULT_LOAD_BALANCING,
        server_port=config.server_port or DEFAULT_SERVER_PORT,
        api_key=config.api_key,
        debug=config.debug,
        log_level=config.log_level,
        proxy=config.proxy,
        translation=config.translation,
        multi_content_models=BUILTIN_MULTI_CONTENT_MODELS
        + tuple(config.multi_content_models),
        version=version,
        loaded_at=time.time(),
    )


class ConfigStore:
    """Holds the current snapshot and owns the load/reload protocol."""

    def __init__(
        self,
        max_wait: float = READABLE_WAIT_SECONDS,
        poll_interval: float = READABLE_POLL_SECONDS,
    ) -> None:
        self._snapshot: Snapshot | None = None
        # Serializes writers; readers never take it.
        self._lock = threading.Lock()
        self._version = 0
        self._path: Path | None = None
        self._format: str | None = None
        self._callbacks: list[ChangeCallback] = []
        self._max_wait = max_wait
        self._poll_interval = poll_interval

    @property
    def snapshot(self) -> Snapshot:
        snapshot = self._snapshot
        if snapshot is None:
            raise StoreNotInitialized("configuration has not been loaded")
        return snapshot

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def loaded(self) -> bool:
        return self._snapshot is not None

    def load(self, path: str | Path) -> Snapshot:
        """
        Resolve, wait for, decode and publish a configuration file.

        Raises:
            ConfigError: Any resolution, readability or decode failure. The
                previously published snapshot, if any, stays live.
        """
        resolved = resolve_config_path(path)
        logger.info("Loading configuration from %s", resolved)
        wait_for_file_readable(resolved, self._max_wait, self._poll_interval)
        fmt = detect_format(resolved)

        snapshot = self._publish(resolved, fmt)
        self._log_applied(snapshot)
        self._notify()
        return snapshot

    def reload(self) -> Snapshot:
        """Re-read the previously loaded file and publish it."""
        path, fmt = self._path, self._format
        if path is None or fmt is None:
            raise StoreNotInitialized("configuration has not been loaded")

        snapshot = self._publish(path, fmt)
        logger.info("Configuration reloaded (version %d)", snapshot.version)
        self._log_applied(snapshot)
        self._notify()
        return snapshot

    def handle_file_change(self) -> bool:
        """Reload after a file change; failures leave the live snapshot."""
        logger.info("Configuration file changed, reloading...")
        try:
            self.reload()
        except (ConfigError, OSError) as e:
            logger.error("Failed to reload configuration: %s", e)
            return False
        return True

    def register_change_callback(self, callback: ChangeCallback) -> None:
        """Run ``callback`` after every successful load or reload."""
        self._callbacks.append(callback)

    def _publish(self, path: Path, fmt: str) -> Snapshot:
        with self._lock:
            config = load_config(path, fmt)
            version = self._version + 1
            snapshot = build_snapshot(config, version)
            self._snapshot = snapshot
            self._version = version
            self._path = path
            self._format = fmt
        return snapshot

    def _notify(self) -> None:
        for callback in list(self._callbacks):
            try:
                callback()
            except Exception:
                logger.exception("Config change callback %r failed", callback)

    def _log_applied(self, snapshot: Snapshot) -> None:
        logger.info(
            "Configuration applied: load_balancing=%s server_port=%s "
            "log_level=%s model_redirect=%s multi_content_models=%s",
            snapshot.load_balancing,
            snapshot.server_port,
            snapshot.log_level,
            dict(snapshot.model_redirect),
            list(snapshot.multi_content_models),
        )
        logger.info("Supported models: %s", sorted(snapshot.index.supported_models))


_default_store = ConfigStore()


def get_store() -> ConfigStore:
    return _default_store


def init_config(path: str | Path) -> ConfigStore:
    """Load the process configuration into the default store."""
    _default_store.load(path)
    return _default_store


def reload_config() -> Snapshot:
    return _default_store.reload()


def register_config_change_callback(callback: ChangeCallback) -> None:
    _default_store.register_change_callback(callback)


def current_snapshot() -> Snapshot:
    return _default_store.snapshot
