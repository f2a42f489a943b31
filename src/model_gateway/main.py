"""FastAPI application entry point."""

import logging
import os
from contextlib import asynccontextmanager
from functools import partial
from pathlib import Path
from typing import AsyncIterator

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

from model_gateway.auth import APIKeyAuth
from model_gateway.routes.models import create_models_router
from model_gateway.store import ConfigStore, Snapshot, init_config
from model_gateway.watcher import ConfigWatcher

DEFAULT_HOST = "0.0.0.0"


def config_path_from_env() -> Path:
    return Path(os.environ.get("MODEL_GATEWAY_CONFIG", "config.json"))


def parse_listen_address(server_port: str) -> tuple[str, int]:
    """Split ``host:port`` / ``:port`` / ``port`` into a (host, port) pair."""
    host, sep, port = server_port.rpartition(":")
    if not sep:
        host, port = "", server_port
    return host or DEFAULT_HOST, int(port)


def configure_logging(snapshot: Snapshot) -> None:
    """Apply the configured log level to the root logger."""
    if snapshot.debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, (snapshot.log_level or "INFO").upper(), logging.INFO)
    logging.basicConfig(
        level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )
    logging.getLogger().setLevel(level)


def create_app(store: ConfigStore | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Loads config from MODEL_GATEWAY_CONFIG (default "config.json") unless a
    loaded store is passed in. The config file is watched for changes while
    the application runs.

    Returns:
        Configured FastAPI application.
    """
    if store is None:
        store = init_config(config_path_from_env())

    configure_logging(store.snapshot)
    store.register_change_callback(lambda: configure_logging(store.snapshot))

    interval = float(os.environ.get("MODEL_GATEWAY_WATCH_INTERVAL", "1.0"))
    watcher = ConfigWatcher(store, interval=interval)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await watcher.start()
        try:
            yield
        finally:
            await watcher.stop()

    app = FastAPI(
        title="Model Gateway",
        description="Configuration-driven model routing for a multi-provider gateway",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.watcher = watcher

    app.middleware("http")(APIKeyAuth(store))
    app.include_router(create_models_router(store))

    @app.get("/health")
    async def health():
        return {"status": "ok", "config_version": store.snapshot.version}

    return app


def main():
    """Run the application with uvicorn."""
    # Load .env file if it exists
    load_dotenv()

    store = init_config(config_path_from_env())
    host, port = parse_listen_address(store.snapshot.server_port)

    # Env vars override the configured listen address
    host = os.environ.get("MODEL_GATEWAY_HOST", host)
    port = int(os.environ.get("MODEL_GATEWAY_PORT", port))
    # Hand the loaded store to the factory so startup reads the file once
    uvicorn.run(
        partial(create_app, store), host=host, port=port, reload=False, factory=True
    )


if __name__ == "__main__":
    main()
