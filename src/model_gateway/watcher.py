"""Poll the configuration file and reload the store when it changes."""

import asyncio
import logging
import os

from model_gateway.store import ConfigStore

logger = logging.getLogger(__name__)

Signature = tuple[int, int]


def file_signature(path: str | os.PathLike) -> Signature | None:
    """Return ``(mtime_ns, size)`` for ``path``, or None if it is missing."""
    try:
        st = os.stat(path)
    except OSError:
        return None
    return st.st_mtime_ns, st.st_size


class ConfigWatcher:
    """Single background task that triggers ``store.handle_file_change``."""

    def __init__(self, store: ConfigStore, interval: float = 1.0) -> None:
        self._store = store
        self._interval = interval
        self._last: Signature | None = None
        self._task: asyncio.Task[None] | None = None
        if store.path is not None:
            self._last = file_signature(store.path)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def check(self) -> bool:
        """Reload if the file changed since the last check. Returns True if it did."""
        path = self._store.path
        if path is None:
            return False

        current = file_signature(path)
        # Editors may briefly remove the file while saving.
        if current is None or current == self._last:
            return False

        self._last = current
        logger.info("Config file changed: %s", path)
        self._store.handle_file_change()
        return True

    async def start(self) -> None:
        if self._task is not None:
            return
        if self._store.path is not None:
            self._last = file_signature(self._store.path)
        self._task = asyncio.create_task(self._watch_loop())

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _watch_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self._interval)
                # Decode and build off the event loop so requests keep flowing.
                await asyncio.to_thread(self.check)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Config watch loop error")
