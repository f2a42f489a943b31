"""Candidate selection strategies.

The resolution pipeline only relies on the ``select_index`` contract; the
default implementation covers the strategy names the configuration accepts.
"""

import random
import threading
from typing import Protocol

STRATEGY_FIRST = "first"
STRATEGY_RANDOM = "random"
STRATEGY_ROUND_ROBIN = "round_robin"


class LoadBalancer(Protocol):
    """Pluggable candidate selection."""

    def select_index(self, strategy: str, key: str, count: int) -> int: ...


class DefaultLoadBalancer:
    """``first``, ``round_robin`` (per key) and uniform ``random``.

    Unrecognized strategy names fall back to ``random``.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()
        self._counters: dict[str, int] = {}
        self._lock = threading.Lock()

    def select_index(self, strategy: str, key: str, count: int) -> int:
        if count <= 0:
            raise ValueError(f"no candidates to select from for '{key}'")
        if count == 1 or strategy == STRATEGY_FIRST:
            return 0
        if strategy == STRATEGY_ROUND_ROBIN:
            with self._lock:
                n = self._counters.get(key, 0)
                self._counters[key] = n + 1
            return n % count
        with self._lock:
            return self._rng.randrange(count)

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()


_default_balancer = DefaultLoadBalancer()


def get_default_balancer() -> DefaultLoadBalancer:
    return _default_balancer
