"""Per-order and per-variant serialization.

Cancellation, payment webhooks and admin status updates for the same order
must not interleave, and inventory decrements for the same variant must not
interleave. Callers wrap the whole command, commit included:

    with with_order_lock(order_id), with_variant_locks(variant_ids):
        current_domain.process(command, asynchronous=False)

The default provider keeps keyed ``threading`` locks in process memory, which
is enough for a single worker. Multi-worker deployments plug in a provider
backed by a shared lock service through ``set_lock_provider``.
"""

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from contextlib import ExitStack, contextmanager


class OrderLockProvider(ABC):
    """Hands out mutually exclusive locks keyed by an arbitrary string."""

    @abstractmethod
    def acquire(self, key: str) -> None: ...

    @abstractmethod
    def release(self, key: str) -> None: ...


class InProcessLockProvider(OrderLockProvider):
    """Keyed re-entrant locks held in this process."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def _lock_for(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock

    def acquire(self, key: str) -> None:
        self._lock_for(key).acquire()

    def release(self, key: str) -> None:
        self._lock_for(key).release()


_provider: OrderLockProvider | None = None


def get_lock_provider() -> OrderLockProvider:
    global _provider
    if _provider is None:
        _provider = InProcessLockProvider()
    return _provider


def set_lock_provider(provider: OrderLockProvider) -> None:
    global _provider
    _provider = provider


def reset_lock_provider() -> None:
    global _provider
    _provider = None


@contextmanager
def _held(key: str) -> Iterator[None]:
    provider = get_lock_provider()
    provider.acquire(key)
    try:
        yield
    finally:
        provider.release(key)


@contextmanager
def with_order_lock(order_id) -> Iterator[None]:
    """Hold the lock for one order for the duration of the block."""
    with _held(f"order:{order_id}"):
        yield


@contextmanager
def with_variant_locks(variant_ids: Iterable) -> Iterator[None]:
    """Hold locks for several variants, acquired in sorted order to avoid deadlock."""
    keys = sorted({f"variant:{vid}" for vid in variant_ids})
    with ExitStack() as stack:
        for key in keys:
            stack.enter_context(_held(key))
        yield


@contextmanager
def with_product_lock(product_id) -> Iterator[None]:
    """Serialize rating recomputation for one product."""
    with _held(f"product:{product_id}"):
        yield
