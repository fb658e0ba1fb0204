"""Per-product serialization of stock-changing commands.

Locks are acquired in sorted product-id order and held while the command is
processed, so the read-modify-write of a stock counter and the commit of the
unit of work happen before any other transition touches the same product.
"""

import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from protean.utils.globals import current_domain


class ProductLocks:
    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def lock_for(self, product_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(product_id)
            if lock is None:
                lock = self._locks[product_id] = threading.RLock()
            return lock

    @contextmanager
    def hold(self, product_ids: Iterable[str]) -> Iterator[None]:
        locks = [self.lock_for(pid) for pid in sorted({str(pid) for pid in product_ids})]
        acquired = []
        try:
            for lock in locks:
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


product_locks = ProductLocks()


def process_with_product_locks(command, product_ids: Iterable[str]):
    """Process ``command`` synchronously while holding the products' locks."""
    with product_locks.hold(product_ids):
        return current_domain.process(command, asynchronous=False)
