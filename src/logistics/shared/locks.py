"""Per-aggregate command serialization.

Commands that touch the same shipment must not interleave their
read-modify-write cycles. ``process_serialized`` holds one re-entrant lock
per key for the whole of ``domain.process`` (load, validate, commit), and
acquires multiple keys in sorted order so two commands can never deadlock.

Locks are reference counted and dropped once no thread holds or waits on
them, so the registry only ever contains keys that are in use.

The in-memory and relational providers also reject stale writes through the
aggregate version check; the lock keeps that from surfacing as a retry storm
within a single process.
"""

import threading
from contextlib import ExitStack, contextmanager

from protean.utils.globals import current_domain


class _Slot:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = threading.RLock()
        self.holders = 0


class KeyedLocks:
    def __init__(self):
        self._guard = threading.Lock()
        self._slots: dict[str, _Slot] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._slots)

    @contextmanager
    def _holding(self, key: str):
        with self._guard:
            slot = self._slots.get(key)
            if slot is None:
                slot = self._slots[key] = _Slot()
            slot.holders += 1
        try:
            with slot.lock:
                yield
        finally:
            with self._guard:
                slot.holders -= 1
                if slot.holders == 0:
                    del self._slots[key]

    @contextmanager
    def hold(self, *keys: str):
        with ExitStack() as stack:
            for key in sorted({k for k in keys if k}):
                stack.enter_context(self._holding(key))
            yield


_registry = KeyedLocks()


def shipment_key(shipment_id) -> str:
    return f"shipment:{shipment_id}"


def assignment_slot_key(shipment_id, assignment_type: str) -> str:
    return f"assignment-slot:{shipment_id}:{assignment_type}"


def process_serialized(command, *keys: str):
    """Process ``command`` synchronously while holding the given keys."""
    with _registry.hold(*keys):
        return current_domain.process(command, asynchronous=False)
