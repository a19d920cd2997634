"""Fixed pool of book slots shared by all requests."""

import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from typing import Optional

from .errors import InvalidIndex
from .models import BookSlot
from .state import StateStore

logger = logging.getLogger(__name__)

DEFAULT_SLOTS = 10


class Registry:
    """
    Book slots indexed 0..N-1, backed by a StateStore.

    Every change is written to the store before it becomes visible in
    memory, so a failed write leaves the registry as it was. Callers that
    read a slot, compute a new value and update it must hold ``locked(index)``
    for the whole sequence.
    """

    def __init__(self, slots: Iterable[BookSlot], store: StateStore) -> None:
        self._slots = list(slots)
        if not self._slots:
            raise ValueError("Registry needs at least one slot")
        self.store = store
        self._locks = [threading.Lock() for _ in self._slots]
        self._store_lock = threading.Lock()

    @classmethod
    def load(
        cls,
        store: StateStore,
        size: int = DEFAULT_SLOTS,
        seed: Iterable[str] = (),
    ) -> "Registry":
        """
        Create a registry from persisted state.

        Args:
            store: Where slots are read from and written to
            size: Number of slots
            seed: Book files assigned, in order, to slots without a book

        Returns:
            Loaded registry
        """
        registry = cls(store.load(size), store)
        pending = [str(f) for f in seed if str(f) not in registry.files()]
        for index, slot in enumerate(registry.slots()):
            if not pending:
                break
            if not slot.configured:
                registry.configure(index, pending.pop(0))
        for file in pending:
            logger.warning("No free slot for %s", file)
        return registry

    def __len__(self) -> int:
        return len(self._slots)

    def check_index(self, index: int) -> int:
        """Return ``index`` if it addresses a slot, else raise InvalidIndex."""
        if isinstance(index, bool) or not isinstance(index, int):
            raise InvalidIndex(f"Book index must be an integer, got {index!r}")
        if not 0 <= index < len(self._slots):
            raise InvalidIndex(
                f"Book index {index} out of range 0-{len(self._slots) - 1}"
            )
        return index

    def get(self, index: int) -> BookSlot:
        return self._slots[self.check_index(index)]

    def slots(self) -> list[BookSlot]:
        """Return a snapshot of all slots in index order."""
        return list(self._slots)

    def files(self) -> list[str]:
        return [slot.file for slot in self._slots]

    @contextmanager
    def locked(self, index: int) -> Iterator[BookSlot]:
        """Hold the lock of one slot and yield its current state."""
        lock = self._locks[self.check_index(index)]
        with lock:
            yield self._slots[index]

    def update(self, index: int, line: int, limit: int) -> BookSlot:
        """
        Replace the cursor and page size of a slot.

        Raises:
            InvalidIndex: If index is out of range
            StateStoreFailure: If the new state could not be persisted
        """
        slot = replace(self.get(index), line=line, limit=limit)
        self._commit(index, slot)
        return slot

    def configure(
        self, index: int, file: str, limit: Optional[int] = None
    ) -> BookSlot:
        """Assign a book file to a slot and rewind it to the first line."""
        current = self.get(index)
        slot = BookSlot(
            file=str(file),
            line=0,
            limit=(
                current.limit
                if limit is None
                else min(max(limit, 1), self.store.max_limit)
            ),
        )
        self._commit(index, slot)
        logger.info("Slot %d now reads %s", index, slot.file)
        return slot

    def _commit(self, index: int, slot: BookSlot) -> None:
        with self._store_lock:
            snapshot = self.slots()
            snapshot[index] = slot
            self.store.save(snapshot)
            self._slots[index] = slot
