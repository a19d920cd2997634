"""Persistence of book slots for bookpager."""

import json
import logging
import os
import shutil
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Optional

from .errors import StateStoreFailure
from .models import DEFAULT_LIMIT, MAX_LIMIT, BookSlot

logger = logging.getLogger(__name__)

DEFAULT_STATE_FILE = Path.home() / ".bookpager" / "state.json"


class StateStore:
    """Reads and writes the reading state of all book slots."""

    def __init__(
        self, state_file: Optional[Path] = None, max_limit: int = MAX_LIMIT
    ) -> None:
        """
        Initialize state store.

        Args:
            state_file: Path to the state JSON file.
                        Defaults to ~/.bookpager/state.json
            max_limit: Upper bound applied to page sizes read from disk
        """
        self.state_file = DEFAULT_STATE_FILE if state_file is None else state_file
        self.max_limit = max_limit

    def empty_slot(self) -> BookSlot:
        """Return an unconfigured slot with the default page size."""
        return BookSlot(limit=min(DEFAULT_LIMIT, self.max_limit))

    def load(self, size: int) -> list[BookSlot]:
        """
        Load ``size`` slots from disk.

        A missing or unreadable file yields empty slots. Short files are
        padded with empty slots and surplus records are dropped.
        """
        records = self._load_records()
        if len(records) > size:
            logger.warning(
                "State file has %d books but only %d slots; ignoring the rest",
                len(records),
                size,
            )
            records = records[:size]

        slots = []
        for record in records:
            try:
                slots.append(BookSlot.from_dict(record, max_limit=self.max_limit))
            except (AttributeError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed book record %r: %s", record, exc)
                slots.append(self.empty_slot())
        slots.extend(self.empty_slot() for _ in range(size - len(slots)))
        return slots

    def save(self, slots: Sequence[BookSlot]) -> None:
        """
        Write all slots to disk, replacing the state file atomically.

        Raises:
            StateStoreFailure: If the state could not be written
        """
        data = {"books": [slot.to_dict() for slot in slots]}
        backup_path = self._backup_path()
        tmp_path: Path | None = None
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.state_file.parent,
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_path = Path(tmp.name)
                json.dump(data, tmp, indent=2, ensure_ascii=False)
                tmp.flush()
                os.fsync(tmp.fileno())

            if self.state_file.exists():
                shutil.copy2(self.state_file, backup_path)
            os.replace(tmp_path, self.state_file)
        except OSError as e:
            raise StateStoreFailure(
                f"Failed to write state to {self.state_file}: {e}"
            ) from e
        finally:
            if tmp_path and tmp_path.exists():
                tmp_path.unlink(missing_ok=True)
        logger.debug("Saved %d book slots to %s", len(slots), self.state_file)

    def _load_records(self) -> list[dict[str, Any]]:
        if self.state_file.exists():
            records = self._read_state_file(self.state_file)
            if records is not None:
                return records

        backup_path = self._backup_path()
        if backup_path.exists():
            records = self._read_state_file(backup_path)
            if records is not None:
                logger.warning("Recovered state from backup: %s", backup_path)
                return records
        logger.info("No usable state at %s, starting empty", self.state_file)
        return []

    def _backup_path(self) -> Path:
        """Return the path for the state backup file."""
        return self.state_file.with_suffix(self.state_file.suffix + ".bak")

    def _read_state_file(self, path: Path) -> Optional[list[dict[str, Any]]]:
        """Read the list of book records from disk."""
        try:
            with open(path, encoding="utf-8") as f:
                text = f.read()
        except OSError as exc:
            logger.warning("Failed to load state from %s: %s", path, exc)
            return None
        if not text.strip():
            return []
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning("Failed to load state from %s: %s", path, exc)
            return None
        books = data.get("books") if isinstance(data, dict) else None
        if not isinstance(books, list):
            logger.warning("State file %s has no 'books' list", path)
            return None
        return books
