"""Data models for bookpager."""

import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class Command(str, Enum):
    """Navigation and config commands understood by the pager."""

    NEXT = "next"
    PREV = "prev"
    MORE = "more"
    LESS = "less"
    LIST = "list"

    @property
    def mutates(self) -> bool:
        """True if the command can change a slot."""
        return self is not Command.LIST


@dataclass(frozen=True)
class BookSlot:
    """Reading state of one book index."""

    file: str = ""
    line: int = 0
    limit: int = DEFAULT_LIMIT

    @property
    def configured(self) -> bool:
        return bool(self.file)

    def to_dict(self) -> dict[str, Any]:
        """Return the persisted form of the slot."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any], max_limit: int = MAX_LIMIT) -> "BookSlot":
        """
        Create a BookSlot from a persisted record.

        Out-of-range values are clamped so a damaged state file cannot
        produce a negative cursor or an empty page.

        Args:
            data: Record with ``file``, ``limit`` and ``line`` keys
            max_limit: Upper bound for the page size

        Returns:
            BookSlot with sanitized fields
        """
        file = str(data.get("file") or "")
        line = int(data.get("line", 0))
        limit = int(data.get("limit", DEFAULT_LIMIT))

        if line < 0:
            logger.warning("Clamping negative line %d for %r to 0", line, file)
            line = 0
        if not 1 <= limit <= max_limit:
            clamped = min(max(limit, 1), max_limit)
            logger.warning(
                "Clamping limit %d for %r to %d", limit, file, clamped
            )
            limit = clamped
        return cls(file=file, line=line, limit=limit)


@dataclass
class Page:
    """Output of a single pager command."""

    index: int
    command: Command
    lines: list[str] = field(default_factory=list)
    slot: BookSlot = field(default_factory=BookSlot)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)
