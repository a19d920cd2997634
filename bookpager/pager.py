"""
Pagination engine.

Each slot keeps a cursor (``line``) that points just past the page last
served by ``next``. The commands are a table of pure transitions over a
slot; the engine reads the page, persists the new slot and returns both.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

from .errors import UnknownCommand
from .linestore import book_title, read_page
from .models import MAX_LIMIT, BookSlot, Command, Page
from .registry import Registry

logger = logging.getLogger(__name__)

PageReader = Callable[[str, int, int], list[str]]
TitleResolver = Callable[[str], str]


@dataclass(frozen=True)
class Transition:
    """Where to read a page from and what the slot becomes afterwards."""

    start: int
    line: int
    limit: int


def _next(slot: BookSlot, max_limit: int) -> Transition:
    return Transition(start=slot.line, line=slot.line + slot.limit, limit=slot.limit)


def _prev(slot: BookSlot, max_limit: int) -> Transition:
    # line is past the page on screen: back one width to undo it, one more
    # to reach the previous page.
    line = max(0, slot.line - 2 * slot.limit)
    return Transition(start=line, line=line, limit=slot.limit)


def _more(slot: BookSlot, max_limit: int) -> Transition:
    limit = min(slot.limit + 1, max_limit)
    return Transition(start=slot.line, line=slot.line, limit=limit)


def _less(slot: BookSlot, max_limit: int) -> Transition:
    limit = max(slot.limit - 1, 1)
    return Transition(start=slot.line, line=slot.line, limit=limit)


TRANSITIONS: dict[Command, Callable[[BookSlot, int], Transition]] = {
    Command.NEXT: _next,
    Command.PREV: _prev,
    Command.MORE: _more,
    Command.LESS: _less,
}


def parse_command(name: str) -> Command:
    """Look up a command by name."""
    try:
        return Command(name.strip().lower())
    except ValueError:
        raise UnknownCommand(f"Unknown command: {name!r}") from None


class Pager:
    """Applies navigation commands to the slots of a registry."""

    def __init__(
        self,
        registry: Registry,
        max_limit: Optional[int] = None,
        reader: PageReader = read_page,
        titles: TitleResolver = book_title,
    ) -> None:
        self.registry = registry
        self.max_limit = registry.store.max_limit if max_limit is None else max_limit
        if self.max_limit < 1:
            raise ValueError(f"max_limit must be at least 1, got {self.max_limit}")
        self.reader = reader
        self.titles = titles

    def apply(self, index: int, command: Command) -> Page:
        """
        Run one command against a slot.

        The page is read before anything is written, so a read failure
        leaves the slot untouched. The slot is only written when it changes.

        Raises:
            InvalidIndex: If index is out of range
            ResourceUnavailable: If the book cannot be read
            StateStoreFailure: If the new state could not be persisted
        """
        if command is Command.LIST:
            return Page(
                index=index,
                command=command,
                lines=self.listing(index),
                slot=self.registry.get(index),
            )

        with self.registry.locked(index) as slot:
            step = TRANSITIONS[command](slot, self.max_limit)
            lines = self.reader(slot.file, step.start, max(step.limit, 1))
            if (step.line, step.limit) != (slot.line, slot.limit):
                slot = self.registry.update(index, step.line, step.limit)
            logger.info(
                "%s on book %d: %d line(s) from %d, cursor %d, limit %d",
                command.value,
                index,
                len(lines),
                step.start,
                slot.line,
                slot.limit,
            )
        return Page(index=index, command=command, lines=lines, slot=slot)

    def listing(self, index: int) -> list[str]:
        """Render all slots, marking the one at ``index``."""
        self.registry.check_index(index)
        width = len(str(len(self.registry) - 1))
        lines = []
        for i, slot in enumerate(self.registry.slots()):
            marker = ">" if i == index else " "
            lines.append(f"{marker} {i:{width}d}: {self.titles(slot.file)}")
        return lines
