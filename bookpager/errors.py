"""Exceptions raised by bookpager."""


class BookPagerError(Exception):
    """Base class for all bookpager errors."""


class InvalidIndex(BookPagerError, ValueError):
    """Book index is malformed or outside the configured slots."""


class ResourceUnavailable(BookPagerError):
    """Backing text of a book could not be opened or read."""


class StateStoreFailure(BookPagerError):
    """Persisting the reading state failed; the change was not committed."""


class UnknownCommand(BookPagerError):
    """Request named a command the pager does not know."""
