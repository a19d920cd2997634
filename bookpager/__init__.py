"""
bookpager - Serve plaintext books page by page.

A small server that keeps the reading position and page size of a fixed
set of books, so a thin client can page through them with next, prev,
more, less and list requests.
"""

try:
    from ._version import version as __version__
except ImportError:
    __version__ = "0.0.0+unknown"

from .errors import (
    BookPagerError,
    InvalidIndex,
    ResourceUnavailable,
    StateStoreFailure,
    UnknownCommand,
)
from .models import BookSlot, Command, Page
from .pager import Pager
from .registry import Registry
from .state import StateStore

__all__ = [
    "BookPagerError",
    "BookSlot",
    "Command",
    "InvalidIndex",
    "Page",
    "Pager",
    "Registry",
    "ResourceUnavailable",
    "StateStore",
    "StateStoreFailure",
    "UnknownCommand",
]
