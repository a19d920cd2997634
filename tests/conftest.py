"""Shared fixtures for bookpager tests."""

from pathlib import Path

import pytest

from bookpager.pager import Pager
from bookpager.registry import Registry
from bookpager.state import StateStore


@pytest.fixture
def book_file(tmp_path: Path) -> Path:
    """A five line book: A, B, C, D, E."""
    path = tmp_path / "letters.txt"
    path.write_text("A\nB\nC\nD\nE\n", encoding="utf-8")
    return path


@pytest.fixture
def state_file(tmp_path: Path) -> Path:
    return tmp_path / "state" / "state.json"


@pytest.fixture
def store(state_file: Path) -> StateStore:
    return StateStore(state_file, max_limit=5)


@pytest.fixture
def registry(store: StateStore, book_file: Path) -> Registry:
    """Ten slots with the letters book in slot 0 at limit 2."""
    registry = Registry.load(store, size=10)
    registry.configure(0, str(book_file), limit=2)
    return registry


@pytest.fixture
def pager(registry: Registry) -> Pager:
    return Pager(registry)
