"""Tests for persisting book slots."""

import json
from pathlib import Path

import pytest

from bookpager import state as state_module
from bookpager.errors import StateStoreFailure
from bookpager.models import BookSlot
from bookpager.state import StateStore


def test_missing_file_yields_empty_slots(tmp_path: Path) -> None:
    """Ensure a fresh install starts with empty slots."""
    store = StateStore(tmp_path / "nope" / "state.json")

    slots = store.load(10)

    assert len(slots) == 10
    assert all(not slot.configured for slot in slots)
    assert all(slot.line == 0 and slot.limit >= 1 for slot in slots)


def test_empty_file_yields_empty_slots(tmp_path: Path) -> None:
    state_file = tmp_path / "state.json"
    state_file.write_text("", encoding="utf-8")

    assert StateStore(state_file).load(3) == [BookSlot()] * 3


def test_save_and_load_preserves_order(tmp_path: Path) -> None:
    state_file = tmp_path / "state.json"
    store = StateStore(state_file)
    slots = [
        BookSlot("/books/a.txt", line=12, limit=4),
        BookSlot(),
        BookSlot("/books/c.txt", line=0, limit=25),
    ]

    store.save(slots)

    assert StateStore(state_file).load(3) == slots
    payload = json.loads(state_file.read_text(encoding="utf-8"))
    assert [book["file"] for book in payload["books"]] == [
        "/books/a.txt",
        "",
        "/books/c.txt",
    ]
    assert set(payload["books"][0]) == {"file", "limit", "line"}


def test_load_pads_and_truncates(tmp_path: Path) -> None:
    state_file = tmp_path / "state.json"
    store = StateStore(state_file)
    store.save([BookSlot(f"/books/{i}.txt", line=i, limit=3) for i in range(4)])

    assert [s.file for s in store.load(2)] == ["/books/0.txt", "/books/1.txt"]
    padded = store.load(6)
    assert len(padded) == 6
    assert padded[5] == BookSlot()


def test_load_clamps_degenerate_values(tmp_path: Path) -> None:
    """Damaged records must not produce a negative cursor or empty pages."""
    state_file = tmp_path / "state.json"
    state_file.write_text(
        json.dumps(
            {
                "books": [
                    {"file": "a.txt", "limit": 0, "line": -5},
                    {"file": "b.txt", "limit": 1000, "line": 3},
                    {"file": "c.txt", "limit": "many", "line": 3},
                ]
            }
        ),
        encoding="utf-8",
    )

    slots = StateStore(state_file, max_limit=50).load(3)

    assert slots[0] == BookSlot("a.txt", line=0, limit=1)
    assert slots[1] == BookSlot("b.txt", line=3, limit=50)
    assert not slots[2].configured


def test_recovery_from_corrupt_file(tmp_path: Path) -> None:
    """Recover state from backup when JSON is corrupted."""
    state_file = tmp_path / "state.json"
    backup_file = tmp_path / "state.json.bak"
    store = StateStore(state_file)
    store.save([BookSlot("/books/a.txt", line=15, limit=5)])

    backup_file.write_text(state_file.read_text(encoding="utf-8"), encoding="utf-8")
    state_file.write_text("{not json", encoding="utf-8")

    recovered = StateStore(state_file).load(1)
    assert recovered[0].line == 15


def test_corrupt_file_without_backup_starts_empty(tmp_path: Path) -> None:
    state_file = tmp_path / "state.json"
    state_file.write_text('{"bookmarks": {}}', encoding="utf-8")

    assert StateStore(state_file).load(2) == [BookSlot(), BookSlot()]


def test_save_creates_backup(tmp_path: Path) -> None:
    """Ensure save writes valid JSON and keeps the previous state."""
    state_file = tmp_path / "state.json"
    store = StateStore(state_file)

    store.save([BookSlot("/books/a.txt", line=0, limit=5)])
    store.save([BookSlot("/books/a.txt", line=5, limit=5)])

    backup_payload = json.loads(
        (tmp_path / "state.json.bak").read_text(encoding="utf-8")
    )
    assert backup_payload["books"][0]["line"] == 0
    assert not list(tmp_path.glob("*.tmp"))


def test_save_failure_is_reported(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    store = StateStore(blocker / "state.json")

    with pytest.raises(StateStoreFailure):
        store.save([BookSlot()])


def test_interrupted_save_keeps_previous_state(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A save that fails on the final rename must not lose earlier progress."""
    state_file = tmp_path / "state.json"
    store = StateStore(state_file)
    store.save([BookSlot("/books/a.txt", line=40, limit=5)])

    def failing_replace(src: object, dst: object) -> None:
        raise OSError("simulated crash")

    monkeypatch.setattr(state_module.os, "replace", failing_replace)
    with pytest.raises(StateStoreFailure):
        store.save([BookSlot("/books/a.txt", line=45, limit=5)])
    monkeypatch.undo()

    assert state_file.exists()
    assert StateStore(state_file).load(1)[0] == BookSlot("/books/a.txt", 40, 5)
    assert not list(tmp_path.glob("*.tmp"))


def test_missing_state_file_falls_back_to_backup(tmp_path: Path) -> None:
    state_file = tmp_path / "state.json"
    store = StateStore(state_file)
    store.save([BookSlot("/books/a.txt", line=10, limit=5)])
    store.save([BookSlot("/books/a.txt", line=15, limit=5)])

    state_file.unlink()

    assert StateStore(state_file).load(1)[0].line == 10
