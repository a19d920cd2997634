"""
Line-oriented read access to book files.

Plain text files are streamed line by line. EPUB files are flattened to
text in spine order so they can be paged the same way.
"""

import logging
from collections.abc import Iterator
from functools import lru_cache
from itertools import islice
from pathlib import Path

import ebooklib  # type: ignore[import-untyped]
from bs4 import BeautifulSoup  # type: ignore[import-untyped]
from ebooklib import epub

from .errors import ResourceUnavailable

logger = logging.getLogger(__name__)

EPUB_SUFFIXES = {".epub"}
EMPTY_SLOT_TITLE = "(empty)"
EPUB_CACHE_SIZE = 16


def _is_epub(path: Path) -> bool:
    return path.suffix.lower() in EPUB_SUFFIXES


def _read_epub(path: Path) -> epub.EpubBook:
    try:
        return epub.read_epub(str(path))
    except Exception as e:
        raise ResourceUnavailable(f"Failed to read EPUB file {path}: {e}") from e


def _html_to_lines(html: str) -> list[str]:
    """Convert one spine document to text lines."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(["p", "div", "h1", "h2", "h3", "h4", "h5", "h6"]):
        tag.append("\n")
    for tag in soup.find_all(["br"]):
        tag.replace_with("\n")
    for tag in soup.find_all(["sup", "sub", "script", "style"]):
        tag.decompose()
    return [line.strip() for line in soup.get_text().splitlines()]


@lru_cache(maxsize=EPUB_CACHE_SIZE)
def _parse_epub(file: str, mtime_ns: int, size: int) -> tuple[str, tuple[str, ...]]:
    """
    Parse an EPUB once per file version.

    ``mtime_ns`` and ``size`` are part of the cache key so that a replaced
    book is parsed again. Failures are not cached.

    Returns:
        Tuple of (Dublin Core title or "", flattened lines)
    """
    path = Path(file)
    book = _read_epub(path)
    lines: list[str] = []
    for item_id, _linear in book.spine:
        item = book.get_item_with_id(item_id)
        if item is None or item.get_type() != ebooklib.ITEM_DOCUMENT:
            logger.debug("Skipping spine item %r in %s", item_id, path.name)
            continue
        html = item.get_content().decode("utf-8", errors="ignore")
        for line in _html_to_lines(html):
            if line or (lines and lines[-1]):
                lines.append(line)
    while lines and not lines[-1]:
        lines.pop()
    titles = book.get_metadata("DC", "title")
    title = str(titles[0][0]).strip() if titles and titles[0][0] else ""
    logger.info("Extracted %d lines from %s", len(lines), path.name)
    return title, tuple(lines)


def _load_epub(path: Path) -> tuple[str, tuple[str, ...]]:
    try:
        info = path.stat()
    except OSError as e:
        raise ResourceUnavailable(f"Cannot read {path}: {e}") from e
    return _parse_epub(str(path), info.st_mtime_ns, info.st_size)


def epub_lines(path: Path) -> list[str]:
    """
    Extract the text of an EPUB as a list of lines.

    Documents are visited in spine order. Runs of blank lines collapse to a
    single blank line and leading/trailing blanks are dropped. The parsed
    text is cached until the file changes on disk.

    Args:
        path: Path to the EPUB file

    Returns:
        List of text lines

    Raises:
        ResourceUnavailable: If the file cannot be parsed as an EPUB
    """
    _title, lines = _load_epub(path)
    return list(lines)


def _iter_text_file(path: Path) -> Iterator[str]:
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            for line in f:
                yield line.rstrip("\r\n")
    except OSError as e:
        raise ResourceUnavailable(f"Cannot read {path}: {e}") from e


def read_lines(file: str, start: int = 0) -> Iterator[str]:
    """
    Yield the lines of a book starting at a 0-based line number.

    Each call opens the book afresh. A start beyond the end of the book
    yields nothing; a negative start is treated as 0.

    Args:
        file: Path of the book file
        start: First line to yield

    Yields:
        Lines without their trailing newline

    Raises:
        ResourceUnavailable: If the book cannot be opened or read
    """
    if not file:
        raise ResourceUnavailable("No book configured for this slot")
    path = Path(file)
    start = max(start, 0)
    if _is_epub(path):
        if not path.is_file():
            raise ResourceUnavailable(f"File not found: {file}")
        yield from epub_lines(path)[start:]
        return
    yield from islice(_iter_text_file(path), start, None)


def read_page(file: str, start: int, limit: int) -> list[str]:
    """Return at most ``limit`` lines of a book starting at ``start``."""
    limit = max(limit, 1)
    return list(islice(read_lines(file, start), limit))


def book_title(file: str) -> str:
    """
    Return a display title for a book.

    EPUB files use their Dublin Core title when one is set. Everything else,
    including unreadable EPUBs, falls back to the file stem.
    """
    if not file:
        return EMPTY_SLOT_TITLE
    path = Path(file)
    if _is_epub(path) and path.is_file():
        try:
            title, _lines = _load_epub(path)
        except ResourceUnavailable as e:
            logger.warning("Using file name as title: %s", e)
        else:
            if title:
                return title
    return path.stem
