"""Read-only bookmark list backed by the GTK bookmarks file."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlsplit

logger = logging.getLogger(__name__)

_LOCAL_ICON = "folder"
_REMOTE_ICON = "folder-remote"


@dataclass(frozen=True, slots=True)
class Bookmark:
    """A bookmarked location."""

    uri: str
    name: str
    icon: str | None = None

    @classmethod
    def from_line(cls, line: str) -> Bookmark | None:
        """Parse a ``<uri> [label]`` bookmarks line."""
        raw = line.strip()
        if not raw:
            return None
        uri, _, label = raw.partition(" ")
        parts = urlsplit(uri)
        if not parts.scheme:
            return None
        name = label.strip() or _name_from_uri(uri)
        icon = _LOCAL_ICON if parts.scheme == "file" else _REMOTE_ICON
        return cls(uri=uri, name=name, icon=icon)


class BookmarkList:
    """Ordered bookmarks with lookup by uri.

    A list loaded from a file remembers the file's modification time;
    ``refresh()`` re-reads it when that changes.
    """

    def __init__(self, bookmarks: list[Bookmark] | None = None, path: Path | None = None) -> None:
        self._path = path
        self._mtime_ns = _mtime_ns(path) if path is not None else None
        self._set_items(bookmarks or [])

    @classmethod
    def load(cls, path: Path) -> BookmarkList:
        """Load bookmarks from ``path``; a missing or unreadable file yields an empty list."""
        return cls(_read_bookmarks(path), path=path)

    def refresh(self) -> bool:
        """Reload from the backing file if it changed. Returns True when reloaded."""
        if self._path is None:
            return False
        mtime_ns = _mtime_ns(self._path)
        if mtime_ns == self._mtime_ns:
            return False
        logger.debug("Bookmarks file changed, reloading %s", self._path)
        self._mtime_ns = mtime_ns
        self._set_items(_read_bookmarks(self._path))
        return True

    def _set_items(self, bookmarks: list[Bookmark]) -> None:
        self._items: list[Bookmark] = list(bookmarks)
        self._by_uri: dict[str, Bookmark] = {}
        for bookmark in self._items:
            self._by_uri.setdefault(bookmark.uri, bookmark)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Bookmark]:
        return iter(self._items)

    def item_at(self, index: int) -> Bookmark:
        return self._items[index]

    def item_with_uri(self, uri: str) -> Bookmark | None:
        return self._by_uri.get(uri)


def _name_from_uri(uri: str) -> str:
    parts = urlsplit(uri)
    name = PurePosixPath(unquote(parts.path)).name
    if name:
        return name
    return parts.netloc or uri


def _mtime_ns(path: Path) -> int | None:
    try:
        return path.stat().st_mtime_ns
    except OSError:
        return None


def _read_bookmarks(path: Path) -> list[Bookmark]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info("Bookmarks file not found: %s", path)
        return []
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Failed to read bookmarks %s: %s", path, exc)
        return []
    return [b for b in (Bookmark.from_line(line) for line in text.splitlines()) if b]
