"""Bulk attribute resolver for local ``file://`` result identifiers."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import mimetypes
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlsplit

from shellsearch.models.metas import IconData, themed_icon_string

logger = logging.getLogger(__name__)

_THUMBNAIL_FLAVORS = ("x-large", "large", "normal")
_FOLDER_ICON = ("folder",)
_FALLBACK_ICON = ("application-octet-stream", "text-x-generic")


@dataclass(frozen=True, slots=True)
class FileInfo:
    """Resolved display attributes for one identifier."""

    uri: str
    display_name: str
    icon: str | None = None
    thumbnail_path: Path | None = None

    def generic_icon_pixels(self, size: int) -> IconData:
        return IconData.blank(size)


class LocalFileResolver:
    """Resolves ``file://`` identifiers by inspecting the filesystem off the event loop."""

    def __init__(self, thumbnails_dir: Path) -> None:
        self._thumbnails_dir = thumbnails_dir

    async def fetch_attributes(self, uris: Sequence[str]) -> list[FileInfo]:
        return await asyncio.to_thread(self._fetch_sync, list(uris))

    def _fetch_sync(self, uris: list[str]) -> list[FileInfo]:
        infos: list[FileInfo] = []
        for uri in uris:
            info = self._resolve_one(uri)
            if info is None:
                logger.debug("No resource for %s", uri)
                continue
            infos.append(info)
        return infos

    def _resolve_one(self, uri: str) -> FileInfo | None:
        parts = urlsplit(uri)
        if parts.scheme != "file":
            return None
        path = Path(unquote(parts.path))
        try:
            is_dir = path.is_dir()
            exists = is_dir or path.exists()
        except OSError:
            return None
        if not exists:
            return None
        return FileInfo(
            uri=uri,
            display_name=path.name or str(path),
            icon=themed_icon_string(*content_type_icon_names(path, is_dir=is_dir)),
            thumbnail_path=self.thumbnail_path(uri),
        )

    def thumbnail_path(self, uri: str) -> Path | None:
        """Existing freedesktop thumbnail for ``uri``, largest flavor first."""
        digest = hashlib.md5(uri.encode("utf-8")).hexdigest()  # noqa: S324
        for flavor in _THUMBNAIL_FLAVORS:
            candidate = self._thumbnails_dir / flavor / f"{digest}.png"
            if candidate.is_file():
                return candidate
        return None


def content_type_icon_names(path: Path, *, is_dir: bool = False) -> tuple[str, ...]:
    """Icon names for a path's content type, most specific first."""
    if is_dir:
        return _FOLDER_ICON
    mime, _ = mimetypes.guess_type(path.name)
    if not mime:
        return _FALLBACK_ICON
    major, _, _ = mime.partition("/")
    return (mime.replace("/", "-"), f"{major}-x-generic")
