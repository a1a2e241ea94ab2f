"""Protocol definitions for the external collaborators."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Protocol

from shellsearch.models.hits import SearchHit
from shellsearch.models.metas import IconData
from shellsearch.models.query import SearchQuery


class SearchEngineListener(Protocol):
    """Receives the engine's notifications for one search."""

    def hits_added(self, hits: Sequence[SearchHit]) -> None: ...

    def hits_subtracted(self, uris: Sequence[str]) -> None: ...

    def finished(self) -> None: ...

    def failed(self, message: str) -> None: ...


class SearchEngineProtocol(Protocol):
    """External search engine. One instance serves one search."""

    def subscribe(self, listener: SearchEngineListener) -> None: ...

    def unsubscribe(self, listener: SearchEngineListener) -> None: ...

    def set_query(self, query: SearchQuery) -> None: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...


class SearchEngineFactory(Protocol):
    def __call__(self) -> SearchEngineProtocol: ...


class BookmarkProtocol(Protocol):
    @property
    def uri(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def icon(self) -> str | None: ...


class BookmarkListProtocol(Protocol):
    """Bookmark list with lookup by uri and indexed iteration."""

    def __len__(self) -> int: ...

    def __iter__(self) -> Iterator[BookmarkProtocol]: ...

    def item_at(self, index: int) -> BookmarkProtocol: ...

    def item_with_uri(self, uri: str) -> BookmarkProtocol | None: ...

    def refresh(self) -> bool: ...


class MountProtocol(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def default_location(self) -> str: ...

    @property
    def shadowed(self) -> bool: ...

    def get_volume(self) -> VolumeProtocol | None: ...


class VolumeProtocol(Protocol):
    def get_drive(self) -> DriveProtocol | None: ...

    def get_mount(self) -> MountProtocol | None: ...


class DriveProtocol(Protocol):
    def get_volumes(self) -> list[VolumeProtocol]: ...


class VolumeMonitorProtocol(Protocol):
    """Enumerates drives, volumes and mounts."""

    def get_connected_drives(self) -> list[DriveProtocol]: ...

    def get_volumes(self) -> list[VolumeProtocol]: ...

    def get_mounts(self) -> list[MountProtocol]: ...


class FileInfoProtocol(Protocol):
    """Resolved attributes of one result identifier."""

    @property
    def uri(self) -> str: ...

    @property
    def display_name(self) -> str: ...

    @property
    def icon(self) -> str | None: ...

    @property
    def thumbnail_path(self) -> Path | None: ...

    def generic_icon_pixels(self, size: int) -> IconData: ...


class FileResolverProtocol(Protocol):
    """Bulk attribute fetch for result identifiers.

    Returns info for the identifiers that resolve; identifiers with no
    backing resource are left out.
    """

    async def fetch_attributes(self, uris: Sequence[str]) -> list[FileInfoProtocol]: ...


class LauncherProtocol(Protocol):
    async def open_uri(self, uri: str) -> None: ...
