"""Shared fixtures for shellsearch tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from fakes import FakeEngine, FakeFileInfo, FakeResolver

from shellsearch.config import Config
from shellsearch.data.bookmarks import Bookmark, BookmarkList
from shellsearch.data.volumes import VolumeMonitor
from shellsearch.services.lifetime import ServiceLifetime
from shellsearch.services.metas_cache import MetadataCache
from shellsearch.services.metas_service import ResultMetasService
from shellsearch.services.session_manager import SessionManager

SEARCH_ROOT = Path("/home/tester")


@pytest.fixture
def engines() -> list[FakeEngine]:
    """Every engine created by the manager fixture, in creation order."""
    return []


@pytest.fixture
def engine_factory(engines: list[FakeEngine]) -> Callable[[], FakeEngine]:
    def factory() -> FakeEngine:
        engine = FakeEngine()
        engines.append(engine)
        return engine

    return factory


@pytest.fixture
def bookmarks() -> BookmarkList:
    return BookmarkList(
        [
            Bookmark(uri="file:///home/tester/Documents", name="My Documents", icon="folder"),
            Bookmark(uri="file:///home/tester/Music", name="Musique", icon="folder-music"),
            Bookmark(uri="sftp://server/srv", name="Server", icon="folder-remote"),
        ]
    )


@pytest.fixture
def volumes() -> VolumeMonitor:
    monitor = VolumeMonitor()
    drive = monitor.add_drive("USB Drive")
    usb_volume = monitor.add_volume("Backup Disk", drive=drive)
    monitor.add_mount("Backup Disk", "file:///media/tester/backup", volume=usb_volume)
    loose_volume = monitor.add_volume("Network Backup")
    monitor.add_mount("Network Backup", "smb://nas/backup", volume=loose_volume)
    monitor.add_mount("Backup Share", "ftp://host/backup")
    monitor.add_mount("Hidden Backup", "file:///run/hidden", shadowed=True)
    return monitor


@pytest.fixture
def lifetime() -> ServiceLifetime:
    return ServiceLifetime(inactivity_timeout=60.0)


@pytest.fixture
def manager(
    engine_factory: Callable[[], FakeEngine],
    bookmarks: BookmarkList,
    volumes: VolumeMonitor,
    lifetime: ServiceLifetime,
) -> SessionManager:
    return SessionManager(
        engine_factory,
        bookmarks,
        volumes,
        lifetime,
        search_location=SEARCH_ROOT,
    )


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver(
        [
            FakeFileInfo("file:///home/tester/a.txt", "a.txt", icon="text-plain"),
            FakeFileInfo("file:///home/tester/b.png", "b.png", icon="image-png"),
            FakeFileInfo("file:///home/tester/Documents", "Documents", icon="folder"),
            FakeFileInfo(
                "file:///home/tester/photo.jpg",
                "photo.jpg",
                icon="image-jpeg",
                thumbnail_path=Path("/home/tester/.cache/thumbnails/large/abc.png"),
            ),
            FakeFileInfo("trash:///gone", "gone"),
        ]
    )


@pytest.fixture
def metas_service(resolver: FakeResolver, bookmarks: BookmarkList) -> ResultMetasService:
    return ResultMetasService(resolver, bookmarks, MetadataCache(), icon_size=16)


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Config pointing at temporary paths."""
    return Config(
        socket_path=tmp_path / "provider.sock",
        search_location=tmp_path,
        bookmarks_path=tmp_path / "bookmarks",
        thumbnails_dir=tmp_path / "thumbnails",
        mountinfo_path=tmp_path / "mountinfo",
        inactivity_timeout=60.0,
    )
