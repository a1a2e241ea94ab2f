"""Service container with DI wiring."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import TYPE_CHECKING

from shellsearch.data.bookmarks import BookmarkList
from shellsearch.data.engine import LocateSearchEngine
from shellsearch.data.files import LocalFileResolver
from shellsearch.data.launcher import DesktopLauncher
from shellsearch.data.volumes import VolumeMonitor
from shellsearch.services.activation_service import ActivationService
from shellsearch.services.lifetime import ServiceLifetime
from shellsearch.services.metas_cache import MetadataCache
from shellsearch.services.metas_service import ResultMetasService
from shellsearch.services.session_manager import SessionManager

if TYPE_CHECKING:
    from shellsearch.config import Config


@dataclass
class ServiceContainer:
    """Holds all services. Built once at startup."""

    lifetime: ServiceLifetime
    session_manager: SessionManager
    metas_service: ResultMetasService
    activation_service: ActivationService

    @classmethod
    async def create(cls, config: Config) -> ServiceContainer:
        """Async factory that wires all dependencies."""
        lifetime = ServiceLifetime(config.inactivity_timeout, persist=config.persist)
        bookmarks = BookmarkList.load(config.bookmarks_path)
        volumes = VolumeMonitor.from_mountinfo(config.mountinfo_path)

        engine_factory = functools.partial(
            LocateSearchEngine,
            config.locate_command,
            max_results=config.max_results,
        )
        session_manager = SessionManager(
            engine_factory,
            bookmarks,
            volumes,
            lifetime,
            search_location=config.search_location,
        )
        metas_service = ResultMetasService(
            LocalFileResolver(config.thumbnails_dir),
            bookmarks,
            MetadataCache(),
            icon_size=config.icon_size,
        )
        activation_service = ActivationService(DesktopLauncher())

        return cls(
            lifetime=lifetime,
            session_manager=session_manager,
            metas_service=metas_service,
            activation_service=activation_service,
        )

    async def close(self) -> None:
        """Cancel outstanding work."""
        self.session_manager.shutdown()
