"""Session manager: at most one search in flight, newest wins."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from shellsearch.models.query import SearchQuery
from shellsearch.services.session import SearchRequest, SearchSession

if TYPE_CHECKING:
    from shellsearch.data.protocols import (
        BookmarkListProtocol,
        SearchEngineFactory,
        VolumeMonitorProtocol,
    )
    from shellsearch.services.lifetime import ServiceLifetime

logger = logging.getLogger(__name__)


class SessionManager:
    """Owns the current search session, its cancellation and its keep-alive hold."""

    def __init__(
        self,
        engine_factory: SearchEngineFactory,
        bookmarks: BookmarkListProtocol,
        volumes: VolumeMonitorProtocol,
        lifetime: ServiceLifetime,
        search_location: Path | str = "",
    ) -> None:
        self._engine_factory = engine_factory
        self._bookmarks = bookmarks
        self._volumes = volumes
        self._lifetime = lifetime
        self._search_location = search_location
        self._current: SearchSession | None = None
        self._generation = 0

    @property
    def current(self) -> SearchSession | None:
        return self._current

    @property
    def generation(self) -> int:
        return self._generation

    def start_search(self, request: SearchRequest) -> None:
        """Supersede any running search and start one for ``request``.

        The reply is delivered through ``request`` when the session ends.
        """
        self.cancel_current()

        query = SearchQuery.from_terms(request.terms, location=self._search_location)
        if query.is_single_character():
            logger.debug("Skipping single-character search %r", query.text)
            request.reply([])
            return

        self._generation += 1
        session = SearchSession(
            request,
            query,
            self._engine_factory(),
            generation=self._generation,
            on_complete=self._detach,
        )
        self._current = session
        self._lifetime.hold()

        self._bookmarks.refresh()
        session.add_quick_matches(self._bookmarks, self._volumes)
        session.start()

    async def search(self, terms: Sequence[str]) -> list[str]:
        """Start a search and wait for its reply."""
        request = SearchRequest(tuple(terms))
        self.start_search(request)
        return await request.result()

    async def subsearch(self, previous_results: Sequence[str], terms: Sequence[str]) -> list[str]:
        """Refine a previous result set. The engine re-evaluates the full query."""
        logger.debug("Sub-search over %d previous results", len(previous_results))
        return await self.search(terms)

    def cancel_current(self) -> None:
        """Cancel the running search, if any. Its caller gets an empty list."""
        if self._current is not None:
            self._current.cancel()

    def shutdown(self) -> None:
        self.cancel_current()

    def _detach(self, session: SearchSession) -> None:
        """Free a session that reached a terminal state, before its reply goes out."""
        if session is not self._current or session.generation != self._generation:
            logger.debug("Stale completion for generation %d ignored", session.generation)
            return
        self._current = None
        self._lifetime.release()
