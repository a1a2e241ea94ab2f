"""Search session: one engine run plus quick matches, ranked on completion."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, TypeAlias

from shellsearch.models.hits import SearchHit

if TYPE_CHECKING:
    from shellsearch.data.protocols import (
        BookmarkListProtocol,
        MountProtocol,
        SearchEngineProtocol,
        VolumeMonitorProtocol,
    )
    from shellsearch.models.query import SearchQuery

logger = logging.getLogger(__name__)

CompletionCallback: TypeAlias = "Callable[[SearchSession], None]"


class SessionState(StrEnum):
    CREATED = "created"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ERRORED = "errored"


TERMINAL_STATES = frozenset({SessionState.COMPLETED, SessionState.CANCELLED, SessionState.ERRORED})


def _new_future() -> asyncio.Future[list[str]]:
    return asyncio.get_running_loop().create_future()


@dataclass(slots=True)
class SearchRequest:
    """A pending "get results" call and the handle its reply goes through."""

    terms: tuple[str, ...]
    reply_future: asyncio.Future[list[str]] = field(default_factory=_new_future)

    @property
    def replied(self) -> bool:
        return self.reply_future.done()

    def reply(self, uris: Sequence[str]) -> None:
        """Deliver the result list. Later calls are ignored."""
        if self.reply_future.done():
            if not self.reply_future.cancelled():
                logger.warning("Dropping duplicate reply for terms %r", self.terms)
            return
        self.reply_future.set_result(list(uris))

    async def result(self) -> list[str]:
        return await self.reply_future


class SearchSession:
    """Bookkeeping for one in-flight search.

    The session subscribes to its own engine and is the only subscriber.
    Engine notifications that arrive after the session reached a terminal
    state are ignored.
    """

    def __init__(
        self,
        request: SearchRequest,
        query: SearchQuery,
        engine: SearchEngineProtocol,
        *,
        generation: int,
        on_complete: CompletionCallback,
    ) -> None:
        self.request = request
        self.query = query
        self.generation = generation
        self.state = SessionState.CREATED
        self.start_time = time.monotonic()
        self.hits: dict[str, SearchHit] = {}
        self._engine = engine
        self._on_complete = on_complete

    @property
    def active(self) -> bool:
        return self.state not in TERMINAL_STATES

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.start_time) * 1000)

    def add_quick_matches(
        self,
        bookmarks: BookmarkListProtocol,
        volumes: VolumeMonitorProtocol,
    ) -> None:
        """Match bookmarks, then mounts, synchronously against the query."""
        for index in range(len(bookmarks)):
            bookmark = bookmarks.item_at(index)
            if self.query.matches(bookmark.name):
                self._upsert(SearchHit(uri=bookmark.uri))

        for mount in _mounts_to_check(volumes):
            if self.query.matches(mount.name):
                self._upsert(SearchHit(uri=mount.default_location))

    def start(self) -> None:
        """Hand the query to the engine. Quick matches must already be in ``hits``."""
        if self.state is not SessionState.CREATED:
            raise RuntimeError(f"Cannot start a session in state {self.state}")
        self.state = SessionState.RUNNING
        self._engine.subscribe(self)
        logger.debug("*** Search engine search started (generation %d)", self.generation)
        try:
            self._engine.set_query(self.query)
            self._engine.start()
        except Exception as exc:
            logger.exception("Search engine failed to start")
            self.failed(str(exc))

    def cancel(self) -> None:
        """Stop the engine and reply with an empty list. No-op once terminal."""
        if not self.active:
            return
        logger.debug("*** Search cancelled (generation %d)", self.generation)
        self._engine.stop()
        self._finish(SessionState.CANCELLED, [])

    # Engine notifications

    def hits_added(self, hits: Sequence[SearchHit]) -> None:
        if not self._accepting("hits-added"):
            return
        logger.debug("*** Search engine hits added")
        for hit in hits:
            logger.debug("    %s", hit.uri)
            self._upsert(hit)

    def hits_subtracted(self, uris: Sequence[str]) -> None:
        if not self._accepting("hits-subtracted"):
            return
        logger.debug("*** Search engine hits subtracted")
        for uri in uris:
            logger.debug("    %s", uri)
            self.hits.pop(uri, None)

    def finished(self) -> None:
        if not self._accepting("finished"):
            return
        logger.debug("*** Search engine search finished - time elapsed %dms", self.elapsed_ms())
        self._finish(SessionState.COMPLETED, self.ranked_uris())

    def failed(self, message: str) -> None:
        if not self._accepting("error"):
            return
        logger.debug("*** Search engine search error: %s", message)
        self._finish(SessionState.ERRORED, [])

    def ranked_uris(self) -> list[str]:
        """Hit identifiers by descending relevance; ties keep arrival order."""
        ranked = sorted(self.hits.values(), key=lambda hit: hit.relevance, reverse=True)
        return [hit.uri for hit in ranked]

    def _upsert(self, hit: SearchHit) -> None:
        hit.compute_scores(self.query)
        self.hits[hit.uri] = hit

    def _accepting(self, event: str) -> bool:
        if self.state is SessionState.RUNNING:
            return True
        logger.debug("Ignoring late %s event for generation %d", event, self.generation)
        return False

    def _finish(self, state: SessionState, uris: list[str]) -> None:
        self.state = state
        self._engine.unsubscribe(self)
        self._on_complete(self)
        self.request.reply(uris)


def _mounts_to_check(volumes: VolumeMonitorProtocol) -> list[MountProtocol]:
    """Mounts of drive volumes, then of drive-less volumes, then unshadowed volume-less mounts."""
    mounts: list[MountProtocol] = []

    for drive in volumes.get_connected_drives():
        for volume in drive.get_volumes():
            mount = volume.get_mount()
            if mount is not None:
                mounts.append(mount)

    for volume in volumes.get_volumes():
        if volume.get_drive() is None:
            mount = volume.get_mount()
            if mount is not None:
                mounts.append(mount)

    for mount in volumes.get_mounts():
        if mount.shadowed:
            continue
        if mount.get_volume() is None:
            mounts.append(mount)

    return mounts
