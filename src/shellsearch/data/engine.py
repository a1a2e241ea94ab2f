"""Search engine adapter driving an external ``locate``-style command."""

from __future__ import annotations

import asyncio
import logging
import os
import unicodedata
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlsplit

from shellsearch.models.hits import SearchHit

if TYPE_CHECKING:
    from shellsearch.data.protocols import SearchEngineListener
    from shellsearch.models.query import SearchQuery

logger = logging.getLogger(__name__)

_BATCH_SIZE = 100
# locate exits with 1 when nothing matched
_OK_RETURN_CODES = (0, 1)


class LocateSearchEngine:
    """Runs one search through an external indexer command.

    Matches are streamed back as ``hits_added`` batches; ``finished`` or
    ``failed`` is posted exactly once unless the search is stopped first.
    """

    def __init__(
        self,
        command: Sequence[str] = ("locate",),
        *,
        max_results: int = 500,
        batch_size: int = _BATCH_SIZE,
    ) -> None:
        self._command = tuple(command)
        self._max_results = max_results
        self._batch_size = batch_size
        self._listeners: list[SearchEngineListener] = []
        self._query: SearchQuery | None = None
        self._task: asyncio.Task[None] | None = None
        self._process: asyncio.subprocess.Process | None = None

    def subscribe(self, listener: SearchEngineListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: SearchEngineListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def set_query(self, query: SearchQuery) -> None:
        self._query = query

    def start(self) -> None:
        if self._query is None:
            raise RuntimeError("set_query() must be called before start()")
        if self._task is not None:
            raise RuntimeError("Search already started")
        self._task = asyncio.get_running_loop().create_task(self._run(self._query))

    def stop(self) -> None:
        self._kill_process()
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def build_argv(self, query: SearchQuery) -> list[str]:
        """Command line for ``query``: all terms must match, case-insensitively.

        Terms come from the raw query text in composed form, since file names
        on disk are stored composed and the command does its own case folding.
        """
        terms = unicodedata.normalize("NFC", query.text).split()
        return [
            *self._command,
            "--ignore-case",
            "--all",
            "--limit",
            str(self._max_results),
            "--",
            *terms,
        ]

    async def _run(self, query: SearchQuery) -> None:
        argv = self.build_argv(query)
        try:
            self._process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            self._emit_failed(f"Unable to run {argv[0]}: {exc}")
            return

        process = self._process
        assert process.stdout is not None
        assert process.stderr is not None
        stderr_task = asyncio.create_task(process.stderr.read())
        try:
            await self._stream_hits(process.stdout, _location_path(query.location))
            stderr = await stderr_task
            returncode = await process.wait()
        except Exception as exc:
            logger.exception("Search engine run failed")
            self._kill_process()
            self._emit_failed(f"{argv[0]} failed: {exc}")
            return
        finally:
            stderr_task.cancel()

        if returncode not in _OK_RETURN_CODES:
            message = stderr.decode("utf-8", errors="replace").strip()
            self._emit_failed(f"{argv[0]} exited with {returncode}: {message}")
            return
        for listener in list(self._listeners):
            listener.finished()

    def _kill_process(self) -> None:
        if self._process is not None and self._process.returncode is None:
            try:
                self._process.kill()
            except ProcessLookupError:
                pass

    async def _stream_hits(self, stdout: asyncio.StreamReader, root: str | None) -> None:
        batch: list[str] = []
        async for raw in stdout:
            line = raw.decode("utf-8", errors="surrogateescape").rstrip("\n")
            if not line or (root is not None and not _is_under(line, root)):
                continue
            batch.append(line)
            if len(batch) >= self._batch_size:
                await self._emit_batch(batch)
                batch = []
        if batch:
            await self._emit_batch(batch)

    async def _emit_batch(self, paths: list[str]) -> None:
        hits = await asyncio.to_thread(_hits_for_paths, paths)
        if not hits:
            return
        for listener in list(self._listeners):
            listener.hits_added(hits)

    def _emit_failed(self, message: str) -> None:
        logger.debug("Search engine error: %s", message)
        for listener in list(self._listeners):
            listener.failed(message)


def _location_path(location: str) -> str | None:
    parts = urlsplit(location)
    if parts.scheme != "file":
        return None
    return unquote(parts.path).rstrip("/") or "/"


def _is_under(path: str, root: str) -> bool:
    if root == "/":
        return True
    return path == root or path.startswith(root + "/")


def _hits_for_paths(paths: list[str]) -> list[SearchHit]:
    """Stat each path for recency inputs; paths that vanished are dropped."""
    hits: list[SearchHit] = []
    for path in paths:
        try:
            st = os.stat(path)
        except OSError:
            continue
        hits.append(
            SearchHit(
                uri=Path(path).as_uri(),
                modification_time=datetime.fromtimestamp(st.st_mtime, tz=UTC),
                access_time=datetime.fromtimestamp(st.st_atime, tz=UTC),
            )
        )
    return hits
