"""Tests for the session manager: supersession, keep-alive and teardown."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable
from pathlib import Path

from fakes import FakeEngine

from shellsearch.data.bookmarks import BookmarkList
from shellsearch.data.engine import LocateSearchEngine
from shellsearch.data.volumes import VolumeMonitor
from shellsearch.models.hits import SearchHit
from shellsearch.services.lifetime import ServiceLifetime
from shellsearch.services.session import SearchRequest, SessionState
from shellsearch.services.session_manager import SessionManager


async def test_single_character_query_skips_engine(
    manager: SessionManager, engines: list[FakeEngine], lifetime: ServiceLifetime
) -> None:
    assert await manager.search(["a"]) == []
    assert engines == []
    assert manager.current is None
    assert lifetime.use_count == 0


async def test_search_holds_lifetime_until_finished(
    manager: SessionManager, engines: list[FakeEngine], lifetime: ServiceLifetime
) -> None:
    request = SearchRequest(("report",))
    manager.start_search(request)
    assert lifetime.use_count == 1
    assert manager.current is not None
    assert manager.current.state is SessionState.RUNNING

    engines[0].add(SearchHit("file:///home/tester/report.txt"))
    engines[0].finish()

    assert await request.result() == ["file:///home/tester/report.txt"]
    assert manager.current is None
    assert lifetime.use_count == 0


async def test_new_search_cancels_previous(
    manager: SessionManager, engines: list[FakeEngine], lifetime: ServiceLifetime
) -> None:
    first = SearchRequest(("report",))
    second = SearchRequest(("report", "2024"))
    manager.start_search(first)
    engines[0].add(SearchHit("file:///home/tester/report.txt"))

    manager.start_search(second)

    assert engines[0].stopped
    assert first.replied
    assert await first.result() == []
    assert manager.current is not None
    assert manager.current.request is second
    assert manager.generation == 2
    assert lifetime.use_count == 1

    engines[1].add(SearchHit("file:///home/tester/report-2024.txt"))
    engines[1].finish()
    assert await second.result() == ["file:///home/tester/report-2024.txt"]
    assert lifetime.use_count == 0


async def test_late_events_from_superseded_engine_are_ignored(
    manager: SessionManager, engines: list[FakeEngine], lifetime: ServiceLifetime
) -> None:
    first = SearchRequest(("report",))
    second = SearchRequest(("invoices",))
    manager.start_search(first)
    old_session = manager.current
    manager.start_search(second)
    assert old_session is not None

    # an engine that keeps posting after stop() reaches the old session directly
    old_session.hits_added([SearchHit("file:///home/tester/late.txt")])
    old_session.finished()

    assert await first.result() == []
    assert manager.current is not None
    assert manager.current.request is second
    assert lifetime.use_count == 1
    assert manager.current.hits == {}


async def test_concurrent_searches_reply_in_creation_order(
    manager: SessionManager, engines: list[FakeEngine]
) -> None:
    order: list[str] = []

    async def run(name: str, terms: list[str]) -> None:
        result = await manager.search(terms)
        order.append(f"{name}:{len(result)}")

    first = asyncio.create_task(run("first", ["alpha"]))
    await asyncio.sleep(0)
    second = asyncio.create_task(run("second", ["beta"]))
    await asyncio.sleep(0)

    engines[1].add(SearchHit("file:///home/tester/beta"))
    engines[1].finish()
    await asyncio.gather(first, second)

    assert order == ["first:0", "second:1"]


async def test_engine_error_releases_hold(
    manager: SessionManager, engines: list[FakeEngine], lifetime: ServiceLifetime
) -> None:
    request = SearchRequest(("report",))
    manager.start_search(request)
    engines[0].error()
    assert await request.result() == []
    assert manager.current is None
    assert lifetime.use_count == 0


async def test_subsearch_runs_full_query(
    manager: SessionManager, engines: list[FakeEngine]
) -> None:
    task = asyncio.create_task(manager.subsearch(["file:///home/tester/old"], ["report", "q3"]))
    await asyncio.sleep(0)
    assert engines[0].query is not None
    assert engines[0].query.terms == ("report", "q3")
    engines[0].add(SearchHit("file:///home/tester/new"))
    engines[0].finish()
    assert await task == ["file:///home/tester/new"]


async def test_quick_matches_included_without_engine_hits(
    manager: SessionManager, engines: list[FakeEngine]
) -> None:
    task = asyncio.create_task(manager.search(["my", "doc"]))
    await asyncio.sleep(0)
    engines[0].finish()
    assert await task == ["file:///home/tester/Documents"]


async def test_cancel_without_current_and_after_completion_is_noop(
    manager: SessionManager, engines: list[FakeEngine], lifetime: ServiceLifetime
) -> None:
    manager.cancel_current()

    request = SearchRequest(("report",))
    manager.start_search(request)
    engines[0].finish()
    manager.cancel_current()
    manager.shutdown()

    assert not engines[0].stopped
    assert await request.result() == []
    assert lifetime.use_count == 0


async def test_shutdown_cancels_current(
    manager: SessionManager, engines: list[FakeEngine], lifetime: ServiceLifetime
) -> None:
    request = SearchRequest(("report",))
    manager.start_search(request)
    manager.shutdown()
    assert engines[0].stopped
    assert await request.result() == []
    assert manager.current is None
    assert lifetime.use_count == 0


async def test_engine_crash_replies_empty_and_releases(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "report.txt").write_text("", encoding="utf-8")
    lifetime = ServiceLifetime(inactivity_timeout=60.0)
    manager = SessionManager(
        lambda: LocateSearchEngine(("sh", "-c", "echo report.txt", "sh")),
        BookmarkList(),
        VolumeMonitor(),
        lifetime,
    )
    assert await asyncio.wait_for(manager.search(["report"]), timeout=5.0) == []
    assert manager.current is None
    assert lifetime.use_count == 0


async def test_changed_bookmarks_file_is_reread_before_matching(
    tmp_path: Path,
    engines: list[FakeEngine],
    engine_factory: Callable[[], FakeEngine],
    lifetime: ServiceLifetime,
) -> None:
    path = tmp_path / "bookmarks"
    path.write_text("file:///srv/old Old Reports\n", encoding="utf-8")
    bookmarks = BookmarkList.load(path)
    manager = SessionManager(engine_factory, bookmarks, VolumeMonitor(), lifetime)

    path.write_text("file:///srv/new Quarterly Reports\n", encoding="utf-8")
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))

    request = SearchRequest(("reports",))
    manager.start_search(request)
    engines[0].finish()
    assert await request.result() == ["file:///srv/new"]
