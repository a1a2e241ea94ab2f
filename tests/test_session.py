"""Tests for the search session state machine."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from fakes import FakeEngine

from shellsearch.data.bookmarks import BookmarkList
from shellsearch.data.volumes import VolumeMonitor
from shellsearch.models.hits import SearchHit
from shellsearch.models.query import SearchQuery
from shellsearch.services.session import SearchRequest, SearchSession, SessionState


class _Completions:
    def __init__(self) -> None:
        self.sessions: list[SearchSession] = []

    def __call__(self, session: SearchSession) -> None:
        # the reply must not be out yet when the session is detached
        assert not session.request.replied
        self.sessions.append(session)


@pytest.fixture
def completions() -> _Completions:
    return _Completions()


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
async def session(engine: FakeEngine, completions: _Completions) -> SearchSession:
    query = SearchQuery.from_terms(["report"], location="file:///home/tester")
    request = SearchRequest(("report",))
    return SearchSession(request, query, engine, generation=1, on_complete=completions)


async def test_start_subscribes_and_runs(session: SearchSession, engine: FakeEngine) -> None:
    assert session.state is SessionState.CREATED
    session.start()
    assert session.state is SessionState.RUNNING
    assert engine.started
    assert engine.query is session.query
    assert engine.listeners == [session]


async def test_start_twice_is_rejected(session: SearchSession) -> None:
    session.start()
    with pytest.raises(RuntimeError):
        session.start()


async def test_finished_replies_with_ranked_hits(
    session: SearchSession, engine: FakeEngine, completions: _Completions
) -> None:
    session.start()
    engine.add(
        SearchHit("file:///srv/far.txt"),
        SearchHit("file:///home/tester/deep/er/report.txt"),
        SearchHit("file:///home/tester/report.txt"),
    )
    engine.finish()

    assert session.state is SessionState.COMPLETED
    assert await session.request.result() == [
        "file:///home/tester/report.txt",
        "file:///home/tester/deep/er/report.txt",
        "file:///srv/far.txt",
    ]
    assert completions.sessions == [session]
    assert engine.listeners == []


async def test_ranking_is_non_increasing(session: SearchSession, engine: FakeEngine) -> None:
    now = datetime.now(tz=UTC)
    session.start()
    engine.add(
        SearchHit("file:///srv/a", modification_time=now - timedelta(days=2)),
        SearchHit("file:///home/tester/x/y/z/b"),
        SearchHit("file:///srv/c", fts_rank=20.0),
        SearchHit("file:///home/tester/d", access_time=now),
        SearchHit("file:///srv/e"),
    )
    ranked = session.ranked_uris()
    relevances = [session.hits[uri].relevance for uri in ranked]
    assert all(a >= b for a, b in zip(relevances, relevances[1:], strict=False))
    assert ranked[0] == "file:///home/tester/d"


async def test_hits_added_replaces_existing_entry(session: SearchSession, engine: FakeEngine) -> None:
    session.start()
    engine.add(SearchHit("file:///srv/a"))
    engine.add(SearchHit("file:///srv/a", fts_rank=10.0))
    assert len(session.hits) == 1
    assert session.hits["file:///srv/a"].relevance == 100.0


async def test_added_then_subtracted_hit_is_absent(
    session: SearchSession, engine: FakeEngine
) -> None:
    session.start()
    engine.add(SearchHit("file:///srv/a"), SearchHit("file:///srv/b"))
    engine.subtract("file:///srv/a", "file:///srv/never-added")
    engine.finish()
    assert await session.request.result() == ["file:///srv/b"]


async def test_engine_error_replies_empty(
    session: SearchSession, engine: FakeEngine, completions: _Completions
) -> None:
    session.start()
    engine.add(SearchHit("file:///srv/a"))
    engine.error("index unavailable")
    assert session.state is SessionState.ERRORED
    assert await session.request.result() == []
    assert completions.sessions == [session]


async def test_engine_failing_to_start_replies_empty(
    session: SearchSession, engine: FakeEngine
) -> None:
    engine.fail_on_start = OSError("no engine")
    session.start()
    assert session.state is SessionState.ERRORED
    assert await session.request.result() == []


async def test_cancel_stops_engine_and_replies_empty(
    session: SearchSession, engine: FakeEngine
) -> None:
    session.start()
    engine.add(SearchHit("file:///srv/a"))
    session.cancel()
    assert engine.stopped
    assert session.state is SessionState.CANCELLED
    assert await session.request.result() == []


async def test_late_events_after_cancel_are_ignored(
    session: SearchSession, engine: FakeEngine, completions: _Completions
) -> None:
    session.start()
    session.cancel()
    session.hits_added([SearchHit("file:///srv/late")])
    session.hits_subtracted(["file:///srv/late"])
    session.finished()
    session.failed("late")
    assert session.hits == {}
    assert session.state is SessionState.CANCELLED
    assert completions.sessions == [session]
    assert await session.request.result() == []


async def test_cancel_after_completion_is_noop(
    session: SearchSession, engine: FakeEngine, completions: _Completions
) -> None:
    session.start()
    engine.add(SearchHit("file:///srv/a"))
    engine.finish()
    session.cancel()
    session.cancel()
    assert not engine.stopped
    assert session.state is SessionState.COMPLETED
    assert await session.request.result() == ["file:///srv/a"]
    assert len(completions.sessions) == 1


async def test_quick_matches_bookmarks_and_mounts(
    session: SearchSession, bookmarks: BookmarkList, volumes: VolumeMonitor
) -> None:
    session.add_quick_matches(bookmarks, volumes)
    assert session.hits == {}

    query = SearchQuery.from_terms(["backup"], location="file:///home/tester")
    backup = SearchSession(
        SearchRequest(("backup",)), query, FakeEngine(), generation=2, on_complete=lambda s: None
    )
    backup.add_quick_matches(bookmarks, volumes)
    assert list(backup.hits) == [
        "file:///media/tester/backup",
        "smb://nas/backup",
        "ftp://host/backup",
    ]


async def test_quick_matches_precede_engine_hits(
    engine: FakeEngine, bookmarks: BookmarkList, volumes: VolumeMonitor
) -> None:
    query = SearchQuery.from_terms(["my", "doc"], location="file:///home/tester")
    session = SearchSession(
        SearchRequest(("my", "doc")), query, engine, generation=1, on_complete=lambda s: None
    )
    session.add_quick_matches(bookmarks, volumes)
    assert "file:///home/tester/Documents" in session.hits
    assert session.hits["file:///home/tester/Documents"].relevance == 10000.0

    session.start()
    engine.add(SearchHit("file:///home/tester/Documents/my-doc.odt"))
    engine.finish()
    assert await session.request.result() == [
        "file:///home/tester/Documents",
        "file:///home/tester/Documents/my-doc.odt",
    ]


async def test_request_reply_is_delivered_once() -> None:
    request = SearchRequest(("x",))
    request.reply(["a"])
    request.reply(["b"])
    assert await request.result() == ["a"]
