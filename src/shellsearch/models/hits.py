"""Search hit model and relevance scoring."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import PurePosixPath
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlsplit

if TYPE_CHECKING:
    from shellsearch.models.query import SearchQuery

_PROXIMITY_BASE = 10000.0
_PROXIMITY_STEP = 1000.0
_PROXIMITY_MAX_DEPTH = 10
_RECENT_DAYS = 7
_RECENT_STEP = 100.0
_MATCH_MAX = 500.0
_MATCH_STEP = 10.0


@dataclass(slots=True)
class SearchHit:
    """A candidate result reported by the engine or by the quick-match pass."""

    uri: str
    fts_rank: float = 0.0
    modification_time: datetime | None = None
    access_time: datetime | None = None
    relevance: float = 0.0

    def compute_scores(self, query: SearchQuery, now: datetime | None = None) -> float:
        """Compute and store this hit's relevance against ``query``."""
        proximity_bonus = 0.0
        depth = _depth_below(self.uri, query.location)
        if depth is not None and depth < _PROXIMITY_MAX_DEPTH:
            proximity_bonus = _PROXIMITY_BASE - _PROXIMITY_STEP * depth

        recent_bonus = 0.0
        times = [t for t in (self.modification_time, self.access_time) if t is not None]
        if times:
            current = now or datetime.now(tz=UTC)
            days = (current - max(times)).total_seconds() / 86400
            if days < _RECENT_DAYS:
                recent_bonus = _RECENT_STEP * (_RECENT_DAYS - max(days, 0.0))

        match_bonus = 0.0
        if self.fts_rank > 0:
            match_bonus = min(_MATCH_MAX, _MATCH_STEP * self.fts_rank)

        self.relevance = proximity_bonus + recent_bonus + match_bonus
        return self.relevance


def _uri_path(uri: str) -> PurePosixPath | None:
    parts = urlsplit(uri)
    if parts.scheme != "file":
        return None
    return PurePosixPath(unquote(parts.path))


def _depth_below(uri: str, location: str) -> int | None:
    """Number of directories between ``location`` and the hit, or None if outside it."""
    if not location:
        return None
    hit_path = _uri_path(uri)
    root = _uri_path(location)
    if hit_path is None or root is None:
        return None
    if hit_path == root or not hit_path.is_relative_to(root):
        return None
    return len(hit_path.relative_to(root).parts) - 1
