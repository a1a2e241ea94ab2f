"""Result metadata resolution with memoization."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from result import Err, Ok, Result

from shellsearch.models.metas import ResultMeta, file_icon_string

if TYPE_CHECKING:
    from shellsearch.data.protocols import (
        BookmarkListProtocol,
        FileInfoProtocol,
        FileResolverProtocol,
    )
    from shellsearch.services.metas_cache import MetadataCache

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ResolvedMetas:
    """Records in caller order plus identifiers that had no backing resource."""

    metas: list[ResultMeta] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)


class ResultMetasService:
    """Service returning display metadata for result identifiers."""

    def __init__(
        self,
        resolver: FileResolverProtocol,
        bookmarks: BookmarkListProtocol,
        cache: MetadataCache,
        icon_size: int = 128,
    ) -> None:
        self._resolver = resolver
        self._bookmarks = bookmarks
        self._cache = cache
        self._icon_size = icon_size

    @property
    def cache(self) -> MetadataCache:
        return self._cache

    async def resolve(self, uris: Sequence[str]) -> ResolvedMetas:
        """Resolve metadata, fetching attributes only for cache misses.

        Output follows the order of ``uris``, duplicates included.
        Identifiers that fail to resolve are reported in ``unresolved``.
        Errors from the attribute fetch propagate.
        """
        start = time.monotonic()
        missing = self._cache.missing(uris)
        if missing:
            infos = await self._resolver.fetch_attributes(missing)
            for info in infos:
                self._cache.insert(self._build_meta(info))

        resolved = ResolvedMetas()
        for uri in uris:
            meta = self._cache.get(uri)
            if meta is None:
                resolved.unresolved.append(uri)
            else:
                resolved.metas.append(meta)

        logger.debug(
            "*** GetResultMetas completed - time elapsed %dms",
            int((time.monotonic() - start) * 1000),
        )
        return resolved

    async def get_result_metas(self, uris: Sequence[str]) -> Result[list[ResultMeta], str]:
        """Metadata for ``uris`` in input order; unresolvable identifiers are dropped."""
        try:
            resolved = await self.resolve(uris)
        except Exception as exc:
            logger.warning("Attribute fetch failed for %d results: %s", len(uris), exc)
            return Err(f"Attribute fetch failed: {exc}")
        if resolved.unresolved:
            logger.warning(
                "Dropping %d unresolvable results: %s",
                len(resolved.unresolved),
                ", ".join(resolved.unresolved),
            )
        return Ok(resolved.metas)

    def _build_meta(self, info: FileInfoProtocol) -> ResultMeta:
        bookmark = self._bookmarks.item_with_uri(info.uri)
        name = bookmark.name if bookmark is not None else info.display_name

        if info.thumbnail_path is not None:
            gicon: str | None = file_icon_string(info.thumbnail_path)
        elif bookmark is not None and bookmark.icon:
            gicon = bookmark.icon
        else:
            gicon = info.icon

        if gicon:
            return ResultMeta(id=info.uri, name=name, gicon=gicon)
        return ResultMeta(
            id=info.uri,
            name=name,
            icon_data=info.generic_icon_pixels(self._icon_size),
        )
