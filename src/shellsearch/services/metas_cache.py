"""Append-only metadata cache keyed by result identifier."""

from __future__ import annotations

from collections.abc import Iterable

from shellsearch.models.metas import ResultMeta


class MetadataCache:
    """Memoizes ``ResultMeta`` records for the life of the process.

    Records are never replaced: inserting an identifier that is already
    cached keeps the first record.
    """

    def __init__(self) -> None:
        self._metas: dict[str, ResultMeta] = {}

    def __len__(self) -> int:
        return len(self._metas)

    def __contains__(self, uri: object) -> bool:
        return uri in self._metas

    def get(self, uri: str) -> ResultMeta | None:
        return self._metas.get(uri)

    def insert(self, meta: ResultMeta) -> ResultMeta:
        """Cache ``meta`` unless its identifier is present; return the cached record."""
        return self._metas.setdefault(meta.id, meta)

    def missing(self, uris: Iterable[str]) -> list[str]:
        """Uncached identifiers, deduplicated, in first-seen order."""
        return [uri for uri in dict.fromkeys(uris) if uri not in self._metas]

    def keys(self) -> list[str]:
        return list(self._metas)
