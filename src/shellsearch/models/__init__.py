"""Pydantic and dataclass models for shellsearch."""

from shellsearch.models.hits import SearchHit
from shellsearch.models.metas import IconData, ResultMeta, file_icon_string, themed_icon_string
from shellsearch.models.query import SearchQuery, matches, prepare_string_for_compare, split_terms

__all__ = [
    "IconData",
    "ResultMeta",
    "SearchHit",
    "SearchQuery",
    "file_icon_string",
    "matches",
    "prepare_string_for_compare",
    "split_terms",
    "themed_icon_string",
]
