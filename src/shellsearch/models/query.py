"""Search query model and term matching."""

from __future__ import annotations

import unicodedata
from collections.abc import Iterable, Sequence
from pathlib import Path

from pydantic import BaseModel, ConfigDict


def prepare_string_for_compare(text: str) -> str:
    """Normalize text for matching: canonical decomposition, then case folding."""
    return unicodedata.normalize("NFD", text).casefold()


def split_terms(text: str) -> tuple[str, ...]:
    """Split prepared query text into non-empty terms."""
    return tuple(term for term in text.split() if term)


def matches(candidate: str, terms: Iterable[str]) -> bool:
    """Return True if every prepared term is a substring of the candidate.

    Terms are expected to be prepared already (see ``SearchQuery.terms``);
    the candidate is prepared here. An empty term list matches everything.
    """
    prepared = prepare_string_for_compare(candidate)
    return all(term in prepared for term in terms)


class SearchQuery(BaseModel):
    """An immutable search query built from the launcher's terms."""

    model_config = ConfigDict(frozen=True)

    text: str
    terms: tuple[str, ...] = ()
    location: str = ""

    @classmethod
    def from_terms(cls, raw_terms: Sequence[str], location: Path | str = "") -> SearchQuery:
        """Build a query from raw terms, joining them into the query text."""
        text = " ".join(raw_terms)
        if isinstance(location, Path):
            location = location.as_uri()
        return cls(
            text=text,
            terms=split_terms(prepare_string_for_compare(text)),
            location=location,
        )

    def is_single_character(self) -> bool:
        """Single-character queries are too broad to be worth searching."""
        return len(self.terms) == 1 and len(self.terms[0]) == 1

    def matches(self, candidate: str) -> bool:
        return matches(candidate, self.terms)
