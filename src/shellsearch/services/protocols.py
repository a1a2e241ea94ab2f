"""Protocol definitions for services."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from result import Result

from shellsearch.models.metas import ResultMeta
from shellsearch.services.session import SearchRequest


class SessionManagerProtocol(Protocol):
    """Interface for search session management."""

    def start_search(self, request: SearchRequest) -> None: ...

    async def search(self, terms: Sequence[str]) -> list[str]: ...

    async def subsearch(
        self, previous_results: Sequence[str], terms: Sequence[str]
    ) -> list[str]: ...

    def cancel_current(self) -> None: ...

    def shutdown(self) -> None: ...


class ResultMetasServiceProtocol(Protocol):
    """Interface for result metadata resolution."""

    async def get_result_metas(self, uris: Sequence[str]) -> Result[list[ResultMeta], str]: ...


class ActivationServiceProtocol(Protocol):
    """Interface for result activation."""

    async def activate(self, uri: str) -> Result[None, str]: ...
