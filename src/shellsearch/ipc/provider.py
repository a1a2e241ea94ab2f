"""The four search provider operations, producing wire-shaped values."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from result import Err

if TYPE_CHECKING:
    from shellsearch.services.container import ServiceContainer

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """A request that cannot be answered with a result."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(message)
        self.name = name
        self.message = message


class SearchProvider:
    """Dispatches GetInitialResultSet, GetSubSearchResultSet, GetResultMetas and ActivateResult."""

    def __init__(self, services: ServiceContainer) -> None:
        self._services = services

    async def get_initial_result_set(self, terms: Sequence[str]) -> list[str]:
        logger.debug("****** GetInitialResultSet")
        self._services.lifetime.touch()
        return await self._services.session_manager.search(_strings(terms, "terms"))

    async def get_subsearch_result_set(
        self, previous_results: Sequence[str], terms: Sequence[str]
    ) -> list[str]:
        logger.debug("****** GetSubSearchResultSet")
        self._services.lifetime.touch()
        return await self._services.session_manager.subsearch(
            _strings(previous_results, "previous_results"), _strings(terms, "terms")
        )

    async def get_result_metas(self, uris: Sequence[str]) -> list[dict[str, Any]]:
        logger.debug("****** GetResultMetas")
        self._services.lifetime.touch()
        result = await self._services.metas_service.get_result_metas(_strings(uris, "results"))
        if isinstance(result, Err):
            raise ProviderError("Failed", result.err_value)
        return [meta.to_wire() for meta in result.ok_value]

    async def activate_result(self, uri: str) -> None:
        logger.debug("****** ActivateResult")
        self._services.lifetime.touch()
        if not isinstance(uri, str):
            raise ProviderError("InvalidArgs", "identifier must be a string")
        # Failures are logged by the service; this call has no return channel.
        await self._services.activation_service.activate(uri)

    async def call(self, method: str, params: Sequence[Any]) -> Any:
        """Invoke ``method`` by its IPC name with positional ``params``."""
        handlers = {
            "GetInitialResultSet": (self.get_initial_result_set, 1),
            "GetSubSearchResultSet": (self.get_subsearch_result_set, 2),
            "GetResultMetas": (self.get_result_metas, 1),
            "ActivateResult": (self.activate_result, 1),
        }
        entry = handlers.get(method)
        if entry is None:
            raise ProviderError("UnknownMethod", f"Unknown method: {method}")
        handler, arity = entry
        if len(params) != arity:
            raise ProviderError(
                "InvalidArgs", f"{method} expects {arity} parameters, got {len(params)}"
            )
        return await handler(*params)

    async def shutdown(self) -> None:
        await self._services.close()


def _strings(values: Sequence[Any], label: str) -> list[str]:
    if not isinstance(values, (list, tuple)) or not all(isinstance(v, str) for v in values):
        raise ProviderError("InvalidArgs", f"{label} must be a list of strings")
    return list(values)
