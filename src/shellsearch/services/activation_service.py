"""Activation of a search result."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from result import Err, Ok, Result

if TYPE_CHECKING:
    from shellsearch.data.protocols import LauncherProtocol

logger = logging.getLogger(__name__)


class ActivationService:
    """Opens results with the desktop's default handler."""

    def __init__(self, launcher: LauncherProtocol) -> None:
        self._launcher = launcher

    async def activate(self, uri: str) -> Result[None, str]:
        if not uri.strip():
            return Err("Result identifier cannot be empty")
        try:
            await self._launcher.open_uri(uri)
        except Exception as exc:
            logger.warning("Unable to activate %s: %s", uri, exc)
            return Err(f"Unable to activate {uri}: {exc}")
        return Ok(None)
