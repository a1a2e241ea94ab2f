"""Process keep-alive: hold/release reference counting with an idle shutdown window."""

from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class ServiceLifetime:
    """Keeps the service alive while work is outstanding.

    Every ``hold()`` must be paired with exactly one ``release()``. Once
    nothing is held, the service becomes eligible for shutdown after
    ``inactivity_timeout`` seconds without a ``touch()``. In persist mode a
    permanent hold is taken, so only ``quit()`` ends the service.
    """

    def __init__(self, inactivity_timeout: float = 12.0, *, persist: bool = False) -> None:
        self._timeout = inactivity_timeout
        self._persist = persist
        self._use_count = 1 if persist else 0
        self._idle_handle: asyncio.TimerHandle | None = None
        self._done = asyncio.Event()

    @property
    def use_count(self) -> int:
        return self._use_count

    @property
    def persist(self) -> bool:
        return self._persist

    @property
    def finished(self) -> bool:
        return self._done.is_set()

    def hold(self) -> None:
        self._use_count += 1
        self._cancel_idle_timer()

    def release(self) -> None:
        if self._use_count <= 0:
            raise RuntimeError("release() called without a matching hold()")
        self._use_count -= 1
        if self._use_count == 0:
            self._arm_idle_timer()

    def touch(self) -> None:
        """Record activity, restarting the idle window if nothing is held."""
        if self._use_count == 0:
            self._arm_idle_timer()

    def quit(self) -> None:
        self._cancel_idle_timer()
        self._done.set()

    async def wait(self) -> None:
        """Return once the service should shut down."""
        await self._done.wait()

    def _arm_idle_timer(self) -> None:
        self._cancel_idle_timer()
        if self._done.is_set():
            return
        loop = asyncio.get_running_loop()
        self._idle_handle = loop.call_later(self._timeout, self._on_idle)

    def _cancel_idle_timer(self) -> None:
        if self._idle_handle is not None:
            self._idle_handle.cancel()
            self._idle_handle = None

    def _on_idle(self) -> None:
        self._idle_handle = None
        if self._use_count == 0:
            logger.info("No activity for %.1fs, shutting down", self._timeout)
            self._done.set()
