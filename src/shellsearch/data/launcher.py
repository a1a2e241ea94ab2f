"""Open result identifiers with the desktop's default handler."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Sequence


class LaunchError(RuntimeError):
    """Raised when a resource cannot be opened."""


def default_open_command() -> tuple[str, ...]:
    if sys.platform == "darwin":
        return ("open",)
    return ("xdg-open",)


class DesktopLauncher:
    """Runs the platform opener for a uri and waits for it to hand off."""

    def __init__(self, command: Sequence[str] | None = None) -> None:
        self._command = tuple(command) if command else default_open_command()

    async def open_uri(self, uri: str) -> None:
        try:
            process = await asyncio.create_subprocess_exec(
                *self._command,
                uri,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise LaunchError(f"Unable to run {self._command[0]}: {exc}") from exc
        _, stderr = await process.communicate()
        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise LaunchError(message or f"{self._command[0]} exited with {process.returncode}")
