"""Newline-delimited JSON request/response transport over a Unix socket."""

from __future__ import annotations

import asyncio
import base64
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from shellsearch.ipc.provider import ProviderError

if TYPE_CHECKING:
    from shellsearch.ipc.provider import SearchProvider

logger = logging.getLogger(__name__)

MAX_REQUEST_SIZE = 1024 * 1024


def encode_response(payload: dict[str, Any]) -> bytes:
    """Serialize one response line; raw bytes are base64-encoded."""
    return json.dumps(payload, default=_encode_default).encode("utf-8") + b"\n"


def _encode_default(value: object) -> object:
    if isinstance(value, bytes | bytearray):
        return base64.b64encode(value).decode("ascii")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _error(request_id: Any, name: str, message: str) -> dict[str, Any]:
    return {"id": request_id, "error": {"name": name, "message": message}}



class ProviderServer:
    """Serves a ``SearchProvider`` on a Unix socket.

    Each request line is handled as its own task so that a newer search on
    the same connection can supersede one that is still running. Open
    connections are tracked so ``close()`` can end them instead of waiting
    for clients to hang up.
    """

    def __init__(self, provider: SearchProvider, socket_path: Path) -> None:
        self._provider = provider
        self._socket_path = socket_path
        self._server: asyncio.Server | None = None
        self._connections: set[asyncio.Task[None]] = set()

    @property
    def socket_path(self) -> Path:
        return self._socket_path

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def start(self) -> None:
        self._socket_path.parent.mkdir(parents=True, exist_ok=True)
        if self._socket_path.exists():
            logger.info("Removing stale socket %s", self._socket_path)
            self._socket_path.unlink()
        self._server = await asyncio.start_unix_server(
            self._handle_connection, path=str(self._socket_path), limit=MAX_REQUEST_SIZE
        )
        logger.info("Listening on %s", self._socket_path)

    async def close(self) -> None:
        """Stop listening, end open connections and remove the socket file."""
        if self._server is not None:
            self._server.close()
            connections = list(self._connections)
            for task in connections:
                task.cancel()
            if connections:
                await asyncio.gather(*connections, return_exceptions=True)
            await self._server.wait_closed()
            self._server = None
        if self._socket_path.exists():
            self._socket_path.unlink()
        logger.info("Socket cleaned up")

    async def handle_line(self, line: bytes) -> dict[str, Any]:
        """Decode one request line, dispatch it and build the response."""
        try:
            request = json.loads(line.decode("utf-8", errors="replace"))
        except json.JSONDecodeError as exc:
            return _error(None, "InvalidRequest", f"Invalid request: {exc}")
        if not isinstance(request, dict):
            return _error(None, "InvalidRequest", "Request must be a JSON object")

        request_id = request.get("id")
        method = request.get("method", "")
        params = request.get("params", [])
        if not isinstance(method, str) or not isinstance(params, list):
            return _error(request_id, "InvalidRequest", "Expected string method and list params")

        try:
            result = await self._provider.call(method, params)
        except ProviderError as exc:
            return _error(request_id, exc.name, exc.message)
        except Exception as exc:
            logger.exception("Error handling %s", method)
            return _error(request_id, "Failed", str(exc))
        return {"id": request_id, "result": result}

    async def _handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        connection = asyncio.current_task()
        if connection is not None:
            self._connections.add(connection)
        write_lock = asyncio.Lock()
        handlers: set[asyncio.Task[None]] = set()

        async def respond(line: bytes) -> None:
            response = await self.handle_line(line)
            async with write_lock:
                if writer.is_closing():
                    return
                try:
                    writer.write(encode_response(response))
                    await writer.drain()
                except (ConnectionResetError, BrokenPipeError):
                    logger.debug("Client disconnected before receiving response")

        try:
            while True:
                try:
                    line = await reader.readline()
                except ValueError:
                    logger.warning("Request exceeded %d bytes, closing connection", MAX_REQUEST_SIZE)
                    break
                if not line:
                    break
                if not line.strip():
                    continue
                handler = asyncio.create_task(respond(line))
                handlers.add(handler)
                handler.add_done_callback(handlers.discard)
            if handlers:
                await asyncio.gather(*handlers, return_exceptions=True)
        except ConnectionResetError:
            logger.debug("Client disconnected")
        finally:
            for handler in list(handlers):
                handler.cancel()
            if connection is not None:
                self._connections.discard(connection)
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionResetError, BrokenPipeError):
                logger.debug("Connection closed by peer")
