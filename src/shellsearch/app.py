"""Service bootstrap: wire services, listen, and run until idle."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

from shellsearch.ipc.provider import SearchProvider
from shellsearch.ipc.server import ProviderServer
from shellsearch.services.container import ServiceContainer

if TYPE_CHECKING:
    from shellsearch.config import Config

logger = logging.getLogger(__name__)


async def serve(config: Config) -> None:
    """Run the provider until the idle window elapses or a stop signal arrives."""
    logger.info("Starting search provider, building service container...")
    services = await ServiceContainer.create(config)
    provider = SearchProvider(services)
    server = ProviderServer(provider, config.socket_path)

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, services.lifetime.quit)

    try:
        await server.start()
        if services.lifetime.persist:
            logger.info("Persist mode enabled, idle shutdown disabled")
        services.lifetime.touch()
        await services.lifetime.wait()
    finally:
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(signum)
        try:
            await provider.shutdown()
            await server.close()
        except Exception:
            logger.exception("Error while shutting down services")
    logger.info("Search provider stopped")


def run_app(config: Config, *, verbose: bool = False) -> None:
    """Entry point: configure logging and run the service loop."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(serve(config))
