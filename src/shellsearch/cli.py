"""Typer CLI for shellsearch: serve, search and activate commands."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
from result import Err

from shellsearch.config import Config

app = typer.Typer(
    name="shellsearch",
    help="Search provider service for a shell launcher.",
    invoke_without_command=True,
)


def _build_config(socket_path: Path | None, persist: bool) -> Config:
    overrides: dict[str, object] = {}
    if socket_path is not None:
        overrides["socket_path"] = socket_path
    if persist:
        overrides["persist"] = True
    return Config.from_env(**overrides)


@app.callback(invoke_without_command=True)
def serve(
    ctx: typer.Context,
    socket_path: Annotated[
        Path | None,
        typer.Option("--socket", help="Path of the Unix socket to listen on"),
    ] = None,
    persist: Annotated[
        bool, typer.Option("--persist", help="Stay running instead of exiting when idle")
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output")] = False,
) -> None:
    """Start the search provider service."""
    if ctx.invoked_subcommand is not None:
        return
    config = _build_config(socket_path, persist)
    from shellsearch.app import run_app

    run_app(config, verbose=verbose)


@app.command()
def search(
    terms: Annotated[list[str], typer.Argument(help="Query terms")],
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output")] = False,
) -> None:
    """Run one search in-process and print each result's name and identifier."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(_do_search(Config.from_env(), terms))


@app.command()
def activate(
    uri: Annotated[str, typer.Argument(help="Result identifier to open")],
) -> None:
    """Open a result with the desktop's default handler."""
    ok = asyncio.run(_do_activate(uri))
    if not ok:
        raise typer.Exit(code=1)


async def _do_search(config: Config, terms: list[str]) -> None:
    """Search, resolve metadata and print the results."""
    from shellsearch.services.container import ServiceContainer

    services = await ServiceContainer.create(config)
    try:
        uris = await services.session_manager.search(terms)
        if not uris:
            typer.echo("No results.")
            return
        metas = await services.metas_service.get_result_metas(uris)
        if isinstance(metas, Err):
            typer.echo(metas.err_value, err=True)
            return
        for meta in metas.ok_value:
            typer.echo(f"{meta.name}\t{meta.id}")
    finally:
        await services.close()


async def _do_activate(uri: str) -> bool:
    from shellsearch.data.launcher import DesktopLauncher
    from shellsearch.services.activation_service import ActivationService

    result = await ActivationService(DesktopLauncher()).activate(uri)
    if isinstance(result, Err):
        typer.echo(result.err_value, err=True)
        return False
    return True
