"""Command-line entry point.

Each query command opens the configured transport, runs one mapper operation
and renders the reply with Rich. A failed reply prints the status and exits
with code 1, so the commands compose in shell scripts.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from adapters.json_exporter import dumps_reply, export_reply_json
from adapters.transport_factory import open_transport
from cli import doctor
from cli.ui_components import (
    build_failure_panel,
    build_paths_table,
    build_services_table,
    build_subtree_table,
)
from core.config import AppSettings
from core.domain.status import BusReply
from core.paths import escape_path_for_bus, nth_path_segment
from core.services.association_resolver import AssociationResolver
from core.services.object_mapper import ObjectMapperGateway
from core.services.rpc_client import AsyncRpcClient

app = typer.Typer(no_args_is_help=True, help="Query the OpenBMC object mapper.")
app.add_typer(doctor.app, name="doctor")

_console = Console()

Query = Callable[[ObjectMapperGateway, AppSettings], Awaitable[BusReply[Any]]]


def _interface_option() -> Any:
    return typer.Option(
        None, "--interface", "-i", help="Restrict to objects implementing this interface (repeatable)."
    )


def _depth_option() -> Any:
    return typer.Option(
        None, "--depth", "-d", min=0, help="Levels below the root (0 = unlimited)."
    )


def _json_option() -> Any:
    return typer.Option(False, "--json", help="Print the reply as JSON.")


def _output_option() -> Any:
    return typer.Option(None, "--output", "-o", help="Also write the reply to a JSON file.")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _settings(ctx: typer.Context) -> AppSettings:
    settings = ctx.obj
    if isinstance(settings, AppSettings):
        return settings
    return AppSettings()


def _run_query(settings: AppSettings, query: Query) -> BusReply[Any]:
    async def runner() -> BusReply[Any]:
        async with open_transport(settings) as transport:
            gateway = ObjectMapperGateway(AsyncRpcClient(transport))
            return await query(gateway, settings)

    try:
        return asyncio.run(runner())
    except ValueError as exc:
        # Invalid object path or depth, raised before any call is issued.
        raise typer.BadParameter(str(exc)) from exc
    except OSError as exc:
        _console.print(f"[red]Cannot open the {settings.transport} transport:[/red] {exc}")
        raise typer.Exit(code=1) from exc


def _emit(
    reply: BusReply[Any],
    *,
    operation: str,
    render: Callable[[Any], None],
    as_json: bool,
    output: Optional[Path],
) -> None:
    if output is not None:
        export_reply_json(reply=reply, output_path=output)
    if as_json:
        typer.echo(dumps_reply(reply))
    elif reply.ok:
        render(reply.value)
    else:
        _console.print(build_failure_panel(reply, operation=operation))
    if not reply.ok:
        raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    transport: Optional[str] = typer.Option(
        None, "--transport", "-t", help="Override the configured transport (dbus or rest)."
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    settings = AppSettings()
    if transport is not None:
        if transport not in ("dbus", "rest"):
            raise typer.BadParameter("transport must be 'dbus' or 'rest'", param_hint="--transport")
        settings = settings.model_copy(update={"transport": transport})
    configure_logging(log_level or settings.log_level)
    ctx.obj = settings


@app.command()
def exists(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Object path to look up."),
    as_json: bool = _json_option(),
) -> None:
    """Check whether the mapper knows PATH. Exits 1 when it does not."""

    reply = _run_query(_settings(ctx), lambda gw, _: gw.object_exists(path))
    _emit(
        reply,
        operation="GetObject",
        render=lambda found: _console.print("yes" if found else "no"),
        as_json=as_json,
        output=None,
    )
    if not reply.value:
        raise typer.Exit(code=1)


@app.command(name="object")
def get_object(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Object path to look up."),
    interface: Optional[List[str]] = _interface_option(),
    as_json: bool = _json_option(),
    output: Optional[Path] = _output_option(),
) -> None:
    """List the services (and interfaces) hosting PATH."""

    reply = _run_query(_settings(ctx), lambda gw, _: gw.get_object(path, interface or []))
    _emit(
        reply,
        operation="GetObject",
        render=lambda services: _console.print(build_services_table(services, title=path)),
        as_json=as_json,
        output=output,
    )


@app.command()
def subtree(
    ctx: typer.Context,
    root: str = typer.Argument(..., help="Root of the search."),
    depth: Optional[int] = _depth_option(),
    interface: Optional[List[str]] = _interface_option(),
    as_json: bool = _json_option(),
    output: Optional[Path] = _output_option(),
) -> None:
    """List objects below ROOT with their services and interfaces."""

    reply = _run_query(
        _settings(ctx),
        lambda gw, settings: gw.get_subtree(
            root, settings.default_depth if depth is None else depth, interface or []
        ),
    )
    _emit(
        reply,
        operation="GetSubTree",
        render=lambda entries: _console.print(build_subtree_table(entries, title=root)),
        as_json=as_json,
        output=output,
    )


@app.command(name="subtree-paths")
def subtree_paths(
    ctx: typer.Context,
    root: str = typer.Argument(..., help="Root of the search."),
    depth: Optional[int] = _depth_option(),
    interface: Optional[List[str]] = _interface_option(),
    as_json: bool = _json_option(),
    output: Optional[Path] = _output_option(),
) -> None:
    """List object paths below ROOT."""

    reply = _run_query(
        _settings(ctx),
        lambda gw, settings: gw.get_subtree_paths(
            root, settings.default_depth if depth is None else depth, interface or []
        ),
    )
    _emit(
        reply,
        operation="GetSubTreePaths",
        render=lambda paths: _console.print(build_paths_table(paths, title=root)),
        as_json=as_json,
        output=output,
    )


@app.command()
def endpoints(
    ctx: typer.Context,
    association: str = typer.Argument(..., help="Path of the association object."),
    as_json: bool = _json_option(),
    output: Optional[Path] = _output_option(),
) -> None:
    """Show the endpoints of an association."""

    reply = _run_query(_settings(ctx), lambda gw, _: gw.get_association_endpoints(association))
    _emit(
        reply,
        operation="endpoints",
        render=lambda found: _console.print(build_paths_table(sorted(found), title=association)),
        as_json=as_json,
        output=output,
    )


@app.command()
def associated(
    ctx: typer.Context,
    association: str = typer.Argument(..., help="Path of the association object."),
    root: str = typer.Argument(..., help="Root of the search."),
    depth: Optional[int] = _depth_option(),
    interface: Optional[List[str]] = _interface_option(),
    entries: bool = typer.Option(False, "--entries", help="Include services and interfaces."),
    concurrent: Optional[bool] = typer.Option(
        None, "--concurrent/--sequential", help="Issue both mapper queries at once."
    ),
    as_json: bool = _json_option(),
    output: Optional[Path] = _output_option(),
) -> None:
    """List objects below ROOT that are endpoints of ASSOCIATION."""

    def query(gw: ObjectMapperGateway, settings: AppSettings) -> Awaitable[BusReply[Any]]:
        resolver = AssociationResolver(
            gw,
            concurrent=settings.resolver_concurrent if concurrent is None else concurrent,
        )
        effective_depth = settings.default_depth if depth is None else depth
        if entries:
            return resolver.get_associated_subtree(
                association, root, effective_depth, interface or []
            )
        return resolver.get_associated_subtree_paths(
            association, root, effective_depth, interface or []
        )

    reply = _run_query(_settings(ctx), query)
    title = f"{association} under {root}"
    _emit(
        reply,
        operation="associated subtree",
        render=lambda value: _console.print(
            build_subtree_table(value, title=title)
            if entries
            else build_paths_table(value, title=title)
        ),
        as_json=as_json,
        output=output,
    )


@app.command()
def escape(text: str = typer.Argument(..., help="Text to escape.")) -> None:
    """Replace characters that are not valid in object paths with '_'."""

    typer.echo(escape_path_for_bus(text))


@app.command()
def segment(
    path: str = typer.Argument(..., help="Object path."),
    index: int = typer.Argument(..., help="Zero-based segment index."),
) -> None:
    """Print the INDEX-th segment of PATH. Exits 1 when there is none."""

    value = nth_path_segment(path, index)
    if value is None:
        _console.print(f"[yellow]No segment {index} in {path}[/yellow]")
        raise typer.Exit(code=1)
    typer.echo(value)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
