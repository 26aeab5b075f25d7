"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.transport_factory import open_transport
from core.config import AppSettings, save_user_settings
from core.domain.constants import MAPPER_PATH
from core.domain.status import BusReply
from core.services.object_mapper import ObjectMapperGateway
from core.services.rpc_client import AsyncRpcClient

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_mapper(settings: AppSettings) -> tuple[bool, str]:
    """Ask the mapper about its own object; any service counts as reachable."""

    try:
        async with open_transport(settings) as transport:
            gateway = ObjectMapperGateway(AsyncRpcClient(transport))
            reply: BusReply[bool] = await gateway.object_exists(MAPPER_PATH)
    except OSError as exc:
        return False, str(exc)
    if not reply.ok:
        return False, f"{reply.status.label()}: {reply.detail or '-'}"
    return reply.value, "mapper object found" if reply.value else "mapper object missing"


@app.command()
def run(ctx: typer.Context) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = ctx.obj if isinstance(ctx.obj, AppSettings) else AppSettings()

    table = Table(title="mapper-query Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row("Transport", "OK", settings.transport)
    if settings.transport == "rest":
        table.add_row("REST base_url", "OK", settings.rest_base_url)
        if settings.rest_username:
            table.add_row("REST auth", "OK", f"basic auth as {settings.rest_username}")
        else:
            table.add_row("REST auth", "OPTIONAL", "No credentials -> anonymous requests")
        if not settings.rest_verify_tls:
            table.add_row("TLS verification", "WARN", "Certificate checks disabled")
    table.add_row(
        "Resolver mode",
        "OK",
        "concurrent" if settings.resolver_concurrent else "sequential",
    )

    ok_mapper, detail_mapper = asyncio.run(_check_mapper(settings))
    table.add_row("Object mapper", "OK" if ok_mapper else "FAIL", detail_mapper)

    _console.print(table)

    if not ok_mapper and settings.transport == "dbus":
        _console.print(
            "\n[yellow]Note:[/yellow] Off the BMC, use `--transport rest` or run `doctor setup-rest`."
        )
    if not ok_mapper:
        raise typer.Exit(code=1)


@app.command(name="setup-rest")
def setup_rest() -> None:
    """Interactive REST bridge setup (stores config in the user config .env)."""

    base_url = typer.prompt("BMC base URL", default="https://localhost", show_default=True).strip()
    username = typer.prompt("Username", default="root", show_default=True).strip()
    password = typer.prompt("Password", hide_input=True, confirmation_prompt=False).strip()
    verify_tls = typer.confirm("Verify the BMC TLS certificate?", default=True)

    if not base_url.startswith(("http://", "https://")):
        raise typer.BadParameter("base URL must start with http:// or https://")

    env_path = save_user_settings(
        {
            "transport": "rest",
            "rest_base_url": base_url,
            "rest_username": username or None,
            "rest_password": password or None,
            "rest_verify_tls": verify_tls,
        }
    )

    _console.print(f"[green]Saved REST config to:[/green] {env_path}")
