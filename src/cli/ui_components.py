"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from typing import Iterable

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import ServiceMap, SubtreeEntry
from core.domain.status import BusReply


def build_paths_table(paths: Iterable[str], *, title: str = "Object Paths") -> Table:
    """Tabla de una columna con object paths."""

    table = Table(title=title)
    table.add_column("Path", style="cyan")
    for path in paths:
        table.add_row(path)
    return table


def build_services_table(services: ServiceMap, *, title: str = "Services") -> Table:
    table = Table(title=title)
    table.add_column("Service", style="magenta", no_wrap=True)
    table.add_column("Interfaces", style="white")
    for service, interfaces in services.items():
        table.add_row(service, "\n".join(interfaces))
    return table


def build_subtree_table(entries: Iterable[SubtreeEntry], *, title: str = "Subtree") -> Table:
    """Tabla path / servicio / interfaces, una fila por servicio."""

    table = Table(title=title)
    table.add_column("Path", style="cyan")
    table.add_column("Service", style="magenta", no_wrap=True)
    table.add_column("Interfaces", style="white")
    for entry in entries:
        if not entry.services:
            table.add_row(entry.path, "-", "-")
            continue
        for service, interfaces in entry.services.items():
            table.add_row(entry.path, service, "\n".join(interfaces))
    return table


def build_failure_panel(reply: BusReply[object], *, operation: str) -> Panel:
    """Panel para un `BusReply` fallido."""

    body = Text()
    body.append(f"{operation}: ", style="bold")
    body.append(reply.status.label(), style="red")
    if reply.detail:
        body.append(f"\n{reply.detail}", style="dim")
    return Panel(body, title=Text("Mapper error", style="bold red"), border_style="red")
