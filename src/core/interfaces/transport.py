"""Contrato del transporte de bus.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- Permite que el bus D-Bus nativo, el puente REST o un fake de tests sean
  intercambiables sin acoplar el Core a ninguno.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable


@runtime_checkable
class BusTransport(Protocol):
    """Contrato mínimo para emitir una llamada a un método remoto.

    Reglas de diseño:
    - `call` es asíncrono y se resuelve exactamente una vez: con el valor de
      respuesta o lanzando una subclase de `core.domain.errors.BusError`.
    - No reintenta; la política de reintentos es del llamador.
    - Las lecturas de propiedades llegan como
      `org.freedesktop.DBus.Properties.Get(interface, name)`.
    """

    async def call(
        self,
        *,
        service: str,
        path: str,
        interface: str,
        method: str,
        signature: str,
        args: Sequence[Any],
    ) -> Any:
        """Invoca `interface.method` en `service` sobre el objeto `path`."""

        ...
