"""Exportación JSON de respuestas del mapper.

Por qué JSON:
- Interoperabilidad con scripts y pipelines que consumen el inventario del BMC.
- Un formato estable (claves ordenadas) permite comparar resultados entre corridas.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from core.domain.status import BusReply


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (set, frozenset)):
        return sorted(_jsonable(v) for v in value)
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def reply_to_payload(reply: BusReply[Any]) -> dict[str, Any]:
    """Convierte un `BusReply` en un dict serializable."""

    return {
        "status": reply.status.value,
        "detail": reply.detail,
        "value": _jsonable(reply.value),
    }


def dumps_reply(reply: BusReply[Any]) -> str:
    return json.dumps(reply_to_payload(reply), ensure_ascii=False, indent=2, sort_keys=True)


def export_reply_json(*, reply: BusReply[Any], output_path: Path) -> Path:
    """Exporta la respuesta a JSON UTF-8 con formato estable."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(dumps_reply(reply) + "\n", encoding="utf-8")
    return output_path
