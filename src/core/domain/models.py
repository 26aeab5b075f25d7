"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta de las respuestas del mapper sin acoplar el Core
  a ningún transporte (D-Bus nativo o puente REST).
- Ambos transportes entregan mapas con formas distintas (dict o lista de
  pares); el modelo normaliza a una sola estructura.

Nota:
- Estos modelos describen *qué* devuelve el mapper, no *cómo* se obtiene.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

from core.paths import validate_object_path

ObjectPath = Annotated[str, AfterValidator(validate_object_path)]

# Servicio -> interfaces que implementa para un objeto.
ServiceMap = dict[str, list[str]]

EndpointSet = frozenset[str]


def pairs_to_mapping(raw: Any) -> Any:
    """Acepta `{k: v}` o `[(k, v), ...]` y devuelve un dict.

    Cualquier otra forma se devuelve intacta para que la validación falle.
    """

    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (list, tuple)) and all(
        isinstance(item, (list, tuple)) and len(item) == 2 for item in raw
    ):
        return {key: value for key, value in raw}
    return raw


class SubtreeEntry(BaseModel):
    """Un objeto del subárbol y los servicios/interfaces que lo implementan."""

    model_config = ConfigDict(frozen=True)

    path: ObjectPath = Field(
        ...,
        description="Object path del objeto encontrado.",
    )
    services: ServiceMap = Field(
        default_factory=dict,
        description="Mapa servicio -> interfaces expuestas en ese path.",
    )

    @field_validator("services", mode="before")
    @classmethod
    def _coerce_pairs(cls, value: Any) -> Any:
        return pairs_to_mapping(value)
