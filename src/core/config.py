"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (D-Bus/REST) lean config de forma consistente.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Mapping

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "MAPPER_QUERY_"


def get_user_config_dir() -> Path:
    """`$MAPPER_QUERY_CONFIG_DIR`, si no `$XDG_CONFIG_HOME/mapper-query`, si no `~/.config/mapper-query`."""

    override = os.environ.get(f"{ENV_PREFIX}CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / "mapper-query"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _env_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def save_user_settings(updates: Mapping[str, object | None]) -> Path:
    """Guarda campos de `AppSettings` en el .env global del usuario.

    Las claves son nombres de campo (`rest_base_url`), no variables de entorno.
    `None` elimina la variable. Comentarios y variables ajenas se conservan en
    su sitio; las variables nuevas se añaden al final.
    """

    unknown = set(updates) - set(AppSettings.model_fields)
    if unknown:
        raise ValueError(f"unknown settings: {', '.join(sorted(unknown))}")

    pending = {f"{ENV_PREFIX}{name.upper()}": value for name, value in updates.items()}

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)
    if env_path.exists():
        lines = env_path.read_text(encoding="utf-8").splitlines()
    else:
        lines = ["# mapper-query user config (.env)"]

    result: list[str] = []
    for line in lines:
        key = line.split("=", 1)[0].strip()
        if "=" not in line or key not in pending:
            result.append(line)
            continue
        value = pending.pop(key)
        if value is not None:
            result.append(f"{key}={_env_value(value)}")

    result.extend(
        f"{key}={_env_value(value)}" for key, value in pending.items() if value is not None
    )
    env_path.write_text("\n".join(result) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    transport: Literal["dbus", "rest"] = Field(
        default="dbus",
        description="Transporte hacia el mapper: bus del sistema o puente REST del BMC.",
    )

    rest_base_url: str = Field(
        default="https://localhost",
        min_length=8,
        description="URL base del servidor web del BMC (puente REST de D-Bus).",
    )
    rest_username: str | None = Field(
        default=None,
        description="Usuario para autenticación básica contra el BMC.",
    )
    rest_password: str | None = Field(
        default=None,
        description="Contraseña para autenticación básica contra el BMC.",
    )
    rest_verify_tls: bool = Field(
        default=True,
        description="Verificar el certificado TLS del BMC (desactivar solo en laboratorio).",
    )
    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request REST (segundos).",
    )
    user_agent: str = Field(
        default="mapper-query/0.1",
        min_length=1,
        description="User-Agent para peticiones REST.",
    )

    resolver_concurrent: bool = Field(
        default=False,
        description="Lanzar en paralelo las dos consultas del resolver de asociaciones.",
    )
    default_depth: int = Field(
        default=0,
        ge=0,
        le=2**31 - 1,
        description="Profundidad por defecto de GetSubTree (0 = sin límite).",
    )
    log_level: str = Field(
        default="WARNING",
        min_length=1,
        description="Nivel de logging de la CLI (DEBUG, INFO, WARNING, ...).",
    )
