"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que el transporte HTTP y los workflows lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from enum import Enum
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

API_PATH_SUFFIX = "/api-ia"


class ExistenceCheckMode(str, Enum):
    """Política ante errores del servidor al verificar si un tercero existe."""

    PERMISSIVE = "permissive"
    STRICT = "strict"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "medadmin"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "medadmin"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "medadmin"
    return Path.home() / ".config" / "medadmin"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# medadmin user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Las dos variables históricas del despliegue (`MEDICAL_API_BASE_URL`,
    `MEDICAL_API_KEY`) se aceptan tal cual junto a las prefijadas `MEDADMIN_`.
    """

    model_config = SettingsConfigDict(
        env_prefix="MEDADMIN_",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_base_url: str = Field(
        default="http://localhost:3000",
        min_length=1,
        validation_alias=AliasChoices("MEDICAL_API_BASE_URL", "MEDADMIN_API_BASE_URL"),
        description="Raíz de la API médica (se le agrega /api-ia si falta).",
    )
    api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("MEDICAL_API_KEY", "MEDADMIN_API_KEY"),
        description="Token Bearer para la API. Sin token las llamadas van sin autenticar.",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="medadmin/0.1",
        min_length=1,
        description="User-Agent enviado a la API.",
    )

    existence_check: ExistenceCheckMode = Field(
        default=ExistenceCheckMode.PERMISSIVE,
        description=(
            "permissive: un error 5xx al buscar al tercero se trata como 'no existe'. "
            "strict: el error 5xx detiene el registro."
        ),
    )
    approval_price_threshold: float = Field(
        default=1000.0,
        ge=0,
        description="Precio a partir del cual crear un producto requiere aprobación humana.",
    )

    log_level: str = Field(
        default="INFO",
        description="Nivel de logging para la CLI.",
    )

    @property
    def api_root(self) -> str:
        """Base URL efectiva, siempre terminada en `/api-ia`."""

        base = self.api_base_url.rstrip("/")
        if API_PATH_SUFFIX in base:
            return base
        return f"{base}{API_PATH_SUFFIX}"
