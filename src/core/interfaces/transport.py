"""Contrato del transporte hacia la API médica.

Por qué Protocol:
- Los workflows solo necesitan "hacer una llamada y recibir respuesta o
  `StructuredApiError`"; no les importa si detrás hay httpx o un doble de test.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol, runtime_checkable

from pydantic import ValidationError

from core.domain.kinds import Verb
from core.domain.models import ApiEnvelope


@dataclass(frozen=True)
class ApiResponse:
    """Respuesta exitosa (2xx) ya decodificada."""

    status_code: int
    body: Any

    @property
    def is_partial(self) -> bool:
        return self.status_code == 207

    @property
    def envelope(self) -> ApiEnvelope | None:
        if isinstance(self.body, dict) and ("meta" in self.body or "data" in self.body):
            try:
                return ApiEnvelope.model_validate(self.body)
            except ValidationError:
                return None
        return None

    @property
    def data(self) -> Any:
        envelope = self.envelope
        if envelope is not None:
            return envelope.data
        return self.body

    @property
    def message(self) -> str | None:
        """`meta.message` si existe; si no, un `message` de primer nivel."""

        envelope = self.envelope
        if envelope is not None and envelope.meta.message:
            return envelope.meta.message
        if isinstance(self.body, dict):
            message = self.body.get("message")
            if isinstance(message, str) and message:
                return message
        return None

    @property
    def ok(self) -> bool:
        """2xx y el envoltorio no declara `meta.status = "error"`."""

        if not 200 <= self.status_code < 300:
            return False
        envelope = self.envelope
        return envelope is None or not envelope.is_error


@runtime_checkable
class ApiTransport(Protocol):
    """Ejecuta una llamada remota.

    Reglas:
    - Devuelve `ApiResponse` para 2xx (incluido 207).
    - Lanza `StructuredApiError` para cualquier otro status y
      `ApiConnectionError` si no hubo respuesta.
    """

    async def call(
        self,
        endpoint: str,
        verb: Verb,
        fields: Mapping[str, Any] | None = None,
        *,
        content: bytes | None = None,
        as_json: bool = False,
    ) -> ApiResponse:
        ...
