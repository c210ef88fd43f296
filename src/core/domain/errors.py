"""Excepciones del dominio.

Dos niveles:
- `MedicalApiError` y subclases: lo que el transporte ve de la API remota.
- `WorkflowError`: el único fallo que cruza la frontera hacia el host, ya
  clasificado y con vocabulario estable (`FailureKind`).
"""

from __future__ import annotations

from typing import Any

from core.domain.kinds import ErrorCategory, FailureKind


class MedicalApiError(Exception):
    """Base de los errores remotos (con o sin respuesta HTTP)."""

    def __init__(self, message: str, *, endpoint: str, method: str) -> None:
        super().__init__(message)
        self.endpoint = endpoint
        self.method = method


class StructuredApiError(MedicalApiError):
    """Respuesta HTTP fuera de 2xx, con el envoltorio crudo adjunto.

    `api_message` ya viene extraído con la prioridad
    `meta.message` → `message` → `error` → texto crudo → reason phrase.
    """

    def __init__(
        self,
        api_message: str,
        *,
        status_code: int,
        api_response: Any,
        endpoint: str,
        method: str,
        request_data: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(api_message, endpoint=endpoint, method=method)
        self.status_code = status_code
        self.api_message = api_message
        self.api_response = api_response
        self.request_data = request_data

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "StructuredApiError",
            "status_code": self.status_code,
            "api_message": self.api_message,
            "api_response": self.api_response,
            "endpoint": self.endpoint,
            "method": self.method,
            "request_data": self.request_data,
        }


class ApiConnectionError(MedicalApiError):
    """No hubo respuesta: DNS, conexión rechazada, timeout, etc."""


class WorkflowError(Exception):
    """Fallo terminal de una operación, listo para mostrar al usuario."""

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        *,
        suggestion: str | None = None,
        category: ErrorCategory | None = None,
        recoverable: bool | None = None,
        status_code: int | None = None,
        endpoint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.suggestion = suggestion
        self.category = category
        self.recoverable = recoverable
        self.status_code = status_code
        self.endpoint = endpoint

    @property
    def family(self) -> str:
        return self.kind.family.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "family": self.family,
            "message": self.message,
            "suggestion": self.suggestion,
            "category": self.category.value if self.category else None,
            "recoverable": self.recoverable,
            "status_code": self.status_code,
            "endpoint": self.endpoint,
        }
