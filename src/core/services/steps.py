"""Primitivas de los pipelines: resultado etiquetado por paso.

Cada paso devuelve `Ok(valor)` o `Failed(kind, ...)`. Nadie lanza dentro del
pipeline; `unwrap` es el único punto que convierte un `Failed` en
`WorkflowError` hacia el host.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar, Union

from core.domain.errors import ApiConnectionError, StructuredApiError, WorkflowError
from core.domain.kinds import ErrorCategory, FailureKind
from core.domain.models import ErrorInfo
from core.error_classifier import classify, classify_message, suggest_correction

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failed:
    kind: FailureKind
    message: str
    info: ErrorInfo | None = None
    suggestion: str | None = None


StepResult = Union[Ok[T], Failed]


def invalid(kind: FailureKind, message: str, suggestion: str | None = None) -> Failed:
    """Fallo local (antes de cualquier llamada de red)."""

    return Failed(kind=kind, message=message, suggestion=suggestion or suggest_correction(message))


def remote_failure(kind: FailureKind, error: Exception, endpoint: str, message: str | None = None) -> Failed:
    """Fallo remoto, siempre pasado por el clasificador.

    `message` permite envolver el mensaje clasificado con un prefijo estable.
    """

    info = classify(error, endpoint)
    return Failed(kind=kind, message=message or info.message, info=info)


def rejected(
    kind: FailureKind,
    message: str,
    *,
    status_code: int | None = None,
    endpoint: str | None = None,
) -> Failed:
    """La API respondió 2xx pero el resultado no sirve para continuar."""

    info = classify_message(message, status_code=status_code, endpoint=endpoint)
    return Failed(kind=kind, message=message, info=info)


def remote_kind(error: Exception, default: FailureKind) -> FailureKind:
    """401 y la falta de respuesta tienen su propio tipo, sin importar el paso."""

    if isinstance(error, ApiConnectionError):
        return FailureKind.TRANSPORT_FAILURE
    if isinstance(error, StructuredApiError) and error.status_code == 401:
        return FailureKind.AUTHENTICATION_FAILURE
    return default


def raise_failure(failure: Failed, *, workflow: str) -> NoReturn:
    info = failure.info
    logger.info("%s abortado: %s (%s)", workflow, failure.kind.value, failure.message)
    if info is None:
        raise WorkflowError(
            failure.kind,
            failure.message,
            suggestion=failure.suggestion,
            category=ErrorCategory.VALIDATION,
            recoverable=False,
        )
    raise WorkflowError(
        failure.kind,
        failure.message,
        suggestion=failure.suggestion or info.suggestion,
        category=info.category,
        recoverable=info.recoverable,
        status_code=info.status_code,
        endpoint=info.endpoint,
    )


def unwrap(result: StepResult[T], *, workflow: str) -> T:
    if isinstance(result, Failed):
        raise_failure(result, workflow=workflow)
    return result.value
