"""Clasificación de errores remotos para el usuario final.

Dado un `StructuredApiError` (o cualquier excepción), produce un `ErrorInfo`:
mensaje autoritativo, sugerencia de corrección, categoría y si tiene sentido
reintentar. Las reglas viven en `core.error_catalog`.
"""

from __future__ import annotations

from typing import Any

from core import error_catalog as catalog
from core.domain.errors import ApiConnectionError, MedicalApiError, StructuredApiError
from core.domain.kinds import ErrorCategory
from core.domain.models import ErrorInfo


def normalize_endpoint(endpoint: str | None) -> str | None:
    if not endpoint:
        return None
    return endpoint.split("?", 1)[0].rstrip("/") or "/"


def fallback_message(status_code: int | None, endpoint: str | None = None) -> str:
    """Mensaje de respaldo: primero por endpoint, luego genérico por status."""

    key = normalize_endpoint(endpoint)
    if status_code is not None and key is not None:
        specific = catalog.ENDPOINT_FALLBACKS.get(key, {}).get(status_code)
        if specific:
            return specific
    if status_code is None:
        return "Error desconocido"
    generic = catalog.GENERIC_FALLBACKS.get(status_code)
    if generic:
        return generic
    return catalog.GENERIC_FALLBACK_TEMPLATE.format(status=status_code)


def _is_raw_transport_text(message: str) -> bool:
    return message.strip().lower() in catalog.RAW_TRANSPORT_PHRASES


def is_plain_text(text: str | None) -> bool:
    """Texto corto sin marcado ni JSON; lo único crudo que se puede mostrar."""

    if not text or not text.strip():
        return False
    stripped = text.strip()
    if len(stripped) > catalog.PLAIN_TEXT_MAX_LENGTH:
        return False
    return not catalog.MARKUP_OR_JSON_PATTERN.search(stripped)


def _message_from_response(api_response: Any) -> str | None:
    if isinstance(api_response, dict):
        meta = api_response.get("meta")
        if isinstance(meta, dict):
            value = meta.get("message")
            if isinstance(value, str) and value.strip():
                return value.strip()
        for key in ("message", "error"):
            value = api_response.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None
    if isinstance(api_response, str) and is_plain_text(api_response):
        return api_response.strip()
    return None


def extract_message(error: Any, endpoint: str | None = None) -> str:
    """Mensaje autoritativo de un error.

    Prioridad: `meta.message` > `message` > `error` > texto plano crudo >
    respaldo por endpoint > respaldo genérico por status. Nunca se devuelve
    un reason phrase HTTP suelto ("INTERNAL SERVER ERROR"), un cuerpo JSON
    sin mensaje ni una página HTML de un proxy.
    """

    if isinstance(error, StructuredApiError):
        endpoint = endpoint or error.endpoint
        candidate = _message_from_response(error.api_response)
        if candidate is None and not isinstance(error.api_response, (dict, list)) and is_plain_text(error.api_message):
            candidate = error.api_message.strip()
        if candidate and not _is_raw_transport_text(candidate):
            return candidate
        return fallback_message(error.status_code, endpoint)

    if isinstance(error, MedicalApiError):
        return str(error)

    if isinstance(error, dict):
        candidate = _message_from_response(error)
        if candidate and not _is_raw_transport_text(candidate):
            return candidate
        return fallback_message(None, endpoint)

    text = str(error).strip() if error is not None else ""
    if text and not _is_raw_transport_text(text):
        return text
    return "Error desconocido"


def suggest_correction(message: str) -> str | None:
    for rule in catalog.SUGGESTION_RULES:
        if rule.pattern.search(message):
            return rule.suggestion
    return None


def is_recoverable(message: str) -> bool | None:
    """False si el error depende de los datos, True si es transitorio, None si no se sabe."""

    if catalog.NON_RECOVERABLE_PATTERN.search(message):
        return False
    if catalog.RECOVERABLE_PATTERN.search(message):
        return True
    return None


def categorize(message: str) -> ErrorCategory:
    for category, pattern in catalog.CATEGORY_RULES:
        if pattern.search(message):
            return category
    return ErrorCategory.UNKNOWN


def is_not_found(message: str) -> bool:
    return bool(catalog.NOT_FOUND_PATTERN.search(message))


def classify_message(
    message: str,
    *,
    status_code: int | None = None,
    endpoint: str | None = None,
) -> ErrorInfo:
    """Clasifica un mensaje ya extraído (p.ej. un 200 con `meta.status = "error"`)."""

    return ErrorInfo(
        message=message,
        category=categorize(message),
        recoverable=is_recoverable(message),
        suggestion=suggest_correction(message),
        status_code=status_code,
        endpoint=normalize_endpoint(endpoint),
    )


def classify(error: Any, endpoint: str | None = None) -> ErrorInfo:
    message = extract_message(error, endpoint)
    status_code = error.status_code if isinstance(error, StructuredApiError) else None
    if endpoint is None and isinstance(error, MedicalApiError):
        endpoint = error.endpoint
    info = classify_message(message, status_code=status_code, endpoint=endpoint)
    if isinstance(error, ApiConnectionError):
        info.category = ErrorCategory.NETWORK
        info.recoverable = True
    return info


def format_for_user(info: ErrorInfo) -> str:
    """Mensaje más una línea de sugerencia, si la hay."""

    if info.suggestion:
        return f"{info.message}\nSugerencia: {info.suggestion}"
    return info.message
