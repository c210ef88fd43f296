"""Transporte hacia la API médica (GNU Health, prefijo `/api-ia`).

Responsabilidad:
- Ejecutar una llamada y devolver `ApiResponse` o lanzar `StructuredApiError`.
- Codificar el cuerpo como la API lo espera: query string en lecturas,
  form-urlencoded en mutaciones (JSON o binario crudo bajo pedido).
- Normalizar el envoltorio de error: el mensaje autoritativo está en
  `meta.message` aunque el HTTP diga 500.

No reintenta: cualquier fallo se propaga de inmediato.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from adapters.http_client import build_async_client, encode_fields
from core.config import AppSettings
from core.domain.errors import ApiConnectionError, StructuredApiError
from core.domain.kinds import Verb
from core.error_classifier import is_plain_text
from core.interfaces.transport import ApiResponse, ApiTransport

logger = logging.getLogger(__name__)

PARTIAL_SUCCESS_STATUS = 207


def extract_api_message(
    decoded: Any,
    raw_text: str,
    reason_phrase: str,
    status_code: int,
) -> str:
    """Prioridad: `meta.message` → `message` → `error` → texto plano → reason phrase.

    Un cuerpo JSON sin mensaje o una página HTML nunca se usan como mensaje.
    """

    if isinstance(decoded, dict):
        meta = decoded.get("meta")
        if isinstance(meta, dict):
            message = meta.get("message")
            if isinstance(message, str) and message.strip():
                return message.strip()
        for key in ("message", "error"):
            value = decoded.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    if isinstance(decoded, str) and is_plain_text(decoded):
        return decoded.strip()
    if decoded is None and is_plain_text(raw_text):
        return raw_text.strip()
    return reason_phrase or f"HTTP {status_code}"


class MedicalApiClient(ApiTransport):
    """Cliente async de la API médica.

    Uso típico:

        async with MedicalApiClient(settings) as api:
            response = await api.call("/user", Verb.READ, {"identification": "123456"})
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._client = client
        self._owns_client = client is None
        self._transport = transport

    async def __aenter__(self) -> "MedicalApiClient":
        self._ensure_client()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = build_async_client(self._settings, transport=self._transport)
            self._owns_client = True
        return self._client

    async def call(
        self,
        endpoint: str,
        verb: Verb,
        fields: Mapping[str, Any] | None = None,
        *,
        content: bytes | None = None,
        as_json: bool = False,
    ) -> ApiResponse:
        client = self._ensure_client()
        method = verb.http_method

        request_kwargs: dict[str, Any] = {}
        if verb.is_read:
            # La API no acepta cuerpo en lecturas.
            params = encode_fields(fields)
            if params:
                request_kwargs["params"] = params
        elif content is not None:
            request_kwargs["content"] = content
        elif as_json:
            request_kwargs["json"] = {k: v for k, v in (fields or {}).items() if v is not None}
        elif fields:
            request_kwargs["data"] = encode_fields(fields)

        logger.debug("API %s %s", method, endpoint)
        try:
            response = await client.request(method, endpoint, **request_kwargs)
        except httpx.TransportError as exc:
            logger.warning("API %s %s sin respuesta: %s", method, endpoint, exc.__class__.__name__)
            raise ApiConnectionError(
                f"No se pudo contactar la API médica (network error: {exc.__class__.__name__})",
                endpoint=endpoint,
                method=method,
            ) from exc

        request_data = dict(fields) if fields and content is None else None
        return self._handle_response(response, endpoint=endpoint, method=method, request_data=request_data)

    def _handle_response(
        self,
        response: httpx.Response,
        *,
        endpoint: str,
        method: str,
        request_data: dict[str, Any] | None,
    ) -> ApiResponse:
        status = response.status_code

        if status == PARTIAL_SUCCESS_STATUS:
            try:
                body = response.json()
            except ValueError:
                body = {}
            logger.info("API %s %s respondió 207 (éxito parcial)", method, endpoint)
            return ApiResponse(status_code=status, body=body)

        if not response.is_success:
            raw_text = response.text
            try:
                decoded: Any = response.json()
            except ValueError:
                decoded = None
            message = extract_api_message(decoded, raw_text, response.reason_phrase, status)
            logger.warning("API %s %s -> %s: %s", method, endpoint, status, message)
            raise StructuredApiError(
                message,
                status_code=status,
                api_response=decoded if decoded is not None else raw_text,
                endpoint=endpoint,
                method=method,
                request_data=request_data,
            )

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            return ApiResponse(status_code=status, body=response.text or {})
        return ApiResponse(status_code=status, body=response.json())
