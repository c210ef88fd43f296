"""Workflow de creación de producto con variante opcional.

Pasos:
1. validar (sin red); la unidad de medida se fuerza a 1 en silencio,
2. crear el producto (solo se envían los flags verdaderos),
3. crear la variante si hay `variant_code`,
4. consolidar ID, mensaje y advertencias.

Política de fallo parcial: si la variante falla el producto igual se
considera creado; el fallo queda como una advertencia más.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field

from core.domain.errors import MedicalApiError, StructuredApiError
from core.domain.kinds import FailureKind, ProductCategory, ProductType, Verb
from core.domain.models import (
    DEFAULT_UOM,
    ProductDraft,
    ValidatedProduct,
    VariantRequest,
    WorkflowResult,
)
from core.error_classifier import classify, extract_message
from core.interfaces.transport import ApiResponse, ApiTransport
from core.services.steps import (
    Failed,
    Ok,
    StepResult,
    invalid,
    rejected,
    remote_failure,
    remote_kind,
    unwrap,
)
from core.validation import extract_primary_id

logger = logging.getLogger(__name__)

WORKFLOW = "product-with-variant"
PRODUCT_ENDPOINT = "/product"
VARIANT_ENDPOINT = "/product/variant"

SUCCESS_MESSAGE = "Producto creado exitosamente"
WITH_VARIANT_SUFFIX = " con variante"
VARIANT_FAILED_SUFFIX = " (variante no pudo ser creada)"
NO_PRODUCT_ID_WARNING = "No se puede crear la variante: ID de producto no disponible"
GENERIC_PARTIAL_WARNING = "Producto creado con advertencias"

_PARTIAL_SUCCESS_WARNINGS: tuple[tuple[re.Pattern[str], str], ...] = (
    (
        re.compile(r"template-category", re.IGNORECASE),
        "Producto creado exitosamente pero ocurrió un problema al crear la relación template-category",
    ),
    (
        re.compile(r"precio", re.IGNORECASE),
        "Producto creado exitosamente pero ocurrió un problema al agregar el precio en su tabla relacional",
    ),
)


@dataclass
class ProductCreation:
    product: ValidatedProduct
    response: ApiResponse
    product_id: int | None
    warnings: list[str] = field(default_factory=list)


@dataclass
class VariantOutcome:
    creation: ProductCreation
    response: ApiResponse | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def created(self) -> bool:
        return self.response is not None


def partial_success_warning(message: str | None) -> str:
    """Traduce el mensaje de un 207 a una advertencia legible."""

    text = message or ""
    for pattern, warning in _PARTIAL_SUCCESS_WARNINGS:
        if pattern.search(text):
            return warning
    return text or GENERIC_PARTIAL_WARNING


def validate_product(draft: ProductDraft) -> StepResult[ValidatedProduct]:
    name = (draft.name or "").strip()
    if not name:
        return invalid(
            FailureKind.INVALID_NAME,
            "El nombre del producto no puede estar vacío",
            suggestion="Indica un nombre descriptivo, p.ej. 'Paracetamol 500mg'.",
        )

    if draft.type not in {t.value for t in ProductType}:
        return invalid(FailureKind.INVALID_TYPE, 'El tipo de producto debe ser "goods", "assets" o "service"')

    category = str(draft.category).strip()
    if category not in {c.value for c in ProductCategory}:
        return invalid(FailureKind.INVALID_CATEGORY, "La categoría debe estar entre 1 y 6")

    if not math.isfinite(draft.list_price) or draft.list_price <= 0:
        return invalid(
            FailureKind.INVALID_PRICE,
            "El precio del producto debe ser mayor que 0",
            suggestion="Indica un precio positivo, p.ej. 5.50",
        )

    if draft.default_uom not in (None, DEFAULT_UOM):
        logger.debug("default_uom=%s ignorado; la API solo acepta %s", draft.default_uom, DEFAULT_UOM)

    variant_code = (draft.variant_code or "").strip() or None
    return Ok(
        ValidatedProduct(
            name=name,
            type=ProductType(draft.type),
            list_price=draft.list_price,
            category=ProductCategory(category),
            default_uom=DEFAULT_UOM,
            flags=draft.flags,
            variant_code=variant_code,
        )
    )


def _creation_failure(exc: MedicalApiError) -> Failed:
    kind = remote_kind(exc, FailureKind.PRODUCT_CREATION_FAILED)
    if kind is not FailureKind.PRODUCT_CREATION_FAILED:
        return remote_failure(kind, exc, PRODUCT_ENDPOINT)

    message = extract_message(exc, PRODUCT_ENDPOINT)
    if isinstance(exc, StructuredApiError):
        if exc.is_server_error:
            message = f"Error del servidor al crear el producto: {message}"
        elif 400 <= exc.status_code < 500:
            message = f"Datos del producto rechazados: {message}"
    return remote_failure(kind, exc, PRODUCT_ENDPOINT, message=message)


async def create_product(transport: ApiTransport, product: ValidatedProduct) -> StepResult[ProductCreation]:
    try:
        response = await transport.call(PRODUCT_ENDPOINT, Verb.CREATE, product.to_fields())
    except MedicalApiError as exc:
        return _creation_failure(exc)

    warnings: list[str] = []
    if response.is_partial:
        warning = partial_success_warning(response.message)
        logger.warning("Producto creado con éxito parcial: %s", warning)
        warnings.append(warning)

    return Ok(
        ProductCreation(
            product=product,
            response=response,
            product_id=extract_primary_id(response.body),
            warnings=warnings,
        )
    )


async def create_variant(transport: ApiTransport, creation: ProductCreation) -> VariantOutcome:
    """Nunca aborta: cualquier fallo se degrada a una advertencia."""

    warnings = list(creation.warnings)
    code = creation.product.variant_code
    if not code:
        return VariantOutcome(creation=creation, warnings=warnings)

    if creation.product_id is None:
        logger.warning(NO_PRODUCT_ID_WARNING)
        warnings.append(NO_PRODUCT_ID_WARNING)
        return VariantOutcome(creation=creation, warnings=warnings)

    request = VariantRequest(
        id=creation.product_id,
        code=code,
        **creation.product.flags.model_dump(),
    )
    try:
        response = await transport.call(VARIANT_ENDPOINT, Verb.CREATE, request.to_fields())
    except MedicalApiError as exc:
        reason = classify(exc, VARIANT_ENDPOINT).message
        logger.warning("Variante no creada para el producto %s: %s", creation.product_id, reason)
        warnings.append(f"Error al crear la variante: {reason}")
        return VariantOutcome(creation=creation, warnings=warnings)

    if not response.ok:
        reason = response.message or "respuesta sin éxito"
        logger.warning("Variante rechazada para el producto %s: %s", creation.product_id, reason)
        warnings.append(f"Error al crear la variante: {reason}")
        return VariantOutcome(creation=creation, warnings=warnings)

    return VariantOutcome(creation=creation, response=response, warnings=warnings)


def _product_succeeded(response: ApiResponse) -> bool:
    if response.is_partial:
        return True
    return response.ok


def consolidate(outcome: VariantOutcome) -> StepResult[WorkflowResult]:
    creation = outcome.creation
    if creation.product_id is None or not _product_succeeded(creation.response):
        return rejected(
            FailureKind.PRODUCT_CREATION_FAILED,
            creation.response.message or "La creación del producto falló",
            status_code=creation.response.status_code,
            endpoint=PRODUCT_ENDPOINT,
        )

    variant_id = extract_primary_id(outcome.response.body) if outcome.response else None

    message = SUCCESS_MESSAGE
    if outcome.created and variant_id is not None:
        message += WITH_VARIANT_SUFFIX
    elif creation.product.variant_code and not outcome.created:
        message += VARIANT_FAILED_SUFFIX

    return Ok(
        WorkflowResult(
            success=True,
            primary_id=creation.product_id,
            secondary_id=variant_id,
            message=message,
            warnings=list(outcome.warnings),
            payload={
                "product": creation.response.data,
                "variant": outcome.response.data if outcome.response else None,
            },
        )
    )


async def create_product_with_variant(draft: ProductDraft, transport: ApiTransport) -> WorkflowResult:
    """Ejecuta el pipeline completo; lanza `WorkflowError` si el producto no se crea."""

    product = unwrap(validate_product(draft), workflow=WORKFLOW)
    creation = unwrap(await create_product(transport, product), workflow=WORKFLOW)
    outcome = await create_variant(transport, creation)
    result = unwrap(consolidate(outcome), workflow=WORKFLOW)
    logger.info(
        "Producto %s creado (variante=%s, advertencias=%d)",
        result.primary_id,
        result.secondary_id,
        len(result.warnings),
    )
    return result
