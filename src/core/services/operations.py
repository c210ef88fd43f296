"""Registro y despacho de operaciones con nombre.

El host (agente conversacional, CLI) solo conoce `OperationRequest`
(nombre + payload). Aquí se valida el payload contra el modelo de la
operación (los campos desconocidos se descartan), se ejecuta el handler y se
devuelve un `WorkflowResult` o se lanza `WorkflowError`.

La aprobación humana no ocurre aquí: `requires_approval` solo expone la
política para que el host decida.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Callable, Mapping, Union

from pydantic import BaseModel, ValidationError

from core.config import AppSettings
from core.domain.errors import MedicalApiError, WorkflowError
from core.domain.kinds import ErrorCategory, FailureKind, Verb
from core.domain.models import (
    EmptyPayload,
    LabTestTypeDraft,
    OperationRequest,
    PatientDeactivation,
    PatientDraft,
    PatientLookup,
    ProductDraft,
    TableQuery,
    VariantRequest,
    WorkflowResult,
)
from core.interfaces.transport import ApiTransport
from core.services.patient_registration import (
    USER_ENDPOINT,
    confirm_patient_creation,
    create_patient,
    register_patient,
    validate_patient,
)
from core.services.product_with_variant import (
    VARIANT_ENDPOINT,
    create_product_with_variant,
    partial_success_warning,
)
from core.services.steps import raise_failure, rejected, remote_failure, remote_kind, unwrap
from core.validation import extract_primary_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationContext:
    transport: ApiTransport
    settings: AppSettings
    today: date | None = None


Handler = Callable[[Any, OperationContext], Awaitable[WorkflowResult]]
ApprovalPolicy = Union[bool, Callable[[Any, AppSettings], bool]]


@dataclass(frozen=True)
class OperationSpec:
    name: str
    description: str
    payload_model: type[BaseModel]
    handler: Handler
    approval: ApprovalPolicy = False

    def requires_approval(self, payload: BaseModel, settings: AppSettings) -> bool:
        if callable(self.approval):
            return bool(self.approval(payload, settings))
        return bool(self.approval)


async def _call_endpoint(
    ctx: OperationContext,
    endpoint: str,
    verb: Verb,
    fields: Mapping[str, Any] | None,
    success_message: str,
) -> WorkflowResult:
    """Llamada directa a un endpoint, con el mismo tratamiento de errores que los workflows."""

    workflow = f"{verb.http_method} {endpoint}"
    try:
        response = await ctx.transport.call(endpoint, verb, fields)
    except MedicalApiError as exc:
        raise_failure(
            remote_failure(remote_kind(exc, FailureKind.REQUEST_FAILED), exc, endpoint),
            workflow=workflow,
        )

    if not response.ok and not response.is_partial:
        raise_failure(
            rejected(
                FailureKind.REQUEST_FAILED,
                response.message or success_message,
                status_code=response.status_code,
                endpoint=endpoint,
            ),
            workflow=workflow,
        )

    warnings = [partial_success_warning(response.message)] if response.is_partial else []
    return WorkflowResult(
        success=True,
        primary_id=extract_primary_id(response.body),
        message=response.message or success_message,
        warnings=warnings,
        payload=response.data,
    )


async def _register_patient(payload: PatientDraft, ctx: OperationContext) -> WorkflowResult:
    return await register_patient(
        payload,
        ctx.transport,
        existence_check=ctx.settings.existence_check,
        today=ctx.today,
    )


async def _create_patient(payload: PatientDraft, ctx: OperationContext) -> WorkflowResult:
    """Creación directa, sin verificar existencia (la API rechaza duplicados)."""

    workflow = "create-patient"
    patient = unwrap(validate_patient(payload, ctx.today), workflow=workflow)
    response = unwrap(await create_patient(ctx.transport, patient), workflow=workflow)
    return unwrap(confirm_patient_creation(response), workflow=workflow)


async def _get_patient(payload: PatientLookup, ctx: OperationContext) -> WorkflowResult:
    return await _call_endpoint(
        ctx,
        USER_ENDPOINT,
        Verb.READ,
        {"identification": payload.identification},
        "Datos del tercero obtenidos",
    )


async def _deactivate_patient(payload: PatientDeactivation, ctx: OperationContext) -> WorkflowResult:
    return await _call_endpoint(
        ctx,
        USER_ENDPOINT,
        Verb.DELETE,
        {"ids": payload.ids, "state": payload.state or "False"},
        f"Tercero con ID {payload.ids} desactivado",
    )


async def _create_product_with_variant(payload: ProductDraft, ctx: OperationContext) -> WorkflowResult:
    return await create_product_with_variant(payload, ctx.transport)


async def _create_product(payload: ProductDraft, ctx: OperationContext) -> WorkflowResult:
    return await create_product_with_variant(payload.model_copy(update={"variant_code": None}), ctx.transport)


async def _create_variant(payload: VariantRequest, ctx: OperationContext) -> WorkflowResult:
    return await _call_endpoint(
        ctx,
        VARIANT_ENDPOINT,
        Verb.CREATE,
        payload.to_fields(),
        f"Variante '{payload.code}' creada para el producto {payload.id}",
    )


async def _get_test_products(payload: EmptyPayload, ctx: OperationContext) -> WorkflowResult:
    return await _call_endpoint(ctx, "/test-products", Verb.READ, None, "Lista de productos y plantillas obtenida")


async def _create_test_type(payload: LabTestTypeDraft, ctx: OperationContext) -> WorkflowResult:
    return await _call_endpoint(
        ctx,
        "/test-type",
        Verb.CREATE,
        payload.model_dump(),
        f"Tipo de prueba '{payload.name}' creado",
    )


async def _get_table_data(payload: TableQuery, ctx: OperationContext) -> WorkflowResult:
    return await _call_endpoint(
        ctx,
        "/automatized",
        Verb.READ,
        {"table": payload.table},
        f"Datos de la tabla {payload.table} obtenidos",
    )


def _price_over_threshold(payload: ProductDraft, settings: AppSettings) -> bool:
    return payload.list_price > settings.approval_price_threshold


OPERATIONS: dict[str, OperationSpec] = {
    spec.name: spec
    for spec in (
        OperationSpec(
            "register-patient",
            "Registra un paciente: valida, verifica cédula, crea y confirma.",
            PatientDraft,
            _register_patient,
            approval=True,
        ),
        OperationSpec(
            "create-product-with-variant",
            "Crea un producto y, si hay variant_code, su variante.",
            ProductDraft,
            _create_product_with_variant,
            approval=_price_over_threshold,
        ),
        OperationSpec(
            "create-patient",
            "Crea un tercero directamente (procedencia siempre 768).",
            PatientDraft,
            _create_patient,
            approval=True,
        ),
        OperationSpec(
            "get-patient",
            "Obtiene un paciente por número de cédula.",
            PatientLookup,
            _get_patient,
        ),
        OperationSpec(
            "deactivate-patient",
            "Desactiva un paciente por su ID numérico. Irreversible.",
            PatientDeactivation,
            _deactivate_patient,
            approval=True,
        ),
        OperationSpec(
            "create-product",
            "Crea un producto sin variante.",
            ProductDraft,
            _create_product,
            approval=_price_over_threshold,
        ),
        OperationSpec(
            "create-product-variant",
            "Crea una variante para un producto existente.",
            VariantRequest,
            _create_variant,
        ),
        OperationSpec(
            "get-test-products",
            "Lista productos y plantillas.",
            EmptyPayload,
            _get_test_products,
        ),
        OperationSpec(
            "create-test-type",
            "Crea un tipo de prueba de laboratorio asociado a un producto.",
            LabTestTypeDraft,
            _create_test_type,
        ),
        OperationSpec(
            "get-table-data",
            "Obtiene las filas de una tabla por nombre.",
            TableQuery,
            _get_table_data,
        ),
    )
}


def get_operation(name: str) -> OperationSpec:
    spec = OPERATIONS.get(name)
    if spec is None:
        raise WorkflowError(
            FailureKind.UNKNOWN_OPERATION,
            f"Operación desconocida: {name}",
            suggestion=f"Operaciones disponibles: {', '.join(sorted(OPERATIONS))}",
            category=ErrorCategory.VALIDATION,
            recoverable=False,
        )
    return spec


def _describe_validation_error(name: str, exc: ValidationError) -> str:
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "payload"
        details.append(f"{location}: {error.get('msg', 'valor inválido')}")
    return f"Datos inválidos para {name}: " + "; ".join(details)


def parse_payload(spec: OperationSpec, payload: Mapping[str, Any]) -> BaseModel:
    try:
        return spec.payload_model.model_validate(dict(payload))
    except ValidationError as exc:
        raise WorkflowError(
            FailureKind.INVALID_REQUEST,
            _describe_validation_error(spec.name, exc),
            category=ErrorCategory.VALIDATION,
            recoverable=False,
        ) from exc


def requires_approval(request: OperationRequest, settings: AppSettings) -> bool:
    """Política de aprobación humana. Ante un payload inválido se pide aprobación."""

    spec = get_operation(request.name)
    try:
        payload = parse_payload(spec, request.payload)
    except WorkflowError:
        return spec.approval is not False
    return spec.requires_approval(payload, settings)


async def dispatch(
    request: OperationRequest,
    transport: ApiTransport,
    *,
    settings: AppSettings | None = None,
    today: date | None = None,
) -> WorkflowResult:
    spec = get_operation(request.name)
    payload = parse_payload(spec, request.payload)
    ctx = OperationContext(transport=transport, settings=settings or AppSettings(), today=today)
    logger.debug("Ejecutando operación %s", spec.name)
    return await spec.handler(payload, ctx)
