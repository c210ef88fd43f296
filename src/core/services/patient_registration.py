"""Workflow de registro de pacientes (terceros).

Cuatro pasos estrictamente secuenciales:
1. validar datos locales (sin red),
2. verificar que la cédula no exista,
3. crear el tercero con procedencia fija 768,
4. confirmar y extraer el ID.

Cualquier paso que falle aborta el pipeline; no hay reintentos.
"""

from __future__ import annotations

import logging
import re
from datetime import date

from core.config import ExistenceCheckMode
from core.domain.errors import ApiConnectionError, MedicalApiError, StructuredApiError
from core.domain.kinds import FailureKind, Gender, Verb
from core.domain.models import PatientDraft, ValidatedPatient, WorkflowResult
from core.error_catalog import (
    MSG_FECHA_INVALIDA,
    MSG_MENOR_DE_EDAD,
    MSG_TERCERO_EXISTE,
)
from core.error_classifier import extract_message, is_not_found
from core.interfaces.transport import ApiResponse, ApiTransport
from core.services.steps import (
    Ok,
    StepResult,
    invalid,
    rejected,
    remote_failure,
    remote_kind,
    unwrap,
)
from core.validation import (
    compute_age,
    extract_patient_id,
    has_records,
    is_valid_date_format,
    is_valid_email,
    is_valid_identification,
    is_valid_phone,
)

logger = logging.getLogger(__name__)

WORKFLOW = "patient-registration"
USER_ENDPOINT = "/user"
MINIMUM_AGE = 18
DEFAULT_SUCCESS_MESSAGE = "Tercero creado exitosamente"

# Mensaje crudo de la API -> vocabulario estable del dominio.
_CREATE_ERROR_VOCABULARY: tuple[tuple[re.Pattern[str], FailureKind, str], ...] = (
    (re.compile(r"fecha ingresada es inv[áa]lida", re.IGNORECASE), FailureKind.INVALID_DATE, MSG_FECHA_INVALIDA),
    (re.compile(r"menor de edad", re.IGNORECASE), FailureKind.UNDERAGE, MSG_MENOR_DE_EDAD),
    (re.compile(r"ya existe", re.IGNORECASE), FailureKind.ALREADY_EXISTS, MSG_TERCERO_EXISTE),
)


def validate_patient(draft: PatientDraft, today: date | None = None) -> StepResult[ValidatedPatient]:
    if not is_valid_date_format(draft.dob):
        return invalid(FailureKind.INVALID_DATE, MSG_FECHA_INVALIDA)

    age = compute_age(draft.dob, today)
    if age < MINIMUM_AGE:
        return invalid(FailureKind.UNDERAGE, MSG_MENOR_DE_EDAD)

    if draft.gender not in (Gender.MALE.value, Gender.FEMALE.value):
        return invalid(FailureKind.INVALID_GENDER, 'El género debe ser exactamente "m" o "f"')

    if not is_valid_identification(draft.identification):
        return invalid(
            FailureKind.INVALID_IDENTIFICATION,
            "Formato de cédula inválido",
            suggestion="La cédula debe tener al menos 6 caracteres alfanuméricos, sin espacios ni guiones.",
        )

    if draft.email and not is_valid_email(draft.email):
        return invalid(
            FailureKind.INVALID_FORMAT,
            "Formato de correo electrónico inválido",
            suggestion="Usa un correo con formato usuario@dominio.com",
        )

    if draft.phone and not is_valid_phone(draft.phone):
        return invalid(
            FailureKind.INVALID_FORMAT,
            "Formato de teléfono inválido",
            suggestion="El teléfono admite dígitos, espacios, +, -, ( ) y al menos 7 caracteres.",
        )

    return Ok(
        ValidatedPatient(
            name=draft.name,
            lastname=draft.lastname,
            identification=draft.identification,
            dob=draft.dob,
            gender=Gender(draft.gender),
            email=draft.email or None,
            phone=draft.phone or None,
            age=age,
        )
    )


async def check_patient_exists(
    transport: ApiTransport,
    patient: ValidatedPatient,
    mode: ExistenceCheckMode = ExistenceCheckMode.PERMISSIVE,
) -> StepResult[ValidatedPatient]:
    """Busca la cédula; solo un resultado no vacío bloquea la creación.

    La API señala "no existe" de forma inconsistente (a veces 404, a veces
    500 con `meta.message`), por eso el modo permisivo trata cualquier 5xx
    como ausencia.
    """

    try:
        response = await transport.call(
            USER_ENDPOINT,
            Verb.READ,
            {"identification": patient.identification},
        )
    except StructuredApiError as exc:
        message = extract_message(exc, USER_ENDPOINT)
        if exc.status_code == 404 or is_not_found(message):
            logger.debug("Tercero no encontrado (HTTP %s)", exc.status_code)
            return Ok(patient)
        if exc.is_server_error:
            if mode is ExistenceCheckMode.PERMISSIVE:
                logger.warning(
                    "Verificación de existencia falló con %s; se asume que el tercero no existe",
                    exc.status_code,
                )
                return Ok(patient)
            return remote_failure(FailureKind.EXISTENCE_CHECK_FAILED, exc, USER_ENDPOINT)
        return remote_failure(remote_kind(exc, FailureKind.EXISTENCE_CHECK_FAILED), exc, USER_ENDPOINT)
    except ApiConnectionError as exc:
        return remote_failure(FailureKind.TRANSPORT_FAILURE, exc, USER_ENDPOINT)

    envelope = response.envelope
    data = response.data if not isinstance(response.body, str) else None
    found = has_records(data) and not (envelope is not None and envelope.is_error)
    if found and not is_not_found(response.message or ""):
        return invalid(FailureKind.ALREADY_EXISTS, MSG_TERCERO_EXISTE)
    return Ok(patient)


async def create_patient(transport: ApiTransport, patient: ValidatedPatient) -> StepResult[ApiResponse]:
    try:
        response = await transport.call(USER_ENDPOINT, Verb.CREATE, patient.to_fields())
    except MedicalApiError as exc:
        message = extract_message(exc, USER_ENDPOINT)
        for pattern, kind, canonical in _CREATE_ERROR_VOCABULARY:
            if pattern.search(message):
                return remote_failure(kind, exc, USER_ENDPOINT, message=canonical)
        if isinstance(exc, StructuredApiError) and exc.is_server_error:
            return remote_failure(FailureKind.CREATION_FAILED, exc, USER_ENDPOINT)
        return remote_failure(remote_kind(exc, FailureKind.CREATION_FAILED), exc, USER_ENDPOINT)
    return Ok(response)


def confirm_patient_creation(response: ApiResponse) -> StepResult[WorkflowResult]:
    if not response.ok:
        return rejected(
            FailureKind.CREATION_FAILED,
            response.message or "No se pudo confirmar la creación del tercero",
            status_code=response.status_code,
            endpoint=USER_ENDPOINT,
        )

    patient_id = extract_patient_id(response.body)
    data = response.data
    return Ok(
        WorkflowResult(
            success=True,
            primary_id=patient_id,
            message=response.message or DEFAULT_SUCCESS_MESSAGE,
            payload=data if data is not None else response.body,
        )
    )


async def register_patient(
    draft: PatientDraft,
    transport: ApiTransport,
    *,
    existence_check: ExistenceCheckMode = ExistenceCheckMode.PERMISSIVE,
    today: date | None = None,
) -> WorkflowResult:
    """Ejecuta el pipeline completo; lanza `WorkflowError` en el primer fallo."""

    patient = unwrap(validate_patient(draft, today), workflow=WORKFLOW)
    patient = unwrap(await check_patient_exists(transport, patient, existence_check), workflow=WORKFLOW)
    response = unwrap(await create_patient(transport, patient), workflow=WORKFLOW)
    result = unwrap(confirm_patient_creation(response), workflow=WORKFLOW)
    logger.info("Tercero registrado con ID %s", result.primary_id)
    return result
