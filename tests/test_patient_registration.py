from datetime import date

import pytest
from conftest import envelope

from core.config import ExistenceCheckMode
from core.domain.errors import ApiConnectionError, WorkflowError
from core.domain.kinds import ErrorCategory, FailureFamily, FailureKind, Verb
from core.domain.models import PatientDraft
from core.error_catalog import MSG_TERCERO_NO_EXISTE
from core.services.patient_registration import USER_ENDPOINT, register_patient, validate_patient
from core.services.steps import Failed, Ok

TODAY = date(2024, 3, 16)


def _draft(**overrides) -> PatientDraft:
    data = {
        "name": "María",
        "lastname": "González",
        "identification": "12345678",
        "dob": "1990-03-15",
        "gender": "f",
    }
    data.update(overrides)
    return PatientDraft(**data)


def _not_found(transport):
    transport.fail_with_status(USER_ENDPOINT, Verb.READ, 500, MSG_TERCERO_NO_EXISTE)


def _created(transport, patient_id=123):
    transport.respond(
        USER_ENDPOINT,
        Verb.CREATE,
        envelope({"id": patient_id}, "Tercero creado exitosamente"),
        status_code=201,
    )


async def test_registers_adult_patient(transport):
    _not_found(transport)
    _created(transport)

    result = await register_patient(_draft(), transport, today=TODAY)

    assert result.success is True
    assert result.primary_id == "123"
    assert "exitosamente" in result.message
    assert [c.verb for c in transport.calls] == [Verb.READ, Verb.CREATE]
    assert transport.calls[0].fields == {"identification": "12345678"}


async def test_underage_fails_before_any_network_call(transport):
    with pytest.raises(WorkflowError) as excinfo:
        await register_patient(_draft(dob="2010-01-01"), transport, today=date(2024, 6, 1))

    assert excinfo.value.kind is FailureKind.UNDERAGE
    assert excinfo.value.family == FailureFamily.BUSINESS_RULE_VIOLATION.value
    assert excinfo.value.message == "El usuario no puede ser menor de edad"
    assert transport.calls == []


async def test_procedense_is_always_768(transport):
    _not_found(transport)
    _created(transport)

    await register_patient(_draft(procedense="999", email="maria@example.com"), transport, today=TODAY)

    sent = transport.calls_to(USER_ENDPOINT, Verb.CREATE)[0].fields
    assert sent["procedense"] == "768"
    assert sent["gender"] == "f"
    assert sent["email"] == "maria@example.com"
    assert sent["phone"] == ""


def test_validation_order_date_before_gender():
    result = validate_patient(_draft(dob="15/03/1990", gender="x"), TODAY)
    assert isinstance(result, Failed)
    assert result.kind is FailureKind.INVALID_DATE
    assert "YYYY-MM-DD" in result.suggestion


@pytest.mark.parametrize("gender", ["F", "female", "", "x"])
def test_gender_must_be_exact(gender):
    result = validate_patient(_draft(gender=gender), TODAY)
    assert isinstance(result, Failed)
    assert result.kind is FailureKind.INVALID_GENDER


def test_identification_format():
    result = validate_patient(_draft(identification="12-34"), TODAY)
    assert isinstance(result, Failed)
    assert result.kind is FailureKind.INVALID_IDENTIFICATION


def test_optional_contact_fields_are_checked_only_when_present():
    assert isinstance(validate_patient(_draft(email=""), TODAY), Ok)
    bad_email = validate_patient(_draft(email="maria@"), TODAY)
    bad_phone = validate_patient(_draft(phone="12"), TODAY)
    assert isinstance(bad_email, Failed) and bad_email.kind is FailureKind.INVALID_FORMAT
    assert isinstance(bad_phone, Failed) and bad_phone.kind is FailureKind.INVALID_FORMAT


async def test_existing_patient_blocks_creation(transport):
    transport.respond(USER_ENDPOINT, Verb.READ, envelope([{"id": 4, "identification": "12345678"}]))

    with pytest.raises(WorkflowError) as excinfo:
        await register_patient(_draft(), transport, today=TODAY)

    assert excinfo.value.kind is FailureKind.ALREADY_EXISTS
    assert excinfo.value.message == "El tercero ya existe"
    assert transport.calls_to(USER_ENDPOINT, Verb.CREATE) == []


async def test_null_placeholder_is_not_an_existing_patient(transport):
    transport.respond(USER_ENDPOINT, Verb.READ, envelope([None]))
    _created(transport)

    result = await register_patient(_draft(), transport, today=TODAY)
    assert result.success


async def test_404_counts_as_absent(transport):
    transport.fail_with_status(USER_ENDPOINT, Verb.READ, 404, "Not Found")
    _created(transport)

    result = await register_patient(_draft(), transport, today=TODAY)
    assert result.primary_id == "123"


async def test_permissive_mode_treats_server_error_as_absent(transport):
    transport.fail_with_status(USER_ENDPOINT, Verb.READ, 503, "Servicio caído")
    _created(transport)

    result = await register_patient(_draft(), transport, today=TODAY)
    assert result.success


async def test_strict_mode_stops_on_server_error(transport):
    transport.fail_with_status(USER_ENDPOINT, Verb.READ, 503, "Servicio caído")

    with pytest.raises(WorkflowError) as excinfo:
        await register_patient(
            _draft(),
            transport,
            existence_check=ExistenceCheckMode.STRICT,
            today=TODAY,
        )

    assert excinfo.value.kind is FailureKind.EXISTENCE_CHECK_FAILED
    assert excinfo.value.status_code == 503
    assert transport.calls_to(USER_ENDPOINT, Verb.CREATE) == []


async def test_strict_mode_still_accepts_not_found_message(transport):
    _not_found(transport)
    _created(transport)

    result = await register_patient(
        _draft(),
        transport,
        existence_check=ExistenceCheckMode.STRICT,
        today=TODAY,
    )
    assert result.success


async def test_create_server_error_surfaces_api_message(transport):
    _not_found(transport)
    transport.fail_with_status(USER_ENDPOINT, Verb.CREATE, 500, "No se pudo crear al tercero")

    with pytest.raises(WorkflowError) as excinfo:
        await register_patient(_draft(), transport, today=TODAY)

    error = excinfo.value
    assert error.kind is FailureKind.CREATION_FAILED
    assert error.message == "No se pudo crear al tercero"
    assert error.status_code == 500
    assert error.category is ErrorCategory.SERVER
    assert "cédula" in error.suggestion


async def test_create_maps_known_api_messages_to_domain_kinds(transport):
    _not_found(transport)
    transport.fail_with_status(USER_ENDPOINT, Verb.CREATE, 500, "Error: el tercero ya existe en el sistema")

    with pytest.raises(WorkflowError) as excinfo:
        await register_patient(_draft(), transport, today=TODAY)

    assert excinfo.value.kind is FailureKind.ALREADY_EXISTS
    assert excinfo.value.message == "El tercero ya existe"


async def test_unauthorized_is_authentication_failure(transport):
    transport.fail_with_status(USER_ENDPOINT, Verb.READ, 401, "No autorizado")

    with pytest.raises(WorkflowError) as excinfo:
        await register_patient(_draft(), transport, today=TODAY)

    assert excinfo.value.kind is FailureKind.AUTHENTICATION_FAILURE
    assert excinfo.value.family == "authentication-failure"


async def test_no_response_is_transport_failure(transport):
    transport.fail(
        USER_ENDPOINT,
        Verb.READ,
        ApiConnectionError("No se pudo contactar la API médica (network error: ConnectError)", endpoint=USER_ENDPOINT, method="GET"),
    )

    with pytest.raises(WorkflowError) as excinfo:
        await register_patient(_draft(), transport, today=TODAY)

    assert excinfo.value.kind is FailureKind.TRANSPORT_FAILURE
    assert excinfo.value.recoverable is True


async def test_success_status_with_error_meta_is_not_confirmed(transport):
    _not_found(transport)
    transport.respond(USER_ENDPOINT, Verb.CREATE, envelope(None, "No se pudo crear al tercero", status="error"))

    with pytest.raises(WorkflowError) as excinfo:
        await register_patient(_draft(), transport, today=TODAY)

    assert excinfo.value.kind is FailureKind.CREATION_FAILED
    assert excinfo.value.message == "No se pudo crear al tercero"
