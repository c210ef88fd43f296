import pytest

from core import error_catalog
from core.domain.errors import ApiConnectionError, StructuredApiError
from core.domain.kinds import ErrorCategory
from core.domain.models import ErrorInfo
from core.error_classifier import (
    categorize,
    classify,
    extract_message,
    fallback_message,
    format_for_user,
    is_not_found,
    is_recoverable,
    suggest_correction,
)


def _api_error(status, response, endpoint="/user", api_message=None):
    return StructuredApiError(
        api_message or "Internal Server Error",
        status_code=status,
        api_response=response,
        endpoint=endpoint,
        method="POST",
    )


def test_meta_message_wins_over_http_status():
    error = _api_error(500, {"data": None, "meta": {"status": "error", "message": "No se pudo crear al tercero"}})
    assert extract_message(error) == "No se pudo crear al tercero"


def test_top_level_message_then_error_field():
    assert extract_message(_api_error(400, {"message": "Falta el nombre", "error": "x"})) == "Falta el nombre"
    assert extract_message(_api_error(400, {"error": "Campo requerido"})) == "Campo requerido"


def test_raw_reason_phrase_falls_back_to_endpoint_message():
    error = _api_error(500, "Internal Server Error", endpoint="/product")
    assert extract_message(error) == error_catalog.ENDPOINT_FALLBACKS["/product"][500]


def test_generic_fallbacks_by_status():
    assert fallback_message(404, "/unknown") == error_catalog.GENERIC_FALLBACKS[404]
    assert fallback_message(418) == "Error HTTP 418: ocurrió un error desconocido"
    assert fallback_message(400, "/product/variant/") == error_catalog.ENDPOINT_FALLBACKS["/product/variant"][400]


@pytest.mark.parametrize(
    "message, expected",
    [
        ("No se pudo crear al tercero", "nombre, apellido, cédula"),
        ("El tercero ya existe", "ya está registrado"),
        ("La fecha ingresada es inválida. Por favor verifique", "YYYY-MM-DD"),
        ("El usuario no puede ser menor de edad", "18 años"),
        ("Género inválido", '"m"'),
        ("Categoría no encontrada", "entre 1 y 6"),
        ("Tipo de producto no soportado", '"goods"'),
        ("No autorizado", "token"),
        ("Error del servidor", "Intenta nuevamente"),
    ],
)
def test_suggestions_follow_catalog_order(message, expected):
    suggestion = suggest_correction(message)
    assert suggestion is not None
    assert expected in suggestion


def test_no_suggestion_for_unknown_message():
    assert suggest_correction("algo raro pasó") is None


def test_recoverability():
    assert is_recoverable("El tercero ya existe") is False
    assert is_recoverable("El usuario no puede ser menor de edad") is False
    assert is_recoverable("Error del servidor: ocurrió un error interno") is True
    assert is_recoverable("request timeout") is True
    assert is_recoverable("algo raro pasó") is None


def test_categories():
    assert categorize("No autorizado: token inválido") is ErrorCategory.AUTHENTICATION
    assert categorize("La fecha ingresada es inválida") is ErrorCategory.VALIDATION
    assert categorize("No se pudo crear al tercero") is ErrorCategory.SERVER
    assert categorize("network unreachable") is ErrorCategory.NETWORK
    assert categorize("algo raro pasó") is ErrorCategory.UNKNOWN


def test_not_found_detection():
    assert is_not_found(error_catalog.MSG_TERCERO_NO_EXISTE)
    assert is_not_found("User not found")
    assert not is_not_found("El tercero ya existe")


def test_classify_structured_error():
    error = _api_error(500, {"meta": {"status": "error", "message": "El tercero ya existe"}})
    info = classify(error)
    assert info.message == "El tercero ya existe"
    assert info.status_code == 500
    assert info.endpoint == "/user"
    assert info.category is ErrorCategory.VALIDATION
    assert info.recoverable is False
    assert not info.retryable


def test_classify_connection_error_is_retryable_network():
    error = ApiConnectionError("No se pudo contactar la API médica (network error: ConnectError)", endpoint="/user", method="GET")
    info = classify(error)
    assert info.category is ErrorCategory.NETWORK
    assert info.recoverable is True
    assert info.status_code is None
    assert info.endpoint == "/user"


def test_format_for_user_appends_suggestion():
    info = ErrorInfo(message="El tercero ya existe", suggestion="Consulta sus datos")
    assert format_for_user(info) == "El tercero ya existe\nSugerencia: Consulta sus datos"
    assert format_for_user(ErrorInfo(message="x")) == "x"


def test_envelope_without_message_never_surfaces_the_body():
    body = {"data": [None], "meta": {"status": "success", "message": ""}}
    error = _api_error(500, body, api_message='{"data":[null],"meta":{"status":"success","message":""}}')
    assert extract_message(error) == error_catalog.ENDPOINT_FALLBACKS["/user"][500]


def test_html_error_page_falls_back_to_status_message():
    page = "<html><body><h1>502 Bad Gateway</h1></body></html>"
    error = _api_error(502, page, endpoint="/product", api_message=page)
    assert extract_message(error) == error_catalog.GENERIC_FALLBACKS[502]


def test_short_plain_text_body_is_kept():
    error = _api_error(400, "Campo identification requerido", api_message="Campo identification requerido")
    assert extract_message(error) == "Campo identification requerido"


def test_long_plain_text_body_is_not_shown():
    text = "x" * (error_catalog.PLAIN_TEXT_MAX_LENGTH + 1)
    error = _api_error(500, text, endpoint="/product", api_message=text)
    assert extract_message(error) == error_catalog.ENDPOINT_FALLBACKS["/product"][500]
