"""Catálogo de mensajes conocidos de la API médica.

Tabla versionada: cada regla es un patrón (regex, sin distinguir mayúsculas)
sobre el texto de `meta.message` y lo que se deriva de él. Los textos vienen
del contrato observado de la API (en español) más sus equivalentes en inglés
que emite la propia capa de validación o proxies intermedios.

Al agregar un mensaje nuevo de la API: añadir la regla aquí, subir
`CATALOG_VERSION` y cubrirla en `tests/test_error_classifier.py`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from core.domain.kinds import ErrorCategory

CATALOG_VERSION = "2024.11.1"


@dataclass(frozen=True)
class MessageRule:
    pattern: re.Pattern[str]
    suggestion: str


def _rx(*alternatives: str) -> re.Pattern[str]:
    return re.compile("|".join(f"(?:{alt})" for alt in alternatives), re.IGNORECASE)


# Mensaje de respaldo por endpoint y status, solo si la API no dio mensaje.
ENDPOINT_FALLBACKS: dict[str, dict[int, str]] = {
    "/user": {
        400: "Datos del paciente inválidos. Verifica que todos los campos requeridos sean correctos.",
        401: "No autorizado para realizar esta operación. Verifica tu token de autenticación.",
        500: (
            "No se pudo crear al tercero. Verifica que todos los datos sean correctos "
            "y que el paciente no exista previamente."
        ),
    },
    "/product": {
        400: "Datos del producto inválidos. Verifica que todos los campos requeridos sean correctos.",
        401: "No autorizado para crear productos. Verifica tu token de autenticación.",
        500: "No se pudo crear el producto. Verifica que todos los datos sean correctos.",
    },
    "/product/variant": {
        400: "Datos de la variante inválidos. Verifica que el ID del producto y el código sean correctos.",
        401: "No autorizado para crear variantes. Verifica tu token de autenticación.",
        500: "No se pudo crear la variante del producto.",
    },
    "/test-type": {
        400: "Datos del tipo de prueba inválidos. Verifica que el nombre, código y product_id sean correctos.",
        401: "No autorizado para crear tipos de prueba. Verifica tu token de autenticación.",
        500: "No se pudo crear el tipo de prueba. Verifica que el product_id exista en el sistema.",
    },
    "/automatized": {
        400: "Nombre de tabla inválido o no especificado.",
        401: "No autorizado para acceder a esta tabla. Verifica tu token de autenticación.",
        500: "Error al obtener datos de la tabla. Verifica que el nombre de la tabla sea correcto.",
    },
    "/test-products": {
        400: "Error en la solicitud de productos.",
        401: "No autorizado para listar productos. Verifica tu token de autenticación.",
        500: "Error al obtener la lista de productos.",
    },
}

GENERIC_FALLBACKS: dict[int, str] = {
    400: "Solicitud inválida: los datos proporcionados no son correctos",
    401: "No autorizado: token de autenticación inválido o faltante",
    403: "Prohibido: no tienes permisos para realizar esta operación",
    404: "No encontrado: el recurso solicitado no existe",
    500: "Error del servidor: ocurrió un error interno",
    502: "Bad Gateway: el servidor no pudo procesar la solicitud",
    503: "Servicio no disponible: el servidor está temporalmente no disponible",
}

GENERIC_FALLBACK_TEMPLATE = "Error HTTP {status}: ocurrió un error desconocido"

# Texto de transporte que nunca debe llegar tal cual al usuario.
RAW_TRANSPORT_PHRASES: frozenset[str] = frozenset(
    {
        "bad request",
        "unauthorized",
        "forbidden",
        "not found",
        "internal server error",
        "bad gateway",
        "service unavailable",
        "gateway timeout",
    }
)

# Un cuerpo crudo solo se muestra si es texto plano corto (no HTML ni JSON).
PLAIN_TEXT_MAX_LENGTH = 200
MARKUP_OR_JSON_PATTERN = re.compile(r"^\s*[<{\[]|</?[a-z!][^>]*>", re.IGNORECASE)

# Mensajes exactos conocidos de la API.
MSG_TERCERO_NO_CREADO = "No se pudo crear al tercero"
MSG_TERCERO_EXISTE = "El tercero ya existe"
MSG_FECHA_INVALIDA = "La fecha ingresada es inválida. Por favor verifique"
MSG_MENOR_DE_EDAD = "El usuario no puede ser menor de edad"
MSG_TERCERO_NO_EXISTE = "No se pudo obtener al tercero o el mismo, no existe"

# Orden importa: gana la primera regla que coincide.
SUGGESTION_RULES: tuple[MessageRule, ...] = (
    MessageRule(
        _rx(r"no se pudo crear (?:al|el) tercero"),
        "Verifica que todos los datos sean correctos: nombre, apellido, cédula, fecha de nacimiento "
        '(formato YYYY-MM-DD), género ("m" o "f"), y que el paciente no exista previamente en el sistema.',
    ),
    MessageRule(
        _rx(r"ya existe", r"already exists"),
        "El paciente ya está registrado en el sistema. Puedes consultar sus datos usando la cédula.",
    ),
    MessageRule(
        _rx(r"fecha", r"\bdate\b"),
        "Verifica que la fecha esté en formato YYYY-MM-DD (ejemplo: 1990-03-15)",
    ),
    MessageRule(
        _rx(r"menor de edad", r"underage", r"\bage\b"),
        "El paciente debe tener al menos 18 años. Verifica la fecha de nacimiento.",
    ),
    MessageRule(
        _rx(r"g[ée]nero", r"gender"),
        'El género debe ser exactamente "m" (masculino) o "f" (femenino)',
    ),
    MessageRule(
        _rx(r"categor[íi]a", r"category"),
        "La categoría debe ser un número entre 1 y 6. Verifica la categoría del producto.",
    ),
    MessageRule(
        _rx(r"\btipo\b", r"\btype\b"),
        'El tipo de producto debe ser "goods", "assets" o "service"',
    ),
    MessageRule(
        _rx(r"no autorizado", r"unauthorized"),
        "Verifica que tu token de autenticación sea válido y esté configurado correctamente.",
    ),
    MessageRule(
        _rx(r"error del servidor", r"server error", r"internal server"),
        "Ocurrió un error en el servidor. Intenta nuevamente o contacta al soporte si el problema persiste.",
    ),
)

NON_RECOVERABLE_PATTERN = _rx(
    r"ya existe",
    r"already exists",
    r"menor de edad",
    r"underage",
    r"fecha (?:ingresada es )?inv[áa]lida",
    r"invalid date",
    r"g[ée]nero",
    r"invalid gender",
    r"no autorizado",
    r"unauthorized",
)

RECOVERABLE_PATTERN = _rx(
    r"error del servidor",
    r"server error",
    r"timeout",
    r"network",
    r"temporalmente",
    r"temporarily",
)

# Se evalúan en este orden; si ninguna coincide la categoría es UNKNOWN.
CATEGORY_RULES: tuple[tuple[ErrorCategory, re.Pattern[str]], ...] = (
    (ErrorCategory.AUTHENTICATION, _rx(r"no autorizado", r"unauthorized")),
    (
        ErrorCategory.VALIDATION,
        _rx(
            r"inv[áa]lid",
            r"invalid",
            r"ya existe",
            r"already exists",
            r"menor de edad",
            r"underage",
            r"fecha",
            r"g[ée]nero",
            r"gender",
        ),
    ),
    (
        ErrorCategory.SERVER,
        _rx(r"server", r"servidor", r"no se pudo crear", r"internal server"),
    ),
    (ErrorCategory.NETWORK, _rx(r"network", r"timeout")),
)

NOT_FOUND_PATTERN = _rx(r"no existe", r"not found", r"does not exist")
