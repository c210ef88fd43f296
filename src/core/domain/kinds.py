"""Vocabularios cerrados del dominio.

Todas las capas (validación, transporte, workflows, CLI) comparten estos
enums para no repetir strings sueltos. Son `str` enums para que serialicen
igual que el valor que viaja por la API o hacia el host.
"""

from __future__ import annotations

from enum import Enum


class Gender(str, Enum):
    """Códigos de género que acepta la API (exactamente dos)."""

    MALE = "m"
    FEMALE = "f"

    def label(self) -> str:
        return "Femenino" if self is Gender.FEMALE else "Masculino"


class ProductType(str, Enum):
    GOODS = "goods"
    ASSETS = "assets"
    SERVICE = "service"


class ProductCategory(str, Enum):
    """Categorías de producto (IDs 1..6 en el sistema remoto)."""

    SEGUROS = "1"
    SERVICIOS_IMAGENES = "2"
    SERVICIOS_LABORATORIO = "3"
    MEDICAMENTOS = "4"
    MEDICAMENTOS_ESENCIALES_OMS = "5"
    EVALUACION_MEDICA = "6"

    def label(self) -> str:
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS = {
    ProductCategory.SEGUROS: "Seguros",
    ProductCategory.SERVICIOS_IMAGENES: "Servicios de imágenes",
    ProductCategory.SERVICIOS_LABORATORIO: "Servicios de laboratorio",
    ProductCategory.MEDICAMENTOS: "Medicamentos",
    ProductCategory.MEDICAMENTOS_ESENCIALES_OMS: "Medicamentos esenciales OMS",
    ProductCategory.EVALUACION_MEDICA: "Evaluación Médica",
}


class Verb(str, Enum):
    """Verbos lógicos del transporte; `http_method` es lo que viaja."""

    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def http_method(self) -> str:
        return _HTTP_METHODS[self]

    @property
    def is_read(self) -> bool:
        return self is Verb.READ


_HTTP_METHODS = {
    Verb.READ: "GET",
    Verb.CREATE: "POST",
    Verb.UPDATE: "PUT",
    Verb.DELETE: "DELETE",
}


class ErrorCategory(str, Enum):
    """Clasificación gruesa de un error remoto (derivada del mensaje)."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    SERVER = "server"
    NETWORK = "network"
    UNKNOWN = "unknown"


class FailureFamily(str, Enum):
    """Taxonomía de fallos expuesta al host."""

    INVALID_INPUT = "invalid-input"
    BUSINESS_RULE_VIOLATION = "business-rule-violation"
    PARTIAL_SUCCESS = "partial-success"
    AUTHENTICATION_FAILURE = "authentication-failure"
    SERVER_FAILURE = "server-failure"
    TRANSPORT_FAILURE = "transport-failure"


class FailureKind(str, Enum):
    """Motivo concreto por el que un paso de un workflow abortó."""

    INVALID_DATE = "invalid-date"
    INVALID_GENDER = "invalid-gender"
    INVALID_IDENTIFICATION = "invalid-identification"
    INVALID_FORMAT = "invalid-format"
    INVALID_NAME = "invalid-name"
    INVALID_TYPE = "invalid-type"
    INVALID_CATEGORY = "invalid-category"
    INVALID_PRICE = "invalid-price"
    INVALID_REQUEST = "invalid-request"
    UNKNOWN_OPERATION = "unknown-operation"

    UNDERAGE = "underage"
    ALREADY_EXISTS = "already-exists"

    CREATION_FAILED = "creation-failed"
    PRODUCT_CREATION_FAILED = "product-creation-failed"
    EXISTENCE_CHECK_FAILED = "existence-check-failed"
    REQUEST_FAILED = "request-failed"

    AUTHENTICATION_FAILURE = "authentication-failure"
    TRANSPORT_FAILURE = "transport-failure"

    @property
    def family(self) -> FailureFamily:
        if self in (FailureKind.UNDERAGE, FailureKind.ALREADY_EXISTS):
            return FailureFamily.BUSINESS_RULE_VIOLATION
        if self is FailureKind.AUTHENTICATION_FAILURE:
            return FailureFamily.AUTHENTICATION_FAILURE
        if self is FailureKind.TRANSPORT_FAILURE:
            return FailureFamily.TRANSPORT_FAILURE
        if self in (
            FailureKind.CREATION_FAILED,
            FailureKind.PRODUCT_CREATION_FAILED,
            FailureKind.EXISTENCE_CHECK_FAILED,
            FailureKind.REQUEST_FAILED,
        ):
            return FailureFamily.SERVER_FAILURE
        return FailureFamily.INVALID_INPUT
