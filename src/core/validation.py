"""Reglas de validación puras (sin I/O).

Los "no encontrado" se devuelven como `None`/`False`; nunca se lanza
excepción desde aquí. Son los pasos de los workflows los que deciden si un
valor inválido aborta el pipeline.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
IDENTIFICATION_RE = re.compile(r"^[A-Za-z0-9]{6,}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[\d\s+\-()]{7,}$")

_PRIMARY_ID_PATHS: tuple[tuple[str, ...], ...] = (
    ("data", "id"),
    ("data", "product_id"),
    ("id",),
    ("product_id",),
)
_PATIENT_ID_PATHS: tuple[tuple[str, ...], ...] = (
    ("data", "id"),
    ("data", "ids"),
    ("id",),
)


def is_valid_date_format(value: str) -> bool:
    """`YYYY-MM-DD` y además una fecha real del calendario."""

    if not isinstance(value, str) or not DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def compute_age(dob: str | date, today: date | None = None) -> int:
    """Años cumplidos a `today` (por defecto hoy).

    Resta un año si el mes/día de nacimiento aún no llega: para `1990-03-15`
    evaluado el `2024-03-14` devuelve 33.
    """

    birth = date.fromisoformat(dob) if isinstance(dob, str) else dob
    today = today or date.today()
    age = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        age -= 1
    return age


def is_valid_identification(value: str | None) -> bool:
    if not value or not value.strip():
        return False
    return bool(IDENTIFICATION_RE.match(value))


def is_valid_email(value: str | None) -> bool:
    if not value:
        return False
    return bool(EMAIL_RE.match(value))


def is_valid_phone(value: str | None) -> bool:
    """Dígitos más `+ - ( )` y espacios, mínimo 7 caracteres."""

    if not value:
        return False
    return bool(PHONE_RE.match(value))


def _dig(response: Any, path: tuple[str, ...]) -> Any:
    current = response
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        match = re.match(r"^\s*(-?\d+)", value)
        if match:
            return int(match.group(1))
    return None


def extract_primary_id(response: Any) -> int | None:
    """Busca el ID en `data.id`, `data.product_id`, `id`, `product_id`.

    Devuelve el primero presente como entero, o `None` si no hay ninguno.
    """

    for path in _PRIMARY_ID_PATHS:
        value = _dig(response, path)
        if value in (None, "", 0):
            continue
        parsed = _as_int(value)
        if parsed is not None:
            return parsed
    return None


def extract_patient_id(response: Any) -> str | None:
    """ID de un tercero recién creado: `data.id`, `data.ids`, `id`."""

    for path in _PATIENT_ID_PATHS:
        value = _dig(response, path)
        if value in (None, "", 0):
            continue
        if isinstance(value, list):
            if not value:
                continue
            value = value[0]
        return str(value)
    return None


def has_records(data: Any) -> bool:
    """True si `data` contiene al menos un registro real (ignora `[null]`)."""

    if data is None:
        return False
    if isinstance(data, (list, tuple)):
        return any(item not in (None, {}, []) for item in data)
    if isinstance(data, dict):
        return bool(data)
    if isinstance(data, str):
        return bool(data.strip())
    return True
