"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da structs tipados con campos opcionales explícitos en lugar de dicts
  armados a mano en cada llamada.
- `extra="ignore"` descarta campos desconocidos antes de llegar al transporte.

Nota:
- Los borradores (`*Draft`) aceptan lo que manda el host tal cual; las reglas
  de negocio se validan en los pasos de cada workflow para poder reportar el
  tipo de fallo exacto (`FailureKind`), no un error genérico de Pydantic.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from core.domain.kinds import ErrorCategory, Gender, ProductCategory, ProductType

PROCEDENSE_CODE = "768"
DEFAULT_UOM = 1

FLAG_FIELDS: tuple[str, ...] = (
    "is_medicament",
    "is_medical_supply",
    "is_vaccine",
    "is_bed",
    "is_insurance_plan",
    "is_prothesis",
)


class ApiMeta(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: str = Field(
        default="success",
        description="'success' | 'error'. No confiar en él para inferir el resultado HTTP.",
    )
    message: str = Field(
        default="",
        description="Mensaje autoritativo del resultado, aun bajo HTTP 500.",
    )


class ApiEnvelope(BaseModel):
    """Envoltorio `{data, meta}` que usan todas las respuestas de la API."""

    model_config = ConfigDict(extra="ignore")

    data: Any = None
    meta: ApiMeta = Field(default_factory=ApiMeta)

    @property
    def is_error(self) -> bool:
        return self.meta.status.lower() == "error"


class ProductFlags(BaseModel):
    """Atributos booleanos de un producto.

    La API interpreta la *presencia* de un flag como intención, así que
    `to_fields` solo emite los que son verdaderos.
    """

    model_config = ConfigDict(extra="ignore")

    is_medicament: bool = False
    is_medical_supply: bool = False
    is_vaccine: bool = False
    is_bed: bool = False
    is_insurance_plan: bool = False
    is_prothesis: bool = False

    def to_fields(self) -> dict[str, bool]:
        return {name: True for name in FLAG_FIELDS if getattr(self, name)}


class PatientDraft(BaseModel):
    """Datos de un tercero tal como los entrega el host."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., description="Nombre del paciente.")
    lastname: str = Field(..., description="Apellido del paciente.")
    identification: str = Field(..., description="Número de cédula.")
    dob: str = Field(..., description="Fecha de nacimiento YYYY-MM-DD.")
    gender: str = Field(..., description="'m' o 'f'.")
    email: str | None = Field(default=None, description="Correo electrónico (opcional).")
    phone: str | None = Field(default=None, description="Teléfono (opcional).")
    procedense: str | None = Field(
        default=None,
        description="Se ignora: siempre se envía 768.",
    )


class ValidatedPatient(BaseModel):
    name: str
    lastname: str
    identification: str
    dob: str
    gender: Gender
    email: str | None = None
    phone: str | None = None
    age: int = Field(..., ge=18)

    def to_fields(self) -> dict[str, str]:
        """Cuerpo de `POST /user`. `procedense` no es configurable."""

        return {
            "name": self.name,
            "lastname": self.lastname,
            "identification": self.identification,
            "dob": self.dob,
            "gender": self.gender.value,
            "procedense": PROCEDENSE_CODE,
            "email": self.email or "",
            "phone": self.phone or "",
        }


class ProductDraft(ProductFlags):
    """Producto a crear, con variante opcional."""

    name: str = Field(default="", description="Nombre del producto.")
    type: str = Field(..., description="goods | assets | service.")
    list_price: float = Field(..., description="Precio de lista.")
    category: str = Field(..., description="ID de categoría 1..6.")
    default_uom: int | None = Field(
        default=None,
        description="Se ignora: la unidad de medida siempre es 1.",
    )
    variant_code: str | None = Field(
        default=None,
        description="Código de variante; si viene, se crea la variante tras el producto.",
    )

    @field_validator("category", mode="before")
    @classmethod
    def _category_as_str(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def flags(self) -> ProductFlags:
        return ProductFlags(**{name: getattr(self, name) for name in FLAG_FIELDS})


class ValidatedProduct(BaseModel):
    name: str
    type: ProductType
    list_price: float = Field(..., gt=0)
    category: ProductCategory
    default_uom: int = DEFAULT_UOM
    flags: ProductFlags = Field(default_factory=ProductFlags)
    variant_code: str | None = None

    def to_fields(self) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "name": self.name,
            "type": self.type.value,
            "default_uom": self.default_uom,
            "list_price": self.list_price,
            "category": self.category.value,
        }
        fields.update(self.flags.to_fields())
        return fields


class VariantRequest(ProductFlags):
    id: int = Field(..., description="ID numérico del producto padre.")
    code: str = Field(..., min_length=1, description="Nombre o código de la variante.")

    def to_fields(self) -> dict[str, Any]:
        fields: dict[str, Any] = {"id": self.id, "code": self.code}
        fields.update(super().to_fields())
        return fields


class PatientLookup(BaseModel):
    model_config = ConfigDict(extra="ignore")

    identification: str = Field(..., min_length=1)


class PatientDeactivation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ids: int = Field(..., description="ID numérico del paciente (no la cédula).")
    state: str = Field(default="False", description="Estado a asignar.")


class LabTestTypeDraft(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, description="Nombre descriptivo, p.ej. 'Glucosa en ayunas'.")
    code: str = Field(..., min_length=1, description="Código único, p.ej. 'GLU-AYU'.")
    product_id: int = Field(..., description="ID del producto asociado.")


class TableQuery(BaseModel):
    model_config = ConfigDict(extra="ignore")

    table: str = Field(..., min_length=1, description="Nombre de la tabla, p.ej. 'product_template'.")


class EmptyPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class OperationRequest(BaseModel):
    """Intención nombrada que llega desde el host (agente, CLI, API)."""

    name: str = Field(..., min_length=1)
    payload: dict[str, Any] = Field(default_factory=dict)


class WorkflowResult(BaseModel):
    """Resultado final de una operación o workflow."""

    success: bool
    primary_id: str | int | None = Field(
        default=None,
        description="ID principal creado/consultado (paciente o producto).",
    )
    secondary_id: int | None = Field(
        default=None,
        description="ID secundario (variante) cuando aplica.",
    )
    message: str
    warnings: list[str] = Field(
        default_factory=list,
        description="Advertencias en orden de aparición.",
    )
    payload: Any = None


class ErrorInfo(BaseModel):
    """Error remoto ya clasificado y listo para mostrar."""

    message: str
    category: ErrorCategory = ErrorCategory.UNKNOWN
    recoverable: bool | None = Field(
        default=None,
        description="True/False si se reconoce el patrón; None si es indeterminado.",
    )
    suggestion: str | None = None
    status_code: int | None = None
    endpoint: str | None = None

    @property
    def retryable(self) -> bool:
        return self.recoverable is True
