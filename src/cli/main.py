"""CLI de medadmin (Typer).

Capa delgada: arma un `OperationRequest`, pide confirmación si la operación
la requiere y muestra el resultado. Toda la lógica vive en `core`.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import typer
from rich.console import Console

from adapters.medical_api import MedicalApiClient
from cli import doctor
from cli.ui_components import (
    build_error_panel,
    build_operations_table,
    build_result_panel,
    print_banner,
    render_json,
)
from core.config import AppSettings
from core.domain.errors import WorkflowError
from core.domain.models import OperationRequest, WorkflowResult
from core.services.operations import OPERATIONS, dispatch, requires_approval

app = typer.Typer(no_args_is_help=True, help="Asistente administrativo para la API médica.")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def parse_fields(fields: list[str]) -> dict[str, Any]:
    """Los valores quedan como texto; Pydantic los convierte según el modelo de la operación."""

    payload: dict[str, Any] = {}
    for item in fields:
        if "=" not in item:
            raise typer.BadParameter(f"Se esperaba clave=valor, se recibió: {item}")
        key, value = item.split("=", 1)
        key = key.strip()
        if not key:
            raise typer.BadParameter(f"Clave vacía en: {item}")
        payload[key] = value.strip()
    return payload


async def _execute(request: OperationRequest, settings: AppSettings) -> WorkflowResult:
    async with MedicalApiClient(settings) as api:
        return await dispatch(request, api, settings=settings)


@app.command(name="operations")
def list_operations() -> None:
    """Lista las operaciones disponibles."""

    _console.print(build_operations_table(list(OPERATIONS.values())))


@app.command(name="run")
def run_operation(
    operation: str = typer.Argument(..., help="Nombre de la operación, p.ej. register-patient."),
    field: Optional[list[str]] = typer.Option(None, "--field", "-f", help="Campo clave=valor (repetible)."),
    payload_json: Optional[str] = typer.Option(None, "--payload", help="Payload completo como JSON."),
    yes: bool = typer.Option(False, "--yes", "-y", help="No pedir confirmación."),
    as_json: bool = typer.Option(False, "--json", help="Salida JSON (sin banner)."),
) -> None:
    """Ejecuta una operación contra la API médica."""

    settings = AppSettings()
    payload: dict[str, Any] = {}
    if payload_json:
        try:
            payload.update(json.loads(payload_json))
        except ValueError as exc:
            raise typer.BadParameter(f"--payload no es JSON válido: {exc}") from exc
    payload.update(parse_fields(field or []))
    request = OperationRequest(name=operation, payload=payload)

    if not as_json:
        print_banner(_console)

    try:
        if not yes and requires_approval(request, settings):
            typer.confirm(f"La operación '{operation}' requiere aprobación. ¿Continuar?", abort=True)
        result = asyncio.run(_execute(request, settings))
    except WorkflowError as error:
        if as_json:
            typer.echo(render_json(error=error))
        else:
            _console.print(build_error_panel(error))
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(render_json(result=result))
    else:
        _console.print(build_result_panel(result))


def run() -> None:
    settings = AppSettings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app()


if __name__ == "__main__":
    run()
