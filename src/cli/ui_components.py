"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

import json

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.errors import WorkflowError
from core.domain.models import WorkflowResult
from core.services.operations import OperationSpec


def print_banner(console: Console) -> None:
    title = Text("medadmin", style="bold cyan")
    subtitle = Text("Asistente administrativo médico • GNU Health", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_operations_table(specs: list[OperationSpec]) -> Table:
    table = Table(title="Operaciones")
    table.add_column("Nombre", style="cyan", no_wrap=True)
    table.add_column("Aprobación", style="yellow")
    table.add_column("Descripción", style="white")
    for spec in specs:
        if callable(spec.approval):
            approval = "condicional"
        else:
            approval = "sí" if spec.approval else "no"
        table.add_row(spec.name, approval, spec.description)
    return table


def build_result_panel(result: WorkflowResult) -> Panel:
    """Panel para un `WorkflowResult` exitoso (con advertencias si las hay)."""

    body = Text()
    body.append(result.message + "\n", style="bold")
    if result.primary_id is not None:
        body.append(f"\nID: {result.primary_id}")
    if result.secondary_id is not None:
        body.append(f"\nID variante: {result.secondary_id}")
    if result.warnings:
        body.append("\n\nAdvertencias:\n", style="bold yellow")
        for warning in result.warnings:
            body.append(f"- {warning}\n", style="yellow")

    border = "yellow" if result.warnings else "green"
    return Panel(body, title=Text("Resultado", style=f"bold {border}"), border_style=border)


def build_error_panel(error: WorkflowError) -> Panel:
    body = Text()
    body.append(error.message + "\n", style="bold")
    if error.suggestion:
        body.append(f"\nSugerencia: {error.suggestion}\n")
    meta = f"\n{error.kind.value} · {error.family}"
    if error.status_code is not None:
        meta += f" · HTTP {error.status_code}"
    body.append(meta, style="dim")
    return Panel(body, title=Text("Error", style="bold red"), border_style="red")


def render_json(result: WorkflowResult | None = None, error: WorkflowError | None = None) -> str:
    if error is not None:
        return json.dumps({"success": False, "error": error.to_dict()}, ensure_ascii=False, indent=2)
    if result is None:
        raise ValueError("render_json necesita un resultado o un error")
    return json.dumps(result.model_dump(mode="json"), ensure_ascii=False, indent=2)
