"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.medical_api import MedicalApiClient
from core.config import AppSettings, write_user_env_vars
from core.domain.errors import ApiConnectionError, StructuredApiError
from core.domain.kinds import Verb

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_api(settings: AppSettings) -> tuple[bool, str]:
    """Hace una lectura inocua (`GET /test-products`) contra la API."""

    try:
        async with MedicalApiClient(settings) as api:
            response = await api.call("/test-products", Verb.READ)
        return True, f"HTTP {response.status_code}"
    except StructuredApiError as exc:
        return False, f"HTTP {exc.status_code}: {exc.api_message}"
    except ApiConnectionError as exc:
        return False, str(exc)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="medadmin Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row("API root", "OK", settings.api_root)
    if settings.api_key:
        table.add_row("API key", "OK", "Bearer token configurado")
    else:
        table.add_row("API key", "MISSING", "Sin token -> la API puede responder 401")
    table.add_row("Existence check", "OK", settings.existence_check.value)
    table.add_row("Approval threshold", "OK", f"{settings.approval_price_threshold:g}")

    # Connectivity (best-effort)
    ok_api, detail_api = asyncio.run(_check_api(settings))
    table.add_row("API connectivity", "OK" if ok_api else "FAIL", detail_api)

    _console.print(table)

    if not ok_api:
        _console.print(
            "\n[yellow]Note:[/yellow] Verifica MEDICAL_API_BASE_URL y MEDICAL_API_KEY "
            "o ejecuta `medadmin doctor setup-api`."
        )


@app.command(name="setup-api")
def setup_api() -> None:
    """Interactive API setup (stores config in the user config .env)."""

    current = AppSettings()
    base_url = typer.prompt("API base URL", default=current.api_base_url, show_default=True).strip()
    api_key = typer.prompt("API key", hide_input=True, confirmation_prompt=False, default="").strip()
    mode = typer.prompt(
        "Existence check (permissive/strict)",
        default=current.existence_check.value,
        show_default=True,
    ).strip().lower()

    if not base_url:
        raise typer.BadParameter("base_url is required")
    if mode not in ("permissive", "strict"):
        raise typer.BadParameter("existence check must be 'permissive' or 'strict'")

    values = {
        "MEDICAL_API_BASE_URL": base_url,
        "MEDADMIN_EXISTENCE_CHECK": mode,
    }
    if api_key:
        values["MEDICAL_API_KEY"] = api_key

    env_path = write_user_env_vars(values)
    _console.print(f"[green]Saved API config to:[/green] {env_path}")
