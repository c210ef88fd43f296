from __future__ import annotations

from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx
import pytest

from adapters.medical_api import MedicalApiClient
from core.config import AppSettings
from core.domain.errors import StructuredApiError
from core.domain.kinds import Verb
from core.interfaces.transport import ApiResponse


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        MEDICAL_API_BASE_URL="http://api.test",
        MEDICAL_API_KEY="secret-token",
    )


@pytest.fixture
def mock_api(settings):
    """Construye un `MedicalApiClient` sobre un `httpx.MockTransport`."""

    def build(handler) -> MedicalApiClient:
        return MedicalApiClient(settings, transport=httpx.MockTransport(handler))

    return build


@dataclass
class RecordedCall:
    endpoint: str
    verb: Verb
    fields: dict[str, Any] | None


@dataclass
class ScriptedTransport:
    """Doble del transporte: respuestas en cola por (endpoint, verb) y registro de llamadas."""

    script: dict[tuple[str, Verb], deque] = field(default_factory=lambda: defaultdict(deque))
    calls: list[RecordedCall] = field(default_factory=list)

    def respond(self, endpoint: str, verb: Verb, body: Any = None, status_code: int = 200) -> None:
        self.script[(endpoint, verb)].append(ApiResponse(status_code=status_code, body=body))

    def fail(self, endpoint: str, verb: Verb, error: Exception) -> None:
        self.script[(endpoint, verb)].append(error)

    def fail_with_status(
        self,
        endpoint: str,
        verb: Verb,
        status_code: int,
        message: str,
        envelope: Any = None,
    ) -> None:
        self.fail(
            endpoint,
            verb,
            StructuredApiError(
                message,
                status_code=status_code,
                api_response=envelope if envelope is not None else {"data": None, "meta": {"status": "error", "message": message}},
                endpoint=endpoint,
                method=verb.http_method,
            ),
        )

    def calls_to(self, endpoint: str, verb: Verb) -> list[RecordedCall]:
        return [c for c in self.calls if c.endpoint == endpoint and c.verb is verb]

    async def call(
        self,
        endpoint: str,
        verb: Verb,
        fields: Mapping[str, Any] | None = None,
        *,
        content: bytes | None = None,
        as_json: bool = False,
    ) -> ApiResponse:
        self.calls.append(RecordedCall(endpoint, verb, dict(fields) if fields else None))
        queue = self.script.get((endpoint, verb))
        if not queue:
            raise AssertionError(f"Unexpected call {verb.http_method} {endpoint}")
        outcome = queue.popleft()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


def envelope(data: Any = None, message: str = "", status: str = "success") -> dict[str, Any]:
    return {"data": data, "meta": {"status": status, "message": message}}
