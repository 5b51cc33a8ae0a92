"""HTTP-Client fuer die Field-Builder-Endpoints des Backends.

Endpoints:
  GET  /api/object-fields/{object}                -> Feldliste
  GET  /api/object-fields/{object}/{fieldCode}    -> Feld-Metadaten
  PUT  /api/object-fields/{object}/{fieldCode}    -> Feld aktualisieren
  POST /api/object-fields/{object}                -> Feld anlegen
  GET/PUT /api/metadata/{path}                    -> Value-Set-Inhalt
  GET  /api/object-definitions                    -> Business Objects
  GET/POST /api/global-value-sets                 -> Global Value Sets

Fehlerhafte Responses (non-2xx) werden als ApiError mit der Server-Message
geworfen.
"""

import logging
from urllib.parse import quote

import httpx

from field_builder.config import get_settings
from field_builder.core.errors import ApiError, NotFoundError, ErrorResponse
from field_builder.schemas.field_definition import FieldReference
from field_builder.schemas.value_set import (
    GlobalValueSetCreate, GlobalValueSetSummary, ObjectDefinitionSummary,
)

logger = logging.getLogger(__name__)


def _segment(value: str) -> str:
    return quote(value, safe="")


class FieldBuilderClient:
    """Synchronous client around ``httpx.Client``."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
        headers: dict | None = None,
    ):
        settings = get_settings()
        self._http = httpx.Client(
            base_url=base_url or settings.api_base_url,
            timeout=timeout if timeout is not None else settings.request_timeout,
            transport=transport,
            headers=headers,
        )

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, url: str, default_message: str, json=None):
        try:
            response = self._http.request(method, url, json=json)
        except httpx.HTTPError as exc:
            logger.warning(f"{method} {url} failed: {exc}")
            raise ApiError(f"{default_message}: {exc}") from exc

        if response.is_success:
            if not response.content:
                return None
            return response.json()

        try:
            body = response.json()
        except ValueError:
            body = None
        error = ErrorResponse.from_payload(body, default_message)
        logger.warning(f"{method} {url} -> {response.status_code}: {error.message}")
        error_cls = NotFoundError if response.status_code == 404 else ApiError
        raise error_cls(error.message, status_code=response.status_code, details=error.details)

    # ── Object fields ────────────────────────────────────

    def list_fields(self, object_name: str) -> list[FieldReference]:
        data = self._request(
            "GET", f"/api/object-fields/{_segment(object_name)}",
            "Failed to fetch field definitions",
        )
        return [FieldReference.model_validate(item) for item in data or []]

    def get_field(self, object_name: str, field_code: str) -> dict:
        return self._request(
            "GET", f"/api/object-fields/{_segment(object_name)}/{_segment(field_code)}",
            "Failed to fetch field metadata",
        ) or {}

    def update_field(self, object_name: str, field_code: str, payload: dict) -> dict:
        return self._request(
            "PUT", f"/api/object-fields/{_segment(object_name)}/{_segment(field_code)}",
            "Failed to save field metadata",
            json=payload,
        ) or {}

    def create_field(self, object_name: str, payload: dict) -> dict:
        return self._request(
            "POST", f"/api/object-fields/{_segment(object_name)}",
            "Failed to create field",
            json=payload,
        ) or {}

    # ── Metadata (Value Sets) ────────────────────────────

    def get_metadata(self, source_path: str) -> dict:
        # sourcePath darf Unterordner enthalten (global_value_sets/leadSource)
        return self._request(
            "GET", f"/api/metadata/{quote(source_path, safe='/')}",
            "Failed to fetch metadata",
        ) or {}

    def update_metadata(self, source_path: str, payload: dict) -> dict:
        return self._request(
            "PUT", f"/api/metadata/{quote(source_path, safe='/')}",
            "Failed to update metadata",
            json=payload,
        ) or {}

    # ── Picker data ──────────────────────────────────────

    def list_object_definitions(self) -> list[ObjectDefinitionSummary]:
        data = self._request("GET", "/api/object-definitions", "Failed to fetch objects")
        return [ObjectDefinitionSummary.model_validate(item) for item in data or []]

    def list_global_value_sets(self) -> list[GlobalValueSetSummary]:
        data = self._request("GET", "/api/global-value-sets", "Failed to fetch global value sets")
        return [GlobalValueSetSummary.model_validate(item) for item in data or []]

    def create_global_value_set(self, value_set: GlobalValueSetCreate) -> dict:
        return self._request(
            "POST", "/api/global-value-sets",
            "Failed to create global value set",
            json=value_set.model_dump(),
        ) or {}
