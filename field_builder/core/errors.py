"""Strukturierte Fehler fuer den Field Builder.

Drei Kategorien:
- ValidationError: clientseitige Pruefung fehlgeschlagen, nie an den Server geschickt
- ApiError: Server hat die Anfrage abgelehnt oder war nicht erreichbar
- UnsupportedFieldTypeError: unbekannter Feldtyp-Tag

Jeder Fehler hat:
- message: Menschenlesbare Zusammenfassung
- details: Liste von ErrorDetail mit code, message, field, hint
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict


@dataclass
class ErrorDetail:
    """Ein einzelnes Fehlerproblem."""
    code: str
    message: str
    field: str | None = None
    hint: str | None = None


@dataclass
class ErrorResponse:
    """Maschinenlesbare Fehler-Response (wie vom Backend geliefert)."""
    error: str
    message: str
    details: list[ErrorDetail] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "error": self.error,
            "message": self.message,
            "details": [asdict(d) for d in self.details],
        }

    @classmethod
    def from_payload(cls, payload, default_message: str) -> "ErrorResponse":
        """Parse an error body. Only ``message`` is guaranteed by the backend."""
        if not isinstance(payload, dict):
            return cls(error="internal", message=default_message)

        details = []
        for d in payload.get("details") or []:
            if isinstance(d, dict) and "code" in d and "message" in d:
                details.append(ErrorDetail(
                    code=str(d["code"]),
                    message=str(d["message"]),
                    field=d.get("field"),
                    hint=d.get("hint"),
                ))
        return cls(
            error=str(payload.get("error") or "internal"),
            message=payload.get("message") or default_message,
            details=details,
        )


class FieldBuilderError(Exception):
    """Basis-Exception fuer alle Field-Builder-Fehler."""
    error_type: str = "internal"

    def __init__(self, message: str, details: list[ErrorDetail] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or []

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error=self.error_type,
            message=self.message,
            details=self.details,
        )


class ValidationError(FieldBuilderError):
    """Eingabe-Validierungsfehler (clientseitig)."""
    error_type = "validation"

    def field_errors(self) -> dict[str, str]:
        """First message per offending field, for inline display."""
        errors: dict[str, str] = {}
        for d in self.details:
            if d.field and d.field not in errors:
                errors[d.field] = d.message
        return errors


class UnsupportedFieldTypeError(ValidationError):
    """Feldtyp ist nicht Teil der geschlossenen Typ-Menge."""

    def __init__(self, field_type):
        super().__init__(
            f"Unsupported field type: {field_type}",
            details=[ErrorDetail(
                code="UNSUPPORTED_FIELD_TYPE",
                message=f"Field type '{field_type}' is not supported.",
                field="type",
            )],
        )
        self.field_type = field_type


class ReadOnlyFieldError(ValidationError):
    """Feld darf nach dem Anlegen nicht mehr geaendert werden."""

    def __init__(self, field_name: str):
        super().__init__(
            f"'{field_name}' is read-only.",
            details=[ErrorDetail(
                code="READ_ONLY_FIELD",
                message=f"'{field_name}' cannot be changed after the field has been created.",
                field=field_name,
            )],
        )


class ApiError(FieldBuilderError):
    """Server hat die Anfrage abgelehnt (non-2xx) oder Transportfehler."""
    error_type = "api"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: list[ErrorDetail] | None = None,
    ):
        super().__init__(message, details=details)
        self.status_code = status_code


class NotFoundError(ApiError):
    """404 - Ressource nicht gefunden."""
    error_type = "not_found"
