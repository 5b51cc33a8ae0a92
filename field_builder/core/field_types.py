"""Feldtyp-Varianten: geschlossene Menge von Feldtypen und ihre Schemas.

Zu jedem Typ-Tag gehoeren:
  - das pydantic-Modell (Attribut-Schema inkl. Constraints)
  - ein Default-Template fuer neue Formulare
  - die Normalisierung geladener Metadaten in Formular-Werte
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from field_builder.core.errors import (
    ErrorDetail, ValidationError, UnsupportedFieldTypeError,
)
from field_builder.core.metadata import (
    flatten_xml_metadata, to_bool, bool_str, text_value,
)
from field_builder.schemas.field_definition import (
    FieldDefinition, TextField, NumberField, DateTimeField, DropDownListField,
    CheckboxField, AddressField, LookupField,
    address_columns, normalize_number_format, parse_display_columns,
)


class FieldType(str, Enum):
    TEXT = "TextField"
    NUMBER = "NumberField"
    DATETIME = "DateTimeField"
    DROPDOWN_LIST = "DropDownListField"
    CHECKBOX = "CheckboxField"
    ADDRESS = "AddressField"
    LOOKUP = "LookupField"

    @classmethod
    def parse(cls, value) -> "FieldType":
        """Convert a type tag, raising UnsupportedFieldTypeError for unknown tags."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedFieldTypeError(value) from None


# Im Wizard waehlbar, aber noch nicht implementiert
COMING_SOON_TYPES = ("FormulaField", "AmountField")

WIZARD_FIELD_TYPE_CHOICES = [t.value for t in FieldType] + list(COMING_SOON_TYPES)

_COMMON_DEFAULTS = {"apiCode": "", "label": "", "helpText": "", "placeHolder": ""}


@dataclass(frozen=True)
class FieldVariant:
    field_type: FieldType
    model: type[BaseModel]
    defaults: dict
    boolean_keys: tuple[str, ...] = ()

    def default_values(self) -> dict:
        return {"type": self.field_type.value, **_COMMON_DEFAULTS, **_copy(self.defaults)}


def _copy(values: dict) -> dict:
    return {k: list(v) if isinstance(v, list) else v for k, v in values.items()}


VARIANTS: dict[FieldType, FieldVariant] = {
    FieldType.TEXT: FieldVariant(
        FieldType.TEXT, TextField,
        defaults={
            "subtype": "text", "maxLength": "", "copyAble": False, "truncate": False,
            "visibleLinesInView": "", "visibleLinesInEdit": "",
        },
        boolean_keys=("copyAble", "truncate"),
    ),
    FieldType.NUMBER: FieldVariant(
        FieldType.NUMBER, NumberField,
        defaults={"step": "", "format": "Number", "decimalPlaces": "2"},
    ),
    FieldType.DATETIME: FieldVariant(
        FieldType.DATETIME, DateTimeField,
        defaults={"fieldType": "Date"},
    ),
    FieldType.DROPDOWN_LIST: FieldVariant(
        FieldType.DROPDOWN_LIST, DropDownListField,
        defaults={
            "subtype": "singleSelect", "sourceType": "GlobalMetadata", "sourcePath": "",
            "showSearch": False, "rootKey": "", "itemKey": "",
        },
        boolean_keys=("showSearch",),
    ),
    FieldType.CHECKBOX: FieldVariant(
        FieldType.CHECKBOX, CheckboxField,
        defaults={"defaultValue": False},
        boolean_keys=("defaultValue",),
    ),
    FieldType.ADDRESS: FieldVariant(
        FieldType.ADDRESS, AddressField,
        defaults=address_columns(""),
    ),
    FieldType.LOOKUP: FieldVariant(
        FieldType.LOOKUP, LookupField,
        defaults={
            "referencedObject": "", "primaryDisplayField": "", "displayColumns": [],
            "relationshipApiCode": "", "relationshipName": "",
        },
    ),
}

_field_adapter = TypeAdapter(FieldDefinition)


def get_variant(field_type) -> FieldVariant:
    """Lookup the variant for a type tag. Unknown tags raise UnsupportedFieldTypeError."""
    return VARIANTS[FieldType.parse(field_type)]


def default_values(field_type) -> dict:
    """Default form template for a new field of the given type."""
    return get_variant(field_type).default_values()


def attribute_schema(field_type) -> dict:
    """JSON schema (camelCase) of the variant: required attributes and constraints."""
    return get_variant(field_type).model.model_json_schema(by_alias=True)


def _error_message(err: dict) -> str:
    msg = err.get("msg", "")
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return msg


def _error_field(err: dict, tag: str) -> str | None:
    for part in reversed(err.get("loc", ())):
        if isinstance(part, str) and part != tag:
            return part
    return None


def validate_field(form: dict):
    """Validate a form against the schema of its variant.

    Raises ValidationError mit allen gefundenen Fehlern auf einmal.
    """
    field_type = FieldType.parse(form.get("type"))
    try:
        return _field_adapter.validate_python({**form, "type": field_type.value})
    except PydanticValidationError as exc:
        details = []
        for err in exc.errors():
            field = _error_field(err, field_type.value)
            message = _error_message(err)
            if err.get("type") == "missing" and field:
                message = f"'{field}' is required."
            details.append(ErrorDetail(
                code=str(err.get("type", "invalid")).upper(),
                message=message,
                field=field,
            ))
        raise ValidationError(
            f"Validation failed with {len(details)} error(s).",
            details=details,
        ) from None


def to_payload(field: BaseModel) -> dict:
    """Serialize a validated field for the wire.

    Booleans werden als "true"/"false" uebertragen (XML-Metadaten-Format).
    """
    payload = field.model_dump(by_alias=True, exclude_none=True)
    for key, value in payload.items():
        if isinstance(value, bool):
            payload[key] = bool_str(value)
    return payload


def form_from_metadata(field_type, data: Any) -> dict:
    """Build form values from fetched (possibly xml2js-shaped) metadata.

    Fehlende Werte kommen aus dem Default-Template; Legacy-Schreibweisen
    werden normalisiert.
    """
    variant = get_variant(field_type)
    flat = flatten_xml_metadata(data)
    form = variant.default_values()

    for key, default in list(form.items()):
        if key == "type" or key not in flat:
            continue
        value = flat[key]
        if key in variant.boolean_keys:
            form[key] = to_bool(value)
        elif isinstance(default, list):
            form[key] = parse_display_columns(value)
        else:
            form[key] = text_value(value)

    if variant.field_type is FieldType.NUMBER:
        form["format"] = normalize_number_format(form["format"])
        if not form["decimalPlaces"]:
            form["decimalPlaces"] = "2"
    elif variant.field_type is FieldType.ADDRESS:
        for alias, derived in address_columns(form["apiCode"]).items():
            if not form[alias]:
                form[alias] = derived
    return form


def apply_changes(form: dict, changes: dict) -> dict:
    """Pure form update: returns a new form dict with ``changes`` applied."""
    updated = _copy(form)
    updated.update(_copy(changes))
    return updated
