"""Normalisierung von XML-abgeleiteten Metadaten.

Das Backend persistiert Felddefinitionen und Value Sets als XML. Der
xml2js-Parser liefert dabei jeden Wert als Liste (``{"label": ["Name"]}``)
und ein einzelnes Kind-Element kollabiert zu einem Skalar statt einer
Liste. Die Funktionen hier bringen beides in eine flache, stabile Form.
"""

from typing import Any

FIELD_DEFINITION_ROOT = "FieldDefinition"

TRUE_STRINGS = {"true", "1", "yes", "on"}
FALSE_STRINGS = {"false", "0", "no", "off", ""}


def first_value(value: Any) -> Any:
    """Unwrap a single xml2js value (``["x"]`` -> ``"x"``)."""
    if isinstance(value, list):
        return value[0] if value else None
    return value


def as_list(value: Any) -> list:
    """Normalize a one-or-many child element into a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def flatten_xml_metadata(data: Any) -> dict:
    """Flatten a field definition as returned by the backend.

    Accepts both the already-flat JSON shape and the raw xml2js shape,
    optionally wrapped in a ``FieldDefinition`` root. Empty values are dropped.
    Multi-valued entries (``displayColumns``) keep their list form.
    """
    if not isinstance(data, dict):
        return {}
    if FIELD_DEFINITION_ROOT in data and isinstance(data[FIELD_DEFINITION_ROOT], dict):
        data = data[FIELD_DEFINITION_ROOT]

    flat: dict = {}
    for key, raw in data.items():
        if isinstance(raw, list) and len(raw) != 1:
            value = raw
        else:
            value = first_value(raw)
        if value is None or value == "" or value == []:
            continue
        flat[key] = value
    return flat


def to_bool(value: Any, default: bool = False) -> bool:
    """Parse a persisted boolean (``"true"``/``"false"`` or native bool)."""
    value = first_value(value)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_STRINGS:
        return True
    if text in FALSE_STRINGS:
        return False
    return default


def bool_str(value: Any) -> str:
    """Wire form of a boolean: the literal strings ``"true"`` / ``"false"``."""
    return "true" if to_bool(value) else "false"


def text_value(value: Any) -> str:
    """String form of a scalar metadata value; ``None`` becomes ``""``."""
    value = first_value(value)
    if value is None:
        return ""
    return str(value)


def parse_int(value: Any) -> int | None:
    """Parse an integer-ish metadata value; returns None when not numeric."""
    value = first_value(value)
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        try:
            return int(float(str(value).strip()))
        except ValueError:
            return None
