from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Annotated, Literal, Union
import json
import re

from field_builder.core.metadata import first_value, to_bool

API_CODE_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")
API_CODE_MESSAGE = (
    "API Code must start with a letter and contain only letters, numbers, and underscores"
)

# Dateiendung der Feld-Metadaten auf dem Server
FIELD_FILE_SUFFIX = ".field_meta.xml"

TEXT_SUBTYPES = ("text", "email", "phone", "url")
NUMBER_FORMATS = ("Number", "Percentage")
DATETIME_TYPES = ("Date", "Time", "DateTime")
DROPDOWN_SUBTYPES = ("singleSelect", "multiSelect")
DROPDOWN_SOURCE_TYPES = ("UniversalMetadata", "GlobalMetadata")

# Legacy-Werte aus alten Metadaten -> kanonische Schreibweise
LEGACY_NUMBER_FORMATS = {
    "number": "Number",
    "decimal": "Number",
    "integer": "Number",
    "currency": "Number",
    "percentage": "Percentage",
}

# Universal-Metadata-Quellen mit festen rootKey/itemKey
UNIVERSAL_SOURCE_KEYS = {
    "countries.xml": ("countries", "country"),
    "currencies.xml": ("currencies", "currency"),
}

ADDRESS_COLUMN_SUFFIXES = {
    "streetAddressColumn": "StreetAddress",
    "cityColumn": "City",
    "stateProvinceColumn": "StateProvince",
    "zipCodeColumn": "ZipCode",
    "countryColumn": "Country",
}

MAX_DISPLAY_COLUMNS = 5


def _blank_to_none(value):
    value = first_value(value)
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _strict_bool(value, message: str) -> bool:
    value = first_value(value)
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError(message)


def normalize_number_format(value) -> str | None:
    """Map legacy lower/mixed-case format values onto Number/Percentage."""
    value = first_value(value)
    if value is None or (isinstance(value, str) and not value.strip()):
        return "Number"
    if isinstance(value, str):
        return LEGACY_NUMBER_FORMATS.get(value.strip().lower(), value)
    return value


def address_columns(api_code: str) -> dict[str, str]:
    """Derive the five address column names from an apiCode."""
    api_code = (api_code or "").strip()
    if not api_code:
        return {alias: "" for alias in ADDRESS_COLUMN_SUFFIXES}
    return {alias: f"{api_code}{suffix}" for alias, suffix in ADDRESS_COLUMN_SUFFIXES.items()}


def parse_display_columns(value) -> list[str]:
    """Parse displayColumns into an ordered, duplicate-free list.

    Older metadata stores the columns as a JSON array string or as a
    comma-separated string.
    """
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = [part.strip() for part in text.split(",")]
        value = parsed if isinstance(parsed, list) else [str(parsed)]

    columns: list[str] = []
    for item in value:
        item = str(first_value(item) or "").strip()
        if item and item not in columns:
            columns.append(item)
    return columns


class FieldReference(BaseModel):
    """Eintrag der Feldliste eines Business Objects."""
    type: str
    api_code: str = Field(..., alias="apiCode")
    label: str = ""
    file_path: str = Field("", alias="filePath")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @property
    def field_code(self) -> str:
        """Server-side field code: the file name without its metadata suffix."""
        if self.file_path:
            return self.file_path.removesuffix(FIELD_FILE_SUFFIX)
        return self.api_code


class FieldBase(BaseModel):
    """Gemeinsame Attribute aller Feldtypen."""
    api_code: str = Field(
        ...,
        alias="apiCode",
        description="Technischer Feldname, nach dem Anlegen unveraenderlich. Beispiel: 'billingAddress'",
        json_schema_extra={"pattern": API_CODE_PATTERN.pattern},
    )
    label: str = Field(..., description="Anzeigename des Feldes.")
    help_text: str = Field("", alias="helpText", description="Optionaler Hilfetext.")
    place_holder: str = Field("", alias="placeHolder", description="Optionaler Platzhalter.")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("api_code", mode="before")
    @classmethod
    def validate_api_code(cls, v) -> str:
        v = first_value(v)
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("API Code is required")
        if not isinstance(v, str) or not API_CODE_PATTERN.match(v.strip()):
            raise ValueError(API_CODE_MESSAGE)
        return v.strip()

    @field_validator("label", mode="before")
    @classmethod
    def validate_label(cls, v) -> str:
        v = first_value(v)
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Label is required")
        return v.strip()

    @field_validator("help_text", "place_holder", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        v = first_value(v)
        return "" if v is None else v


class TextField(FieldBase):
    """Freitext-Feld (text, email, phone, url)."""
    type: Literal["TextField"] = "TextField"
    subtype: Literal["text", "email", "phone", "url"] = "text"
    max_length: int | None = Field(None, alias="maxLength", gt=0)
    copy_able: bool = Field(False, alias="copyAble")
    truncate: bool = False
    visible_lines_in_view: int | None = Field(None, alias="visibleLinesInView", ge=1)
    visible_lines_in_edit: int | None = Field(None, alias="visibleLinesInEdit", ge=1)

    @field_validator("max_length", "visible_lines_in_view", "visible_lines_in_edit", mode="before")
    @classmethod
    def blank_numbers(cls, v):
        return _blank_to_none(v)

    @field_validator("copy_able", "truncate", mode="before")
    @classmethod
    def parse_flags(cls, v) -> bool:
        return to_bool(v)


class NumberField(FieldBase):
    """Zahlenfeld mit Format und Nachkommastellen."""
    type: Literal["NumberField"] = "NumberField"
    step: int | float | None = None
    format: Literal["Number", "Percentage"] = "Number"
    decimal_places: int | None = Field(2, alias="decimalPlaces", ge=0, le=10)

    @field_validator("step", mode="before")
    @classmethod
    def validate_step(cls, v):
        v = _blank_to_none(v)
        if v is None:
            return None
        try:
            num = float(v)
        except (TypeError, ValueError):
            raise ValueError("Step must be a valid number")
        return int(num) if num.is_integer() else num

    @field_validator("format", mode="before")
    @classmethod
    def canonical_format(cls, v):
        return normalize_number_format(v)

    @field_validator("decimal_places", mode="before")
    @classmethod
    def validate_decimal_places(cls, v):
        v = _blank_to_none(v)
        if v is None:
            return None
        try:
            num = float(v)
        except (TypeError, ValueError):
            raise ValueError("Decimal places must be a number between 0 and 10")
        if not num.is_integer() or not 0 <= num <= 10:
            raise ValueError("Decimal places must be a number between 0 and 10")
        return int(num)


class DateTimeField(FieldBase):
    type: Literal["DateTimeField"] = "DateTimeField"
    field_type: Literal["Date", "Time", "DateTime"] = Field("Date", alias="fieldType")


class DropDownListField(FieldBase):
    """Auswahlliste; die Werte liegen in einem separaten Value Set (sourcePath)."""
    type: Literal["DropDownListField"] = "DropDownListField"
    subtype: Literal["singleSelect", "multiSelect"] = "singleSelect"
    source_type: Literal["UniversalMetadata", "GlobalMetadata"] = Field(
        "GlobalMetadata", alias="sourceType",
    )
    source_path: str = Field(..., alias="sourcePath", description="Metadata-Pfad des Value Sets.")
    show_search: bool = Field(False, alias="showSearch")
    root_key: str = Field("", alias="rootKey")
    item_key: str = Field("", alias="itemKey")

    @field_validator("source_path", mode="before")
    @classmethod
    def validate_source_path(cls, v) -> str:
        v = first_value(v)
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Source path is required")
        return v.strip()

    @field_validator("show_search", mode="before")
    @classmethod
    def parse_show_search(cls, v) -> bool:
        return to_bool(v)

    @field_validator("root_key", "item_key", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        v = first_value(v)
        return "" if v is None else v

    @model_validator(mode="after")
    def default_universal_keys(self):
        # countries.xml / currencies.xml haben feste Keys
        if self.source_type == "UniversalMetadata" and not self.root_key.strip():
            keys = UNIVERSAL_SOURCE_KEYS.get(self.source_path)
            if keys:
                self.root_key, self.item_key = keys
        return self


class CheckboxField(FieldBase):
    type: Literal["CheckboxField"] = "CheckboxField"
    default_value: bool = Field(False, alias="defaultValue")

    @field_validator("default_value", mode="before")
    @classmethod
    def parse_default(cls, v) -> bool:
        if v is None:
            return False
        return _strict_bool(v, "Default value must be true or false")


class AddressField(FieldBase):
    """Adressfeld; die fuenf Spaltennamen werden aus dem apiCode abgeleitet."""
    type: Literal["AddressField"] = "AddressField"
    street_address_column: str = Field("", alias="streetAddressColumn")
    city_column: str = Field("", alias="cityColumn")
    state_province_column: str = Field("", alias="stateProvinceColumn")
    zip_code_column: str = Field("", alias="zipCodeColumn")
    country_column: str = Field("", alias="countryColumn")

    @model_validator(mode="before")
    @classmethod
    def derive_columns(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        api_code = first_value(data.get("apiCode", data.get("api_code")))
        derived = address_columns(api_code if isinstance(api_code, str) else "")
        for alias, value in derived.items():
            if not first_value(data.get(alias)):
                data[alias] = value
        return data

    @model_validator(mode="after")
    def require_columns(self):
        missing = [
            alias for alias, name in zip(
                ADDRESS_COLUMN_SUFFIXES,
                ("street_address_column", "city_column", "state_province_column",
                 "zip_code_column", "country_column"),
            )
            if not getattr(self, name)
        ]
        if missing:
            raise ValueError(f"Address columns are required: {', '.join(missing)}")
        return self


class LookupField(FieldBase):
    """Referenz auf einen Datensatz eines anderen Business Objects."""
    type: Literal["LookupField"] = "LookupField"
    referenced_object: str = Field(..., alias="referencedObject")
    primary_display_field: str = Field(..., alias="primaryDisplayField")
    display_columns: list[str] = Field(
        ...,
        alias="displayColumns",
        description=f"1-{MAX_DISPLAY_COLUMNS} Felder des referenzierten Objects.",
    )
    relationship_api_code: str | None = Field(None, alias="relationshipApiCode")
    relationship_name: str | None = Field(None, alias="relationshipName")

    @field_validator("referenced_object", mode="before")
    @classmethod
    def validate_referenced_object(cls, v) -> str:
        v = first_value(v)
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Referenced object is required")
        return v.strip()

    @field_validator("primary_display_field", mode="before")
    @classmethod
    def validate_primary_display_field(cls, v) -> str:
        v = first_value(v)
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Primary display field is required")
        return v.strip()

    @field_validator("display_columns", mode="before")
    @classmethod
    def validate_display_columns(cls, v) -> list[str]:
        columns = parse_display_columns(v)
        if not columns:
            raise ValueError("At least one display column is required")
        if len(columns) > MAX_DISPLAY_COLUMNS:
            raise ValueError(f"Maximum {MAX_DISPLAY_COLUMNS} display columns allowed")
        return columns

    @field_validator("relationship_api_code", "relationship_name", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return _blank_to_none(v)


FieldDefinition = Annotated[
    Union[
        TextField,
        NumberField,
        DateTimeField,
        DropDownListField,
        CheckboxField,
        AddressField,
        LookupField,
    ],
    Field(discriminator="type"),
]
