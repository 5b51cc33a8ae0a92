from field_builder.schemas.field_definition import (
    FieldReference,
    FieldDefinition,
    TextField,
    NumberField,
    DateTimeField,
    DropDownListField,
    CheckboxField,
    AddressField,
    LookupField,
)
from field_builder.schemas.value_set import (
    GlobalValueSetCreate,
    GlobalValueSetSummary,
    ObjectDefinitionSummary,
)

__all__ = [
    "FieldReference",
    "FieldDefinition",
    "TextField",
    "NumberField",
    "DateTimeField",
    "DropDownListField",
    "CheckboxField",
    "AddressField",
    "LookupField",
    "GlobalValueSetCreate",
    "GlobalValueSetSummary",
    "ObjectDefinitionSummary",
]
