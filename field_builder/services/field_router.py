"""Field Detail Router: waehlt anhand des Typ-Tags den passenden Detail-Editor."""

from dataclasses import dataclass
from typing import Callable

from field_builder.core.errors import UnsupportedFieldTypeError
from field_builder.core.field_types import FieldType
from field_builder.core.notifications import Notifier
from field_builder.schemas.field_definition import FieldReference
from field_builder.services.detail_editors import (
    EditorMode,
    FieldDetailEditor,
    TextFieldDetailEditor,
    NumberFieldDetailEditor,
    DateTimeFieldDetailEditor,
    CheckboxFieldDetailEditor,
    DropDownListFieldDetailEditor,
    LookupFieldDetailEditor,
)
from field_builder.services.queries import FieldQueries


@dataclass
class UnsupportedFieldView:
    """Terminal view for field types without a detail editor."""
    field: FieldReference
    on_back: Callable[[], None] | None = None

    @property
    def message(self) -> str:
        return f"Unsupported field type: {self.field.type}"

    def back(self) -> None:
        if self.on_back:
            self.on_back()


def editor_class_for(field_type: FieldType) -> type[FieldDetailEditor] | None:
    if field_type is FieldType.TEXT:
        return TextFieldDetailEditor
    if field_type is FieldType.NUMBER:
        return NumberFieldDetailEditor
    if field_type is FieldType.DATETIME:
        return DateTimeFieldDetailEditor
    if field_type is FieldType.CHECKBOX:
        return CheckboxFieldDetailEditor
    if field_type is FieldType.DROPDOWN_LIST:
        return DropDownListFieldDetailEditor
    if field_type is FieldType.LOOKUP:
        return LookupFieldDetailEditor
    # AddressField hat keinen Detail-Editor
    return None


def route_field(
    field: FieldReference,
    object_name: str,
    queries: FieldQueries,
    notifier: Notifier | None = None,
    mode: EditorMode = EditorMode.VIEW,
    on_back: Callable[[], None] | None = None,
) -> FieldDetailEditor | UnsupportedFieldView:
    """Map a field reference to its detail editor (not yet loaded)."""
    try:
        field_type = FieldType.parse(field.type)
    except UnsupportedFieldTypeError:
        return UnsupportedFieldView(field, on_back)

    editor_cls = editor_class_for(field_type)
    if editor_cls is None:
        return UnsupportedFieldView(field, on_back)
    return editor_cls(field, object_name, queries, notifier=notifier, mode=mode)
