"""Detail-Editoren: Anzeige und Bearbeitung eines bestehenden Feldes.

Jeder Editor haelt:
- snapshot: zuletzt erfolgreich geladene Metadaten (normalisiert)
- form: lokale Schattenkopie, die nur im Edit-Modus veraendert wird

Ablauf: load() -> edit() -> set_value()/update() -> save() oder cancel().
"""

import logging
from enum import Enum

from field_builder.core.errors import ApiError, ReadOnlyFieldError, ValidationError, ErrorDetail
from field_builder.core.field_types import (
    FieldType, get_variant, form_from_metadata, validate_field, to_payload, apply_changes,
)
from field_builder.core.notifications import Notifier
from field_builder.schemas.field_definition import (
    FieldReference, NUMBER_FORMATS, LookupField,
)
from field_builder.schemas.value_set import ObjectDefinitionSummary
from field_builder.services.option_set_editor import OptionSetEditor
from field_builder.services.queries import FieldQueries

logger = logging.getLogger(__name__)


class EditorMode(str, Enum):
    VIEW = "view"
    EDIT = "edit"


class FieldDetailEditor:
    """Gemeinsamer Ablauf aller typspezifischen Detail-Editoren."""
    field_type: FieldType
    read_only_keys: tuple[str, ...] = ("type", "apiCode")

    def __init__(
        self,
        field: FieldReference,
        object_name: str,
        queries: FieldQueries,
        notifier: Notifier | None = None,
        mode: EditorMode = EditorMode.VIEW,
    ):
        self.field = field
        self.object_name = object_name
        self.queries = queries
        self.notifier = notifier or Notifier()
        self.mode = EditorMode(mode)

        self.snapshot: dict | None = None
        self.form: dict = get_variant(self.field_type).default_values()
        self.form.update({"apiCode": field.api_code, "label": field.label})
        self.error: str | None = None
        self.field_errors: dict[str, str] = {}
        self.is_loading = False
        self.is_saving = False
        self.disposed = False

    @property
    def field_code(self) -> str:
        return self.field.field_code

    @property
    def is_editing(self) -> bool:
        return self.mode is EditorMode.EDIT

    @property
    def title(self) -> str:
        return f"{self.field.label} ({self.field.type})"

    # ── Laden ────────────────────────────────────────────

    def load(self) -> bool:
        """Fetch current metadata. A failed fetch is non-fatal; call load() again to retry."""
        if self.disposed:
            return False
        self.is_loading = True
        try:
            data = self.queries.field(self.object_name, self.field_code)
        except ApiError as exc:
            logger.warning(
                f"Loading field '{self.object_name}.{self.field_code}' failed: {exc.message}"
            )
            self.error = exc.message
            return False
        finally:
            self.is_loading = False

        if self.disposed:
            return False
        self.snapshot = self.normalize(data)
        # Laufende Bearbeitung wird nicht ueberschrieben
        if not self.is_editing:
            self.form = dict(self.snapshot)
        self.error = None
        return True

    def normalize(self, data) -> dict:
        """Convert fetched metadata into form values (hook for variants)."""
        return form_from_metadata(self.field_type, data)

    # ── Modus ────────────────────────────────────────────

    def set_mode(self, mode: EditorMode) -> None:
        mode = EditorMode(mode)
        if mode is EditorMode.EDIT and not self.is_editing:
            self.reset_form_to(self.snapshot)
        self.mode = mode
        logger.debug(f"Editor {self.object_name}.{self.field_code} -> {mode.value}")

    def edit(self) -> None:
        self.set_mode(EditorMode.EDIT)

    def reset_form_to(self, snapshot: dict | None) -> None:
        if snapshot is not None:
            self.form = dict(snapshot)
        self.field_errors = {}
        self.error = None

    # ── Formular ─────────────────────────────────────────

    def set_value(self, key: str, value) -> None:
        self.update(**{key: value})

    def update(self, **changes) -> None:
        """Apply changes to the local form (edit mode only)."""
        if not self.is_editing:
            raise ValidationError(
                "Switch to edit mode before changing the field.",
                details=[ErrorDetail(code="NOT_EDITING", message="Editor is in view mode.")],
            )
        for key in changes:
            if key in self.read_only_keys and changes[key] != self.form.get(key):
                raise ReadOnlyFieldError(key)
        self.form = apply_changes(self.form, changes)

    def validate(self):
        """Validate the local form; returns the typed field model."""
        try:
            return validate_field(self.form)
        except ValidationError as exc:
            self.field_errors = exc.field_errors()
            self.error = exc.message
            raise

    def build_payload(self) -> dict:
        return to_payload(self.validate())

    # ── Speichern / Abbrechen ────────────────────────────

    def save(self) -> bool:
        """Persist the local form.

        Client-side validation errors are raised before any request. A
        rejected save keeps the editor in edit mode with the server message.
        """
        if self.disposed:
            return False
        if self.snapshot is None:
            # Ohne geladenen Stand wuerde das Default-Template gespeichert
            raise ValidationError(
                "Field has not been loaded; nothing to save.",
                details=[ErrorDetail(code="NOT_LOADED", message="Load the field before saving.")],
            )
        payload = self.build_payload()
        self.field_errors = {}
        self.is_saving = True
        try:
            self.queries.client.update_field(self.object_name, self.field_code, payload)
        except ApiError as exc:
            self.error = exc.message
            self.notifier.error("Save failed", exc.message)
            return False
        finally:
            self.is_saving = False

        self.error = None
        self.queries.invalidate_field(self.object_name, self.field_code)
        logger.info(f"Saved field '{self.object_name}.{self.field_code}'")
        self.notifier.notify("Field saved", "Field definition has been updated successfully.")
        self.mode = EditorMode.VIEW
        self.load()
        return True

    def cancel(self) -> None:
        """Discard local edits and return to view mode."""
        self.reset_form_to(self.snapshot)
        self.mode = EditorMode.VIEW

    def dispose(self) -> None:
        """Detach the editor; later load/save calls are ignored."""
        self.disposed = True


class TextFieldDetailEditor(FieldDetailEditor):
    field_type = FieldType.TEXT


class NumberFieldDetailEditor(FieldDetailEditor):
    field_type = FieldType.NUMBER

    format_choices = NUMBER_FORMATS


class DateTimeFieldDetailEditor(FieldDetailEditor):
    field_type = FieldType.DATETIME


class CheckboxFieldDetailEditor(FieldDetailEditor):
    field_type = FieldType.CHECKBOX


class DropDownListFieldDetailEditor(FieldDetailEditor):
    """DropDownList-Feld; die Werte bearbeitet ein eingebetteter OptionSetEditor."""
    field_type = FieldType.DROPDOWN_LIST

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._option_set: OptionSetEditor | None = None

    def option_set_editor(self) -> OptionSetEditor | None:
        """Nested editor for the value set at ``sourcePath`` (saved independently)."""
        source = self.snapshot or self.form
        source_path = source.get("sourcePath")
        if not source_path:
            return None
        if self._option_set is None or self._option_set.source_path != source_path:
            self._option_set = OptionSetEditor(
                source_path,
                self.queries,
                notifier=self.notifier,
                root_key=source.get("rootKey") or None,
                item_key=source.get("itemKey") or None,
            )
        return self._option_set


class LookupFieldDetailEditor(FieldDetailEditor):
    field_type = FieldType.LOOKUP

    def available_objects(self) -> list[ObjectDefinitionSummary]:
        try:
            return self.queries.object_definitions()
        except ApiError as exc:
            logger.warning(f"Loading object definitions failed: {exc.message}")
            return []

    def referenced_fields(self) -> list[FieldReference]:
        referenced = self.form.get("referencedObject")
        if not referenced:
            return []
        try:
            return self.queries.field_list(referenced)
        except ApiError as exc:
            logger.warning(f"Loading fields of '{referenced}' failed: {exc.message}")
            return []

    def update(self, **changes) -> None:
        referenced = changes.get("referencedObject")
        if referenced is not None and referenced != self.form.get("referencedObject"):
            # Anzeige-Felder gehoeren zum alten Object
            changes.setdefault("primaryDisplayField", "")
            changes.setdefault("displayColumns", [])
        super().update(**changes)

    def validate(self):
        field = super().validate()
        errors = check_display_columns(field, self.referenced_fields())
        if errors:
            self.field_errors = {d.field: d.message for d in errors}
            self.error = errors[0].message
            raise ValidationError(
                f"Validation failed with {len(errors)} error(s).", details=errors,
            )
        return field


def check_display_columns(field: LookupField, available: list[FieldReference]) -> list[ErrorDetail]:
    """Display columns and primary display field must exist on the referenced object."""
    if not available:
        return []
    codes = {f.api_code for f in available}
    errors = []
    unknown = [c for c in field.display_columns if c not in codes]
    if unknown:
        errors.append(ErrorDetail(
            code="UNKNOWN_DISPLAY_COLUMN",
            message=f"Display columns not found on '{field.referenced_object}': {', '.join(unknown)}",
            field="displayColumns",
        ))
    if field.primary_display_field not in codes:
        errors.append(ErrorDetail(
            code="UNKNOWN_PRIMARY_DISPLAY_FIELD",
            message=f"Field '{field.primary_display_field}' not found on '{field.referenced_object}'.",
            field="primaryDisplayField",
        ))
    return errors
