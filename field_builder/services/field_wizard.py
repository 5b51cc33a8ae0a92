"""Create/Edit-Field-Wizard.

Schritte: fieldType -> (subtype | sourceSelection | lookupObject) -> form.
Beim Bearbeiten eines bestehenden Feldes startet der Wizard direkt in
"form" und erlaubt keine Schritt-Navigation.
"""

import logging
from enum import Enum

from pydantic import ValidationError as PydanticValidationError

from field_builder.config import get_settings
from field_builder.core.errors import (
    ApiError, ErrorDetail, ReadOnlyFieldError, UnsupportedFieldTypeError, ValidationError,
)
from field_builder.core.field_types import (
    FieldType, COMING_SOON_TYPES, default_values, form_from_metadata,
    validate_field, to_payload, apply_changes,
)
from field_builder.core.notifications import Notifier
from field_builder.schemas.field_definition import (
    API_CODE_PATTERN, API_CODE_MESSAGE, ADDRESS_COLUMN_SUFFIXES, DATETIME_TYPES,
    TEXT_SUBTYPES, UNIVERSAL_SOURCE_KEYS, FieldReference, address_columns,
)
from field_builder.schemas.value_set import (
    GlobalValueSetCreate, GlobalValueSetSummary, ObjectDefinitionSummary,
)
from field_builder.services.detail_editors import check_display_columns
from field_builder.services.queries import FieldQueries

logger = logging.getLogger(__name__)


class WizardStep(str, Enum):
    FIELD_TYPE = "fieldType"
    SUBTYPE = "subtype"
    LOOKUP_OBJECT = "lookupObject"
    SOURCE_SELECTION = "sourceSelection"
    FORM = "form"


class PicklistSource(str, Enum):
    COUNTRIES = "countries"
    CURRENCIES = "currencies"
    CUSTOM = "custom"
    NEW_CUSTOM = "newCustom"


UNIVERSAL_SOURCES = {
    PicklistSource.COUNTRIES: "countries.xml",
    PicklistSource.CURRENCIES: "currencies.xml",
}


def gating_step(field_type: FieldType) -> WizardStep:
    """Step between type selection and the form for a given field type."""
    if field_type in (FieldType.TEXT, FieldType.DATETIME):
        return WizardStep.SUBTYPE
    if field_type is FieldType.DROPDOWN_LIST:
        return WizardStep.SOURCE_SELECTION
    if field_type is FieldType.LOOKUP:
        return WizardStep.LOOKUP_OBJECT
    return WizardStep.FORM


class FieldWizard:
    def __init__(
        self,
        object_name: str,
        queries: FieldQueries,
        notifier: Notifier | None = None,
        field_to_edit: FieldReference | None = None,
    ):
        self.object_name = object_name
        self.queries = queries
        self.notifier = notifier or Notifier()
        self.field_to_edit = field_to_edit

        self.step = WizardStep.FORM if field_to_edit else WizardStep.FIELD_TYPE
        self.selected_type: str = field_to_edit.type if field_to_edit else ""
        self.form: dict = self._defaults_for(self.selected_type)
        if field_to_edit:
            self.form.update({"apiCode": field_to_edit.api_code, "label": field_to_edit.label})

        self.picklist_source: PicklistSource | None = None
        self.is_new_value_set = False
        self.new_value_set_name = ""
        self.new_value_set_values = ""
        self._value_set_created = False

        self.error: str | None = None
        self.field_errors: dict[str, str] = {}
        self.is_submitting = False
        self.closed = False
        # Im Edit-Modus erst nach erfolgreichem load() absendbar
        self.is_loaded = field_to_edit is None

    @staticmethod
    def _defaults_for(field_type: str) -> dict:
        try:
            return default_values(field_type)
        except UnsupportedFieldTypeError:
            return default_values(FieldType.TEXT)

    @property
    def is_editing(self) -> bool:
        return self.field_to_edit is not None

    @property
    def can_go_back(self) -> bool:
        return not self.is_editing and self.step is not WizardStep.FIELD_TYPE

    @property
    def read_only_keys(self) -> set[str]:
        keys = set()
        if self.selected_type == FieldType.ADDRESS.value:
            keys.update(ADDRESS_COLUMN_SUFFIXES)
        if self.is_editing:
            keys.update({"type", "apiCode"})
        return keys

    def _block(self, code: str, title: str, message: str, field: str | None = None):
        self.error = message
        self.field_errors = {field: message} if field else {}
        self.notifier.error(title, message)
        raise ValidationError(message, details=[ErrorDetail(code=code, message=message, field=field)])

    # ── Laden (Edit-Modus) ───────────────────────────────

    def load(self) -> bool:
        """Load the field being edited into the form."""
        if not self.is_editing:
            return True
        try:
            data = self.queries.field(self.object_name, self.field_to_edit.field_code)
        except ApiError as exc:
            logger.warning(f"Loading field data for editing failed: {exc.message}")
            self.error = exc.message
            self.notifier.error("Error", "Failed to load field data for editing")
            return False

        field_type = (data or {}).get("type") or self.field_to_edit.type
        if isinstance(field_type, list):
            field_type = field_type[0] if field_type else self.field_to_edit.type
        try:
            form = form_from_metadata(field_type, data)
        except UnsupportedFieldTypeError as exc:
            logger.warning(f"Cannot edit field '{self.field_to_edit.api_code}': {exc.message}")
            self.error = exc.message
            self.notifier.error("Unsupported field type", exc.message)
            return False
        self.selected_type = field_type
        self.form = form
        self.form["type"] = field_type
        self.is_loaded = True
        return True

    # ── Auswahl-Schritte ─────────────────────────────────

    def select_field_type(self, field_type: str) -> None:
        if self.is_editing:
            raise ReadOnlyFieldError("type")
        self.selected_type = field_type
        self.form = self._defaults_for(field_type)
        self.picklist_source = None
        self.is_new_value_set = False
        self.error = None
        self.field_errors = {}

    def select_subtype(self, subtype: str) -> None:
        if self.selected_type == FieldType.TEXT.value and subtype in TEXT_SUBTYPES:
            self.form = apply_changes(self.form, {"subtype": subtype})
        elif self.selected_type == FieldType.DATETIME.value and subtype in DATETIME_TYPES:
            self.form = apply_changes(self.form, {"fieldType": subtype})
        else:
            raise ValidationError(
                f"'{subtype}' is not a valid subtype for {self.selected_type or 'this field'}.",
                details=[ErrorDetail(code="INVALID_SUBTYPE", message=f"Got: '{subtype}'", field="subtype")],
            )

    def select_source(self, source: PicklistSource, value_set_name: str | None = None) -> None:
        """Choose where a dropdown list takes its values from."""
        source = PicklistSource(source)
        self.picklist_source = source
        self.is_new_value_set = source is PicklistSource.NEW_CUSTOM

        if source in UNIVERSAL_SOURCES:
            path = UNIVERSAL_SOURCES[source]
            root_key, item_key = UNIVERSAL_SOURCE_KEYS[path]
            self.form = apply_changes(self.form, {
                "sourceType": "UniversalMetadata", "sourcePath": path,
                "rootKey": root_key, "itemKey": item_key,
            })
        elif source is PicklistSource.CUSTOM:
            path = f"{get_settings().global_value_set_prefix}{value_set_name}" if value_set_name else ""
            self.form = apply_changes(self.form, {
                "sourceType": "GlobalMetadata", "sourcePath": path,
                "rootKey": "", "itemKey": "",
            })
        else:
            self.form = apply_changes(self.form, {"sourceType": "GlobalMetadata", "sourcePath": ""})

    def set_new_value_set(self, name: str, values: str) -> None:
        """Name and newline-delimited values of a Global Value Set to create.

        Only on the source selection step: leaving it fixes the field's sourcePath.
        """
        if self.step is not WizardStep.SOURCE_SELECTION:
            raise ValidationError(
                "The Global Value Set can only be changed on the source selection step.",
                details=[ErrorDetail(
                    code="STEP_MISMATCH", message=f"Current step: {self.step.value}",
                    field="newValueSetName",
                )],
            )
        if name != self.new_value_set_name:
            self._value_set_created = False
        self.new_value_set_name = name
        self.new_value_set_values = values

    def new_value_set(self) -> GlobalValueSetCreate:
        return GlobalValueSetCreate(name=self.new_value_set_name, values=self.new_value_set_values)

    def _validated_value_set(self) -> GlobalValueSetCreate:
        try:
            return self.new_value_set()
        except PydanticValidationError as exc:
            err = exc.errors()[0]
            message = err.get("msg", "").removeprefix("Value error, ")
            field = "newValueSetValues" if "values" in err.get("loc", ()) else "newValueSetName"
            self._block("INVALID_VALUE_SET", "Invalid Global Value Set", message, field=field)

    def select_lookup_object(self, api_code: str) -> None:
        self.form = apply_changes(self.form, {
            "referencedObject": api_code, "primaryDisplayField": "", "displayColumns": [],
        })

    def set_value(self, key: str, value) -> None:
        if key in self.read_only_keys and value != self.form.get(key):
            raise ReadOnlyFieldError(key)
        self.form = apply_changes(self.form, {key: value})
        # Adress-Spalten folgen dem apiCode, solange das Feld neu ist
        if key == "apiCode" and self.selected_type == FieldType.ADDRESS.value and not self.is_editing:
            self.form = apply_changes(self.form, address_columns(value))

    # ── Navigation ───────────────────────────────────────

    def next(self) -> WizardStep:
        """Advance one step. Raises ValidationError when the step is incomplete."""
        self.error = None
        self.field_errors = {}
        step = self.step

        if step is WizardStep.FIELD_TYPE:
            if not self.selected_type:
                self._block("SELECTION_REQUIRED", "Selection Required",
                            "Please select a field type to continue", field="type")
            if self.selected_type in COMING_SOON_TYPES:
                self.notifier.notify(
                    "Coming Soon",
                    f"{self.selected_type} creation will be available in a future update",
                )
                return self.step
            try:
                field_type = FieldType.parse(self.selected_type)
            except UnsupportedFieldTypeError as exc:
                self._block("UNSUPPORTED_FIELD_TYPE", "Selection Required", exc.message, field="type")
            self.step = gating_step(field_type)
        elif step is WizardStep.SUBTYPE:
            self.step = WizardStep.FORM
        elif step is WizardStep.SOURCE_SELECTION:
            self._complete_source_selection()
            self.step = WizardStep.FORM
        elif step is WizardStep.LOOKUP_OBJECT:
            if not self.form.get("referencedObject"):
                self._block("SELECTION_REQUIRED", "Selection Required",
                            "Please select an object to continue", field="referencedObject")
            self.step = WizardStep.FORM

        if self.step is not step:
            logger.debug(f"Wizard {step.value} -> {self.step.value}")
        return self.step

    def _complete_source_selection(self) -> None:
        if not self.is_new_value_set:
            if not self.form.get("sourcePath"):
                self._block("SELECTION_REQUIRED", "Selection Required",
                            "Please select a data source to continue", field="sourcePath")
            return

        name = self.new_value_set_name.strip()
        if not name:
            self._block("NAME_REQUIRED", "Name Required",
                        "Please enter a name for the new Global Value Set", field="newValueSetName")
        if not API_CODE_PATTERN.match(name):
            self._block("INVALID_API_CODE", "Invalid API Code", API_CODE_MESSAGE, field="newValueSetName")
        if not self.new_value_set_values.strip():
            self._block("VALUES_REQUIRED", "Values Required",
                        "Please enter at least one value for the Global Value Set",
                        field="newValueSetValues")

        self.form = apply_changes(self.form, {
            "type": FieldType.DROPDOWN_LIST.value,
            "sourceType": "GlobalMetadata",
            "sourcePath": f"{get_settings().global_value_set_prefix}{name}",
            "showSearch": False,
            "rootKey": "",
            "itemKey": "",
        })

    def back(self) -> WizardStep:
        """Go back one step; a no-op while editing an existing field."""
        if not self.can_go_back:
            return self.step
        if self.step is WizardStep.FORM:
            try:
                self.step = gating_step(FieldType.parse(self.selected_type))
            except UnsupportedFieldTypeError:
                self.step = WizardStep.FIELD_TYPE
            if self.step is WizardStep.FORM:
                self.step = WizardStep.FIELD_TYPE
        else:
            self.step = WizardStep.FIELD_TYPE
        return self.step

    # ── Picker-Daten ─────────────────────────────────────

    def available_objects(self) -> list[ObjectDefinitionSummary]:
        try:
            return self.queries.object_definitions()
        except ApiError as exc:
            logger.warning(f"Loading object definitions failed: {exc.message}")
            return []

    def available_value_sets(self) -> list[GlobalValueSetSummary]:
        try:
            return self.queries.global_value_sets()
        except ApiError as exc:
            logger.warning(f"Loading global value sets failed: {exc.message}")
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

    # ── Absenden ─────────────────────────────────────────

    def validate(self):
        try:
            field = validate_field(self.form)
        except ValidationError as exc:
            self.error = exc.message
            self.field_errors = exc.field_errors()
            raise
        if field.type == FieldType.LOOKUP.value:
            errors = check_display_columns(field, self.referenced_fields())
            if errors:
                self.error = errors[0].message
                self.field_errors = {d.field: d.message for d in errors}
                raise ValidationError(f"Validation failed with {len(errors)} error(s).", details=errors)
        return field

    def submit(self) -> bool:
        """Create or update the field.

        Invalid forms raise ValidationError before any request. A rejected
        request is reported via notification and leaves the wizard state as is.
        """
        if self.step is not WizardStep.FORM:
            raise ValidationError(
                "Complete the previous steps before submitting.",
                details=[ErrorDetail(code="STEP_INCOMPLETE", message=f"Current step: {self.step.value}")],
            )
        if not self.is_loaded:
            raise ValidationError(
                "Field data has not been loaded; nothing to save.",
                details=[ErrorDetail(code="NOT_LOADED", message="Load the field before saving.")],
            )
        value_set = None
        if self.is_new_value_set and not self.is_editing:
            value_set = self._validated_value_set()
            # sourcePath folgt immer dem Namen des anzulegenden Value Sets
            self.form = apply_changes(self.form, {
                "sourcePath": f"{get_settings().global_value_set_prefix}{value_set.name}",
            })
        payload = to_payload(self.validate())
        self.error = None
        self.field_errors = {}

        self.is_submitting = True
        try:
            if self.is_editing:
                self.queries.client.update_field(
                    self.object_name, self.field_to_edit.field_code, payload,
                )
            else:
                if self.is_new_value_set and not self._value_set_created:
                    self.queries.client.create_global_value_set(value_set)
                    self._value_set_created = True
                self.queries.client.create_field(self.object_name, payload)
        except ApiError as exc:
            self.error = exc.message
            fallback = "Failed to update field" if self.is_editing else "Failed to create field"
            self.notifier.error("Error", exc.message or fallback)
            return False
        finally:
            self.is_submitting = False

        if self.is_editing:
            self.queries.invalidate_field(self.object_name, self.field_to_edit.field_code)
            description = "Field updated successfully"
        else:
            self.queries.invalidate_field_list(self.object_name)
            description = "Field created successfully"
        if self._value_set_created:
            self.queries.invalidate_global_value_sets()
            description = "Global Value Set and field created successfully"

        logger.info(f"{description}: {self.object_name}.{payload.get('apiCode')}")
        self.notifier.notify("Success", description)
        self.closed = True
        return True
