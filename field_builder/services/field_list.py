"""Feldliste eines Business Objects: Einstieg in Detail-Ansicht und Wizard."""

import logging

from field_builder.core.errors import ApiError
from field_builder.core.notifications import Notifier
from field_builder.schemas.field_definition import FieldReference
from field_builder.services.detail_editors import EditorMode, FieldDetailEditor
from field_builder.services.field_router import UnsupportedFieldView, route_field
from field_builder.services.field_wizard import FieldWizard
from field_builder.services.queries import FieldQueries

logger = logging.getLogger(__name__)


class FieldListController:
    def __init__(self, object_name: str, queries: FieldQueries, notifier: Notifier | None = None):
        self.object_name = object_name
        self.queries = queries
        self.notifier = notifier or Notifier()
        self.fields: list[FieldReference] = []
        self.error: str | None = None
        self.selected: FieldDetailEditor | UnsupportedFieldView | None = None
        self.wizard: FieldWizard | None = None

    def load(self) -> bool:
        try:
            self.fields = self.queries.field_list(self.object_name)
        except ApiError as exc:
            logger.warning(f"Loading fields of '{self.object_name}' failed: {exc.message}")
            self.error = f"Error loading field definitions: {exc.message}"
            self.fields = []
            return False
        self.error = None
        return True

    def find(self, api_code: str) -> FieldReference | None:
        for field in self.fields:
            if field.api_code == api_code:
                return field
        return None

    def select(self, field: FieldReference) -> FieldDetailEditor | UnsupportedFieldView:
        """Open the detail view of a field in view mode."""
        self._dispose_selected()
        view = route_field(
            field, self.object_name, self.queries,
            notifier=self.notifier, mode=EditorMode.VIEW, on_back=self.back,
        )
        if isinstance(view, FieldDetailEditor):
            view.load()
        self.selected = view
        return view

    def edit_selected(self) -> None:
        if isinstance(self.selected, FieldDetailEditor):
            self.selected.edit()

    def back(self) -> None:
        self._dispose_selected()
        self.selected = None
        self.load()

    def _dispose_selected(self) -> None:
        if isinstance(self.selected, FieldDetailEditor):
            self.selected.dispose()

    def add_field(self) -> FieldWizard:
        self.wizard = FieldWizard(self.object_name, self.queries, notifier=self.notifier)
        return self.wizard

    def edit_field(self, field: FieldReference) -> FieldWizard:
        self.wizard = FieldWizard(
            self.object_name, self.queries, notifier=self.notifier, field_to_edit=field,
        )
        if not self.wizard.load():
            self.error = self.wizard.error
        return self.wizard
