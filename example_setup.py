"""Beispiel: Felder eines Business Objects per Field Builder anlegen.

Dieses Script zeigt wie ueber Wizard und Detail-Editoren ein Account-Object
um Felder erweitert wird: Text, Zahl, Auswahlliste mit neuem Global Value
Set, Adresse und Lookup.

Ausfuehren: python example_setup.py [Object]
(Voraussetzung: Backend laeuft unter API_BASE_URL, Default localhost:5000)
"""

import sys

from field_builder.api.client import FieldBuilderClient
from field_builder.core.errors import ValidationError
from field_builder.core.notifications import Notifier
from field_builder.services.field_list import FieldListController
from field_builder.services.field_wizard import PicklistSource
from field_builder.services.queries import FieldQueries


def print_notification(n):
    print(f"  [{n.variant}] {n.title}: {n.description}")


def create(controller, field_type, subtype=None, source=None, lookup=None, **values):
    wizard = controller.add_field()
    wizard.select_field_type(field_type)
    wizard.next()
    if subtype:
        wizard.select_subtype(subtype)
        wizard.next()
    if source:
        name, entries = source
        wizard.select_source(PicklistSource.NEW_CUSTOM)
        wizard.set_new_value_set(name, "\n".join(entries))
        wizard.next()
    if lookup:
        wizard.select_lookup_object(lookup)
        wizard.next()
    for key, value in values.items():
        wizard.set_value(key, value)
    try:
        ok = wizard.submit()
    except ValidationError as exc:
        print(f"  Validation: {exc.message} {exc.field_errors()}")
        return False
    return ok


def main():
    object_name = sys.argv[1] if len(sys.argv) > 1 else "Account"
    notifier = Notifier(print_notification)

    with FieldBuilderClient() as client:
        controller = FieldListController(object_name, FieldQueries(client), notifier)

        print(f"=== Object: {object_name} ===")
        if not controller.load():
            print(f"  {controller.error}")
            return
        print(f"  Fields: {len(controller.fields)}")

        print("\n=== Neue Felder ===")
        if not controller.find("website"):
            create(controller, "TextField", subtype="url", apiCode="website", label="Website")
        if not controller.find("discount"):
            create(controller, "NumberField", apiCode="discount", label="Rabatt",
                   format="Percentage", decimalPlaces="1")
        if not controller.find("leadSource"):
            create(controller, "DropDownListField",
                   source=("leadSource", ["Web", "Referral", "Trade Show"]),
                   apiCode="leadSource", label="Lead Source")
        if not controller.find("billing"):
            create(controller, "AddressField", apiCode="billing", label="Rechnungsadresse")
        if not controller.find("parentAccount"):
            create(controller, "LookupField", lookup="Account",
                   apiCode="parentAccount", label="Parent Account",
                   primaryDisplayField="name", displayColumns=["name"])

        controller.load()
        print(f"\n=== Felder nach Setup: {len(controller.fields)} ===")
        for field in controller.fields:
            print(f"  {field.type:<20} {field.api_code:<20} {field.label}")

        # Value Set bearbeiten: Reihenfolge umdrehen
        lead_source = controller.find("leadSource")
        if lead_source:
            print("\n=== Value Set: leadSource ===")
            editor = controller.select(lead_source)
            option_set = editor.option_set_editor()
            if option_set and option_set.load():
                print(f"  Values: {[row.label for row in option_set.rows]}")
                if len(option_set.items) > 1:
                    option_set.move_row(option_set.keys[-1], 0)
                    option_set.save()
                    print(f"  Neu sortiert: {[row.label for row in option_set.rows]}")
            controller.back()


if __name__ == "__main__":
    main()
