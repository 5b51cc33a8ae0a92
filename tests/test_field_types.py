import pytest

from field_builder.core.errors import UnsupportedFieldTypeError, ValidationError
from field_builder.core.field_types import (
    COMING_SOON_TYPES,
    WIZARD_FIELD_TYPE_CHOICES,
    FieldType,
    apply_changes,
    attribute_schema,
    default_values,
    form_from_metadata,
    to_payload,
    validate_field,
)
from field_builder.schemas.field_definition import API_CODE_MESSAGE, NumberField


def _form(field_type, **values):
    form = default_values(field_type)
    form.update(values)
    return form


def test_field_type_set_is_closed():
    assert [t.value for t in FieldType] == [
        "TextField", "NumberField", "DateTimeField", "DropDownListField",
        "CheckboxField", "AddressField", "LookupField",
    ]
    assert FieldType.parse("LookupField") is FieldType.LOOKUP

    with pytest.raises(UnsupportedFieldTypeError) as exc:
        FieldType.parse("FormulaField")
    assert exc.value.message == "Unsupported field type: FormulaField"
    assert exc.value.details[0].code == "UNSUPPORTED_FIELD_TYPE"


def test_wizard_choices_include_coming_soon_types():
    for name in COMING_SOON_TYPES:
        assert name in WIZARD_FIELD_TYPE_CHOICES
    assert "AddressField" in WIZARD_FIELD_TYPE_CHOICES


def test_default_values_are_fresh_copies():
    lookup = default_values("LookupField")
    lookup["displayColumns"].append("name")
    assert default_values("LookupField")["displayColumns"] == []

    number = default_values(FieldType.NUMBER)
    assert number["type"] == "NumberField"
    assert number["format"] == "Number"
    assert number["decimalPlaces"] == "2"
    assert number["apiCode"] == ""


def test_decimal_places_out_of_range_is_rejected():
    form = _form("NumberField", apiCode="amount", label="Amount", decimalPlaces="11")
    with pytest.raises(ValidationError) as exc:
        validate_field(form)
    assert exc.value.field_errors() == {
        "decimalPlaces": "Decimal places must be a number between 0 and 10",
    }


def test_step_must_be_numeric():
    form = _form("NumberField", apiCode="amount", label="Amount", step="abc")
    with pytest.raises(ValidationError) as exc:
        validate_field(form)
    assert exc.value.field_errors()["step"] == "Step must be a valid number"


def test_number_values_are_coerced():
    field = validate_field(_form("NumberField", apiCode="amount", label="Amount", step="0.5"))
    assert isinstance(field, NumberField)
    assert field.step == 0.5
    assert field.decimal_places == 2

    payload = to_payload(field)
    assert payload["decimalPlaces"] == 2
    assert payload["format"] == "Number"


def test_api_code_and_label_rules():
    with pytest.raises(ValidationError) as exc:
        validate_field(_form("TextField", apiCode="1website", label=""))
    errors = exc.value.field_errors()
    assert errors["apiCode"] == API_CODE_MESSAGE
    assert errors["label"] == "Label is required"

    with pytest.raises(ValidationError) as exc:
        validate_field(_form("TextField", apiCode="  ", label="Website"))
    assert exc.value.field_errors()["apiCode"] == "API Code is required"


def test_unknown_type_is_rejected_by_validation():
    with pytest.raises(UnsupportedFieldTypeError):
        validate_field({"type": "AmountField", "apiCode": "x", "label": "X"})


def test_checkbox_payload_uses_string_booleans():
    field = validate_field(_form("CheckboxField", apiCode="active", label="Active", defaultValue=True))
    assert to_payload(field)["defaultValue"] == "true"

    with pytest.raises(ValidationError) as exc:
        validate_field(_form("CheckboxField", apiCode="active", label="Active", defaultValue="maybe"))
    assert "defaultValue" in exc.value.field_errors()


def test_dropdown_requires_source_path():
    with pytest.raises(ValidationError) as exc:
        validate_field(_form("DropDownListField", apiCode="industry", label="Industry"))
    assert exc.value.field_errors()["sourcePath"] == "Source path is required"


def test_universal_sources_get_fixed_keys():
    field = validate_field(_form(
        "DropDownListField", apiCode="country", label="Country",
        sourceType="UniversalMetadata", sourcePath="currencies.xml",
    ))
    assert (field.root_key, field.item_key) == ("currencies", "currency")
    payload = to_payload(field)
    assert payload["rootKey"] == "currencies"
    assert payload["showSearch"] == "false"


def test_lookup_display_column_limits():
    base = dict(apiCode="parent", label="Parent", referencedObject="Account", primaryDisplayField="name")

    with pytest.raises(ValidationError) as exc:
        validate_field(_form("LookupField", **base, displayColumns=[]))
    assert exc.value.field_errors()["displayColumns"] == "At least one display column is required"

    with pytest.raises(ValidationError) as exc:
        validate_field(_form("LookupField", **base, displayColumns=["a", "b", "c", "d", "e", "f"]))
    assert exc.value.field_errors()["displayColumns"] == "Maximum 5 display columns allowed"

    field = validate_field(_form("LookupField", **base, displayColumns="name, industry, name"))
    assert field.display_columns == ["name", "industry"]
    assert "relationshipApiCode" not in to_payload(field)


def test_address_columns_are_derived_when_missing():
    field = validate_field(_form("AddressField", apiCode="shipping", label="Shipping"))
    assert field.street_address_column == "shippingStreetAddress"
    assert field.country_column == "shippingCountry"


def test_form_from_metadata_flattens_xml_shape():
    form = form_from_metadata("TextField", {
        "FieldDefinition": {
            "type": ["TextField"],
            "apiCode": ["website"],
            "label": ["Website"],
            "subtype": ["url"],
            "maxLength": ["255"],
            "copyAble": ["true"],
        },
    })
    assert form["apiCode"] == "website"
    assert form["subtype"] == "url"
    assert form["maxLength"] == "255"
    assert form["copyAble"] is True
    assert form["truncate"] is False


def test_form_from_metadata_normalizes_legacy_number_format():
    form = form_from_metadata("NumberField", {"type": "NumberField", "apiCode": "rate", "format": "percentage"})
    assert form["format"] == "Percentage"
    assert form["decimalPlaces"] == "2"

    form = form_from_metadata("NumberField", {"type": "NumberField", "apiCode": "qty", "format": "integer"})
    assert form["format"] == "Number"


def test_form_from_metadata_parses_display_columns():
    form = form_from_metadata("LookupField", {
        "type": "LookupField", "apiCode": "parent", "displayColumns": '["name", "industry"]',
    })
    assert form["displayColumns"] == ["name", "industry"]


def test_apply_changes_does_not_mutate_input():
    form = default_values("TextField")
    updated = apply_changes(form, {"label": "Website"})
    assert form["label"] == ""
    assert updated["label"] == "Website"


def test_attribute_schema_uses_wire_names():
    schema = attribute_schema("NumberField")
    assert "decimalPlaces" in schema["properties"]
    assert "apiCode" in schema["required"]
