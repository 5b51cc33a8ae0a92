from field_builder.core.metadata import (
    as_list,
    bool_str,
    first_value,
    flatten_xml_metadata,
    parse_int,
    text_value,
    to_bool,
)
from field_builder.schemas.field_definition import (
    FieldReference,
    address_columns,
    normalize_number_format,
    parse_display_columns,
)


def test_flatten_unwraps_root_and_single_values():
    flat = flatten_xml_metadata({
        "FieldDefinition": {
            "apiCode": ["website"],
            "helpText": [""],
            "placeHolder": [],
            "displayColumns": ["name", "industry"],
        },
    })
    assert flat == {"apiCode": "website", "displayColumns": ["name", "industry"]}


def test_flatten_accepts_flat_json_and_garbage():
    assert flatten_xml_metadata({"apiCode": "x", "label": None}) == {"apiCode": "x"}
    assert flatten_xml_metadata(None) == {}
    assert flatten_xml_metadata(["not", "a", "dict"]) == {}


def test_one_or_many_children():
    assert as_list(None) == []
    assert as_list({"label": "A"}) == [{"label": "A"}]
    assert as_list([1, 2]) == [1, 2]
    assert first_value([]) is None
    assert first_value(["a", "b"]) == "a"


def test_boolean_parsing():
    assert to_bool(["true"]) is True
    assert to_bool("FALSE") is False
    assert to_bool(None, default=True) is True
    assert to_bool("garbage") is False
    assert bool_str(True) == "true"
    assert bool_str("false") == "false"


def test_scalar_helpers():
    assert text_value(None) == ""
    assert text_value([5]) == "5"
    assert parse_int(["3"]) == 3
    assert parse_int("2.0") == 2
    assert parse_int("x") is None
    assert parse_int(True) is None


def test_number_format_normalization():
    assert normalize_number_format("decimal") == "Number"
    assert normalize_number_format("Percentage") == "Percentage"
    assert normalize_number_format("") == "Number"
    assert normalize_number_format("Scientific") == "Scientific"


def test_address_columns():
    assert address_columns("billing") == {
        "streetAddressColumn": "billingStreetAddress",
        "cityColumn": "billingCity",
        "stateProvinceColumn": "billingStateProvince",
        "zipCodeColumn": "billingZipCode",
        "countryColumn": "billingCountry",
    }
    assert set(address_columns("  ").values()) == {""}


def test_display_columns_parsing():
    assert parse_display_columns('["a", "b"]') == ["a", "b"]
    assert parse_display_columns("a, b ,a") == ["a", "b"]
    assert parse_display_columns(["a", ["b"], ""]) == ["a", "b"]
    assert parse_display_columns("") == []
    assert parse_display_columns(None) == []


def test_field_reference_code_comes_from_file_path():
    ref = FieldReference.model_validate({
        "type": "TextField", "apiCode": "website", "label": "Website",
        "filePath": "website_v2.field_meta.xml",
    })
    assert ref.field_code == "website_v2"
    assert FieldReference(type="TextField", api_code="name").field_code == "name"
